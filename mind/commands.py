"""
The Mind Command Interface
Data-level operations for the desktop client, one per store method.
Each returns {"ok": True, "data": ...} or {"ok": False, "error": "<message>"}.
"""

from mind import clusters, forge
from mind.errors import StorageError
from mind.log import log
from mind.models import Thought, Connection


class CommandError(Exception):
    """Bad command parameters."""


def _param(params: dict, key: str):
    if key not in params:
        raise CommandError(f"missing parameter `{key}`")
    return params[key]


def _number(params: dict, key: str) -> float:
    value = _param(params, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CommandError(f"`{key}` must be a number")
    return float(value)


def get_all_thoughts(store, params):
    return [t.to_dict() for t in store.list_thoughts()]


def get_all_connections(store, params):
    return [c.to_dict() for c in store.list_connections()]


def add_thought(store, params):
    data = _param(params, "thought")
    try:
        thought = Thought.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise CommandError(f"invalid thought: {e}") from e
    store.upsert_thought(thought)
    return None


def add_connection(store, params):
    data = _param(params, "connection")
    try:
        connection = Connection.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise CommandError(f"invalid connection: {e}") from e
    store.upsert_connection(connection)
    return None


def search_thoughts(store, params):
    query = _param(params, "query")
    if not isinstance(query, str):
        raise CommandError("`query` must be a string")
    return [t.to_dict() for t in store.search(query)]


def get_all_sessions(store, params):
    return [s.to_dict() for s in store.list_sessions()]


def get_db_version(store, params):
    return store.db_version().to_dict()


def get_thought_count(store, params):
    return store.thought_count()


def get_thoughts_near(store, params):
    point = (_number(params, "x"), _number(params, "y"), _number(params, "z"))
    radius = _number(params, "radius")
    limit = int(_number(params, "limit"))
    return [t.to_dict() for t in store.nearest(point, radius, limit)]


def get_connections_for_thoughts(store, params):
    ids = _param(params, "ids")
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise CommandError("`ids` must be a list of strings")
    return [c.to_dict() for c in store.connections_among(ids)]


def get_all_clusters(store, params):
    return [c.to_dict() for c in store.list_clusters()]


def recompute_clusters(store, params):
    return [c.to_dict() for c in clusters.recompute(store)]


def get_forge_available(store, params):
    return forge.is_available()


def get_forge_context(store, params):
    query = _param(params, "query")
    if not isinstance(query, str):
        raise CommandError("`query` must be a string")
    return forge.search_context(query)


COMMANDS = {
    "get_all_thoughts": get_all_thoughts,
    "get_all_connections": get_all_connections,
    "add_thought": add_thought,
    "add_connection": add_connection,
    "search_thoughts": search_thoughts,
    "get_all_sessions": get_all_sessions,
    "get_db_version": get_db_version,
    "get_thought_count": get_thought_count,
    "get_thoughts_near": get_thoughts_near,
    "get_connections_for_thoughts": get_connections_for_thoughts,
    "get_all_clusters": get_all_clusters,
    "recompute_clusters": recompute_clusters,
    "get_forge_available": get_forge_available,
    "get_forge_context": get_forge_context,
}


def run_command(store, name: str, params: dict = None) -> dict:
    command = COMMANDS.get(name)
    if command is None:
        return {"ok": False, "error": f"Unknown command: {name}"}
    if params is None:
        params = {}
    if not isinstance(params, dict):
        return {"ok": False, "error": "Command parameters must be an object"}
    try:
        return {"ok": True, "data": command(store, params)}
    except (StorageError, CommandError) as e:
        log.info("Command %s failed: %s", name, e)
        return {"ok": False, "error": str(e)}
