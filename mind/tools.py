"""
The Mind Tool Registry
Single source of truth for the four agent-facing tools and their handlers.
The protocol server lists TOOLS and routes tools/call through call_tool().
"""

from mcp.types import Tool, TextContent

from mind import clusters
from mind.config import (
    CATEGORIES, RECALL_DEFAULT_LIMIT, MANUAL_LINK_STRENGTH,
    LOG_PREVIEW_CHARS, CONNECT_PREVIEW_CHARS,
)
from mind.errors import StorageError, ToolError
from mind.linker import auto_link
from mind.log import log
from mind.models import Thought, Connection, Session, new_id, utc_now
from mind.store import generate_position

TOOLS = [
    Tool(
        name="mind_log",
        description=(
            "Log a thought, concept, or important point to The Mind. Use this to record "
            "key ideas, decisions, or insights during conversation. The thought will appear "
            "as a glowing node in 3D space."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "The thought or concept to record"},
                "category": {
                    "type": "string",
                    "enum": list(CATEGORIES),
                    "description": "Category of the thought (affects color in visualization)",
                },
                "importance": {
                    "type": "number",
                    "minimum": 0,
                    "maximum": 1,
                    "description": "How significant is this thought (0-1, affects node size)",
                },
            },
            "required": ["content", "category", "importance"],
        },
    ),
    Tool(
        name="mind_connect",
        description=(
            "Create a connection between two concepts in The Mind. Use when you notice "
            "relationships between ideas. The connection appears as a glowing line between nodes."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "from": {"type": "string", "description": "First concept (use exact text of a logged thought)"},
                "to": {"type": "string", "description": "Second concept (use exact text of a logged thought)"},
                "reason": {"type": "string", "description": "Why these concepts connect"},
            },
            "required": ["from", "to", "reason"],
        },
    ),
    Tool(
        name="mind_recall",
        description=(
            "Search The Mind for relevant past thoughts and connections. Use to find "
            "related ideas from previous conversations."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "What to search for"},
                "limit": {
                    "type": "number",
                    "default": RECALL_DEFAULT_LIMIT,
                    "description": "Maximum number of results to return",
                },
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="mind_summarize_session",
        description=(
            "Generate a summary of the current conversation for The Mind. Use at the end "
            "of conversations to create a record."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Brief title for the session"},
                "summary": {"type": "string", "description": "Summary of what was discussed"},
            },
            "required": ["title", "summary"],
        },
    ),
]

TOOL_DEFS = [t.model_dump(by_alias=True, exclude_none=True) for t in TOOLS]
TOOL_NAMES = {t.name for t in TOOLS}


# ── Argument checks ──────────────────────────────────────

def _require_str(args: dict, key: str) -> str:
    if key not in args or args[key] is None:
        raise ToolError(f"Invalid arguments: missing field `{key}`")
    value = args[key]
    if not isinstance(value, str):
        raise ToolError(f"Invalid arguments: `{key}` must be a string")
    return value


def _require_number(args: dict, key: str) -> float:
    if key not in args or args[key] is None:
        raise ToolError(f"Invalid arguments: missing field `{key}`")
    value = args[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolError(f"Invalid arguments: `{key}` must be a number")
    return float(value)


def _optional_limit(args: dict) -> int:
    value = args.get("limit")
    if value is None:
        return RECALL_DEFAULT_LIMIT
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolError("Invalid arguments: `limit` must be a number")
    if value < 0 or value != int(value):
        raise ToolError("Invalid arguments: `limit` must be a non-negative integer")
    return int(value)


# ── Handlers ─────────────────────────────────────────────

def handle_log(store, args: dict) -> str:
    content = _require_str(args, "content")
    category = _require_str(args, "category")
    importance = _require_number(args, "importance")
    if category not in CATEGORIES:
        raise ToolError(
            f"Invalid arguments: category must be one of {', '.join(CATEGORIES)}"
        )
    if not 0.0 <= importance <= 1.0:
        raise ToolError("Invalid arguments: importance must be between 0 and 1")

    now = utc_now()
    x, y, z = generate_position()
    thought = Thought(
        id=new_id(),
        content=content,
        role="assistant",
        category=category,
        importance=importance,
        position_x=x,
        position_y=y,
        position_z=z,
        created_at=now,
        last_referenced=now,
    )
    store.upsert_thought(thought)

    linked = auto_link(store, thought, now=now)

    text = (
        f"Thought logged to The Mind!\n\n"
        f"ID: {thought.id}\n"
        f"Category: {category}\n"
        f"Importance: {importance * 100:.0f}%\n"
        f"Content: \"{content}\""
    )
    if linked:
        previews = "\n".join(
            f"  • {other.content[:LOG_PREVIEW_CHARS]}..." for _, other in linked
        )
        text += f"\n\nAuto-connected to {len(linked)} existing thought(s):\n{previews}"

    try:
        cluster_set = clusters.recompute(store)
    except StorageError as e:
        log.warning("Cluster recompute after log failed: %s", e)
    else:
        text += f"\n\n{len(cluster_set)} cluster(s) updated"

    log.info("Logged thought %s [%s] with %d auto-connection(s)", thought.id, category, len(linked))
    return text


def handle_connect(store, args: dict) -> str:
    source = _require_str(args, "from")
    target = _require_str(args, "to")
    reason = _require_str(args, "reason")

    from_matches = store.search(source)
    to_matches = store.search(target)
    if not from_matches:
        raise ToolError(f"Could not find thought: {source}")
    if not to_matches:
        raise ToolError(f"Could not find thought: {target}")
    from_thought, to_thought = from_matches[0], to_matches[0]

    store.upsert_connection(Connection(
        id=new_id(),
        from_thought=from_thought.id,
        to_thought=to_thought.id,
        strength=MANUAL_LINK_STRENGTH,
        reason=reason,
        created_at=utc_now(),
    ))

    return (
        f"Connection created in The Mind!\n\n"
        f"From: \"{from_thought.content[:CONNECT_PREVIEW_CHARS]}\"\n"
        f"To: \"{to_thought.content[:CONNECT_PREVIEW_CHARS]}\"\n"
        f"Reason: {reason}"
    )


def handle_recall(store, args: dict) -> str:
    query = _require_str(args, "query")
    limit = _optional_limit(args)

    thoughts = store.search(query)
    if not thoughts:
        return f"No thoughts found matching: \"{query}\""

    results = [
        f"• [{t.category}] {t.content} (importance: {t.importance * 100:.0f}%)"
        for t in thoughts[:limit]
    ]
    return f"Found {len(results)} thought(s) matching \"{query}\":\n\n" + "\n".join(results)


def handle_summarize_session(store, args: dict) -> str:
    title = _require_str(args, "title")
    summary = _require_str(args, "summary")

    # One timestamp for both ends: sessions are recorded as a point in time.
    now = utc_now()
    store.upsert_session(Session(
        id=new_id(),
        title=title,
        summary=summary,
        started_at=now,
        ended_at=now,
    ))
    return f"Session summarized and logged to The Mind!\n\nTitle: {title}\nSummary: {summary}"


HANDLERS = {
    "mind_log": handle_log,
    "mind_connect": handle_connect,
    "mind_recall": handle_recall,
    "mind_summarize_session": handle_summarize_session,
}


def text_result(text: str, is_error: bool = False) -> dict:
    """Wrap text as a tools/call result."""
    result = {"content": [TextContent(type="text", text=text).model_dump(by_alias=True, exclude_none=True)]}
    if is_error:
        result["isError"] = True
    return result


def call_tool(store, name: str, arguments: dict) -> dict:
    """Run one tool. Business and storage failures come back as error text, not exceptions."""
    handler = HANDLERS.get(name)
    try:
        if handler is None:
            raise ToolError(f"Unknown tool: {name}")
        if not isinstance(arguments, dict):
            raise ToolError("Invalid arguments: expected an object")
        return text_result(handler(store, arguments))
    except (ToolError, StorageError) as e:
        log.info("Tool %s failed: %s", name, e)
        return text_result(f"Error: {e}", is_error=True)
