"""
Auto-Linker
===========
When a thought is logged, every other thought that shares enough vocabulary
with it gets a connection from the new thought. One pass over all thoughts per
log call, no index: fine for hundreds to low thousands of thoughts.
"""

from typing import Optional

from mind.config import AUTO_LINK_MIN_SHARED, AUTO_LINK_STRENGTH_STEP
from mind.errors import StorageError
from mind.keywords import keyword_set, shared_count
from mind.log import log
from mind.models import Connection, Thought, new_id, utc_now


def link_strength(shared: int) -> float:
    """0.15 per shared keyword, capped at 1.0."""
    return min(1.0, shared * AUTO_LINK_STRENGTH_STEP)


def auto_link(store, thought: Thought, now: Optional[str] = None) -> list[tuple[Connection, Thought]]:
    """
    Connect `thought` to every existing thought sharing >= 2 keywords.

    Returns (connection, linked thought) pairs for the connections actually
    stored. A connection that fails to insert is skipped; the rest continue.
    """
    now = now or utc_now()
    new_keywords = keyword_set(thought.content)
    if len(new_keywords) < AUTO_LINK_MIN_SHARED:
        return []

    try:
        existing_thoughts = store.list_thoughts()
    except StorageError as e:
        log.warning("Auto-link skipped for %s: %s", thought.id, e)
        return []

    linked = []
    for existing in existing_thoughts:
        if existing.id == thought.id:
            continue
        shared = shared_count(new_keywords, keyword_set(existing.content))
        if shared < AUTO_LINK_MIN_SHARED:
            continue
        connection = Connection(
            id=new_id(),
            from_thought=thought.id,
            to_thought=existing.id,
            strength=link_strength(shared),
            reason=f"Auto-connected: {shared} shared keywords",
            created_at=now,
        )
        try:
            store.upsert_connection(connection)
        except StorageError as e:
            log.debug("Auto-link %s -> %s skipped: %s", thought.id, existing.id, e)
            continue
        linked.append((connection, existing))

    return linked
