"""
Session-forge context
=====================
Read-only keyword search over session-forge's own data files: journal
entries, decision records and dead ends. Missing directory, missing files or
unparseable JSON simply contribute nothing.

Files are append-ordered (oldest first); results come back newest first,
at most FORGE_MAX_RESULTS per kind.
"""

import json
from pathlib import Path
from typing import Optional

from mind.config import FORGE_DIR, FORGE_MAX_RESULTS
from mind.keywords import keyword_set, shared_count
from mind.log import log

# file name, top-level key, fields searched (list fields are joined)
SOURCES = {
    "journals": ("journal.json", "sessions", ("session_summary", "key_moments", "breakthroughs", "frustrations")),
    "decisions": ("decisions.json", "decisions", ("choice", "reasoning", "alternatives", "tags")),
    "dead_ends": ("dead-ends.json", "dead_ends", ("attempted", "why_failed", "lesson", "tags")),
}


def _forge_dir(base_dir=None) -> Path:
    return Path(base_dir) if base_dir is not None else FORGE_DIR


def is_available(base_dir=None) -> bool:
    return _forge_dir(base_dir).exists()


def _read_entries(path: Path, key: str) -> list[dict]:
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        log.debug("Ignoring unreadable %s: %s", path, e)
        return []
    if not isinstance(data, dict) or not isinstance(data.get(key, []), list):
        return []
    return [e for e in data.get(key, []) if isinstance(e, dict)]


def _entry_text(entry: dict, fields) -> str:
    parts = []
    for field in fields:
        value = entry.get(field)
        if isinstance(value, list):
            parts.append(" ".join(str(v) for v in value))
        elif value is not None:
            parts.append(str(value))
        else:
            parts.append("")
    return " ".join(parts)


def search_context(query: str, base_dir: Optional[str] = None) -> dict:
    """Entries of each kind sharing at least one keyword with `query`."""
    context = {kind: [] for kind in SOURCES}
    directory = _forge_dir(base_dir)
    if not directory.exists():
        return context

    keywords = keyword_set(query)
    if not keywords:
        return context

    for kind, (filename, key, fields) in SOURCES.items():
        matches = [
            entry for entry in _read_entries(directory / filename, key)
            if shared_count(keywords, keyword_set(_entry_text(entry, fields))) >= 1
        ]
        matches.reverse()
        context[kind] = matches[:FORGE_MAX_RESULTS]

    return context
