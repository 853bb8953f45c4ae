"""
The Mind Schema Migrations
==========================
Base tables are created idempotently by the store. Everything after that is
an ordered list of versioned migrations. Each version runs in one
transaction; if it fails, it rolls back and the store refuses to open.

To add a migration:
    1. Add a new entry to MIGRATIONS with the next version number
    2. Each entry is a list of SQL statements
    3. All statements in a version run in one transaction
"""

from collections import OrderedDict
from datetime import datetime, timezone
import sqlite3

from mind.errors import StorageError


BASE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS thoughts (
        id TEXT PRIMARY KEY,
        content TEXT NOT NULL,
        role TEXT,
        category TEXT DEFAULT 'other',
        importance REAL DEFAULT 0.5,
        position_x REAL DEFAULT 0.0,
        position_y REAL DEFAULT 0.0,
        position_z REAL DEFAULT 0.0,
        created_at TEXT NOT NULL,
        last_referenced TEXT NOT NULL,
        metadata TEXT
    );

    CREATE TABLE IF NOT EXISTS connections (
        id TEXT PRIMARY KEY,
        from_thought TEXT NOT NULL,
        to_thought TEXT NOT NULL,
        strength REAL DEFAULT 0.5,
        reason TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (from_thought) REFERENCES thoughts(id),
        FOREIGN KEY (to_thought) REFERENCES thoughts(id)
    );

    CREATE TABLE IF NOT EXISTS sessions (
        id TEXT PRIMARY KEY,
        title TEXT,
        started_at TEXT NOT NULL,
        ended_at TEXT,
        summary TEXT,
        metadata TEXT
    );

    -- Declared for forward compatibility; nothing writes it yet.
    CREATE TABLE IF NOT EXISTS session_thoughts (
        session_id TEXT,
        thought_id TEXT,
        position INTEGER,
        PRIMARY KEY (session_id, thought_id),
        FOREIGN KEY (session_id) REFERENCES sessions(id),
        FOREIGN KEY (thought_id) REFERENCES thoughts(id)
    );

    CREATE TABLE IF NOT EXISTS clusters (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        category TEXT NOT NULL,
        center_x REAL DEFAULT 0.0,
        center_y REAL DEFAULT 0.0,
        center_z REAL DEFAULT 0.0,
        thought_count INTEGER DEFAULT 0,
        created_at TEXT NOT NULL
    );
"""

MIGRATIONS = OrderedDict()

# Version 1: lookup indexes for category filters, content search and edge walks.
MIGRATIONS[1] = [
    "CREATE INDEX IF NOT EXISTS idx_thoughts_category ON thoughts(category)",
    "CREATE INDEX IF NOT EXISTS idx_thoughts_content ON thoughts(content)",
    "CREATE INDEX IF NOT EXISTS idx_connections_from ON connections(from_thought)",
    "CREATE INDEX IF NOT EXISTS idx_connections_to ON connections(to_thought)",
]

LATEST_VERSION = max(MIGRATIONS.keys())


class SchemaMigrationError(StorageError):
    """A migration failed and was rolled back."""


def get_version(conn) -> int:
    """Get current schema version. Returns 0 if no version table."""
    try:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    except sqlite3.OperationalError:
        return 0
    return row[0] if row[0] is not None else 0


def run_migrations(conn):
    """Create base tables, then run pending migrations, each in its own transaction."""
    conn.executescript(BASE_SCHEMA)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TEXT NOT NULL
        )
    """)
    conn.commit()

    current = get_version(conn)
    applied = []

    for version, statements in MIGRATIONS.items():
        if version <= current:
            continue
        try:
            conn.execute("BEGIN")
            for stmt in statements:
                conn.execute(stmt)
            now = datetime.now(timezone.utc).isoformat()
            conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (version, now),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise SchemaMigrationError(
                f"Schema migration to version {version} failed: {e}"
            ) from e
        applied.append(version)

    return applied
