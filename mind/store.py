"""
The Mind Store
==============
Owns the durable state: thoughts, connections, sessions and clusters in one
SQLite file. Every public operation runs under a single lock, one operation
in flight at a time. Each operation opens its own short-lived connection, so
a second process (desktop app + protocol server) can share the file; SQLite's
own file locking arbitrates between them.

Everything handed back is an immutable snapshot from mind.models.
"""

import functools
import json
import math
import sqlite3
import threading
from pathlib import Path
from typing import Iterable, Optional

import numpy as np

from mind.clusters import build_clusters
from mind.config import (
    DB_PATH, SEARCH_LIMIT, POSITION_MIN_RADIUS, POSITION_MAX_RADIUS,
)
from mind.errors import StorageError
from mind.log import log
from mind.migrations import run_migrations
from mind.models import Thought, Connection, Session, Cluster, DbVersion, utc_now

_THOUGHT_COLUMNS = (
    "id, content, role, category, importance, position_x, position_y, position_z, "
    "created_at, last_referenced"
)
_CONNECTION_COLUMNS = "id, from_thought, to_thought, strength, reason, created_at"
_CLUSTER_COLUMNS = (
    "id, name, category, center_x, center_y, center_z, thought_count, created_at"
)


def generate_position(rng: Optional[np.random.Generator] = None) -> tuple[float, float, float]:
    """
    Random placement for a new thought on a shell of radius 10..40.

    Angles are drawn uniformly (azimuth in [0, 2pi), polar in [0, pi)), which
    bunches points toward the poles. Clients depend on that look; keep it.
    Without an rng, a fresh generator seeded from OS entropy is used per call.
    """
    rng = rng if rng is not None else np.random.default_rng()
    radius = POSITION_MIN_RADIUS + rng.random() * (POSITION_MAX_RADIUS - POSITION_MIN_RADIUS)
    theta = rng.random() * 2.0 * math.pi
    phi = rng.random() * math.pi
    x = radius * math.sin(phi) * math.cos(theta)
    y = radius * math.sin(phi) * math.sin(theta)
    z = radius * math.cos(phi)
    return (x, y, z)


def _guarded(method):
    """Serialize on the store lock; surface sqlite failures as StorageError."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                return method(self, *args, **kwargs)
            except sqlite3.Error as e:
                log.debug("Storage error in %s: %s", method.__name__, e)
                raise StorageError(str(e)) from e
    return wrapper


class Store:
    """
    The persistent thought graph.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = str(db_path or DB_PATH)
        self._lock = threading.Lock()
        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create database directory: {e}") from e
        self._init_db()

    @_guarded
    def _init_db(self):
        conn = self._connect()
        try:
            applied = run_migrations(conn)
        finally:
            conn.close()
        if applied:
            log.info("Schema migrated to version %d (%s)", applied[-1], self.db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=10000")
        return conn

    # ── Writes ───────────────────────────────────────────

    @_guarded
    def upsert_thought(self, thought: Thought):
        conn = self._connect()
        try:
            conn.execute(
                f"INSERT OR REPLACE INTO thoughts ({_THOUGHT_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    thought.id, thought.content, thought.role, thought.category,
                    thought.importance, thought.position_x, thought.position_y,
                    thought.position_z, thought.created_at, thought.last_referenced,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    @_guarded
    def upsert_connection(self, connection: Connection):
        conn = self._connect()
        try:
            conn.execute(
                f"INSERT OR REPLACE INTO connections ({_CONNECTION_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    connection.id, connection.from_thought, connection.to_thought,
                    connection.strength, connection.reason, connection.created_at,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    @_guarded
    def upsert_session(self, session: Session):
        conn = self._connect()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO sessions (id, title, summary, started_at, ended_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (session.id, session.title, session.summary, session.started_at, session.ended_at),
            )
            conn.commit()
        finally:
            conn.close()

    # ── Snapshots ────────────────────────────────────────

    @_guarded
    def list_thoughts(self) -> list[Thought]:
        conn = self._connect()
        try:
            rows = conn.execute(f"SELECT {_THOUGHT_COLUMNS} FROM thoughts").fetchall()
        finally:
            conn.close()
        return [Thought.from_row(r) for r in rows]

    @_guarded
    def list_connections(self) -> list[Connection]:
        conn = self._connect()
        try:
            rows = conn.execute(f"SELECT {_CONNECTION_COLUMNS} FROM connections").fetchall()
        finally:
            conn.close()
        return [Connection.from_row(r) for r in rows]

    @_guarded
    def list_sessions(self) -> list[Session]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT id, title, summary, started_at, ended_at FROM sessions "
                "ORDER BY started_at DESC"
            ).fetchall()
        finally:
            conn.close()
        return [Session.from_row(r) for r in rows]

    @_guarded
    def list_clusters(self) -> list[Cluster]:
        conn = self._connect()
        try:
            rows = conn.execute(f"SELECT {_CLUSTER_COLUMNS} FROM clusters").fetchall()
        finally:
            conn.close()
        return [Cluster.from_row(r) for r in rows]

    # ── Queries ──────────────────────────────────────────

    @_guarded
    def search(self, text: str) -> list[Thought]:
        """Substring match on content, most important then most recent first."""
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_THOUGHT_COLUMNS} FROM thoughts "
                "WHERE content LIKE ? "
                "ORDER BY importance DESC, last_referenced DESC "
                "LIMIT ?",
                (f"%{text}%", SEARCH_LIMIT),
            ).fetchall()
        finally:
            conn.close()
        return [Thought.from_row(r) for r in rows]

    @_guarded
    def nearest(self, point, radius: float, limit: int) -> list[Thought]:
        """Thoughts within `radius` of `point`, closest first, at most `limit`."""
        if limit <= 0:
            return []
        x, y, z = (float(c) for c in point)
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_THOUGHT_COLUMNS}, "
                "((position_x - :x) * (position_x - :x) + "
                " (position_y - :y) * (position_y - :y) + "
                " (position_z - :z) * (position_z - :z)) AS dist_sq "
                "FROM thoughts "
                "WHERE dist_sq <= (:r * :r) "
                "ORDER BY dist_sq ASC "
                "LIMIT :limit",
                {"x": x, "y": y, "z": z, "r": float(radius), "limit": int(limit)},
            ).fetchall()
        finally:
            conn.close()
        return [Thought.from_row(r) for r in rows]

    @_guarded
    def connections_among(self, ids: Iterable[str]) -> list[Connection]:
        """Connections whose endpoints are *both* in `ids`."""
        id_list = sorted(set(ids))
        if not id_list:
            return []
        payload = json.dumps(id_list)
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_CONNECTION_COLUMNS} FROM connections "
                "WHERE from_thought IN (SELECT value FROM json_each(?)) "
                "AND to_thought IN (SELECT value FROM json_each(?))",
                (payload, payload),
            ).fetchall()
        finally:
            conn.close()
        return [Connection.from_row(r) for r in rows]

    # ── Clusters ─────────────────────────────────────────

    @_guarded
    def recompute_clusters(self) -> list[Cluster]:
        """Replace the whole cluster set in one transaction."""
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                rows = conn.execute(f"SELECT {_THOUGHT_COLUMNS} FROM thoughts").fetchall()
                clusters = build_clusters([Thought.from_row(r) for r in rows], now=utc_now())
                conn.execute("DELETE FROM clusters")
                conn.executemany(
                    f"INSERT INTO clusters ({_CLUSTER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    [
                        (c.id, c.name, c.category, c.center_x, c.center_y, c.center_z,
                         c.thought_count, c.created_at)
                        for c in clusters
                    ],
                )
                conn.commit()
            except BaseException:
                conn.rollback()
                raise
        finally:
            conn.close()
        return clusters

    # ── Change counters ──────────────────────────────────

    @_guarded
    def max_thought_version(self) -> int:
        conn = self._connect()
        try:
            return conn.execute("SELECT COALESCE(MAX(rowid), 0) FROM thoughts").fetchone()[0]
        finally:
            conn.close()

    @_guarded
    def max_connection_version(self) -> int:
        conn = self._connect()
        try:
            return conn.execute("SELECT COALESCE(MAX(rowid), 0) FROM connections").fetchone()[0]
        finally:
            conn.close()

    def db_version(self) -> DbVersion:
        return DbVersion(
            thought_max_id=self.max_thought_version(),
            connection_max_id=self.max_connection_version(),
        )

    @_guarded
    def thought_count(self) -> int:
        conn = self._connect()
        try:
            return conn.execute("SELECT COUNT(*) FROM thoughts").fetchone()[0]
        finally:
            conn.close()

    # ── Stats ────────────────────────────────────────────

    @_guarded
    def stats(self) -> dict:
        conn = self._connect()
        try:
            counts = {
                table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                for table in ("thoughts", "connections", "sessions", "clusters")
            }
            categories = [
                r[0] for r in conn.execute(
                    "SELECT DISTINCT category FROM thoughts ORDER BY category"
                ).fetchall()
            ]
        finally:
            conn.close()

        db_size_mb = 0
        try:
            db_size_mb = round(Path(self.db_path).stat().st_size / (1024 * 1024), 2)
        except OSError:
            pass

        return {
            "total_thoughts": counts["thoughts"],
            "total_connections": counts["connections"],
            "total_sessions": counts["sessions"],
            "total_clusters": counts["clusters"],
            "categories": categories,
            "db_path": self.db_path,
            "db_size_mb": db_size_mb,
        }
