"""
Tests for the persistent store.

Usage:
    python -m pytest tests/ -v
"""

import os
import sqlite3
import tempfile
import threading

import numpy as np

from mind.models import Thought, Connection, Session
from mind.store import Store, generate_position


# ── Helpers ───────────────────────────────────────────────

def fresh_store():
    tmp = tempfile.mkdtemp()
    return Store(db_path=os.path.join(tmp, "test.db")), tmp


def make_thought(id, content="a thought", category="work", importance=0.5,
                 pos=(0.0, 0.0, 0.0), ts="2025-01-01T00:00:00+00:00"):
    return Thought(
        id=id, content=content, role="user", category=category, importance=importance,
        position_x=pos[0], position_y=pos[1], position_z=pos[2],
        created_at=ts, last_referenced=ts,
    )


def make_connection(id, src, dst, strength=0.5):
    return Connection(
        id=id, from_thought=src, to_thought=dst, strength=strength,
        reason="test", created_at="2025-01-01T00:00:00+00:00",
    )


# ── Schema ────────────────────────────────────────────────

def test_schema_tables_and_indexes():
    store, _ = fresh_store()
    conn = sqlite3.connect(store.db_path)
    tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    indexes = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='index'")}
    conn.close()
    assert {"thoughts", "connections", "sessions", "session_thoughts", "clusters"} <= tables
    assert {
        "idx_thoughts_category", "idx_thoughts_content",
        "idx_connections_from", "idx_connections_to",
    } <= indexes


def test_reopen_existing_file():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("t1", "survives reopen"))
    again = Store(db_path=store.db_path)
    assert [t.id for t in again.list_thoughts()] == ["t1"]


# ── Upserts ───────────────────────────────────────────────

def test_upsert_thought_is_idempotent():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("t1", "first version"))
    store.upsert_thought(make_thought("t1", "second version"))
    thoughts = store.list_thoughts()
    assert len(thoughts) == 1
    assert thoughts[0].content == "second version"
    assert store.thought_count() == 1


def test_thought_round_trip_fields():
    store, _ = fresh_store()
    t = make_thought("t1", "precise", category="creative", importance=0.9, pos=(1.5, -2.0, 3.25))
    store.upsert_thought(t)
    assert store.list_thoughts() == [t]


def test_parallel_connections_accumulate():
    store, _ = fresh_store()
    store.upsert_connection(make_connection("c1", "a", "b"))
    store.upsert_connection(make_connection("c2", "a", "b"))
    store.upsert_connection(make_connection("c1", "a", "b", strength=0.9))
    connections = sorted(store.list_connections(), key=lambda c: c.id)
    assert [c.id for c in connections] == ["c1", "c2"]
    assert connections[0].strength == 0.9


def test_dangling_connection_allowed():
    store, _ = fresh_store()
    store.upsert_connection(make_connection("c1", "ghost", "nobody"))
    assert len(store.list_connections()) == 1


def test_sessions_newest_first():
    store, _ = fresh_store()
    store.upsert_session(Session(id="s1", title="old", summary="x",
                                 started_at="2025-01-01T00:00:00+00:00", ended_at="2025-01-01T00:00:00+00:00"))
    store.upsert_session(Session(id="s2", title="new", summary=None,
                                 started_at="2025-06-01T00:00:00+00:00"))
    sessions = store.list_sessions()
    assert [s.title for s in sessions] == ["new", "old"]
    assert sessions[0].summary is None
    assert sessions[0].ended_at is None


# ── Search ────────────────────────────────────────────────

def test_search_empty_store():
    store, _ = fresh_store()
    assert store.search("anything") == []


def test_search_substring_case_insensitive_ascii():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("t1", "Distributed Systems in Rust"))
    store.upsert_thought(make_thought("t2", "Sushi for dinner"))
    results = store.search("distributed sys")
    assert [t.id for t in results] == ["t1"]


def test_search_orders_by_importance_then_recency():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("low", "graph note", importance=0.2, ts="2025-03-01T00:00:00+00:00"))
    store.upsert_thought(make_thought("high-old", "graph note", importance=0.9, ts="2025-01-01T00:00:00+00:00"))
    store.upsert_thought(make_thought("high-new", "graph note", importance=0.9, ts="2025-02-01T00:00:00+00:00"))
    assert [t.id for t in store.search("graph")] == ["high-new", "high-old", "low"]


def test_search_capped_at_twenty():
    store, _ = fresh_store()
    for i in range(25):
        store.upsert_thought(make_thought(f"t{i}", f"repeated idea {i}"))
    assert len(store.search("repeated")) == 20


# ── Spatial ───────────────────────────────────────────────

def test_nearest_radius_order_and_limit():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("d1", pos=(1.0, 0.0, 0.0)))
    store.upsert_thought(make_thought("d3", pos=(0.0, 3.0, 0.0)))
    store.upsert_thought(make_thought("d4", pos=(0.0, 0.0, -4.0)))
    store.upsert_thought(make_thought("d5", pos=(3.0, 4.0, 0.0)))
    store.upsert_thought(make_thought("d6", pos=(6.0, 0.0, 0.0)))

    results = store.nearest((0, 0, 0), 5, 10)
    assert [t.id for t in results] == ["d1", "d3", "d4", "d5"]
    dists = [sum(c * c for c in t.position) for t in results]
    assert all(d <= 25 for d in dists)
    assert dists == sorted(dists)

    assert [t.id for t in store.nearest((0, 0, 0), 5, 2)] == ["d1", "d3"]


def test_nearest_non_positive_limit():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("t1"))
    assert store.nearest((0, 0, 0), 100, 0) == []


def test_nearest_off_origin():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("near", pos=(10.0, 10.0, 10.0)))
    store.upsert_thought(make_thought("far", pos=(0.0, 0.0, 0.0)))
    assert [t.id for t in store.nearest((11, 10, 10), 2, 5)] == ["near"]


# ── Connections among ─────────────────────────────────────

def test_connections_among_requires_both_endpoints():
    store, _ = fresh_store()
    store.upsert_connection(make_connection("ab", "A", "B"))
    store.upsert_connection(make_connection("ac", "A", "C"))
    store.upsert_connection(make_connection("ba", "B", "A"))
    result = store.connections_among({"A", "B"})
    assert sorted(c.id for c in result) == ["ab", "ba"]


def test_connections_among_empty_set():
    store, _ = fresh_store()
    store.upsert_connection(make_connection("ab", "A", "B"))
    assert store.connections_among([]) == []


def test_connections_among_large_set():
    store, _ = fresh_store()
    ids = [f"t{i}" for i in range(2000)]
    store.upsert_connection(make_connection("edge", "t1", "t1999"))
    assert [c.id for c in store.connections_among(ids)] == ["edge"]


# ── Clusters ──────────────────────────────────────────────

def test_recompute_clusters_by_category():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("w1", category="work", pos=(0.0, 0.0, 0.0)))
    store.upsert_thought(make_thought("w2", category="work", pos=(2.0, 0.0, 0.0)))
    store.upsert_thought(make_thought("w3", category="work", pos=(4.0, 0.0, 0.0)))
    store.upsert_thought(make_thought("p1", category="personal", pos=(9.0, 9.0, 9.0)))

    clusters = store.recompute_clusters()
    assert len(clusters) == 1
    c = clusters[0]
    assert c.category == "work"
    assert c.name == "work cluster"
    assert c.thought_count == 3
    assert c.center == (2.0, 0.0, 0.0)
    assert store.list_clusters() == clusters


def test_recompute_replaces_previous_set():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("w1", category="work"))
    store.upsert_thought(make_thought("w2", category="work"))
    first = store.recompute_clusters()
    second = store.recompute_clusters()
    assert len(store.list_clusters()) == 1
    assert first[0].id != second[0].id


def test_recompute_with_no_groups_clears_clusters():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("w1", category="work"))
    store.upsert_thought(make_thought("w2", category="work"))
    store.recompute_clusters()
    store.upsert_thought(make_thought("w2", category="personal"))
    assert store.recompute_clusters() == []
    assert store.list_clusters() == []


def test_readers_never_see_empty_cluster_set():
    store, _ = fresh_store()
    for i in range(4):
        store.upsert_thought(make_thought(f"w{i}", category="work", pos=(float(i), 0.0, 0.0)))
    store.recompute_clusters()

    seen = []

    def recompute_loop():
        for _ in range(20):
            store.recompute_clusters()

    def read_loop():
        for _ in range(50):
            seen.append(len(store.list_clusters()))

    threads = [threading.Thread(target=recompute_loop), threading.Thread(target=read_loop)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert seen and all(n == 1 for n in seen)


# ── Counters ──────────────────────────────────────────────

def test_version_counters_move_forward():
    store, _ = fresh_store()
    assert store.max_thought_version() == 0
    assert store.max_connection_version() == 0
    store.upsert_thought(make_thought("t1"))
    v1 = store.max_thought_version()
    store.upsert_thought(make_thought("t2"))
    v2 = store.max_thought_version()
    assert v2 > v1 > 0
    store.upsert_connection(make_connection("c1", "t1", "t2"))
    version = store.db_version()
    assert version.thought_max_id == v2
    assert version.connection_max_id >= 1


def test_stats():
    store, _ = fresh_store()
    store.upsert_thought(make_thought("t1", category="work"))
    store.upsert_thought(make_thought("t2", category="creative"))
    s = store.stats()
    assert s["total_thoughts"] == 2
    assert s["total_connections"] == 0
    assert s["categories"] == ["creative", "work"]
    assert "test.db" in s["db_path"]


# ── Placement ─────────────────────────────────────────────

def test_generate_position_on_shell():
    rng = np.random.default_rng(7)
    for _ in range(500):
        x, y, z = generate_position(rng)
        r = (x * x + y * y + z * z) ** 0.5
        assert 10.0 - 1e-9 <= r <= 40.0 + 1e-9


def test_generate_position_seeded_is_reproducible():
    a = generate_position(np.random.default_rng(42))
    b = generate_position(np.random.default_rng(42))
    assert a == b


def test_generate_position_without_rng_varies():
    points = {generate_position() for _ in range(10)}
    assert len(points) == 10


def test_generate_position_is_thread_safe():
    results = []

    def worker():
        for _ in range(100):
            results.append(generate_position())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(results) == 400
    assert all(10.0 - 1e-9 <= (x * x + y * y + z * z) ** 0.5 <= 40.0 + 1e-9 for x, y, z in results)
