"""
The Mind Doctor — health check for the thought store.
Checks: database, schema version, thought graph counts.
"""

import json
import os
import sqlite3
import sys

from mind.config import DB_PATH, SERVER_VERSION


def check_all(db_path: str = None) -> dict:
    """Run all health checks. Returns dict with status and details."""
    db = str(db_path or DB_PATH)
    checks = {}
    healthy = True

    # 1. Database exists and is readable
    if os.path.exists(db):
        try:
            conn = sqlite3.connect(db)
            conn.execute("SELECT 1").fetchone()
            conn.close()
            size_mb = os.path.getsize(db) / (1024 * 1024)
            checks["database"] = {"status": "ok", "path": db, "size_mb": round(size_mb, 2)}
        except sqlite3.Error as e:
            checks["database"] = {"status": "error", "path": db, "error": str(e)}
            healthy = False
    else:
        checks["database"] = {"status": "missing", "path": db}
        healthy = False

    # 2. Schema version
    if checks["database"]["status"] == "ok":
        from mind.migrations import get_version, LATEST_VERSION
        try:
            conn = sqlite3.connect(db)
            version = get_version(conn)
            conn.close()
        except sqlite3.Error as e:
            checks["schema"] = {"status": "error", "error": str(e)}
            healthy = False
        else:
            current = version == LATEST_VERSION
            checks["schema"] = {"status": "ok" if current else "outdated", "version": version, "latest": LATEST_VERSION}
            if not current:
                healthy = False

    # 3. Graph counts
    if checks.get("schema", {}).get("status") == "ok":
        from mind.errors import StorageError
        from mind.store import Store
        try:
            stats = Store(db_path=db).stats()
        except StorageError as e:
            checks["graph"] = {"status": "error", "error": str(e)}
            healthy = False
        else:
            checks["graph"] = {
                "status": "ok",
                "thoughts": stats["total_thoughts"],
                "connections": stats["total_connections"],
                "sessions": stats["total_sessions"],
                "clusters": stats["total_clusters"],
            }

    return {
        "healthy": healthy,
        "version": SERVER_VERSION,
        "checks": checks,
    }


def main(argv=None):
    """CLI entry point for mind doctor."""
    import argparse
    from mind.log import setup
    setup()

    p = argparse.ArgumentParser(prog="mind doctor", description="The Mind health check")
    p.add_argument("--json", action="store_true", help="Output as JSON")
    p.add_argument("--db-path", help="Custom database path")
    args = p.parse_args(argv)

    result = check_all(db_path=args.db_path)

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        status = "HEALTHY" if result["healthy"] else "UNHEALTHY"
        print(f"The Mind v{result['version']} - {status}")
        print()
        for name, check in result["checks"].items():
            icon = "+" if check["status"] == "ok" else "-" if check["status"] == "error" else "?"
            details = {k: v for k, v in check.items() if k != "status"}
            detail_str = " ".join(f"{k}={v}" for k, v in details.items())
            print(f"  [{icon}] {name}: {check['status']} {detail_str}")

    sys.exit(0 if result["healthy"] else 1)


if __name__ == "__main__":
    main()
