"""
The Mind CLI
============
Command-line entry point for the thought store.

Usage:
    mind serve             Start the tool protocol server on stdio (default)
    mind serve-http        Start the HTTP command server
    mind recall <query>    Search thoughts
    mind stats             Store summary
    mind cluster           Recompute category clusters
    mind forge <query>     Search session-forge context
    mind doctor            Health check
"""

import json
import sys


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    if not args:
        cmd_serve()
        return

    cmd = args[0].lower()
    rest = args[1:]

    commands = {
        "serve": cmd_serve,
        "serve-http": cmd_serve_http,
        "recall": cmd_recall,
        "stats": cmd_stats,
        "cluster": cmd_cluster,
        "forge": cmd_forge,
        "doctor": cmd_doctor,
        "version": cmd_version,
        "--version": cmd_version,
        "help": cmd_help,
        "--help": cmd_help,
        "-h": cmd_help,
    }

    handler = commands.get(cmd)
    if handler:
        handler(rest)
    else:
        print(f"Unknown command: {cmd}")
        cmd_help([])
        sys.exit(2)


def cmd_serve(args=None):
    """Start the tool protocol server (default behavior)."""
    from mind.server import run
    run()


def cmd_serve_http(args=None):
    """Start the HTTP command server. Accepts --host and --port."""
    from mind.config import HTTP_HOST, HTTP_PORT
    host, port = HTTP_HOST, HTTP_PORT
    if args:
        for i, arg in enumerate(args):
            if arg == "--port" and i + 1 < len(args):
                port = int(args[i + 1])
            elif arg == "--host" and i + 1 < len(args):
                host = args[i + 1]

    from mind.server_http import run
    run(host=host, port=port)


def cmd_recall(args=None):
    """Search thoughts by substring."""
    if not args:
        print("Usage: mind recall <query>")
        return
    from mind.store import Store
    store = Store()
    thoughts = store.search(" ".join(args))
    if not thoughts:
        print("No matching thoughts.")
        return
    for t in thoughts:
        print(f"  [{t.importance * 100:.0f}%] ({t.category}) {t.content[:150]}")


def cmd_stats(args=None):
    """Show store counts."""
    from mind.store import Store
    s = Store().stats()
    print(f"Thoughts: {s['total_thoughts']}")
    print(f"Connections: {s['total_connections']}")
    print(f"Sessions: {s['total_sessions']}")
    print(f"Clusters: {s['total_clusters']}")
    print(f"Categories: {', '.join(s['categories']) or 'None yet'}")
    print(f"Database: {s['db_path']}")


def cmd_cluster(args=None):
    """Recompute category clusters."""
    from mind import clusters
    from mind.store import Store
    result = clusters.recompute(Store())
    if not result:
        print("No category has enough thoughts to cluster yet.")
        return
    for c in result:
        print(f"  {c.name}: {c.thought_count} thoughts, center ({c.center_x:.1f}, {c.center_y:.1f}, {c.center_z:.1f})")


def cmd_forge(args=None):
    """Search session-forge journals, decisions and dead ends."""
    if not args:
        print("Usage: mind forge <query>")
        return
    from mind import forge
    if not forge.is_available():
        print("session-forge data not found.")
        return
    print(json.dumps(forge.search_context(" ".join(args)), indent=2))


def cmd_doctor(args=None):
    from mind.doctor import main as doctor_main
    doctor_main(args or [])


def cmd_version(args=None):
    from mind.config import SERVER_VERSION
    print(f"The Mind v{SERVER_VERSION}")


def cmd_help(args=None):
    print("""
The Mind - a thought graph for you and your AI agent.

Server:
  mind serve               Start the tool protocol server on stdio (default)
  mind serve-http          Start the HTTP command server
                           (default: localhost:8767, --host/--port to customize)

Thoughts:
  mind recall <query>      Search thoughts
  mind stats               Store summary
  mind cluster             Recompute category clusters
  mind forge <query>       Search session-forge context

Maintenance:
  mind doctor [--json]     Health check
  mind version             Print version
""")


if __name__ == "__main__":
    main()
