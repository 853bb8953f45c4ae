"""
The Mind HTTP Command Transport
Same store, same commands the desktop client uses, over local HTTP.

Usage:
    mind serve-http                    # starts on localhost:8767
    MIND_HTTP_PORT=9000 mind serve-http

Endpoints:
    GET  /health            -> {"status": "ok", "version": ...}
    POST /commands/{name}   -> JSON body is the params object
"""

import asyncio
import json

from aiohttp import web

from mind.commands import COMMANDS, run_command
from mind.config import HTTP_HOST, HTTP_PORT, SERVER_NAME, SERVER_VERSION, ensure_home
from mind.log import log, setup as setup_logging
from mind.store import Store

STORE_KEY = web.AppKey("store", Store)


async def handle_health(request):
    return web.json_response({"status": "ok", "name": SERVER_NAME, "version": SERVER_VERSION})


async def handle_command(request):
    name = request.match_info["name"]
    if name not in COMMANDS:
        return web.json_response({"ok": False, "error": f"Unknown command: {name}"}, status=404)

    params = {}
    if request.can_read_body:
        try:
            params = await request.json()
        except json.JSONDecodeError:
            return web.json_response({"ok": False, "error": "Body must be JSON"}, status=400)

    store = request.app[STORE_KEY]
    # Store calls block; keep them off the event loop.
    result = await asyncio.to_thread(run_command, store, name, params)
    return web.json_response(result, status=200 if result["ok"] else 400)


def create_app(store: Store) -> web.Application:
    app = web.Application()
    app[STORE_KEY] = store
    app.router.add_get("/health", handle_health)
    app.router.add_post("/commands/{name}", handle_command)
    return app


async def main(host: str = HTTP_HOST, port: int = HTTP_PORT):
    setup_logging()
    ensure_home()
    store = Store()
    log.info("Starting command server on %s:%d (%s)", host, port, store.db_path)
    runner = web.AppRunner(create_app(store))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    log.info("%d commands ready at http://%s:%d/commands/<name>", len(COMMANDS), host, port)
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def run(host: str = HTTP_HOST, port: int = HTTP_PORT):
    asyncio.run(main(host, port))


if __name__ == "__main__":
    run()
