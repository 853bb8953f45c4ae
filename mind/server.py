"""
The Mind Tool Protocol Server
=============================
Line-delimited JSON-RPC 2.0 over stdin/stdout, the shape MCP clients speak.

One line in, fully handled, one line out (if the request has an id), flushed,
then the next line. No pipelining, no background work. stdout carries only
protocol traffic; diagnostics go to the "mind" logger (stderr + log file).

Methods:
  - initialize                  -> server/capability descriptor
  - tools/list                  -> the four mind_* tools
  - tools/call                  -> mind_log, mind_connect, mind_recall, mind_summarize_session
  - notifications/initialized   -> no response
  - anything else               -> error -32601
"""

import json
import sys

from mind.config import SERVER_NAME, SERVER_VERSION, PROTOCOL_VERSION, JSONRPC_VERSION, ensure_home
from mind.log import log, setup as setup_logging, timed
from mind.store import Store
from mind.tools import TOOL_DEFS, call_tool, text_result

METHOD_NOT_FOUND = -32601


def _response(request_id, result=None, error=None) -> dict:
    response = {"jsonrpc": JSONRPC_VERSION, "id": request_id}
    if error is not None:
        response["error"] = error
    else:
        response["result"] = result
    return response


def handle_request(store, request: dict):
    """Dispatch one decoded request. Returns the response dict, or None for notifications."""
    method = request.get("method")
    request_id = request.get("id")
    if request_id is None:
        # Notifications never get an answer, whatever the method.
        log.debug("Notification: %s", method)
        return None

    if method == "initialize":
        return _response(request_id, {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        })

    if method == "tools/list":
        return _response(request_id, {"tools": TOOL_DEFS})

    if method == "tools/call":
        return _response(request_id, _handle_tool_call(store, request.get("params")))

    if method == "notifications/initialized":
        return None

    return _response(request_id, error={
        "code": METHOD_NOT_FOUND,
        "message": f"Method not found: {method}",
    })


def _handle_tool_call(store, params) -> dict:
    if not isinstance(params, dict) or not isinstance(params.get("name"), str):
        return text_result("Error: Invalid params: tools/call needs a tool `name`", is_error=True)
    name = params["name"]
    arguments = params.get("arguments")
    if arguments is None:
        arguments = {}
    try:
        with timed(f"tools/call {name}"):
            return call_tool(store, name, arguments)
    except Exception as e:
        log.exception("Unexpected error in %s", name)
        return text_result(f"Error: {e}", is_error=True)


def handle_line(store, line: str):
    """Decode one input line and handle it. Returns the encoded response line or None."""
    line = line.strip()
    if not line:
        return None
    try:
        request = json.loads(line)
    except json.JSONDecodeError as e:
        log.warning("Failed to parse request: %s", e)
        return None
    if not isinstance(request, dict) or not isinstance(request.get("method"), str):
        log.warning("Skipping malformed request: %s", line[:200])
        return None

    response = handle_request(store, request)
    if response is None:
        return None
    # ASCII escapes keep lone surrogates from the request encodable on the way out.
    return json.dumps(response)


def _decode(raw) -> str:
    return raw.decode("utf-8") if isinstance(raw, bytes) else raw


def serve(store, instream, outstream):
    """
    Blocking request/response loop. Returns at end of stream or on an I/O failure.

    `instream` may yield bytes (stdin's buffer) or text. Lines that are not
    valid UTF-8 are logged and skipped like any other malformed line.
    """
    handled = 0
    try:
        for raw in instream:
            handled += 1
            try:
                line = _decode(raw)
            except UnicodeDecodeError as e:
                log.warning("Skipping undecodable request line: %s", e)
                continue
            reply = handle_line(store, line)
            if reply is None:
                continue
            try:
                outstream.write(reply + "\n")
            except ValueError as e:
                log.warning("Dropping unencodable reply: %s", e)
                continue
            outstream.flush()
    except OSError as e:
        log.error("Protocol stream failed: %s", e)
    log.info("Protocol stream closed after %d line(s)", handled)
    return handled


def run():
    setup_logging()
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")
    ensure_home()
    store = Store()
    log.info("The Mind protocol server started (%s)", store.db_path)
    serve(store, sys.stdin.buffer, sys.stdout)


if __name__ == "__main__":
    run()
