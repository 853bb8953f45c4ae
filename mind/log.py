"""
Diagnostics for The Mind.

stdout carries the tool protocol, so diagnostics never go there: the "mind"
logger writes to stderr (level from MIND_LOG_LEVEL) and to a rotating
mind.log under MIND_HOME. Until setup() runs, records are dropped.
"""

import logging
import logging.handlers
import os
import time

from mind.config import MIND_HOME

LOG_FILE_NAME = "mind.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

log = logging.getLogger("mind")
log.addHandler(logging.NullHandler())

_configured = False
_FORMAT = logging.Formatter("[%(asctime)s] %(levelname)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


def _stderr_level() -> int:
    name = os.environ.get("MIND_LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def _file_handler(home):
    """Rotating handler under `home`, or None when the directory is unusable."""
    try:
        home.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            str(home / LOG_FILE_NAME), maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError:
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(_FORMAT)
    return handler


def setup():
    """Attach the stderr and file handlers once per process."""
    global _configured
    if _configured:
        return
    _configured = True
    log.setLevel(logging.DEBUG)

    stderr_handler = logging.StreamHandler()
    stderr_handler.setLevel(_stderr_level())
    stderr_handler.setFormatter(_FORMAT)
    log.addHandler(stderr_handler)

    file_handler = _file_handler(MIND_HOME)
    if file_handler is None:
        log.warning("Log file unavailable under %s; logging to stderr only", MIND_HOME)
    else:
        log.addHandler(file_handler)


class Timer:
    """Wall-clock duration of a block, logged at DEBUG on exit."""

    def __init__(self, operation: str):
        self.operation = operation
        self.elapsed_ms = 0.0

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc):
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
        log.debug("%s took %.1fms", self.operation, self.elapsed_ms)
        return False


def timed(operation: str) -> Timer:
    """`with timed("tools/call mind_log"):` logs how long the block took."""
    return Timer(operation)
