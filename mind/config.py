"""
The Mind Configuration
Every setting in one place.
"""

import os
import sys
from pathlib import Path


def _data_dir() -> Path:
    if sys.platform == "win32" and os.environ.get("APPDATA"):
        return Path(os.environ["APPDATA"])
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


# ── Identity ─────────────────────────────────────────────
SERVER_NAME = "the-mind"
SERVER_VERSION = "0.1.0"
PROTOCOL_VERSION = "2024-11-05"
JSONRPC_VERSION = "2.0"

# ── Paths ────────────────────────────────────────────────
MIND_HOME = Path(os.environ.get("MIND_HOME", _data_dir() / "the-mind"))
DB_PATH = Path(os.environ.get("MIND_DB_PATH", MIND_HOME / "mind.db"))

# ── Thoughts ─────────────────────────────────────────────
CATEGORIES = ("work", "personal", "technical", "creative", "other")
SEARCH_LIMIT = 20
RECALL_DEFAULT_LIMIT = 10

# ── Linking ──────────────────────────────────────────────
AUTO_LINK_MIN_SHARED = 2        # shared keywords before an auto-connection
AUTO_LINK_STRENGTH_STEP = 0.15  # strength per shared keyword, capped at 1.0
MANUAL_LINK_STRENGTH = 0.7

# ── Clustering ───────────────────────────────────────────
CLUSTER_MIN_THOUGHTS = 2

# ── Placement ────────────────────────────────────────────
POSITION_MIN_RADIUS = 10.0
POSITION_MAX_RADIUS = 40.0

# ── Response previews ────────────────────────────────────
LOG_PREVIEW_CHARS = 40
CONNECT_PREVIEW_CHARS = 50

# ── Command transport (HTTP) ─────────────────────────────
HTTP_HOST = os.environ.get("MIND_HTTP_HOST", "localhost")
HTTP_PORT = int(os.environ.get("MIND_HTTP_PORT", "8767"))

# ── External context (session-forge) ─────────────────────
if sys.platform == "win32" and os.environ.get("APPDATA"):
    _FORGE_DEFAULT = Path(os.environ["APPDATA"]) / "session-forge"
else:
    _FORGE_DEFAULT = Path.home() / ".session-forge"
FORGE_DIR = Path(os.environ.get("MIND_FORGE_DIR", _FORGE_DEFAULT))
FORGE_MAX_RESULTS = 10


def ensure_home():
    """Create the Mind home directory if it doesn't exist."""
    MIND_HOME.mkdir(parents=True, exist_ok=True)
