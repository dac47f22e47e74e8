"""Static configuration for kfeed.

All user-editable settings (API, polling, display, storage, logging) live in
a single JSON file for quick edits without touching Python.
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

load_dotenv()


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# API base URL; KFEED_API_BASE in the environment wins over config.json.
_api = _CONFIG.get("api", {})
API_BASE_URL = (os.getenv("KFEED_API_BASE") or _api.get("base_url", "http://localhost:3000")).strip().rstrip("/")
API_TIMEOUT_S = float(_api.get("timeout_s", 8))

# Notification polling cadence and page size for the detail view.
_notifications = _CONFIG.get("notifications", {})
POLL_INTERVAL_S = float(_notifications.get("poll_interval_s", 10))
PAGE_LIMIT = int(_notifications.get("page_limit", 10))

# Mentions longer than this are shown as abcd...wxyz.
_display = _CONFIG.get("display", {})
MENTION_MAX_LENGTH = int(_display.get("mention_max_length", 20))

# Where to store the SQLite key-value database (notification cursor).
_storage = _CONFIG.get("storage", {})
DB_PATH = _storage.get("db_path") or os.path.join(os.path.dirname(__file__), "kfeed.db")
if not os.path.isabs(DB_PATH):
    DB_PATH = os.path.join(PROJECT_ROOT, DB_PATH)

# Identity used by commands when no pubkey argument is given.
DEFAULT_PUBKEY = os.getenv("KFEED_PUBKEY", "").strip()

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
