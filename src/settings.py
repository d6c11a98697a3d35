"""Static configuration for orderwatch.

All user-editable settings (mailbox, polling, store, extractor, logging) live
in a single JSON file for quick edits without touching Python. Credentials
stay out of it and are read from the environment by ``client.py``.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# ORDERWATCH_CONFIG points at an alternative config file (e.g. per host).
CONFIG_PATH = os.getenv("ORDERWATCH_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Mailbox connection. Credentials come from IMAP_USER / IMAP_PASSWORD.
_mailbox = _CONFIG.get("mailbox", {})
IMAP_HOST = _mailbox.get("host", "imap.hostinger.com")
IMAP_PORT = int(_mailbox.get("port", 993))
IMAP_TLS = bool(_mailbox.get("tls", True))
IMAP_FOLDER = _mailbox.get("folder", "INBOX")
# Also used as the socket timeout for every blocking IMAP call.
IMAP_AUTH_TIMEOUT_SECONDS = float(_mailbox.get("auth_timeout_seconds", 3))

# Seconds to wait after each poll cycle, successful or not.
_polling = _CONFIG.get("polling", {})
POLL_INTERVAL_SECONDS = float(_polling.get("interval_seconds", 5))

# Relative paths resolve against the working directory.
_store = _CONFIG.get("store", {})
STORE_PATH = _store.get("path", "shopify_orders.json")

# Bracketed shop name expected at the start of notification subjects.
_extractor = _CONFIG.get("extractor", {})
STORE_TAG = _extractor.get("store_tag", "Urban Threads")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
