from __future__ import annotations

import copy
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

# --- Configuration ---
CONFIG_DIR = os.path.expanduser("~/.config/technews")
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.json")
DATABASE_PATH = os.path.join(CONFIG_DIR, "tech_news.db")
CACHE_DIR = os.path.expanduser("~/.cache/technews")
CACHE_TTL = 6 * 60 * 60

FIRECRAWL_BASE_URL = "https://api.firecrawl.dev/v0"
FIRECRAWL_API_KEY_ENV = "FIRECRAWL_API_KEY"
HTTP_TIMEOUT = 30

REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:115.0) "
        "Gecko/20100101 Firefox/115.0"
    )
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "source": "mock",
    "sources": {
        "mock": {"latency": 1.0},
        "rss": {"feeds": {}},
    },
    "auto_enhance": True,
    "cache_ttl": CACHE_TTL,
    "firecrawl": {
        "base_url": FIRECRAWL_BASE_URL,
        "batch_size": 3,
        "batch_delay": 0.5,
    },
}

# Default UI settings
UI_DEFAULTS = {
    "statusbar_keybindings": (
        "[b {color}]/[/] search, [b {color}]b[/] bookmark, "
        "[b {color}]B[/] saved, [b {color}]r[/] refresh"
    ),
}

# --- Logging ---
logger = logging.getLogger("technews")


def setup_logging(debug: bool = False) -> Optional[str]:
    """Configure logging."""
    if not debug:
        logging.basicConfig(level=logging.CRITICAL, handlers=[logging.NullHandler()])
        return None

    ts = datetime.now().strftime("%Y%m%dT%H%M%S")
    pid = os.getpid()
    debug_path = f"/tmp/technews_debug_{ts}_{pid}.log"

    # Use basicConfig to set up the root logger with a file handler
    logging.basicConfig(
        level=logging.DEBUG,
        filename=debug_path,
        filemode="a",
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    logger.debug("Debug logging enabled to %s", debug_path)
    return debug_path


def _merge_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(value, merged[key])
        else:
            merged[key] = value
    return merged


def ensure_config_file_exists(path: str = CONFIG_PATH) -> None:
    """Write the default config file if the user's config file is not found."""
    if not os.path.exists(path):
        logger.info("Config file not found at %s, creating default.", path)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w") as f:
                json.dump(DEFAULT_CONFIG, f, indent=2)
        except (IOError, OSError) as e:
            logger.error("Failed to create default config file: %s", e)


def load_config(path: str = CONFIG_PATH) -> Dict[str, Any]:
    """Load the main configuration file, filling in defaults for missing keys."""
    ensure_config_file_exists(path)
    try:
        with open(path, "r") as f:
            config = json.load(f)
            logger.info("Loaded config from %s", path)
    except (IOError, json.JSONDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        return copy.deepcopy(DEFAULT_CONFIG)
    if not isinstance(config, dict):
        logger.error("Ignoring config at %s: top level is not an object", path)
        return copy.deepcopy(DEFAULT_CONFIG)
    return _merge_defaults(config, DEFAULT_CONFIG)


def save_config(config: Dict[str, Any], path: str = CONFIG_PATH) -> None:
    """Save the main configuration file."""
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            json.dump(config, f, indent=2)
        logger.info("Saved config to %s", path)
    except IOError as e:
        logger.error("Failed to save config to %s: %s", path, e)


def get_firecrawl_api_key(config: Dict[str, Any]) -> Optional[str]:
    """Return the Firecrawl credential, preferring the environment over the config file."""
    key = os.environ.get(FIRECRAWL_API_KEY_ENV) or config.get("firecrawl", {}).get("api_key")
    if not key or not key.strip():
        return None
    return key.strip()
