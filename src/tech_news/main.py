#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from .app import NewsApp
from .cache import Cache
from .config import (
    CACHE_DIR,
    CACHE_TTL,
    DATABASE_PATH,
    get_firecrawl_api_key,
    load_config,
    setup_logging,
)
from .enhancer import FirecrawlEnhancer
from .source_manager import SOURCES, get_source
from .state import NewsState
from .store import ArticleStore

logger = logging.getLogger("technews")


def build_state(
    config: dict, db_path: str, source_name: Optional[str] = None, enhance: bool = True
) -> NewsState:
    """Wire the headline source, store and enhancer into one NewsState."""
    try:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    except OSError as e:
        logger.warning("Cannot create database directory for %s: %s", db_path, e)

    source = get_source(config, source_name)
    store = ArticleStore(db_path)
    cache = Cache(cache_dir=CACHE_DIR, ttl=int(config.get("cache_ttl", CACHE_TTL)))
    enhancer = FirecrawlEnhancer.from_config(config, get_firecrawl_api_key(config), cache=cache)
    if not enhancer.is_configured:
        logger.info("Firecrawl API key not configured, content enhancement disabled")
    return NewsState(
        source,
        store,
        enhancer=enhancer,
        auto_enhance=enhance and bool(config.get("auto_enhance", True)),
    )


# --- Entrypoint ---
def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Tech News TUI Client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--db", default=DATABASE_PATH, help="Path to the saved-articles database")
    parser.add_argument(
        "--source",
        choices=sorted(SOURCES),
        help="Headline source for this run (defaults to the configured one)",
    )
    parser.add_argument(
        "--no-enhance",
        action="store_true",
        help="Do not fetch full article content automatically",
    )
    args = parser.parse_args(argv)

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    config = load_config()
    try:
        state = build_state(config, args.db, args.source, enhance=not args.no_enhance)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        app = NewsApp(state, config=config)
        app.run()
    except Exception as e:
        logger.exception("Application crashed: %s", e)
        print(f"Application crashed: {e}", file=sys.stderr)


if __name__ == "__main__":
    main()
