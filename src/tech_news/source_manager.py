from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type

from .sources.base import Source
from .sources.mock import MockSource
from .sources.rss import RSSSource

logger = logging.getLogger("technews")

SOURCES: Dict[str, Type[Source]] = {"mock": MockSource, "rss": RSSSource}


def get_source(config: Dict[str, Any], name: Optional[str] = None) -> Source:
    """
    Build the headline source selected in the config.

    The RSS source is only used when it has feeds; otherwise the canned
    headlines are served instead.
    """
    source_name = name or config.get("source", "mock")
    source_class = SOURCES.get(source_name)
    if not source_class:
        raise ValueError(f"Unknown source: {source_name}")
    source_config = config.get("sources", {}).get(source_name, {})
    source = source_class(source_config)
    if isinstance(source, RSSSource) and not source.is_configured:
        logger.info("No RSS feeds configured, using canned headlines")
        return MockSource(config.get("sources", {}).get("mock", {}))
    return source
