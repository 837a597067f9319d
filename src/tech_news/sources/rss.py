from __future__ import annotations

import asyncio
import calendar
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import feedparser
from bs4 import BeautifulSoup

from ..datamodels import Article
from .base import FetchFailed, Source
from .topics import bucket_keywords, classify_query

logger = logging.getLogger("technews")


class RSSSource(Source):
    """Headlines read from the RSS/Atom feeds listed under ``sources.rss.feeds``."""

    name = "rss"

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.feeds: Dict[str, str] = self.config.get("feeds", {})

    @property
    def is_configured(self) -> bool:
        return bool(self.feeds)

    def _read_feed(self, title: str, url: str) -> Optional[List[Article]]:
        feed = feedparser.parse(url)
        entries = getattr(feed, "entries", None) or []
        if getattr(feed, "bozo", False) and not entries:
            logger.warning(
                "Feed %s (%s) could not be read: %s",
                title,
                url,
                getattr(feed, "bozo_exception", "unknown error"),
            )
            return None
        articles = []
        for entry in entries:
            article = _entry_to_article(entry)
            if article is not None:
                articles.append(article)
        logger.debug("Read %d entries from feed %s", len(articles), title)
        return articles

    def _read_all_feeds(self) -> List[Article]:
        if not self.feeds:
            raise FetchFailed("No RSS feeds configured")
        collected: List[Article] = []
        failures = 0
        for title, url in self.feeds.items():
            try:
                articles = self._read_feed(title, url)
            except Exception as e:
                logger.error("Failed to parse feed %s: %s", title, e)
                articles = None
            if articles is None:
                failures += 1
                continue
            collected.extend(articles)
        if failures == len(self.feeds):
            raise FetchFailed("None of the configured feeds could be read")
        return _unique_ordered_articles(collected)

    async def fetch_headlines(self) -> List[Article]:
        return await asyncio.to_thread(self._read_all_feeds)

    async def search(self, query: str) -> List[Article]:
        bucket = classify_query(query)
        if bucket is None:
            return []
        keywords = bucket_keywords(bucket)
        articles = await asyncio.to_thread(self._read_all_feeds)
        return [a for a in articles if _mentions_any(a, keywords)]


def _entry_to_article(entry: Any) -> Optional[Article]:
    link = entry.get("link")
    title = entry.get("title")
    if not link or not title:
        return None
    summary_html = entry.get("summary", "")
    summary_text = BeautifulSoup(summary_html, "lxml").get_text(" ", strip=True) or None

    content = None
    if entry.get("content"):
        content_html = "\n".join(c.get("value", "") for c in entry["content"])
        content = BeautifulSoup(content_html, "lxml").get_text("\n", strip=True) or None

    return Article(
        title=title,
        description=summary_text,
        content=content,
        url=link,
        image_url=_entry_image(entry),
        published_at=_entry_timestamp(entry),
    )


def _entry_image(entry: Any) -> Optional[str]:
    for key in ("media_content", "media_thumbnail"):
        media = entry.get(key) or []
        for item in media:
            if item.get("url"):
                return item["url"]
    return None


def _entry_timestamp(entry: Any) -> datetime:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return datetime.now(timezone.utc)


def _mentions_any(article: Article, keywords: Iterable[str]) -> bool:
    haystack = f"{article.title} {article.description or ''}".lower()
    return any(re.search(rf"\b{re.escape(keyword)}\b", haystack) for keyword in keywords)


def _unique_ordered_articles(items: Iterable[Article]) -> List[Article]:
    seen = set()
    out: List[Article] = []
    for a in items:
        if a.url and a.url not in seen:
            seen.add(a.url)
            out.append(a)
    return out
