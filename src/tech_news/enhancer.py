from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .cache import Cache
from .config import FIRECRAWL_BASE_URL, HTTP_TIMEOUT, REQUEST_HEADERS
from .datamodels import Article

logger = logging.getLogger("technews")

MIN_CONTENT_LENGTH = 500
MAX_CONTENT_LENGTH = 25000
TRUNCATION_MARKER = "\n\n[Content truncated for performance]"

_UNWANTED_PATTERNS = (
    re.compile(r"^#+\s*(Navigation|Menu|Header).*$", re.M),
    re.compile(r"^#+\s*(Footer|Copyright|Terms).*$", re.M),
    re.compile(r"^\s*\[.*?\]\(.*?\)\s*$", re.M),
    re.compile(r"^\s*\*\s*(Home|About|Contact|Privacy).*$", re.M),
)


class EnhancementFailed(Exception):
    """Full content could not be extracted for one article."""


class ContentEnhancer(ABC):
    """
    Replaces short article bodies with the full text of the page.

    Enhancement is best effort: a failure for one article hands that article
    back unchanged and never affects the others in a batch.
    """

    def __init__(self, batch_size: int = 3, batch_delay: float = 0.5):
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the enhancer has the credentials it needs."""

    @abstractmethod
    async def extract(self, article: Article) -> Article:
        """Return ``article`` with its full content, or unchanged on failure."""

    async def extract_all(self, articles: Sequence[Article]) -> List[Article]:
        """Enhance ``articles`` in concurrent batches, keeping the input order."""
        enhanced: List[Article] = []
        for start in range(0, len(articles), self.batch_size):
            batch = articles[start : start + self.batch_size]
            results = await asyncio.gather(
                *(self.extract(a) for a in batch), return_exceptions=True
            )
            for original, result in zip(batch, results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    logger.warning("Enhancement of %s failed: %s", original.url, result)
                    enhanced.append(original)
                else:
                    enhanced.append(result)
            if start + self.batch_size < len(articles) and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)
        return enhanced

    def close(self) -> None:
        pass


class FirecrawlEnhancer(ContentEnhancer):
    """Fetches main page content as markdown from the Firecrawl scrape API."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = FIRECRAWL_BASE_URL,
        cache: Optional[Cache] = None,
        batch_size: int = 3,
        batch_delay: float = 0.5,
        min_content_length: int = MIN_CONTENT_LENGTH,
        timeout: int = HTTP_TIMEOUT,
    ):
        super().__init__(batch_size=batch_size, batch_delay=batch_delay)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.min_content_length = min_content_length
        self.timeout = timeout
        self.session = self._create_session()

    @classmethod
    def from_config(
        cls, config: Dict[str, Any], api_key: Optional[str], cache: Optional[Cache] = None
    ) -> FirecrawlEnhancer:
        settings = config.get("firecrawl", {})
        return cls(
            api_key,
            base_url=settings.get("base_url", FIRECRAWL_BASE_URL),
            cache=cache,
            batch_size=int(settings.get("batch_size", 3)),
            batch_delay=float(settings.get("batch_delay", 0.5)),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _create_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update(REQUEST_HEADERS)
        retries = Retry(
            total=3,
            backoff_factor=0.3,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=frozenset({"POST"}),
        )
        adapter = HTTPAdapter(max_retries=retries)
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def _scrape(self, url: str) -> str:
        try:
            resp = self.session.post(
                f"{self.base_url}/scrape",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "url": url,
                    "formats": ["markdown"],
                    "onlyMainContent": True,
                    "removeBase64Images": True,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise EnhancementFailed(f"request failed: {e}") from e

        if resp.status_code != 200:
            raise EnhancementFailed(f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError as e:
            raise EnhancementFailed("response is not JSON") from e

        markdown = (data.get("data") or {}).get("markdown") if isinstance(data, dict) else None
        if not isinstance(markdown, str) or not markdown.strip():
            raise EnhancementFailed("response has no markdown content")
        return markdown

    async def extract(self, article: Article) -> Article:
        if not self.is_configured:
            return article
        if article.content and len(article.content) > self.min_content_length:
            return article

        if self.cache is not None:
            cached = self.cache.get(article.url)
            if cached:
                return article.with_content(cached)

        try:
            markdown = await asyncio.to_thread(self._scrape, article.url)
        except EnhancementFailed as e:
            logger.warning("Could not extract content for %s: %s", article.url, e)
            return article

        content = clean_content(markdown)
        if not content:
            return article
        if self.cache is not None:
            self.cache.set(article.url, content)
        logger.debug("Extracted %d characters for %s", len(content), article.url)
        return article.with_content(content)

    def close(self) -> None:
        self.session.close()


def clean_content(content: str) -> str:
    """Tidy scraped markdown: collapse whitespace, drop page chrome, cap the length."""
    cleaned = re.sub(r"\n\s*\n\s*\n", "\n\n", content)
    cleaned = re.sub(r"[ \t]+", " ", cleaned).strip()
    for pattern in _UNWANTED_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    if len(cleaned) > MAX_CONTENT_LENGTH:
        cleaned = cleaned[:MAX_CONTENT_LENGTH] + TRUNCATION_MARKER
    return cleaned.strip()
