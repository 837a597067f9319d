from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .datamodels import Article, MalformedArticle
from .enhancer import ContentEnhancer
from .sources.base import FetchFailed, Source
from .store import ArticleStore

logger = logging.getLogger("technews")

Listener = Callable[[], None]


class NewsState:
    """
    Current results and saved articles, shared by everything that renders them.

    Observers register a zero-argument callable with ``subscribe`` and are
    called after every visible change. ``save`` and ``remove`` update memory
    and notify before touching the store, so the store can briefly lag
    behind what observers see, and a store failure leaves the in-memory
    change in place.

    Overlapping ``fetch_headlines``/``search`` calls are not sequenced or
    cancelled: each runs to completion and the last one to finish decides
    ``results``.
    """

    def __init__(
        self,
        source: Source,
        store: ArticleStore,
        enhancer: Optional[ContentEnhancer] = None,
        auto_enhance: bool = False,
    ):
        self.source = source
        self.store = store
        self.enhancer = enhancer
        self.auto_enhance = auto_enhance
        self.query = ""
        self.loading = False
        self.enhancing = False
        self._results: List[Article] = []
        self._saved: List[Article] = []
        self._listeners: List[Listener] = []

    # --- Observation ---
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("State listener %r failed", listener)

    @property
    def results(self) -> List[Article]:
        return list(self._results)

    @property
    def saved(self) -> List[Article]:
        return list(self._saved)

    @property
    def has_no_results(self) -> bool:
        """True once a search has finished with nothing to show."""
        return bool(self.query) and not self.loading and not self._results

    # --- Headlines and search ---
    def _set_loading(self, loading: bool) -> None:
        self.loading = loading
        self._notify()

    async def fetch_headlines(self) -> None:
        self._set_loading(True)
        try:
            self._results = list(await self.source.fetch_headlines())
            logger.info("Fetched %d headlines from %s", len(self._results), self.source.name)
        except FetchFailed as e:
            logger.warning("Fetching headlines failed, keeping previous results: %s", e)
        except Exception:
            logger.exception("Unexpected error fetching headlines")
        finally:
            self._set_loading(False)

        if self.auto_enhance:
            await self.enhance_all()

    async def search(self, query: str) -> None:
        self.query = query
        self._set_loading(True)
        try:
            self._results = list(await self.source.search(query))
            logger.info("Search %r returned %d result(s)", query, len(self._results))
        except FetchFailed as e:
            logger.warning("Search %r failed, keeping previous results: %s", query, e)
        except Exception:
            logger.exception("Unexpected error searching for %r", query)
        finally:
            self._set_loading(False)

        if self.auto_enhance:
            await self.enhance_all()

    def clear_query(self) -> None:
        """Leave search mode. Results stay until the next fetch replaces them."""
        if not self.query:
            return
        self.query = ""
        self._notify()

    async def enhance_all(self) -> None:
        if self.enhancer is None or not self.enhancer.is_configured:
            logger.debug("Content enhancer not configured, skipping enhancement")
            return
        if not self._results:
            return

        self.enhancing = True
        self._notify()
        try:
            logger.info("Enhancing %d article(s) with full content", len(self._results))
            self._results = await self.enhancer.extract_all(self._results)
        except Exception:
            logger.exception("Error enhancing articles with content")
        finally:
            self.enhancing = False
            self._notify()

    # --- Saved articles ---
    async def load_saved(self) -> None:
        """Replace the saved list with what the store holds."""
        try:
            stored = await self.store.get_all()
        except MalformedArticle as e:
            logger.warning("Saved articles are corrupt, starting with none: %s", e)
            stored = []
        except Exception as e:
            logger.warning("Could not load saved articles: %s", e)
            stored = []

        saved: List[Article] = []
        for article in stored:
            if article not in saved:
                saved.append(article)
        self._saved = saved
        logger.info("Loaded %d saved article(s)", len(saved))
        self._notify()

    def is_saved(self, url: str) -> bool:
        return any(a.url == url for a in self._saved)

    async def save(self, article: Article) -> None:
        """Bookmark ``article`` unless an article with the same URL is already saved."""
        if self.is_saved(article.url):
            return
        self._saved.append(article)
        self._notify()
        try:
            persisted = await self.store.put(article)
        except Exception as e:
            logger.warning("Store rejected %s: %s", article.url, e)
            persisted = False
        if not persisted:
            logger.info("Keeping %s in memory only", article.url)

    async def remove(self, url: str) -> None:
        self._saved = [a for a in self._saved if a.url != url]
        self._notify()
        try:
            await self.store.delete(url)
        except Exception as e:
            logger.warning("Store could not delete %s: %s", url, e)

    async def toggle_saved(self, article: Article) -> bool:
        """Save or unsave ``article``; returns whether it is saved afterwards."""
        if self.is_saved(article.url):
            await self.remove(article.url)
            return False
        await self.save(article)
        return True

    async def aclose(self) -> None:
        if self.enhancer is not None:
            self.enhancer.close()
        await self.store.close()
