from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List

import pytest

from tech_news.datamodels import Article, MalformedArticle
from tech_news.enhancer import ContentEnhancer
from tech_news.sources.base import FetchFailed, Source
from tech_news.sources.mock import MockSource
from tech_news.state import NewsState
from tech_news.store import ArticleStore


def make_article(url="https://x", title="A", content=None):
    return Article(
        title=title,
        url=url,
        content=content,
        published_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class MemoryStore:
    def __init__(self, articles=None):
        self.rows: Dict[str, Article] = {a.url: a for a in articles or []}
        self.closed = False

    async def put(self, article):
        self.rows[article.url] = article
        return True

    async def get_all(self):
        return list(self.rows.values())

    async def delete(self, url):
        self.rows.pop(url, None)
        return True

    async def close(self):
        self.closed = True


class BrokenStore:
    async def put(self, article):
        raise OSError("disk on fire")

    async def get_all(self):
        raise OSError("disk on fire")

    async def delete(self, url):
        raise OSError("disk on fire")

    async def close(self):
        pass


class CorruptStore(MemoryStore):
    async def get_all(self):
        raise MalformedArticle("Invalid publishedAt value: 'garbage'")


class FailingSource(Source):
    name = "failing"

    async def fetch_headlines(self):
        raise FetchFailed("network down")

    async def search(self, query):
        raise FetchFailed("network down")


class GatedSource(MockSource):
    """Mock source whose searches finish only when the test opens their gate."""

    def __init__(self):
        super().__init__({"latency": 0})
        self.gates: Dict[str, asyncio.Event] = {}

    def gate(self, query):
        return self.gates.setdefault(query, asyncio.Event())

    async def search(self, query):
        await self.gate(query).wait()
        return await super().search(query)


class StubEnhancer(ContentEnhancer):
    def __init__(self, configured=True, fail_urls=()):
        super().__init__(batch_size=2, batch_delay=0)
        self.configured = configured
        self.fail_urls = set(fail_urls)
        self.closed = False

    @property
    def is_configured(self):
        return self.configured

    async def extract(self, article):
        if article.url in self.fail_urls:
            raise RuntimeError("scrape failed")
        return article.with_content(f"full text of {article.title}")

    def close(self):
        self.closed = True


class Recorder:
    def __init__(self, state: NewsState):
        self.state = state
        self.snapshots: List[dict] = []
        state.subscribe(self)

    def __call__(self):
        self.snapshots.append(
            {
                "loading": self.state.loading,
                "enhancing": self.state.enhancing,
                "results": len(self.state.results),
                "saved": len(self.state.saved),
            }
        )

    @property
    def count(self):
        return len(self.snapshots)


@pytest.fixture
def state():
    return NewsState(MockSource({"latency": 0}), MemoryStore())


@pytest.mark.asyncio
async def test_fetch_headlines_notifies_at_start_and_end(state):
    recorder = Recorder(state)
    await state.fetch_headlines()

    assert [s["loading"] for s in recorder.snapshots] == [True, False]
    assert recorder.snapshots[-1]["results"] == 8
    assert state.loading is False
    assert all(isinstance(a, Article) for a in state.results)


@pytest.mark.asyncio
async def test_failed_fetch_keeps_previous_results():
    store = MemoryStore()
    state = NewsState(MockSource({"latency": 0}), store)
    await state.fetch_headlines()
    before = [a.url for a in state.results]

    state.source = FailingSource({})
    recorder = Recorder(state)
    await state.fetch_headlines()
    await state.search("ai")

    assert [a.url for a in state.results] == before
    assert state.loading is False
    assert [s["loading"] for s in recorder.snapshots] == [True, False, True, False]


@pytest.mark.asyncio
async def test_search_sets_query_and_results(state):
    recorder = Recorder(state)
    await state.search("Flutter")

    assert state.query == "Flutter"
    assert state.loading is False
    assert "flutter" in state.results[0].title.lower()
    assert [s["loading"] for s in recorder.snapshots] == [True, False]


@pytest.mark.asyncio
async def test_search_is_case_insensitive_substring_match(state):
    await state.search("AI trends")
    first = [a.url for a in state.results]
    await state.search("ai")
    assert [a.url for a in state.results] == first
    assert first


@pytest.mark.asyncio
async def test_unmatched_search_reports_zero_results(state):
    await state.fetch_headlines()
    await state.search("quantum")

    assert state.results == []
    assert state.has_no_results is True


@pytest.mark.asyncio
async def test_clear_query_leaves_search_mode_and_notifies(state):
    await state.search("quantum")
    recorder = Recorder(state)
    seen = []
    state.subscribe(lambda: seen.append((state.query, state.has_no_results)))

    state.clear_query()
    state.clear_query()

    assert state.query == ""
    assert state.has_no_results is False
    assert recorder.count == 1
    assert seen == [("", False)]


@pytest.mark.asyncio
async def test_save_keeps_the_first_article_for_a_url(state):
    recorder = Recorder(state)
    first = make_article(title="First")
    await state.save(first)
    await state.save(make_article(title="Second"))
    await state.save(make_article(title="Third"))

    assert len(state.saved) == 1
    assert state.saved[0].title == "First"
    assert recorder.count == 1
    assert state.store.rows["https://x"].title == "First"


@pytest.mark.asyncio
async def test_save_is_visible_before_persistence_completes():
    store = MemoryStore()
    state = NewsState(MockSource({"latency": 0}), store)
    seen = []
    state.subscribe(lambda: seen.append((state.is_saved("https://x"), "https://x" in store.rows)))

    await state.save(make_article())

    assert seen == [(True, False)]
    assert "https://x" in store.rows


@pytest.mark.asyncio
async def test_remove_is_idempotent(state):
    recorder = Recorder(state)
    await state.save(make_article())
    await state.remove("https://x")
    await state.remove("https://x")
    await state.remove("https://never-saved")

    assert state.saved == []
    assert state.is_saved("https://x") is False
    assert recorder.count == 4


@pytest.mark.asyncio
async def test_saved_articles_work_in_memory_when_store_fails():
    state = NewsState(MockSource({"latency": 0}), BrokenStore())
    await state.save(make_article(url="https://a"))
    await state.save(make_article(url="https://b"))
    await state.save(make_article(url="https://a", title="dup"))
    assert [a.url for a in state.saved] == ["https://a", "https://b"]
    assert state.is_saved("https://a") is True

    await state.remove("https://a")
    assert state.is_saved("https://a") is False
    assert [a.url for a in state.saved] == ["https://b"]

    await state.load_saved()
    assert state.saved == []


@pytest.mark.asyncio
async def test_unopenable_database_degrades_to_memory(tmp_path):
    store = ArticleStore(str(tmp_path / "no" / "such" / "dir.db"))
    state = NewsState(MockSource({"latency": 0}), store)
    await state.save(make_article())
    assert state.is_saved("https://x") is True
    await state.remove("https://x")
    assert state.is_saved("https://x") is False


@pytest.mark.asyncio
async def test_saved_articles_survive_restart(tmp_path):
    db_path = str(tmp_path / "tech_news.db")
    article = make_article(title="Keep me")

    state = NewsState(MockSource({"latency": 0}), ArticleStore(db_path))
    await state.load_saved()
    assert state.saved == []

    await state.save(article)
    assert state.is_saved("https://x") is True
    await state.remove("https://x")
    assert state.is_saved("https://x") is False
    await state.save(article)
    await state.aclose()

    restarted = NewsState(MockSource({"latency": 0}), ArticleStore(db_path))
    await restarted.load_saved()
    assert restarted.saved == [article]
    assert restarted.saved[0].title == "Keep me"


@pytest.mark.asyncio
async def test_corrupt_store_loads_as_empty():
    state = NewsState(MockSource({"latency": 0}), CorruptStore([make_article()]))
    recorder = Recorder(state)
    await state.load_saved()

    assert state.saved == []
    assert recorder.count == 1


@pytest.mark.asyncio
async def test_last_search_to_resolve_wins():
    source = GatedSource()
    state = NewsState(source, MemoryStore())

    flutter = asyncio.create_task(state.search("flutter"))
    apple = asyncio.create_task(state.search("apple"))
    await asyncio.sleep(0)

    source.gate("flutter").set()
    await flutter
    source.gate("apple").set()
    await apple

    assert "apple" in state.results[0].title.lower()
    assert state.query == "apple"


@pytest.mark.asyncio
async def test_stale_search_can_overwrite_newer_one():
    source = GatedSource()
    state = NewsState(source, MemoryStore())

    flutter = asyncio.create_task(state.search("flutter"))
    apple = asyncio.create_task(state.search("apple"))
    await asyncio.sleep(0)

    source.gate("apple").set()
    await apple
    source.gate("flutter").set()
    await flutter

    assert "flutter" in state.results[0].title.lower()


@pytest.mark.asyncio
async def test_enhance_all_keeps_order_and_originals_on_failure():
    articles = [make_article(url=f"https://{i}", title=f"T{i}") for i in range(5)]

    class ListSource(MockSource):
        async def fetch_headlines(self):
            return articles

    enhancer = StubEnhancer(fail_urls={"https://2"})
    state = NewsState(ListSource({"latency": 0}), MemoryStore(), enhancer=enhancer)
    await state.fetch_headlines()
    recorder = Recorder(state)
    await state.enhance_all()

    assert [a.url for a in state.results] == [a.url for a in articles]
    assert [a.content for a in state.results] == [
        "full text of T0",
        "full text of T1",
        None,
        "full text of T3",
        "full text of T4",
    ]
    assert [s["enhancing"] for s in recorder.snapshots] == [True, False]


@pytest.mark.asyncio
async def test_enhance_all_skips_silently_when_unconfigured():
    state = NewsState(
        MockSource({"latency": 0}), MemoryStore(), enhancer=StubEnhancer(configured=False)
    )
    await state.fetch_headlines()
    recorder = Recorder(state)
    await state.enhance_all()

    assert recorder.count == 0
    assert state.enhancing is False


@pytest.mark.asyncio
async def test_auto_enhance_runs_after_fetch():
    state = NewsState(
        MockSource({"latency": 0}),
        MemoryStore(),
        enhancer=StubEnhancer(),
        auto_enhance=True,
    )
    recorder = Recorder(state)
    await state.fetch_headlines()

    assert [(s["loading"], s["enhancing"]) for s in recorder.snapshots] == [
        (True, False),
        (False, False),
        (False, True),
        (False, False),
    ]
    assert all(a.content.startswith("full text of") for a in state.results)


@pytest.mark.asyncio
async def test_failing_listener_does_not_block_others(state):
    calls = []

    def broken():
        raise RuntimeError("listener bug")

    state.subscribe(broken)
    state.subscribe(lambda: calls.append(state.loading))
    await state.fetch_headlines()

    assert calls == [True, False]


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications(state):
    recorder = Recorder(state)
    state.unsubscribe(recorder)
    state.unsubscribe(recorder)
    await state.fetch_headlines()
    assert recorder.count == 0


@pytest.mark.asyncio
async def test_toggle_saved(state):
    article = make_article()
    assert await state.toggle_saved(article) is True
    assert state.is_saved(article.url)
    assert await state.toggle_saved(article) is False
    assert not state.is_saved(article.url)


@pytest.mark.asyncio
async def test_aclose_releases_collaborators():
    store = MemoryStore()
    enhancer = StubEnhancer()
    state = NewsState(MockSource({"latency": 0}), store, enhancer=enhancer)
    await state.aclose()
    assert store.closed is True
    assert enhancer.closed is True
