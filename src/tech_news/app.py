from __future__ import annotations

import logging
from typing import Any, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Header, Input, ListView, Static

from .config import UI_DEFAULTS
from .datamodels import Article
from .messages import StateChanged
from .screens import SavedArticlesScreen, StoryViewScreen
from .state import NewsState
from .widgets import EmptyMessage, HeadlineItem, StatusBar

logger = logging.getLogger("technews")


class NewsApp(App):
    TITLE = "Tech News"
    SUB_TITLE = "Technology headlines in your terminal"

    CSS = """
    #search { display: none; }
    #empty-message { display: none; padding: 1 2; }
    .headline-flag { width: 2; color: $warning; }
    .headline-age { width: 5; color: $text-muted; }
    .headline-title { width: 1fr; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("b", "bookmark", "Bookmark"),
        Binding("B", "show_saved", "Saved Articles"),
        Binding("e", "enhance", "Full Content"),
        Binding("/", "focus_search", "Search"),
    ]

    def __init__(
        self,
        news: NewsState,
        config: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.news = news
        self.config = config or {}

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main"):
            yield Static("Headlines", classes="pane-title", id="pane-title")
            yield Input(placeholder="Search tech news...", id="search")
            yield ListView(id="headlines-list")
            yield EmptyMessage(
                "No articles found. Try 'AI', 'Flutter', 'Apple' or 'web'.",
                id="empty-message",
            )
        yield StatusBar()

    def on_mount(self) -> None:
        self.news.subscribe(self._on_state_notified)
        keybindings_text = self.config.get("ui", {}).get(
            "statusbar_keybindings", UI_DEFAULTS["statusbar_keybindings"]
        )
        self.query_one(StatusBar).set_keybindings(keybindings_text.format(color="cyan"))
        self.query_one("#headlines-list", ListView).focus()
        self.run_worker(self._startup(), name="startup")

    async def on_unmount(self) -> None:
        self.news.unsubscribe(self._on_state_notified)
        await self.news.aclose()

    async def _startup(self) -> None:
        await self.news.load_saved()
        await self.news.fetch_headlines()

    def _on_state_notified(self) -> None:
        self.post_message(StateChanged())

    def on_state_changed(self, message: StateChanged) -> None:
        self._render_state()

    def _render_state(self) -> None:
        status = self.query_one(StatusBar)
        if self.news.loading:
            status.loading_status = "Loading..."
        elif self.news.enhancing:
            status.loading_status = "Extracting full content..."
        elif self.news.has_no_results:
            status.loading_status = f"No results for '{self.news.query}'"
        else:
            status.loading_status = ""

        title = f"Results for '{self.news.query}'" if self.news.query else "Headlines"
        self.query_one("#pane-title", Static).update(title)
        self._update_headlines_list(self.news.results)

    def _update_headlines_list(self, articles: list[Article]) -> None:
        headlines_list = self.query_one("#headlines-list", ListView)
        empty = self.query_one("#empty-message")
        previous_index = headlines_list.index
        headlines_list.clear()

        if not articles:
            headlines_list.display = False
            empty.display = self.news.has_no_results
            return

        for article in articles:
            headlines_list.append(HeadlineItem(article, saved=self.news.is_saved(article.url)))
        headlines_list.display = True
        empty.display = False
        if previous_index is None or previous_index >= len(articles):
            previous_index = 0
        self.call_after_refresh(setattr, headlines_list, "index", previous_index)

    def _highlighted_article(self) -> Optional[Article]:
        item = self.query_one("#headlines-list", ListView).highlighted_child
        if isinstance(item, HeadlineItem):
            return item.article
        return None

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, HeadlineItem):
            self.push_screen(StoryViewScreen(event.item.article, self.news))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "search":
            return
        query = event.value.strip()
        if query:
            self.run_worker(self.news.search(query), name="search")
        else:
            self.news.clear_query()
            self.run_worker(self.news.fetch_headlines(), name="headlines")
            event.input.display = False
        self.query_one("#headlines-list", ListView).focus()

    def on_input_blur(self, event: Input.Blur) -> None:
        if event.input.id == "search" and not event.input.value:
            event.input.display = False

    def action_refresh(self) -> None:
        if self.news.query:
            self.run_worker(self.news.search(self.news.query), name="search")
        else:
            self.run_worker(self.news.fetch_headlines(), name="headlines")

    def action_focus_search(self) -> None:
        search = self.query_one("#search", Input)
        search.display = True
        search.focus()

    def action_bookmark(self) -> None:
        article = self._highlighted_article()
        if article is None:
            return
        self.run_worker(self._toggle_bookmark(article), name="bookmark")

    async def _toggle_bookmark(self, article: Article) -> None:
        saved = await self.news.toggle_saved(article)
        self.notify("Article saved." if saved else "Article removed from saved.")

    def action_show_saved(self) -> None:
        self.push_screen(SavedArticlesScreen(self.news))

    def action_enhance(self) -> None:
        enhancer = self.news.enhancer
        if enhancer is None or not enhancer.is_configured:
            self.notify("Set FIRECRAWL_API_KEY to fetch full article content.", severity="warning")
            return
        self.run_worker(self.news.enhance_all(), name="enhance")
