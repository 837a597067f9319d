from __future__ import annotations

import webbrowser

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Markdown

from .datamodels import Article
from .state import NewsState
from .widgets import StatusBar


def article_markdown(article: Article) -> str:
    parts = [f"# {article.title}\n\n"]
    parts.append(f"*{article.published_at.strftime('%Y-%m-%d %H:%M UTC')}*\n\n")
    if article.description:
        parts.append(f"**{article.description}**\n\n")
    if article.content:
        parts.append(f"{article.content}\n\n")
    parts.append(f"[Read the full article]({article.url})\n")
    return "".join(parts)


# --- Story screen (separate) ---
class StoryViewScreen(Screen):
    BINDINGS = [
        Binding("escape,q,left", "app.pop_screen", "Back"),
        Binding("o", "open_in_browser", "Open in browser"),
        Binding("b", "toggle_bookmark", "Bookmark"),
        Binding("down", "scroll_down", "Scroll Down"),
        Binding("up", "scroll_up", "Scroll Up"),
    ]

    def __init__(self, article: Article, news: NewsState):
        super().__init__()
        self.article = article
        self.news = news

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(
            Markdown(article_markdown(self.article), id="story-markdown"),
            id="story-scroll",
        )
        yield StatusBar()

    def on_mount(self) -> None:
        self.title = self.article.title
        self.sub_title = f"~{self.article.read_time_minutes} min read"
        self.query_one("#story-scroll").focus()
        self.query_one(StatusBar).set_keybindings(
            "[b cyan]up/down[/] to scroll, [b cyan]o[/] to open, [b cyan]b[/] to bookmark"
        )

    def action_open_in_browser(self) -> None:
        webbrowser.open(self.article.url)

    def action_toggle_bookmark(self) -> None:
        self.run_worker(self._toggle_bookmark(), name="story_bookmark")

    async def _toggle_bookmark(self) -> None:
        saved = await self.news.toggle_saved(self.article)
        self.app.notify("Article saved." if saved else "Article removed from saved.")

    def action_scroll_down(self) -> None:
        self.query_one("#story-scroll").scroll_down()

    def action_scroll_up(self) -> None:
        self.query_one("#story-scroll").scroll_up()


class SavedArticlesScreen(Screen):
    BINDINGS = [
        Binding("escape,q,left", "app.pop_screen", "Back"),
        Binding("d", "delete_saved", "Delete"),
    ]

    def __init__(self, news: NewsState):
        super().__init__()
        self.news = news

    def compose(self) -> ComposeResult:
        yield Header()
        yield DataTable(id="saved-table")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "Saved Articles"
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.add_column("Title", key="title")
        table.add_column("Published", key="published")
        for article in self.news.saved:
            table.add_row(
                article.title,
                article.published_at.strftime("%Y-%m-%d"),
                key=article.url,
            )
        if not self.news.saved:
            self.sub_title = "Nothing saved yet"

    def _selected_url(self) -> str | None:
        table = self.query_one(DataTable)
        if not table.is_valid_row_index(table.cursor_row):
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return str(row_key.value)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        url = str(event.row_key.value)
        for article in self.news.saved:
            if article.url == url:
                self.app.push_screen(StoryViewScreen(article, self.news))
                return

    def action_delete_saved(self) -> None:
        """Remove the selected article from the saved list."""
        url = self._selected_url()
        if url is None:
            return
        table = self.query_one(DataTable)
        table.remove_row(url)
        self.run_worker(self.news.remove(url), name="remove_saved")
        self.app.notify("Article removed from saved.")
