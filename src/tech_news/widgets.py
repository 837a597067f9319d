from __future__ import annotations

from datetime import datetime, timezone

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widgets import ListItem, Static

from .datamodels import Article

BOOKMARK_MARK = "★"


def format_age(published_at: datetime, now: datetime | None = None) -> str:
    """Short relative age such as ``5m``, ``3h`` or ``2d``."""
    now = now or datetime.now(timezone.utc)
    seconds = max(0, int((now - published_at).total_seconds()))
    if seconds < 3600:
        return f"{max(1, seconds // 60)}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


# --- UI Widgets ---
class HeadlineItem(ListItem):
    def __init__(self, article: Article, saved: bool = False):
        super().__init__()
        self.article = article
        self.saved = saved

    def compose(self) -> ComposeResult:
        with Horizontal(classes="headline-container"):
            yield Static(BOOKMARK_MARK if self.saved else " ", classes="headline-flag")
            yield Static(format_age(self.article.published_at), classes="headline-age")
            yield Static(self.article.title, classes="headline-title")


class StatusBar(Static):
    loading_status = reactive("")
    keybinding_hint = reactive("")

    def on_mount(self) -> None:
        self.update_display()

    def set_keybindings(self, hint: str) -> None:
        """Set the keybinding hint text."""
        self.keybinding_hint = hint

    def update_display(self) -> None:
        """Update the status bar display."""
        status_items = []
        if self.loading_status:
            status_items.append(self.loading_status)

        if self.keybinding_hint:
            status_items.append(self.keybinding_hint)

        self.update(" | ".join(status_items))

    def watch_loading_status(self, loading_status: str) -> None:
        self.update_display()

    def watch_keybinding_hint(self, keybinding_hint: str) -> None:
        self.update_display()


class EmptyMessage(Static):
    def __init__(self, message: str, id: str | None = None):
        super().__init__(Text(message, style="italic"), id=id)
