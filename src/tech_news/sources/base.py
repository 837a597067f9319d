from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..datamodels import Article


class FetchFailed(Exception):
    """A source could not produce headlines or search results."""


class Source(ABC):
    """Abstract base class for a headline source."""

    name = "base"

    def __init__(self, config: Dict[str, Any]):
        self.config = config

    @abstractmethod
    async def fetch_headlines(self) -> List[Article]:
        """Return the current top headlines in source order."""

    @abstractmethod
    async def search(self, query: str) -> List[Article]:
        """Return the articles matching ``query``; an empty list means no results."""
