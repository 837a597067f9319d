from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

WORDS_PER_MINUTE = 200


class MalformedArticle(ValueError):
    """A wire record that cannot be turned into an Article."""


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise MalformedArticle(f"Invalid publishedAt value: {value!r}") from e
    else:
        raise MalformedArticle(f"Missing or invalid publishedAt value: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format as UTC ISO-8601 with milliseconds, adding microseconds only when present."""
    utc = value.astimezone(timezone.utc)
    text = utc.strftime("%Y-%m-%dT%H:%M:%S")
    millis, micros = divmod(utc.microsecond, 1000)
    if micros:
        return f"{text}.{millis:03d}{micros:03d}Z"
    return f"{text}.{millis:03d}Z"


# --- Data models ---
@dataclass(frozen=True, eq=False)
class Article:
    """A news item. Two articles are the same article when their URLs match."""

    title: str
    url: str
    published_at: datetime
    description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None

    def __post_init__(self) -> None:
        if self.published_at.tzinfo is None:
            object.__setattr__(
                self, "published_at", self.published_at.replace(tzinfo=timezone.utc)
            )

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Article):
            return NotImplemented
        return self.url == other.url

    def __hash__(self) -> int:
        return hash(self.url)

    def __repr__(self) -> str:
        return f"Article(title={self.title!r}, url={self.url!r})"

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Article:
        """
        Build an Article from a loosely typed mapping, as returned by a JSON
        API or read back from the store.

        Missing ``title``/``url`` become empty strings. ``publishedAt`` is
        required; a missing or unparseable value raises MalformedArticle.
        """
        image_url = data.get("imageUrl")
        if image_url is None:
            image_url = data.get("urlToImage")
        return cls(
            title=data.get("title") or "",
            description=data.get("description"),
            content=data.get("content"),
            url=data.get("url") or "",
            image_url=image_url,
            published_at=parse_timestamp(data.get("publishedAt")),
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "url": self.url,
            "imageUrl": self.image_url,
            "publishedAt": format_timestamp(self.published_at),
        }

    def with_content(self, content: Optional[str]) -> Article:
        return replace(self, content=content)

    @property
    def read_time_minutes(self) -> int:
        text = self.content or self.description or ""
        return max(1, round(len(text.split()) / WORDS_PER_MINUTE))
