from __future__ import annotations

from typing import Optional, Sequence, Tuple

# Priority order matters: the first bucket with a matching keyword wins.
TOPIC_BUCKETS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("ai", ("ai", "artificial intelligence")),
    ("mobile", ("flutter", "mobile")),
    ("apple", ("apple", "ios")),
    ("web", ("web", "javascript", "node")),
)


def classify_query(query: str) -> Optional[str]:
    """Map a free-text query to a topic bucket name, or None when nothing matches."""
    text = query.lower()
    for bucket, keywords in TOPIC_BUCKETS:
        if any(keyword in text for keyword in keywords):
            return bucket
    return None


def bucket_keywords(bucket: str) -> Sequence[str]:
    for name, keywords in TOPIC_BUCKETS:
        if name == bucket:
            return keywords
    raise KeyError(bucket)
