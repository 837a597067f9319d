from __future__ import annotations

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

import aiosqlite

from .datamodels import Article

logger = logging.getLogger("technews")

SCHEMA_VERSION = 2
TABLE = "saved_articles"

# Columns added after the first schema version, in migration order.
_V2_COLUMNS = (("imageUrl", "TEXT"), ("publishedAt", "TEXT"))


class StoreUnavailable(Exception):
    """The database file could not be opened, read or written."""


class ArticleStore:
    """
    Saved articles in a single SQLite table keyed by URL.

    Every public operation degrades instead of raising when the database is
    unavailable: writes report ``False`` and reads return an empty list. A
    row that cannot be decoded is different: ``get_all`` lets the
    ``MalformedArticle`` error through so the caller can tell a corrupt
    store from an empty one.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                if not self._schema_ready:
                    async with self._schema_lock:
                        if not self._schema_ready:
                            await self._ensure_schema(db)
                            self._schema_ready = True
                yield db
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(f"{self.db_path}: {e}") from e

    async def _ensure_schema(self, db: aiosqlite.Connection) -> None:
        cur = await db.execute("PRAGMA user_version")
        row = await cur.fetchone()
        version = row[0] if row else 0

        cur = await db.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", (TABLE,)
        )
        table_exists = await cur.fetchone() is not None

        if not table_exists:
            await db.execute(
                f"""
                CREATE TABLE {TABLE} (
                    _id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT,
                    content TEXT,
                    url TEXT NOT NULL UNIQUE,
                    imageUrl TEXT,
                    publishedAt TEXT NOT NULL
                )
                """
            )
            logger.info("Created %s table in %s", TABLE, self.db_path)
        elif version < SCHEMA_VERSION:
            cur = await db.execute(f"PRAGMA table_info({TABLE})")
            existing = {r["name"] for r in await cur.fetchall()}
            for name, column_type in _V2_COLUMNS:
                if name not in existing:
                    await db.execute(f"ALTER TABLE {TABLE} ADD COLUMN {name} {column_type}")
            logger.info(
                "Migrated %s from schema version %d to %d", self.db_path, version, SCHEMA_VERSION
            )

        if version != SCHEMA_VERSION:
            await db.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        await db.commit()

    async def put(self, article: Article) -> bool:
        """Insert the article or replace the row with the same URL."""
        record = article.to_wire()
        try:
            async with self._connect() as db:
                await db.execute(
                    f"""
                    INSERT INTO {TABLE} (title, description, content, url, imageUrl, publishedAt)
                    VALUES (:title, :description, :content, :url, :imageUrl, :publishedAt)
                    ON CONFLICT(url) DO UPDATE SET
                        title = excluded.title,
                        description = excluded.description,
                        content = excluded.content,
                        imageUrl = excluded.imageUrl,
                        publishedAt = excluded.publishedAt
                    """,
                    record,
                )
                await db.commit()
        except StoreUnavailable as e:
            logger.warning("Could not persist %s: %s", article.url, e)
            return False
        logger.debug("Persisted %s", article.url)
        return True

    async def get_all(self) -> List[Article]:
        try:
            async with self._connect() as db:
                cur = await db.execute(
                    f"SELECT title, description, content, url, imageUrl, publishedAt FROM {TABLE}"
                )
                rows = await cur.fetchall()
        except StoreUnavailable as e:
            logger.warning("Could not read saved articles: %s", e)
            return []
        return [Article.from_wire(dict(row)) for row in rows]

    async def delete(self, url: str) -> bool:
        try:
            async with self._connect() as db:
                cur = await db.execute(f"DELETE FROM {TABLE} WHERE url = ?", (url,))
                await db.commit()
                removed = cur.rowcount
        except StoreUnavailable as e:
            logger.warning("Could not delete %s: %s", url, e)
            return False
        logger.debug("Deleted %s (%d row(s))", url, removed)
        return True

    async def close(self) -> None:
        # Connections are opened per operation; nothing stays open between calls.
        self._schema_ready = False
