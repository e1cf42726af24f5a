"""Conversation memory with SQLite storage.

Two stores share one database file: an append-only ``messages`` table for
the conversation log and an FTS5 ``facts`` table for durable snippets that
are searched by keyword when building a turn's context.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from pathlib import Path

import aiosqlite

from benchmate.logging import get_logger

log = get_logger(__name__)

DEFAULT_RECENT_WINDOW = 20
DEFAULT_FACT_LIMIT = 10

_STOPWORDS = {
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "how",
    "in", "is", "it", "of", "on", "or", "that", "the", "this", "to", "was",
    "what", "when", "where", "which", "who", "why", "with", "you",
}


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class Message:
    """A persisted conversation message."""

    role: str  # "user" or "assistant"
    content: str
    timestamp: int = field(default_factory=_now_ms)


@dataclass(frozen=True)
class StoredFact:
    """A remembered fact."""

    id: int
    content: str
    timestamp: int


@dataclass
class ConversationContext:
    """Per-turn snapshot of recent messages and relevant facts."""

    recent_messages: list[Message] = field(default_factory=list)
    relevant_facts: list[StoredFact] = field(default_factory=list)


def build_fts_query(query: str) -> str | None:
    """Turn free text into a safe FTS5 MATCH expression of quoted OR-terms."""
    raw_tokens = [token for token in re.findall(r"\w+", (query or "").lower()) if token]
    tokens = [token for token in raw_tokens if len(token) >= 3 and token not in _STOPWORDS]
    if not tokens:
        tokens = [token for token in raw_tokens if len(token) >= 2]
    if not tokens:
        return None
    unique = list(dict.fromkeys(tokens))
    return " OR ".join(f'"{token}"' for token in unique)


class Memory:
    """Message log and fact store backed by one SQLite database."""

    def __init__(
        self,
        db_path: Path | str,
        recent_window: int = DEFAULT_RECENT_WINDOW,
        fact_limit: int = DEFAULT_FACT_LIMIT,
    ):
        """Initialize memory.

        Args:
            db_path: SQLite database path (``:memory:`` for an in-process store)
            recent_window: Number of recent messages included in context
            fact_limit: Number of facts included in context
        """
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            path = Path(self.db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            self.db_path = str(path)
        self.recent_window = recent_window
        self.fact_limit = fact_limit
        self._db: aiosqlite.Connection | None = None

    async def _ensure_db(self) -> aiosqlite.Connection:
        """Ensure database is initialized."""
        if self._db is None:
            self._db = await aiosqlite.connect(self.db_path)
            if self.db_path != ":memory:":
                await self._db.execute("PRAGMA journal_mode = WAL")
            await self._db.execute("""
                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    timestamp INTEGER NOT NULL
                )
            """)
            await self._db.execute("""
                CREATE VIRTUAL TABLE IF NOT EXISTS facts
                USING fts5(content, timestamp UNINDEXED)
            """)
            await self._db.commit()
        return self._db

    async def save_message(self, message: Message) -> None:
        """Append a message to the log."""
        db = await self._ensure_db()
        await db.execute(
            "INSERT INTO messages (role, content, timestamp) VALUES (?, ?, ?)",
            (message.role, message.content, message.timestamp),
        )
        await db.commit()

    async def get_recent_messages(self, limit: int = DEFAULT_RECENT_WINDOW) -> list[Message]:
        """Return the newest ``limit`` messages in chronological order."""
        db = await self._ensure_db()
        async with db.execute(
            "SELECT role, content, timestamp FROM messages ORDER BY id DESC LIMIT ?",
            (max(0, int(limit)),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [Message(role=row[0], content=row[1], timestamp=row[2]) for row in reversed(rows)]

    async def get_message_count(self) -> int:
        db = await self._ensure_db()
        async with db.execute("SELECT COUNT(*) FROM messages") as cursor:
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def save_fact(self, content: str) -> bool:
        """Store a fact unless an identical one exists. Returns True when inserted."""
        text = (content or "").strip()
        if not text:
            return False
        db = await self._ensure_db()
        async with db.execute("SELECT rowid FROM facts WHERE content = ?", (text,)) as cursor:
            existing = await cursor.fetchone()
        if existing:
            return False
        await db.execute(
            "INSERT INTO facts (content, timestamp) VALUES (?, ?)",
            (text, _now_ms()),
        )
        await db.commit()
        log.debug("Fact saved", chars=len(text))
        return True

    async def search_facts(self, query: str, limit: int = DEFAULT_FACT_LIMIT) -> list[StoredFact]:
        """Full-text search over facts, best match first."""
        fts_query = build_fts_query(query)
        if fts_query is None:
            return []
        db = await self._ensure_db()
        async with db.execute(
            """
            SELECT rowid, content, timestamp
            FROM facts
            WHERE facts MATCH ?
            ORDER BY rank
            LIMIT ?
            """,
            (fts_query, limit),
        ) as cursor:
            rows = await cursor.fetchall()
        return [StoredFact(id=row[0], content=row[1], timestamp=int(row[2])) for row in rows]

    async def get_all_facts(self, limit: int = 50) -> list[StoredFact]:
        """Return facts, newest first."""
        db = await self._ensure_db()
        async with db.execute(
            """
            SELECT rowid, content, timestamp
            FROM facts
            ORDER BY timestamp DESC, rowid DESC
            LIMIT ?
            """,
            (limit,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [StoredFact(id=row[0], content=row[1], timestamp=int(row[2])) for row in rows]

    async def get_context(self, query: str | None = None) -> ConversationContext:
        """Assemble recent messages plus facts relevant to ``query``."""
        recent = await self.get_recent_messages(self.recent_window)
        if query:
            facts = await self.search_facts(query, self.fact_limit)
        else:
            facts = await self.get_all_facts(self.fact_limit)
        return ConversationContext(recent_messages=recent, relevant_facts=facts)

    async def close(self) -> None:
        """Close the database connection."""
        if self._db:
            await self._db.close()
            self._db = None
