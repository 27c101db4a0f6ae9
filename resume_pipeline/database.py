"""SQLite database handle shared by the pipeline repositories.

A single ``Database`` is constructed at process start and handed to every
repository, so the request path and the worker see one connection and one
schema definition.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

CREATE_USERS_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    plan TEXT NOT NULL DEFAULT 'free',
    credits_remaining INTEGER NOT NULL DEFAULT 0 CHECK (credits_remaining >= 0),
    created_at TEXT NOT NULL
)
"""

CREATE_RESUMES_SQL = """
CREATE TABLE IF NOT EXISTS resumes (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id),
    file_name TEXT NOT NULL,
    original_file_name TEXT,
    original_text TEXT NOT NULL DEFAULT '',
    improved_text TEXT,
    ats_score INTEGER,
    keywords_score INTEGER,
    formatting_score INTEGER,
    issues TEXT NOT NULL DEFAULT '[]',
    status TEXT NOT NULL,
    content_hash TEXT,
    credit_charged INTEGER NOT NULL DEFAULT 0,
    duplicate_of TEXT,
    error_message TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

CREATE_CONTENT_HASHES_SQL = """
CREATE TABLE IF NOT EXISTS resume_content_hashes (
    user_id TEXT NOT NULL,
    content_hash TEXT NOT NULL,
    resume_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (user_id, content_hash)
)
"""

CREATE_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_resumes_user_id ON resumes(user_id);
CREATE INDEX IF NOT EXISTS idx_resumes_status ON resumes(status);
CREATE INDEX IF NOT EXISTS idx_resumes_user_status ON resumes(user_id, status);
CREATE INDEX IF NOT EXISTS idx_resumes_user_content_hash ON resumes(user_id, content_hash);
CREATE INDEX IF NOT EXISTS idx_resumes_duplicate_of ON resumes(duplicate_of);
"""


class Database:
    """Owner of the aiosqlite connection used by all repositories."""

    def __init__(self, db_path: Path | str):
        """Initialize the database handle.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get the database connection, opening it on first use.

        Yields:
            An aiosqlite connection.
        """
        if self._connection is None:
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row
        yield self._connection

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        async with self.connection() as conn:
            await conn.execute(CREATE_USERS_SQL)
            await conn.execute(CREATE_RESUMES_SQL)
            await conn.execute(CREATE_CONTENT_HASHES_SQL)
            await conn.executescript(CREATE_INDEX_SQL)
            await conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
