"""Database repository for resume records.

This module provides async SQLite operations for resumes and the
per-user content-hash index. Status transitions are conditional updates
that only fire from the expected source states, so a redelivered job or
a second failure handler cannot move a record twice.
"""

import json
from datetime import UTC, datetime

import aiosqlite

from resume_pipeline.database import Database
from resume_pipeline.resumes.models import Resume, ResumeIssue, ResumeStatus


def _now() -> str:
    return datetime.now(UTC).isoformat()


class ResumeRepository:
    """Async SQLite repository for resume records."""

    def __init__(self, database: Database):
        """Initialize the repository.

        Args:
            database: Shared database handle.
        """
        self.database = database

    async def insert(self, resume: Resume) -> None:
        """Insert a new resume record.

        Args:
            resume: The resume to insert.

        Raises:
            sqlite3.IntegrityError: If a resume with the same id exists.
        """
        async with self.database.connection() as conn:
            await conn.execute(
                """
                INSERT INTO resumes (
                    id, user_id, file_name, original_file_name, original_text,
                    improved_text, ats_score, keywords_score, formatting_score,
                    issues, status, content_hash, credit_charged, duplicate_of,
                    error_message, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    resume.id,
                    resume.user_id,
                    resume.file_name,
                    resume.original_file_name,
                    resume.original_text,
                    resume.improved_text,
                    resume.ats_score,
                    resume.keywords_score,
                    resume.formatting_score,
                    json.dumps([issue.to_dict() for issue in resume.issues]),
                    resume.status.value,
                    resume.content_hash,
                    1 if resume.credit_charged else 0,
                    resume.duplicate_of,
                    resume.error_message,
                    resume.created_at.isoformat(),
                    resume.updated_at.isoformat(),
                ),
            )
            await conn.commit()

    async def get_by_id(self, resume_id: str) -> Resume | None:
        """Get a resume by id.

        Args:
            resume_id: The resume id to look up.

        Returns:
            The resume if found, None otherwise.
        """
        async with self.database.connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM resumes WHERE id = ?", (resume_id,)
            )
            row = await cursor.fetchone()

        if row is None:
            return None
        return self._row_to_resume(row)

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Resume]:
        """List a user's resumes, newest first."""
        async with self.database.connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM resumes
                WHERE user_id = ?
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            rows = await cursor.fetchall()

        return [self._row_to_resume(row) for row in rows]

    async def delete(self, resume_id: str) -> bool:
        """Delete a resume (administrative operation).

        The content-hash index entry is left in place; the next duplicate
        check for that hash reports it as stale.

        Returns:
            True if a record was deleted.
        """
        async with self.database.connection() as conn:
            cursor = await conn.execute("DELETE FROM resumes WHERE id = ?", (resume_id,))
            deleted = cursor.rowcount
            await conn.commit()
        return deleted == 1

    async def get_indexed_resume_id(self, user_id: str, content_hash: str) -> str | None:
        """Look up the resume registered for a user's content hash.

        Args:
            user_id: Owner of the resume.
            content_hash: Fingerprint of the resume text.

        Returns:
            The indexed resume id, or None if the hash is unknown.
        """
        async with self.database.connection() as conn:
            cursor = await conn.execute(
                """
                SELECT resume_id FROM resume_content_hashes
                WHERE user_id = ? AND content_hash = ?
                """,
                (user_id, content_hash),
            )
            row = await cursor.fetchone()

        if row is None:
            return None
        return row["resume_id"]

    async def index_content_hash(
        self, user_id: str, content_hash: str, resume_id: str
    ) -> None:
        """Register a resume as the owner of a user's content hash.

        An existing entry for the same ``(user_id, content_hash)`` pair is
        replaced, which is how stale entries are repaired.
        """
        async with self.database.connection() as conn:
            await conn.execute(
                """
                INSERT INTO resume_content_hashes (user_id, content_hash, resume_id, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (user_id, content_hash)
                DO UPDATE SET resume_id = excluded.resume_id, created_at = excluded.created_at
                """,
                (user_id, content_hash, resume_id, _now()),
            )
            await conn.commit()

    async def claim(self, resume_id: str) -> bool:
        """Move a queued resume to processing.

        Returns:
            True if this call performed the transition, False if the record
            is missing or was not queued (for example a redelivered job).
        """
        async with self.database.connection() as conn:
            cursor = await conn.execute(
                """
                UPDATE resumes SET status = ?, updated_at = ?
                WHERE id = ? AND status = ?
                """,
                (
                    ResumeStatus.PROCESSING.value,
                    _now(),
                    resume_id,
                    ResumeStatus.QUEUED.value,
                ),
            )
            changed = cursor.rowcount
            await conn.commit()
        return changed == 1

    async def record_extraction(
        self,
        resume_id: str,
        *,
        original_text: str,
        content_hash: str | None,
        credit_charged: bool,
        duplicate_of: str | None = None,
    ) -> None:
        """Store extracted text, its hash and the charge flag on a processing resume.

        A ``duplicate_of`` link marks the resume as waiting on an earlier
        identical upload instead of running the engine itself.
        """
        async with self.database.connection() as conn:
            await conn.execute(
                """
                UPDATE resumes
                SET original_text = ?, content_hash = ?, credit_charged = ?,
                    duplicate_of = ?, updated_at = ?
                WHERE id = ? AND status = ?
                """,
                (
                    original_text,
                    content_hash,
                    1 if credit_charged else 0,
                    duplicate_of,
                    _now(),
                    resume_id,
                    ResumeStatus.PROCESSING.value,
                ),
            )
            await conn.commit()

    async def mark_completed(
        self,
        resume_id: str,
        *,
        improved_text: str | None,
        ats_score: int | None,
        keywords_score: int | None,
        formatting_score: int | None,
        issues: list[ResumeIssue],
        duplicate_of: str | None = None,
    ) -> bool:
        """Store optimisation results and move a processing resume to completed.

        Returns:
            True if this call performed the transition.
        """
        async with self.database.connection() as conn:
            cursor = await conn.execute(
                """
                UPDATE resumes
                SET improved_text = ?, ats_score = ?, keywords_score = ?,
                    formatting_score = ?, issues = ?, duplicate_of = ?,
                    status = ?, error_message = NULL, updated_at = ?
                WHERE id = ? AND status = ?
                """,
                (
                    improved_text,
                    ats_score,
                    keywords_score,
                    formatting_score,
                    json.dumps([issue.to_dict() for issue in issues]),
                    duplicate_of,
                    ResumeStatus.COMPLETED.value,
                    _now(),
                    resume_id,
                    ResumeStatus.PROCESSING.value,
                ),
            )
            changed = cursor.rowcount
            await conn.commit()
        return changed == 1

    async def mark_failed(self, resume_id: str, error_message: str) -> bool:
        """Move a queued or processing resume to failed.

        Args:
            resume_id: The resume to fail.
            error_message: Failure marker stored on the record.

        Returns:
            True if this call performed the transition. A resume that is
            already terminal is left untouched and False is returned.
        """
        async with self.database.connection() as conn:
            cursor = await conn.execute(
                """
                UPDATE resumes
                SET status = ?, error_message = ?, updated_at = ?
                WHERE id = ? AND status IN (?, ?)
                """,
                (
                    ResumeStatus.FAILED.value,
                    error_message,
                    _now(),
                    resume_id,
                    ResumeStatus.QUEUED.value,
                    ResumeStatus.PROCESSING.value,
                ),
            )
            changed = cursor.rowcount
            await conn.commit()
        return changed == 1

    async def list_waiting_duplicates(self, original_id: str) -> list[str]:
        """Ids of processing resumes linked to ``original_id`` and awaiting its result."""
        async with self.database.connection() as conn:
            cursor = await conn.execute(
                """
                SELECT id FROM resumes
                WHERE duplicate_of = ? AND status = ?
                ORDER BY created_at
                """,
                (original_id, ResumeStatus.PROCESSING.value),
            )
            rows = await cursor.fetchall()
        return [row["id"] for row in rows]

    def _row_to_resume(self, row: aiosqlite.Row) -> Resume:
        """Convert a database row to a Resume.

        Args:
            row: The database row.

        Returns:
            A Resume instance.
        """
        raw_issues = json.loads(row["issues"] or "[]")
        return Resume(
            id=row["id"],
            user_id=row["user_id"],
            file_name=row["file_name"],
            original_file_name=row["original_file_name"],
            status=ResumeStatus(row["status"]),
            original_text=row["original_text"] or "",
            improved_text=row["improved_text"],
            ats_score=row["ats_score"],
            keywords_score=row["keywords_score"],
            formatting_score=row["formatting_score"],
            issues=[
                ResumeIssue.from_dict(item)
                for item in raw_issues
                if isinstance(item, dict)
            ],
            content_hash=row["content_hash"],
            credit_charged=bool(row["credit_charged"]),
            duplicate_of=row["duplicate_of"],
            error_message=row["error_message"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
