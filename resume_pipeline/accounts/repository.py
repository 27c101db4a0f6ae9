"""Database repository for user accounts."""

import uuid
from datetime import UTC, datetime

import aiosqlite

from resume_pipeline.accounts.models import Plan, User
from resume_pipeline.database import Database


class UserRepository:
    """Async repository for user records.

    Credit balance changes are not made here; they go through
    ``CreditLedger`` so every change is a single conditional statement.
    """

    def __init__(self, database: Database):
        """Initialize the repository.

        Args:
            database: Shared database handle.
        """
        self.database = database

    async def create_user(
        self,
        email: str,
        plan: Plan = Plan.FREE,
        credits: int = 0,
        user_id: str | None = None,
    ) -> User:
        """Insert a new user.

        Args:
            email: Login email of the user.
            plan: Subscription plan.
            credits: Starting credit balance.
            user_id: Optional explicit identifier (defaults to a uuid4).

        Returns:
            The created user.

        Raises:
            sqlite3.IntegrityError: If the id or email is already taken.
        """
        user = User(
            id=user_id or str(uuid.uuid4()),
            email=email,
            plan=plan,
            credits_remaining=credits,
            created_at=datetime.now(UTC),
        )
        async with self.database.connection() as conn:
            await conn.execute(
                """
                INSERT INTO users (id, email, plan, credits_remaining, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    user.id,
                    user.email,
                    user.plan.value,
                    user.credits_remaining,
                    user.created_at.isoformat(),
                ),
            )
            await conn.commit()
        return user

    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by id.

        Args:
            user_id: The user id to look up.

        Returns:
            The user if found, None otherwise.
        """
        async with self.database.connection() as conn:
            cursor = await conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()

        if row is None:
            return None
        return self._row_to_user(row)

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email."""
        async with self.database.connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM users WHERE email = ?", (email,)
            )
            row = await cursor.fetchone()

        if row is None:
            return None
        return self._row_to_user(row)

    async def update_plan(self, user_id: str, plan: Plan) -> None:
        """Change the subscription plan of a user."""
        async with self.database.connection() as conn:
            await conn.execute(
                "UPDATE users SET plan = ? WHERE id = ?", (plan.value, user_id)
            )
            await conn.commit()

    def _row_to_user(self, row: aiosqlite.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            plan=Plan(row["plan"]),
            credits_remaining=int(row["credits_remaining"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
