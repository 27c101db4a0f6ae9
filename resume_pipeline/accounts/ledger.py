"""Credit ledger: atomic per-user credit accounting.

Every balance change is one SQL statement. Deduction is conditional on the
balance being positive, so two concurrent uploads from the same user can
never drive the balance below zero.
"""

import logging

from resume_pipeline.accounts.models import User
from resume_pipeline.database import Database

logger = logging.getLogger(__name__)


class CreditLedger:
    """Deducts and refunds upload credits."""

    def __init__(self, database: Database):
        """Initialize the ledger.

        Args:
            database: Shared database handle.
        """
        self.database = database

    async def try_deduct(self, user: User) -> bool:
        """Take one credit from the user if the balance is positive.

        Exempt users are not charged and their balance is never touched.

        Args:
            user: The user to charge.

        Returns:
            True if the upload may proceed, False if the user has no credits.
        """
        if user.is_exempt:
            return True

        async with self.database.connection() as conn:
            cursor = await conn.execute(
                """
                UPDATE users
                SET credits_remaining = credits_remaining - 1
                WHERE id = ? AND credits_remaining > 0
                """,
                (user.id,),
            )
            changed = cursor.rowcount
            await conn.commit()

        if changed != 1:
            logger.info("Credit deduction refused for user %s: no credits", user.id)
            return False

        logger.debug("Deducted 1 credit from user %s", user.id)
        return True

    async def refund(self, user: User) -> None:
        """Give one credit back to the user.

        Args:
            user: The user to refund. Exempt users are skipped.
        """
        if user.is_exempt:
            return

        async with self.database.connection() as conn:
            await conn.execute(
                """
                UPDATE users
                SET credits_remaining = credits_remaining + 1
                WHERE id = ?
                """,
                (user.id,),
            )
            await conn.commit()

        logger.info("Refunded 1 credit to user %s", user.id)

    async def grant(self, user_id: str, credits: int) -> None:
        """Add purchased or promotional credits to a balance.

        Args:
            user_id: The user to credit.
            credits: Number of credits to add (must be positive).
        """
        if credits <= 0:
            raise ValueError("credits must be > 0")

        async with self.database.connection() as conn:
            await conn.execute(
                """
                UPDATE users
                SET credits_remaining = credits_remaining + ?
                WHERE id = ?
                """,
                (credits, user_id),
            )
            await conn.commit()

    async def balance(self, user_id: str) -> int | None:
        """Return the current balance, or None for an unknown user."""
        async with self.database.connection() as conn:
            cursor = await conn.execute(
                "SELECT credits_remaining FROM users WHERE id = ?", (user_id,)
            )
            row = await cursor.fetchone()

        if row is None:
            return None
        return int(row["credits_remaining"])
