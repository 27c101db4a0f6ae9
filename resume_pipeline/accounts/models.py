"""Data models for user accounts."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Plan(str, Enum):
    """Subscription plan of a user."""

    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    PREMIUM = "premium"
    ADMIN = "admin"


# Plans whose uploads never touch the credit balance
EXEMPT_PLANS = frozenset({Plan.ADMIN})


@dataclass
class User:
    """An account that owns resumes and a credit balance.

    Attributes:
        id: Unique user identifier.
        email: Login email, unique across users.
        plan: Subscription plan.
        credits_remaining: Optimisations the user may still start.
        created_at: When the account was created.
    """

    id: str
    email: str
    plan: Plan
    credits_remaining: int
    created_at: datetime

    def __post_init__(self) -> None:
        if self.credits_remaining < 0:
            raise ValueError("credits_remaining must be >= 0")

    @property
    def is_exempt(self) -> bool:
        """Whether the user bypasses credit accounting and duplicate checks."""
        return self.plan in EXEMPT_PLANS

    def to_dict(self) -> dict:
        """Serialize the user to a dictionary."""
        return {
            "id": self.id,
            "email": self.email,
            "plan": self.plan.value,
            "credits_remaining": self.credits_remaining,
            "created_at": self.created_at.isoformat(),
        }
