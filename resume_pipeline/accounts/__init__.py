"""User accounts and credit accounting.

Public API:
- User: Data model for an account
- Plan: Enum of subscription plans
- UserRepository: Database repository for users
- CreditLedger: Atomic credit deduction and refund
"""

from resume_pipeline.accounts.ledger import CreditLedger
from resume_pipeline.accounts.models import Plan, User
from resume_pipeline.accounts.repository import UserRepository

__all__ = [
    "CreditLedger",
    "Plan",
    "User",
    "UserRepository",
]
