"""Tests for the CreditLedger."""

import asyncio

import pytest

from resume_pipeline.accounts.models import Plan


class TestTryDeduct:
    """Test conditional credit deduction."""

    async def test_deducts_one_credit(self, ledger, free_user):
        assert await ledger.try_deduct(free_user) is True
        assert await ledger.balance(free_user.id) == 2

    async def test_refuses_at_zero_balance(self, ledger, user_repo):
        user = await user_repo.create_user("broke@example.com", credits=0)

        assert await ledger.try_deduct(user) is False
        assert await ledger.balance(user.id) == 0

    async def test_concurrent_deductions_never_overdraw(self, ledger, user_repo):
        """Ten concurrent attempts on a balance of three succeed exactly three times."""
        user = await user_repo.create_user("busy@example.com", credits=3)

        results = await asyncio.gather(*(ledger.try_deduct(user) for _ in range(10)))

        assert results.count(True) == 3
        assert await ledger.balance(user.id) == 0

    async def test_uses_stored_balance_not_cached_user(self, ledger, free_user):
        """A stale in-memory balance must not allow extra deductions."""
        for _ in range(3):
            assert await ledger.try_deduct(free_user) is True

        assert free_user.credits_remaining == 3
        assert await ledger.try_deduct(free_user) is False

    async def test_exempt_user_is_never_charged(self, ledger, admin_user):
        for _ in range(5):
            assert await ledger.try_deduct(admin_user) is True
        assert await ledger.balance(admin_user.id) == 0


class TestRefund:
    """Test credit refunds."""

    async def test_refund_restores_balance(self, ledger, free_user):
        await ledger.try_deduct(free_user)
        await ledger.refund(free_user)

        assert await ledger.balance(free_user.id) == 3

    async def test_refund_skips_exempt_user(self, ledger, admin_user):
        await ledger.refund(admin_user)

        assert await ledger.balance(admin_user.id) == 0


class TestGrantAndBalance:
    """Test grants and balance lookups."""

    async def test_grant_adds_credits(self, ledger, free_user):
        await ledger.grant(free_user.id, 5)

        assert await ledger.balance(free_user.id) == 8

    async def test_grant_rejects_non_positive(self, ledger, free_user):
        with pytest.raises(ValueError):
            await ledger.grant(free_user.id, 0)

    async def test_balance_of_unknown_user_is_none(self, ledger):
        assert await ledger.balance("missing") is None

    async def test_plan_change_to_admin_stops_charging(
        self, ledger, user_repo, free_user
    ):
        await user_repo.update_plan(free_user.id, Plan.ADMIN)
        admin = await user_repo.get_by_id(free_user.id)

        assert await ledger.try_deduct(admin) is True
        assert await ledger.balance(free_user.id) == 3
