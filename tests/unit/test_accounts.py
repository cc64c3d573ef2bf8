"""Unit tests for membership account operations.

Tests call the accounts service directly with the db_session fixture.
After an expected failure the session has been rolled back, so objects are
re-read through the service instead of touching stale instances.
"""

import uuid

import pytest
from libs.common.errors import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from services.membership_service.models import MembershipStatus, TransactionType
from services.membership_service.services import accounts, ledger
from sqlalchemy.exc import OperationalError
from tests.factories import MembershipAccountFactory, MembershipTierFactory


async def _balance_pair(db, membership_id):
    """(cached balance, ledger-derived balance)."""
    account = await accounts.get_membership(db, membership_id)
    return account.points_balance, await ledger.derived_balance(db, membership_id)


# ---------------------------------------------------------------------------
# create_membership
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_membership_without_points_has_empty_ledger(db_session):
    account = await accounts.create_membership(db_session, "cust-1")

    assert account.points_balance == 0
    assert account.status == MembershipStatus.ACTIVE
    assert account.membership_code.startswith("HTP-")
    assert await ledger.has_history(db_session, account.id) is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_membership_records_initial_points_in_ledger(db_session):
    account = await accounts.create_membership(db_session, "cust-1", initial_points=250)

    assert account.points_balance == 250
    entries = [entry async for entry in ledger.list_for(db_session, account.id)]
    assert len(entries) == 1
    assert entries[0].transaction_type == TransactionType.EARNED
    assert entries[0].points == 250
    assert entries[0].description == "Initial points"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_membership_rejects_second_account_for_customer(db_session):
    await accounts.create_membership(db_session, "cust-1")

    with pytest.raises(ConflictError):
        await accounts.create_membership(db_session, "cust-1", initial_points=10)

    items, total = await accounts.list_memberships(db_session)
    assert total == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_membership_rejects_negative_initial_points(db_session):
    with pytest.raises(ValidationError):
        await accounts.create_membership(db_session, "cust-1", initial_points=-1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_membership_with_unknown_tier(db_session):
    with pytest.raises(NotFoundError):
        await accounts.create_membership(db_session, "cust-1", tier_id=uuid.uuid4())


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_membership_rejects_taken_code(db_session):
    first = await accounts.create_membership(db_session, "cust-1")

    with pytest.raises(ConflictError):
        await accounts.create_membership(
            db_session, "cust-2", membership_code=first.membership_code.lower()
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_membership_retries_code_collision(db_session):
    first = await accounts.create_membership(db_session, "cust-1")
    taken = first.membership_code
    candidates = iter([taken, "HTP-777777"])

    second = await accounts.create_membership(
        db_session, "cust-2", code_factory=lambda: next(candidates)
    )

    assert second.membership_code == "HTP-777777"
    assert second.customer_id == "cust-2"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_membership_gives_up_after_repeated_collisions(db_session):
    first = await accounts.create_membership(db_session, "cust-1")
    taken = first.membership_code

    with pytest.raises(ConflictError):
        await accounts.create_membership(db_session, "cust-2", code_factory=lambda: taken)

    assert await accounts.find_membership_by_customer(db_session, "cust-2") is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_membership_keeps_account_when_initial_points_fail(
    db_session, monkeypatch
):
    async def _failing_append(*args, **kwargs):
        raise OperationalError(
            "INSERT INTO membership_transactions", {}, Exception("disk I/O error")
        )

    monkeypatch.setattr(ledger, "append", _failing_append)

    account = await accounts.create_membership(db_session, "cust-1", initial_points=50)
    monkeypatch.undo()

    assert account.points_balance == 0
    assert await _balance_pair(db_session, account.id) == (0, 0)
    assert await ledger.has_history(db_session, account.id) is False
    stored = await accounts.find_membership_by_customer(db_session, "cust-1")
    assert stored is not None and stored.id == account.id


# ---------------------------------------------------------------------------
# adjust_points
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_earn_then_redeem_scenario(db_session):
    """0 -> earn 500 -> redeem 200 -> 300; redeeming 400 is then rejected."""
    account = await accounts.create_membership(db_session, "cust-1")
    membership_id = account.id

    account = await accounts.adjust_points(
        db_session, membership_id, TransactionType.EARNED, 500, description="Purchase"
    )
    assert account.points_balance == 500

    account = await accounts.adjust_points(
        db_session, membership_id, TransactionType.REDEEMED, 200, description="Discount"
    )
    assert account.points_balance == 300

    with pytest.raises(InsufficientBalanceError) as exc_info:
        await accounts.adjust_points(
            db_session, membership_id, TransactionType.REDEEMED, 400
        )
    assert exc_info.value.requested == 400
    assert exc_info.value.available == 300

    assert await _balance_pair(db_session, membership_id) == (300, 300)
    entries = [entry async for entry in ledger.list_for(db_session, membership_id)]
    assert len(entries) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_exact_balance_reaches_zero(db_session):
    account = await accounts.create_membership(db_session, "cust-1", initial_points=120)

    account = await accounts.adjust_points(
        db_session, account.id, TransactionType.REDEEMED, 120
    )

    assert account.points_balance == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_adjust_points_rejects_non_positive_amounts(db_session):
    account = await accounts.create_membership(db_session, "cust-1", initial_points=50)
    membership_id = account.id

    for points in (0, -10):
        with pytest.raises(ValidationError):
            await accounts.adjust_points(
                db_session, membership_id, TransactionType.EARNED, points
            )

    assert await _balance_pair(db_session, membership_id) == (50, 50)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_adjust_points_rejects_expired_type(db_session):
    account = await accounts.create_membership(db_session, "cust-1", initial_points=50)

    with pytest.raises(ValidationError):
        await accounts.adjust_points(db_session, account.id, TransactionType.EXPIRED, 10)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_from_suspended_membership_is_rejected(db_session):
    account = await accounts.create_membership(db_session, "cust-1", initial_points=100)
    membership_id = account.id
    await accounts.set_status(db_session, membership_id, MembershipStatus.SUSPENDED)

    with pytest.raises(ConflictError):
        await accounts.adjust_points(
            db_session, membership_id, TransactionType.REDEEMED, 10
        )

    assert await _balance_pair(db_session, membership_id) == (100, 100)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_checks_ledger_not_drifted_cache(db_session):
    """A cache that claims more points than the ledger holds cannot be spent."""
    account = MembershipAccountFactory.create(points_balance=1000)
    db_session.add(account)
    await db_session.commit()
    membership_id = account.id

    with pytest.raises(InsufficientBalanceError):
        await accounts.adjust_points(
            db_session, membership_id, TransactionType.REDEEMED, 10
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_adjust_unknown_membership(db_session):
    with pytest.raises(NotFoundError):
        await accounts.adjust_points(
            db_session, uuid.uuid4(), TransactionType.EARNED, 10
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cached_balance_matches_ledger_after_mixed_operations(db_session):
    account = await accounts.create_membership(db_session, "cust-1", initial_points=40)
    membership_id = account.id

    await accounts.adjust_points(db_session, membership_id, TransactionType.EARNED, 60)
    await accounts.adjust_points(db_session, membership_id, TransactionType.REDEEMED, 30)
    await accounts.expire_points(db_session, membership_id, 20)
    with pytest.raises(InsufficientBalanceError):
        await accounts.expire_points(db_session, membership_id, 500)

    cached, derived = await _balance_pair(db_session, membership_id)
    assert cached == derived == 50


# ---------------------------------------------------------------------------
# award_order_points
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_award_order_points_applies_tier_multiplier(db_session):
    tier = MembershipTierFactory.create(name="Gold", points_multiplier=1.5)
    db_session.add(tier)
    await db_session.commit()
    account = await accounts.create_membership(db_session, "cust-1", tier_id=tier.id)

    account = await accounts.award_order_points(
        db_session, account.id, uuid.uuid4(), base_points=101
    )

    assert account.points_balance == 151


@pytest.mark.asyncio
@pytest.mark.unit
async def test_award_order_points_floors_decimal_product(db_session):
    tier = MembershipTierFactory.create(name="Silver", points_multiplier=1.15)
    db_session.add(tier)
    await db_session.commit()
    account = await accounts.create_membership(db_session, "cust-1", tier_id=tier.id)

    account = await accounts.award_order_points(
        db_session, account.id, uuid.uuid4(), base_points=100
    )

    assert account.points_balance == 115
    assert await _balance_pair(db_session, account.id) == (115, 115)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_award_order_points_once_per_order(db_session):
    account = await accounts.create_membership(db_session, "cust-1")
    membership_id = account.id
    order_id = uuid.uuid4()

    await accounts.award_order_points(db_session, membership_id, order_id, 80)
    account = await accounts.award_order_points(db_session, membership_id, order_id, 80)

    assert account.points_balance == 80
    entries = [entry async for entry in ledger.list_for(db_session, membership_id)]
    assert len(entries) == 1
    assert entries[0].order_id == order_id


# ---------------------------------------------------------------------------
# status / delete
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_set_status_rejects_unknown_value(db_session):
    account = await accounts.create_membership(db_session, "cust-1")

    with pytest.raises(ValidationError):
        await accounts.set_status(db_session, account.id, "archived")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_membership_without_history(db_session):
    account = await accounts.create_membership(db_session, "cust-1")
    membership_id = account.id

    await accounts.delete_membership(db_session, membership_id)

    with pytest.raises(NotFoundError):
        await accounts.get_membership(db_session, membership_id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_membership_with_history_is_refused(db_session):
    account = await accounts.create_membership(db_session, "cust-1", initial_points=10)
    membership_id = account.id

    with pytest.raises(ConflictError):
        await accounts.delete_membership(db_session, membership_id)

    assert await ledger.has_history(db_session, membership_id) is True
    account = await accounts.set_status(db_session, membership_id, MembershipStatus.INACTIVE)
    assert account.status == MembershipStatus.INACTIVE


# ---------------------------------------------------------------------------
# lookups / reconciliation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_membership_by_code_is_case_insensitive(db_session):
    account = await accounts.create_membership(db_session, "cust-1")

    found = await accounts.get_membership_by_code(
        db_session, f"  {account.membership_code.lower()} "
    )

    assert found.id == account.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_memberships_filters(db_session):
    await accounts.create_membership(db_session, "alpha")
    beta = await accounts.create_membership(db_session, "beta")
    await accounts.set_status(db_session, beta.id, MembershipStatus.SUSPENDED)

    items, total = await accounts.list_memberships(db_session, search="alp")
    assert total == 1 and items[0].customer_id == "alpha"

    items, total = await accounts.list_memberships(
        db_session, status=MembershipStatus.SUSPENDED
    )
    assert total == 1 and items[0].customer_id == "beta"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reconcile_balance_repairs_drift(db_session):
    account = await accounts.create_membership(db_session, "cust-1", initial_points=70)
    membership_id = account.id
    account.points_balance = 5
    await db_session.commit()

    account, drift = await accounts.reconcile_balance(db_session, membership_id)

    assert drift == 65
    assert account.points_balance == 70


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reconcile_all_counts_corrections(db_session):
    await accounts.create_membership(db_session, "cust-1", initial_points=10)
    drifted = MembershipAccountFactory.create(points_balance=33)
    db_session.add(drifted)
    await db_session.commit()

    checked, corrected = await accounts.reconcile_all(db_session)

    assert (checked, corrected) == (2, 1)
    assert await _balance_pair(db_session, drifted.id) == (0, 0)
