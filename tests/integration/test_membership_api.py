"""Integration tests for membership_service endpoints."""

import uuid

import pytest
from services.membership_service.models import TransactionType
from services.membership_service.services import accounts
from tests.factories import LedgerEntryFactory, MembershipAccountFactory


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(membership_client):
    response = await membership_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "membership"}


# ---------------------------------------------------------------------------
# Staff: create / points
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_create_and_fetch_membership(membership_client):
    """POST /admin/memberships then GET by id and by code."""
    response = await membership_client.post(
        "/admin/memberships", json={"customer_id": "cust-1", "initial_points": 100}
    )
    assert response.status_code == 201, response.text
    created = response.json()
    assert created["points_balance"] == 100
    assert created["status"] == "active"

    response = await membership_client.get(f"/admin/memberships/{created['id']}")
    assert response.status_code == 200
    assert response.json()["membership_code"] == created["membership_code"]

    response = await membership_client.get(
        f"/admin/memberships/code/{created['membership_code'].lower()}"
    )
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_create_duplicate_membership_conflicts(membership_client):
    await membership_client.post("/admin/memberships", json={"customer_id": "cust-1"})

    response = await membership_client.post(
        "/admin/memberships", json={"customer_id": "cust-1"}
    )

    assert response.status_code == 409
    assert response.json() == {
        "detail": "This customer already has a membership",
        "code": "conflict",
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_points_flow(membership_client):
    """Earn 500, redeem 200, then a 400 redemption is refused."""
    created = (
        await membership_client.post("/admin/memberships", json={"customer_id": "cust-1"})
    ).json()
    url = f"/admin/memberships/{created['id']}/points"

    response = await membership_client.post(
        url, json={"transaction_type": "EARNED", "points": 500, "description": "Purchase"}
    )
    assert response.status_code == 200, response.text
    assert response.json()["points_balance"] == 500

    response = await membership_client.post(
        url, json={"transaction_type": "REDEEMED", "points": 200}
    )
    assert response.json()["points_balance"] == 300

    response = await membership_client.post(
        url, json={"transaction_type": "REDEEMED", "points": 400}
    )
    assert response.status_code == 409
    assert response.json()["code"] == "insufficient_balance"

    response = await membership_client.get(
        f"/admin/memberships/{created['id']}/transactions"
    )
    data = response.json()
    assert data["balance"] == 300
    assert sorted(tx["points"] for tx in data["transactions"]) == [200, 500]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_points_rejects_zero(membership_client):
    created = (
        await membership_client.post("/admin/memberships", json={"customer_id": "cust-1"})
    ).json()

    response = await membership_client.post(
        f"/admin/memberships/{created['id']}/points",
        json={"transaction_type": "EARNED", "points": 0},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_input"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_unknown_membership_is_404(membership_client):
    response = await membership_client.get(f"/admin/memberships/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_delete_membership_with_history_conflicts(membership_client, db_session):
    account = MembershipAccountFactory.create(points_balance=10)
    db_session.add(account)
    await db_session.commit()
    db_session.add(LedgerEntryFactory.create(account.id, points=10))
    await db_session.commit()

    response = await membership_client.delete(f"/admin/memberships/{account.id}")
    assert response.status_code == 409

    response = await membership_client.patch(
        f"/admin/memberships/{account.id}/status", json={"status": "inactive"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "inactive"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_delete_membership_without_history(membership_client):
    created = (
        await membership_client.post("/admin/memberships", json={"customer_id": "cust-1"})
    ).json()

    response = await membership_client.delete(f"/admin/memberships/{created['id']}")

    assert response.status_code == 204


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_list_memberships(membership_client):
    for customer in ("cust-1", "cust-2"):
        await membership_client.post("/admin/memberships", json={"customer_id": customer})

    response = await membership_client.get("/admin/memberships", params={"limit": 1})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert len(data["memberships"]) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_tiers_and_order_points(membership_client):
    tier = (
        await membership_client.post(
            "/admin/memberships/tiers",
            json={"name": "Gold", "discount_percentage": 10, "points_multiplier": 2},
        )
    ).json()
    created = (
        await membership_client.post(
            "/admin/memberships", json={"customer_id": "cust-1", "tier_id": tier["id"]}
        )
    ).json()
    order_id = str(uuid.uuid4())

    for _ in range(2):
        response = await membership_client.post(
            f"/admin/memberships/{created['id']}/order-points",
            json={"order_id": order_id, "base_points": 25},
        )
        assert response.status_code == 200, response.text

    assert response.json()["points_balance"] == 50

    response = await membership_client.get("/memberships/tiers")
    assert [t["name"] for t in response.json()] == ["Gold"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_reconcile(membership_client, db_session):
    account = MembershipAccountFactory.create(points_balance=40)
    db_session.add(account)
    await db_session.commit()

    response = await membership_client.post(f"/admin/memberships/{account.id}/reconcile")
    assert response.status_code == 200
    assert response.json()["drift"] == -40
    assert response.json()["membership"]["points_balance"] == 0

    response = await membership_client.post("/admin/memberships/reconcile")
    assert response.json() == {"checked": 1, "corrected": 0}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_import(membership_client):
    response = await membership_client.post(
        "/admin/memberships/import",
        json={
            "rows": [
                {"customer_id": "c-1", "tier_id": "", "points_balance": "30", "status": "active"},
                {"customer_id": "c-1", "tier_id": "", "points_balance": "30", "status": "active"},
            ]
        },
    )

    assert response.status_code == 200, response.text
    assert response.json() == {
        "success": 1,
        "failed": 1,
        "errors": ["Row 2: This customer already has a membership"],
    }


# ---------------------------------------------------------------------------
# Customer
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_my_membership(membership_client, db_session, customer_user):
    response = await membership_client.get("/memberships/me")
    assert response.status_code == 404

    account = await accounts.create_membership(
        db_session, customer_user.user_id, initial_points=75
    )
    await accounts.adjust_points(db_session, account.id, TransactionType.REDEEMED, 25)

    response = await membership_client.get("/memberships/me")
    assert response.status_code == 200
    assert response.json()["points_balance"] == 50

    response = await membership_client.get("/memberships/me/transactions")
    data = response.json()
    assert data["balance"] == 50
    assert {tx["transaction_type"] for tx in data["transactions"]} == {"EARNED", "REDEEMED"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_create_membership_sends_welcome(membership_client, caplog):
    with caplog.at_level("INFO", logger="libs.common.notifications"):
        response = await membership_client.post(
            "/admin/memberships",
            json={"customer_id": "cust-1", "initial_points": 20, "contact": "9876543210"},
        )

    assert response.status_code == 201
    assert response.json()["membership_code"] in caplog.text
    assert "Current balance: 20 points" in caplog.text
