"""Unit tests for JWT auth dependencies."""

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt
from libs.auth.dependencies import get_current_user, require_staff
from libs.auth.models import AuthUser
from libs.common.config import get_settings


def _credentials(claims: dict, secret: str = None) -> HTTPAuthorizationCredentials:
    token = jwt.encode(claims, secret or get_settings().SUPABASE_JWT_SECRET, algorithm="HS256")
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_customer_token():
    user = await get_current_user(
        _credentials(
            {
                "sub": "user-123",
                "email": "asha@example.com",
                "role": "authenticated",
                "user_metadata": {"full_name": "Asha Rao"},
            }
        )
    )

    assert user.user_id == "user-123"
    assert user.full_name == "Asha Rao"
    assert user.is_staff is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_staff_role_from_app_metadata():
    user = await get_current_user(
        _credentials(
            {"sub": "staff-9", "role": "authenticated", "app_metadata": {"staff_role": "staff"}}
        )
    )

    assert user.role == "staff"
    assert (await require_staff(user)) is user


@pytest.mark.asyncio
@pytest.mark.unit
async def test_bad_signature_is_401():
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(_credentials({"sub": "user-123"}, secret="wrong-secret"))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
@pytest.mark.unit
async def test_require_staff_rejects_customers():
    customer = AuthUser(user_id="user-123", role="authenticated")

    with pytest.raises(HTTPException) as exc_info:
        await require_staff(customer)

    assert exc_info.value.status_code == 403
