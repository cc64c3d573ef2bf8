"""Human-facing code generation (membership codes, pickup codes).

Codes are read aloud at the counter and typed back in by staff, so they use
upper-case symbols only and skip the look-alikes 0/O, 1/I/L. Uniqueness is
enforced by the database; ``insert_with_unique_code`` retries a collision
with a fresh code instead of surfacing the constraint violation.
"""

from __future__ import annotations

import asyncio
import secrets
import time
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.config import get_settings
from libs.common.errors import ConflictError
from libs.common.logging import get_logger

logger = get_logger(__name__)

CODE_ALPHABET = "23456789ABCDEFGHJKMNPQRSTUVWXYZ"
_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

T = TypeVar("T")


def normalize_code(raw: Optional[str]) -> str:
    """Trim and upper-case a code typed by a person."""
    return (raw or "").strip().upper()


def membership_code(prefix: Optional[str] = None) -> str:
    """``PREFIX-NNNNNN`` with six digits, never starting with zero."""
    prefix = prefix or get_settings().MEMBERSHIP_CODE_PREFIX
    return f"{prefix}-{100000 + secrets.randbelow(900000)}"


def pickup_code(length: Optional[int] = None) -> str:
    length = length or get_settings().PICKUP_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def timestamp_code(prefix: Optional[str] = None) -> str:
    """``PREFIX-<ms timestamp base36>-<3 random base36>``, used by bulk imports."""
    prefix = prefix or get_settings().IMPORT_CODE_PREFIX
    stamp = _base36(time.time_ns() // 1_000_000)
    tail = "".join(secrets.choice(_BASE36) for _ in range(3))
    return f"{prefix}-{stamp}-{tail}"


async def insert_with_unique_code(
    db: AsyncSession,
    build: Callable[[str], T],
    generate: Callable[[], str],
    *,
    attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    guard: Optional[Callable[[], Awaitable[None]]] = None,
) -> T:
    """Insert ``build(code)`` and commit, retrying collisions with a new code.

    ``guard`` runs after every ``IntegrityError`` rollback; it should raise when
    the violation was not the code (e.g. a duplicate customer), so that case is
    reported instead of being retried.
    """
    settings = get_settings()
    attempts = attempts or settings.CODE_ALLOCATION_ATTEMPTS
    base_delay = settings.CODE_RETRY_BASE_DELAY if base_delay is None else base_delay

    for attempt in range(attempts):
        code = generate()
        row = build(code)
        db.add(row)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            if guard is not None:
                await guard()
            if attempt + 1 >= attempts:
                break
            delay = base_delay * (2**attempt)
            logger.warning(
                "Code %s already taken (attempt %d/%d), retrying in %.2fs",
                code,
                attempt + 1,
                attempts,
                delay,
            )
            await asyncio.sleep(delay)
            continue

        await db.refresh(row)
        return row

    raise ConflictError("Could not allocate a unique code, please try again")
