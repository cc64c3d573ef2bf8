"""Bulk membership import from parsed CSV rows.

Each row is created on its own: a bad row is reported and skipped, it never
rolls back the rows before it. Imported balances enter through the ledger so
the cached balance of every imported account matches its history.
"""

import uuid
from typing import Iterable, Mapping, Optional

from libs.common.codes import timestamp_code
from libs.common.errors import PharmacyError, ValidationError
from libs.common.logging import get_logger
from services.membership_service.models import MembershipStatus
from services.membership_service.schemas import MembershipImportResult
from services.membership_service.services.accounts import create_membership, set_status
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("customer_id", "tier_id", "points_balance", "status")
IMPORTED_POINTS_DESCRIPTION = "Imported points"


def _normalize_row(row: Mapping[str, str]) -> dict[str, str]:
    return {
        str(key).strip().lower(): ("" if value is None else str(value).strip())
        for key, value in row.items()
    }


def _parse_row(row: dict[str, str]) -> tuple[str, Optional[uuid.UUID], int, MembershipStatus]:
    row = {column: row.get(column, "") for column in REQUIRED_COLUMNS}
    customer_id = row["customer_id"]
    if not customer_id:
        raise ValidationError("customer_id is empty")

    tier_id = None
    if row["tier_id"]:
        try:
            tier_id = uuid.UUID(row["tier_id"])
        except ValueError:
            raise ValidationError(f"tier_id {row['tier_id']!r} is not a valid id")

    try:
        points = int(row["points_balance"] or 0)
    except ValueError:
        raise ValidationError(f"points_balance {row['points_balance']!r} is not a whole number")
    if points < 0:
        raise ValidationError("points_balance cannot be negative")

    try:
        status = MembershipStatus((row["status"] or "active").lower())
    except ValueError:
        raise ValidationError(f"status {row['status']!r} is not one of active, inactive, suspended")

    return customer_id, tier_id, points, status


async def import_memberships(
    db: AsyncSession, rows: Iterable[Mapping[str, str]]
) -> MembershipImportResult:
    rows = [_normalize_row(row) for row in rows]
    if not rows:
        raise ValidationError("The file has no data rows")

    missing = [column for column in REQUIRED_COLUMNS if column not in rows[0]]
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(missing)}")

    result = MembershipImportResult()
    # Row numbers match the spreadsheet: row 1 is the first line after the header
    for number, row in enumerate(rows, start=1):
        try:
            customer_id, tier_id, points, status = _parse_row(row)
            account = await create_membership(
                db,
                customer_id,
                tier_id=tier_id,
                initial_points=points,
                code_factory=timestamp_code,
                initial_description=IMPORTED_POINTS_DESCRIPTION,
            )
            if status != MembershipStatus.ACTIVE:
                await set_status(db, account.id, status)
        except PharmacyError as exc:
            result.failed += 1
            result.errors.append(f"Row {number}: {exc.detail}")
            continue
        result.success += 1

    logger.info(
        "Membership import finished: %d created, %d failed", result.success, result.failed
    )
    return result
