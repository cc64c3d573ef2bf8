"""Bulk import schemas (rows come from the dashboard's CSV parser)."""

from pydantic import BaseModel


class MembershipImportRequest(BaseModel):
    rows: list[dict[str, str]]


class MembershipImportResult(BaseModel):
    success: int = 0
    failed: int = 0
    errors: list[str] = []
