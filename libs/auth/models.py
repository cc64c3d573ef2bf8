from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

STAFF_ROLES = frozenset({"staff", "admin", "service_role"})


class AuthUser(BaseModel):
    """
    Authenticated caller as asserted by the identity provider's JWT.
    The user_id doubles as the customer_id for membership and order ownership.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"
    full_name: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
