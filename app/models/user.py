"""
User profile models.

Identity comes from the authentication provider; the profile adds the
user type and the approval status that gate operator/admin actions.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional
from enum import Enum

from app.utils.timestamps import parse_timestamp


class UserType(str, Enum):
    CITIZEN = "citizen"
    OPERATOR = "operator"
    ADMIN = "admin"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProfileRequest(BaseModel):
    """Ensure a profile exists for the calling user."""
    user_type: UserType = Field(default=UserType.CITIZEN, description="Requested account type")
    email: Optional[str] = Field(None, max_length=320, description="Email from the auth provider")


class UserProfile(BaseModel):
    uid: str = Field(..., description="Auth provider user id (document key)")
    email: Optional[str] = None
    user_type: str = UserType.CITIZEN.value
    role: Optional[str] = None
    status: str = ApprovalStatus.PENDING.value
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def normalize_timestamp(cls, value):
        return parse_timestamp(value)

    @property
    def is_approved(self) -> bool:
        return self.status == ApprovalStatus.APPROVED.value

    def has_role(self, *user_types: UserType) -> bool:
        """True when approved and the profile's type or role is one of user_types."""
        if not self.is_approved:
            return False
        allowed = {t.value for t in user_types}
        return self.user_type in allowed or (self.role in allowed if self.role else False)
