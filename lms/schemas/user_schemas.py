from pydantic import BaseModel
from typing import Optional

from lms.models.models import UserRole


class Identity(BaseModel):
    """The caller, as resolved from its credential for the current request."""
    id: int
    email: str
    name: str
    avatar: Optional[str] = None
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserSummary(BaseModel):
    """Minimal identity fields exposed next to another user's data."""
    id: int
    name: str
    email: str
    avatar: Optional[str] = None


class UserResponse(UserSummary):
    role: UserRole
    enrolled_course_ids: list[str] = []
    created_at: Optional[str] = None


class UpdateRoleRequest(BaseModel):
    role: UserRole
