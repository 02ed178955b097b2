"""
Profile and role administration endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.config import get_db
from lms.models.models import User, UserRole
from lms.schemas.common_schemas import ApiResponse
from lms.schemas.user_schemas import Identity, UpdateRoleRequest, UserResponse
from lms.services import directory
from lms.utils.auth import get_current_user, require_roles
from lms.utils.common import display_name, iso_format
from lms.utils.logger import get_logger

user_routes = APIRouter()
logger = get_logger(__name__)


def user_response(user: User, db: Session) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=display_name(user.name, user.email),
        email=user.email,
        avatar=user.avatar,
        role=user.role,
        enrolled_course_ids=directory.enrolled_course_ids(user.id, db),
        created_at=iso_format(user.created_at),
    )


@user_routes.get("/users/me", response_model=ApiResponse[UserResponse])
async def get_me(
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[UserResponse]:
    """Profile of the caller, including enrolled courses."""
    user = directory.get_user(current_user.id, db)
    return ApiResponse(data=user_response(user, db))


@user_routes.patch("/users/{user_id}/role", response_model=ApiResponse[UserResponse])
async def update_user_role(
    user_id: int,
    body: UpdateRoleRequest,
    current_user: Identity = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> ApiResponse[UserResponse]:
    """Change a user's role. Roles change only through this admin action."""
    user = directory.get_user(user_id, db)
    previous = user.role
    user.role = body.role
    db.commit()
    db.refresh(user)
    logger.info(
        "role changed user_id=%s %s -> %s by admin_id=%s",
        user.id, previous.value, user.role.value, current_user.id,
    )
    return ApiResponse(data=user_response(user, db))
