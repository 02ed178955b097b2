from typing import Optional

from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.config import get_db
from lms.models.models import User, UserRole
from lms.schemas.auth_schemas import AuthTokenPayload
from lms.schemas.user_schemas import Identity
from lms.services.access import require_role
from lms.utils.common import display_name
from lms.utils.jwt import verify_token
from lms.utils.logger import get_logger

logger = get_logger(__name__)

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    access_token: Optional[str] = Cookie(None),
    db: Session = Depends(get_db),
) -> Identity:
    """Resolve the caller from a bearer token, falling back to the access_token cookie."""
    token = credentials.credentials if credentials else access_token
    payload = verify_token(token)
    user = resolve_user(payload, db)
    return to_identity(user)


def require_roles(*roles: UserRole):
    """Dependency factory: the caller must hold one of ``roles``."""

    def _dependency(current_user: Identity = Depends(get_current_user)) -> Identity:
        require_role(current_user, roles)
        return current_user

    return _dependency


def to_identity(user: User) -> Identity:
    return Identity(
        id=user.id,
        email=user.email,
        name=display_name(user.name, user.email),
        avatar=user.avatar,
        role=user.role,
    )


def get_user_by_external_id(external_id: str, db: Session) -> User | None:
    return db.query(User).filter(User.external_id == external_id).first()


def get_user_by_email(email: str, db: Session) -> User | None:
    return db.query(User).filter(User.email == email).first()


def resolve_user(payload: AuthTokenPayload, db: Session) -> User:
    """Map a verified token to a user, provisioning a student on first sight."""
    user = get_user_by_external_id(payload.sub, db)
    if user is not None:
        return user

    if payload.email:
        user = get_user_by_email(payload.email, db)
        if user is not None and user.external_id is None:
            user.external_id = payload.sub
            db.commit()
            logger.info("linked external subject to user_id=%s", user.id)
            return user

    return create_user(payload, db)


def create_user(payload: AuthTokenPayload, db: Session) -> User:
    user = User(
        external_id=payload.sub,
        email=payload.email or f"{payload.sub}@users.invalid",
        name=payload.name or "User",
        avatar=payload.picture,
        role=UserRole.STUDENT,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Another request provisioned the same subject first.
        db.rollback()
        user = get_user_by_external_id(payload.sub, db)
        if user is None:
            raise
        return user
    db.refresh(user)
    logger.info("provisioned user_id=%s role=%s", user.id, user.role.value)
    return user
