from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError
from jose.jwt import encode, decode

from lms.config import settings
from lms.errors import Unauthenticated
from lms.schemas.auth_schemas import AuthTokenPayload
from lms.utils.logger import get_logger

logger = get_logger(__name__)


def create_access_token(data: AuthTokenPayload, expires_minutes: Optional[int] = None) -> str:
    """Mint a token the way the identity service does (tests and local development)."""
    claims = data.model_dump(exclude_none=True)
    if "exp" not in claims:
        minutes = expires_minutes or settings.access_token_expire_minutes
        claims["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    if settings.jwt_issuer:
        claims["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        claims["aud"] = settings.jwt_audience
    return encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: Optional[str]) -> AuthTokenPayload:
    if not token:
        raise Unauthenticated("Missing token")
    try:
        payload = decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        logger.info("token rejected: %s", e)
        raise Unauthenticated("Invalid token")
    if not payload.get("sub"):
        raise Unauthenticated("Invalid token")
    return AuthTokenPayload(**payload)
