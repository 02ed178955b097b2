from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class AuthTokenPayload(BaseModel):
    """Claims we rely on from the external token issuer."""
    sub: str
    exp: Optional[datetime] = None
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
