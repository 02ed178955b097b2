"""
Error taxonomy. All errors are HTTPExceptions so the app-level handlers render
them into the response envelope.
"""

from enum import Enum
from typing import Iterable, Optional

from fastapi import HTTPException, status


class ForbiddenReason(str, Enum):
    """Why access was refused. Logged server-side; never sent to the caller."""
    ROLE_NOT_ALLOWED = "role_not_allowed"
    NOT_OWNER = "not_owner"
    NOT_ENROLLED = "not_enrolled"
    QUIZ_NOT_PUBLISHED = "quiz_not_published"
    RESULTS_NOT_PUBLISHED = "results_not_published"


class Unauthenticated(HTTPException):
    def __init__(self, detail: str = "Not authorized to access this route"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, reason: ForbiddenReason, detail: str = "Not authorized to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        self.reason = reason


class NotFound(HTTPException):
    def __init__(self, what: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


class ValidationFailed(HTTPException):
    def __init__(self, errors: Iterable[str], detail: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(
            status_code=422,
            detail=detail or "; ".join(self.errors) or "Invalid input",
        )
