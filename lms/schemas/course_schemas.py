"""
Enrollment schemas.
"""

from pydantic import BaseModel


class EnrollmentResponse(BaseModel):
    course_id: str
    user_id: int
    already_enrolled: bool
