"""
Persistence models. Single import surface for DB entities.

DB entities (lms.models.models):
- User, Enrollment, Course, Material, Quiz, Progress, CompletedMaterial, QuizAttempt
- UserRole, MaterialType
"""

from lms.models.models import (
    User,
    UserRole,
    Enrollment,
    Course,
    Material,
    MaterialType,
    Quiz,
    Progress,
    CompletedMaterial,
    QuizAttempt,
)

__all__ = [
    "User",
    "UserRole",
    "Enrollment",
    "Course",
    "Material",
    "MaterialType",
    "Quiz",
    "Progress",
    "CompletedMaterial",
    "QuizAttempt",
]
