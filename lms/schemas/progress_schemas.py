"""
Progress ledger schemas (own progress list, per-course progress, course roster).
"""

from pydantic import BaseModel
from typing import Optional


class QuizAttemptResponse(BaseModel):
    """One scored submission as stored in the ledger."""
    quiz_id: str
    score: float
    total_points: float
    percentage: float
    taken_at: str


class ProgressSummary(BaseModel):
    """Progress row without quiz score detail (used by the own-progress list)."""
    id: str
    course_id: str
    course_title: str
    completed_materials: list[str]
    percent_complete: int
    last_accessed: Optional[str] = None
    updated_at: Optional[str] = None


class ProgressResponse(ProgressSummary):
    quiz_scores: list[QuizAttemptResponse] = []


class CourseStudentProgress(BaseModel):
    """Roster line: an enrolled user with their completion in the course."""
    id: int
    name: str
    email: str
    avatar: Optional[str] = None
    role: str
    percent_complete: int
    completed: bool
    last_accessed: Optional[str] = None
    updated_at: Optional[str] = None
