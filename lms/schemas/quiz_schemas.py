"""
Quiz authoring, submission and results schemas.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from lms.schemas.user_schemas import UserSummary
from lms.utils.common import coerce_bool


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"


class QuestionSpec(BaseModel):
    question: str = Field(min_length=1)
    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    options: list[str] = []
    correct_answer: Any = None
    points: Optional[float] = Field(default=None, ge=0)  # unset counts as 1

    @model_validator(mode="after")
    def _check_answer_shape(self) -> "QuestionSpec":
        problems: list[str] = []
        if self.type == QuestionType.MULTIPLE_CHOICE:
            if len(self.options) < 2:
                problems.append("multiple-choice questions need at least two options")
            if self.correct_answer not in self.options:
                problems.append("correct_answer must be one of the options")
        elif self.type == QuestionType.TRUE_FALSE:
            if coerce_bool(self.correct_answer) is None:
                problems.append("correct_answer must be true or false")
        if self.type != QuestionType.MULTIPLE_CHOICE and self.options:
            problems.append(f"{self.type.value} questions take no options")
        if self.type != QuestionType.SHORT_ANSWER and self.correct_answer is None:
            problems.append("correct_answer is required")
        if problems:
            raise ValueError("; ".join(problems))
        return self


class CreateQuizRequest(BaseModel):
    course_id: str
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    questions: list[QuestionSpec] = []
    time_limit: int = Field(default=30, gt=0)


class UpdateQuizRequest(BaseModel):
    """Publication flags are not editable here; use the lifecycle endpoints."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    questions: Optional[list[QuestionSpec]] = None
    time_limit: Optional[int] = Field(default=None, gt=0)


class QuestionResponse(BaseModel):
    question: str
    type: QuestionType
    options: list[str] = []
    points: float
    correct_answer: Any = None  # omitted for callers who may not manage the quiz


class QuizResponse(BaseModel):
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    questions: list[QuestionResponse]
    time_limit: int
    state: str
    published: bool
    results_published: bool
    publish_at: Optional[str] = None
    created_at: Optional[str] = None


class SubmitAnswersRequest(BaseModel):
    answers: list[Any]


class ScoreResponse(BaseModel):
    score: float
    total_points: float
    percentage: float


class QuizResultRow(BaseModel):
    """Latest attempt of one user, as shown to the quiz owner."""
    user: UserSummary
    score: float
    total_points: float
    percentage: float
    taken_at: str


class QuizResultsResponse(BaseModel):
    results_published: bool
    rows: list[QuizResultRow]
