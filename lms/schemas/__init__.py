"""
API schemas package. Import from submodules or from this package.

Example:
    from lms.schemas import QuizResponse, ApiResponse
    from lms.schemas.quiz_schemas import QuizResponse
"""

from lms.schemas.auth_schemas import AuthTokenPayload
from lms.schemas.common_schemas import ApiResponse, ErrorResponse
from lms.schemas.user_schemas import Identity, UserSummary, UserResponse, UpdateRoleRequest
from lms.schemas.course_schemas import EnrollmentResponse
from lms.schemas.progress_schemas import (
    QuizAttemptResponse,
    ProgressSummary,
    ProgressResponse,
    CourseStudentProgress,
)
from lms.schemas.quiz_schemas import (
    QuestionType,
    QuestionSpec,
    CreateQuizRequest,
    UpdateQuizRequest,
    QuestionResponse,
    QuizResponse,
    SubmitAnswersRequest,
    ScoreResponse,
    QuizResultRow,
    QuizResultsResponse,
)

__all__ = [
    # auth
    "AuthTokenPayload",
    # envelope
    "ApiResponse",
    "ErrorResponse",
    # user
    "Identity",
    "UserSummary",
    "UserResponse",
    "UpdateRoleRequest",
    # course
    "EnrollmentResponse",
    # progress
    "QuizAttemptResponse",
    "ProgressSummary",
    "ProgressResponse",
    "CourseStudentProgress",
    # quiz
    "QuestionType",
    "QuestionSpec",
    "CreateQuizRequest",
    "UpdateQuizRequest",
    "QuestionResponse",
    "QuizResponse",
    "SubmitAnswersRequest",
    "ScoreResponse",
    "QuizResultRow",
    "QuizResultsResponse",
]
