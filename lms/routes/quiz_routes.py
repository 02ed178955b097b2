"""
Quiz endpoints: authoring, lifecycle, reads, submissions and results.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lms.config import get_db
from lms.models.models import Quiz
from lms.schemas.common_schemas import ApiResponse
from lms.schemas.progress_schemas import QuizAttemptResponse
from lms.schemas.quiz_schemas import (
    CreateQuizRequest,
    QuestionResponse,
    QuizResponse,
    QuizResultRow,
    QuizResultsResponse,
    ScoreResponse,
    SubmitAnswersRequest,
    UpdateQuizRequest,
)
from lms.schemas.user_schemas import Identity, UserSummary
from lms.routes.progress_routes import attempt_response
from lms.services.quiz_lifecycle import QuizState, QuizTransition
from lms.services.quiz_service import QuizService
from lms.services.results_service import ResultsService
from lms.services.scoring import question_points
from lms.utils.auth import get_current_user
from lms.utils.common import display_name, iso_format

quiz_routes = APIRouter()


def quiz_response(quiz: Quiz, show_answers: bool) -> QuizResponse:
    state = QuizState.of(quiz)
    return QuizResponse(
        id=quiz.id,
        course_id=quiz.course_id,
        title=quiz.title,
        description=quiz.description,
        questions=[
            QuestionResponse(
                question=q.get("question", ""),
                type=q.get("type") or "multiple-choice",
                options=q.get("options") or [],
                points=question_points(q),
                correct_answer=q.get("correct_answer") if show_answers else None,
            )
            for q in quiz.questions or []
        ],
        time_limit=quiz.time_limit,
        state=state.value,
        published=state.published,
        results_published=state.results_published,
        publish_at=iso_format(quiz.publish_at),
        created_at=iso_format(quiz.created_at),
    )


@quiz_routes.get("/quizzes", response_model=ApiResponse[list[QuizResponse]])
async def list_all_quizzes(
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[list[QuizResponse]]:
    """Every quiz on the platform (admin only)."""
    quizzes = QuizService(db).list_all(current_user)
    return ApiResponse(data=[quiz_response(q, True) for q in quizzes], count=len(quizzes))


@quiz_routes.post("/quizzes", response_model=ApiResponse[QuizResponse], status_code=status.HTTP_201_CREATED)
async def create_quiz(
    req: CreateQuizRequest,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[QuizResponse]:
    """Create a draft quiz in a course the caller owns."""
    quiz = QuizService(db).create_quiz(current_user, req)
    return ApiResponse(data=quiz_response(quiz, True))


@quiz_routes.get("/quizzes/course/{course_id}", response_model=ApiResponse[list[QuizResponse]])
async def list_course_quizzes(
    course_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[list[QuizResponse]]:
    """Quizzes of a course. Enrolled students only see published ones."""
    access, quizzes = QuizService(db).list_course_quizzes(current_user, course_id)
    return ApiResponse(
        data=[quiz_response(q, access.owner_or_admin) for q in quizzes],
        count=len(quizzes),
    )


@quiz_routes.get("/quizzes/{quiz_id}", response_model=ApiResponse[QuizResponse])
async def get_quiz(
    quiz_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[QuizResponse]:
    view = QuizService(db).get_quiz(current_user, quiz_id)
    return ApiResponse(data=quiz_response(view.quiz, view.show_answers))


@quiz_routes.put("/quizzes/{quiz_id}", response_model=ApiResponse[QuizResponse])
async def update_quiz(
    quiz_id: str,
    req: UpdateQuizRequest,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[QuizResponse]:
    quiz = QuizService(db).update_quiz(current_user, quiz_id, req)
    return ApiResponse(data=quiz_response(quiz, True))


@quiz_routes.delete("/quizzes/{quiz_id}", response_model=ApiResponse)
async def delete_quiz(
    quiz_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse:
    QuizService(db).delete_quiz(current_user, quiz_id)
    return ApiResponse(message="Quiz deleted successfully")


def _transition_route(transition: QuizTransition):
    async def _transition(
        quiz_id: str,
        current_user: Identity = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> ApiResponse[QuizResponse]:
        quiz = QuizService(db).transition(current_user, quiz_id, transition)
        return ApiResponse(data=quiz_response(quiz, True))

    _transition.__name__ = f"{transition.value}_quiz"
    _transition.__doc__ = f"Apply the '{transition.value}' lifecycle transition (owner or admin)."
    return _transition


for _path, _lifecycle_transition in (
    ("/quizzes/{quiz_id}/publish", QuizTransition.PUBLISH),
    ("/quizzes/{quiz_id}/unpublish", QuizTransition.UNPUBLISH),
    ("/quizzes/{quiz_id}/results/publish", QuizTransition.PUBLISH_RESULTS),
    ("/quizzes/{quiz_id}/results/unpublish", QuizTransition.UNPUBLISH_RESULTS),
):
    quiz_routes.add_api_route(
        _path,
        _transition_route(_lifecycle_transition),
        methods=["POST"],
        response_model=ApiResponse[QuizResponse],
    )


@quiz_routes.post("/quizzes/{quiz_id}/submit", response_model=ApiResponse[ScoreResponse])
async def submit_quiz(
    quiz_id: str,
    req: SubmitAnswersRequest,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[ScoreResponse]:
    """Grade answers and record a new attempt.

    Every call appends an attempt, so clients must not retry blindly.
    """
    result, _ = QuizService(db).submit(current_user, quiz_id, req.answers)
    return ApiResponse(
        data=ScoreResponse(
            score=result.score,
            total_points=result.total_points,
            percentage=result.percentage,
        )
    )


@quiz_routes.get("/quizzes/{quiz_id}/results")
async def get_quiz_results(
    quiz_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse:
    """Owners/admins: everyone's latest attempt. Students: their own, once results are published."""
    results = ResultsService(db).get_results(current_user, quiz_id)
    if not results.managed:
        own = results.own_attempt
        return ApiResponse[QuizAttemptResponse](data=attempt_response(own) if own else None)

    rows = [
        QuizResultRow(
            user=UserSummary(
                id=r.user.id,
                name=display_name(r.user.name, r.user.email),
                email=r.user.email,
                avatar=r.user.avatar,
            ),
            score=r.attempt.score,
            total_points=r.attempt.total_points,
            percentage=r.attempt.percentage,
            taken_at=iso_format(r.attempt.taken_at),
        )
        for r in results.rows
    ]
    return ApiResponse[QuizResultsResponse](
        data=QuizResultsResponse(results_published=results.quiz.results_published, rows=rows),
        count=len(rows),
    )
