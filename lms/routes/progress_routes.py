"""
Progress endpoints for the calling user.

Completion calls are safe to retry: completing the same material twice, or a
course twice, leaves the same state.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.config import get_db
from lms.models.models import Progress, QuizAttempt
from lms.schemas.common_schemas import ApiResponse
from lms.schemas.progress_schemas import ProgressResponse, ProgressSummary, QuizAttemptResponse
from lms.schemas.user_schemas import Identity
from lms.services import directory
from lms.services.progress_service import ProgressLedger
from lms.utils.auth import get_current_user
from lms.utils.common import iso_format

progress_routes = APIRouter()


def attempt_response(attempt: QuizAttempt) -> QuizAttemptResponse:
    return QuizAttemptResponse(
        quiz_id=attempt.quiz_id,
        score=attempt.score,
        total_points=attempt.total_points,
        percentage=attempt.percentage,
        taken_at=iso_format(attempt.taken_at),
    )


def progress_summary(p: Progress) -> ProgressSummary:
    return ProgressSummary(
        id=p.id,
        course_id=p.course_id,
        course_title=p.course.title,
        completed_materials=p.completed_material_ids,
        percent_complete=p.percent_complete,
        last_accessed=iso_format(p.last_accessed),
        updated_at=iso_format(p.updated_at),
    )


def progress_response(p: Progress) -> ProgressResponse:
    return ProgressResponse(
        **progress_summary(p).model_dump(),
        quiz_scores=[attempt_response(a) for a in p.attempts],
    )


@progress_routes.get("/progress", response_model=ApiResponse[list[ProgressSummary]])
async def list_my_progress(
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[list[ProgressSummary]]:
    """All progress rows of the caller, without quiz score detail."""
    rows = ProgressLedger(db).list_for_user(current_user.id)
    return ApiResponse(data=[progress_summary(p) for p in rows], count=len(rows))


@progress_routes.get("/progress/course/{course_id}", response_model=ApiResponse[ProgressResponse])
async def get_course_progress(
    course_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[ProgressResponse]:
    """Caller's progress in a course; creates the row and reconciles the percentage."""
    course = directory.get_course(course_id, db)
    progress = ProgressLedger(db).view(current_user.id, course)
    return ApiResponse(data=progress_response(progress))


@progress_routes.post("/progress/course/{course_id}/complete", response_model=ApiResponse[ProgressResponse])
async def complete_course(
    course_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[ProgressResponse]:
    """Mark every material of the course complete and the course at 100%."""
    course = directory.get_course(course_id, db)
    progress = ProgressLedger(db).complete_course(current_user.id, course)
    return ApiResponse(data=progress_response(progress))


@progress_routes.post("/progress/material/{material_id}/complete", response_model=ApiResponse[ProgressResponse])
async def complete_material(
    material_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[ProgressResponse]:
    """Mark one material complete and recompute the course percentage."""
    material = directory.get_material(material_id, db)
    progress = ProgressLedger(db).complete_material(current_user.id, material)
    return ApiResponse(data=progress_response(progress))
