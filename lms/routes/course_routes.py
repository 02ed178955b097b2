"""
Course enrollment and roster endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.config import get_db
from lms.models.models import UserRole
from lms.schemas.common_schemas import ApiResponse
from lms.schemas.course_schemas import EnrollmentResponse
from lms.schemas.progress_schemas import CourseStudentProgress
from lms.schemas.user_schemas import Identity
from lms.services import directory
from lms.services.access import Action, authorize
from lms.services.progress_service import ProgressLedger
from lms.utils.auth import get_current_user, require_roles
from lms.utils.common import display_name, iso_format

course_routes = APIRouter()


@course_routes.post("/courses/{course_id}/enroll", response_model=ApiResponse[EnrollmentResponse])
async def enroll_in_course(
    course_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[EnrollmentResponse]:
    """Enroll the caller. Enrolling twice is a no-op."""
    course = directory.get_course(course_id, db)
    created = directory.enroll(current_user.id, course.id, db)
    return ApiResponse(
        data=EnrollmentResponse(course_id=course.id, user_id=current_user.id, already_enrolled=not created),
        message="Successfully enrolled in course" if created else "Already enrolled in this course",
    )


@course_routes.get("/courses/{course_id}/students", response_model=ApiResponse[list[CourseStudentProgress]])
async def list_course_students(
    course_id: str,
    current_user: Identity = Depends(require_roles(UserRole.INSTRUCTOR, UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> ApiResponse[list[CourseStudentProgress]]:
    """Enrolled users with their completion (course owner or admin)."""
    course = directory.get_course(course_id, db)
    authorize(current_user, course, Action.MANAGE_COURSE, db)
    roster = ProgressLedger(db).course_roster(course)
    data = [
        CourseStudentProgress(
            id=u.id,
            name=display_name(u.name, u.email),
            email=u.email,
            avatar=u.avatar,
            role=u.role.value,
            percent_complete=p.percent_complete if p else 0,
            completed=bool(p and p.percent_complete >= 100),
            last_accessed=iso_format(p.last_accessed) if p else None,
            updated_at=iso_format(p.updated_at) if p else None,
        )
        for u, p in roster
    ]
    return ApiResponse(data=data, count=len(data))
