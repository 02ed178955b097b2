"""
Authorization gate: role, ownership and enrollment predicates plus the single
capability check every operation goes through.

Predicates are evaluated against the database on every call; nothing about
enrollment or ownership is cached on the identity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from lms.errors import Forbidden, ForbiddenReason
from lms.models.models import Course, Quiz, UserRole
from lms.schemas.user_schemas import Identity
from lms.services import directory
from lms.services.quiz_lifecycle import QuizState
from lms.utils.logger import get_logger

logger = get_logger(__name__)


class Action(str, Enum):
    MANAGE_COURSE = "manage_course"
    LIST_QUIZZES = "list_quizzes"
    VIEW_QUIZ = "view_quiz"
    SUBMIT_QUIZ = "submit_quiz"
    VIEW_RESULTS = "view_results"


@dataclass(frozen=True)
class CourseAccess:
    identity: Identity
    course: Course
    owner_or_admin: bool
    enrolled: bool


def require_role(identity: Identity, allowed: Iterable[UserRole]) -> None:
    allowed = tuple(allowed)
    if identity.role not in allowed:
        _deny(identity, ForbiddenReason.ROLE_NOT_ALLOWED, f"role={identity.role.value}")


def is_owner_or_admin(identity: Identity, course: Course) -> bool:
    return identity.role == UserRole.ADMIN or course.instructor_id == identity.id


def is_enrolled(identity: Identity, course: Course, db: Session) -> bool:
    return directory.is_enrolled(identity.id, course.id, db)


def course_access(identity: Identity, course: Course, db: Session) -> CourseAccess:
    owner_or_admin = is_owner_or_admin(identity, course)
    return CourseAccess(
        identity=identity,
        course=course,
        owner_or_admin=owner_or_admin,
        enrolled=False if owner_or_admin else is_enrolled(identity, course, db),
    )


def authorize(
    identity: Identity,
    course: Course,
    action: Action,
    db: Session,
    quiz: Optional[Quiz] = None,
) -> CourseAccess:
    """Check ``identity`` may perform ``action`` on ``course`` (and ``quiz``).

    Owners and admins may do everything except submit to an unpublished quiz.
    Everyone else must be enrolled, and then the quiz state decides.
    Raises Forbidden with the specific reason; the caller-facing message is
    the same for every reason.
    """
    access = course_access(identity, course, db)
    state = QuizState.of(quiz) if quiz is not None else None

    if access.owner_or_admin:
        if action == Action.SUBMIT_QUIZ and state is not None and not state.accepts_submissions:
            _deny(identity, ForbiddenReason.QUIZ_NOT_PUBLISHED, f"quiz={quiz.id}")
        return access

    if action == Action.MANAGE_COURSE:
        _deny(identity, ForbiddenReason.NOT_OWNER, f"course={course.id}")
    if not access.enrolled:
        _deny(identity, ForbiddenReason.NOT_ENROLLED, f"course={course.id}")
    if action in (Action.VIEW_QUIZ, Action.SUBMIT_QUIZ) and state is not None and not state.visible_to_students:
        _deny(identity, ForbiddenReason.QUIZ_NOT_PUBLISHED, f"quiz={quiz.id}")
    if action == Action.VIEW_RESULTS and state is not None and not state.results_published:
        _deny(identity, ForbiddenReason.RESULTS_NOT_PUBLISHED, f"quiz={quiz.id}")
    return access


def _deny(identity: Identity, reason: ForbiddenReason, context: str) -> None:
    logger.warning("forbidden user_id=%s reason=%s %s", identity.id, reason.value, context)
    raise Forbidden(reason)
