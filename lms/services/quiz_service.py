"""
Quiz authoring, lifecycle transitions, reads and submissions.
"""

from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session

from lms.models.models import Quiz, QuizAttempt, UserRole
from lms.schemas.quiz_schemas import CreateQuizRequest, UpdateQuizRequest
from lms.schemas.user_schemas import Identity
from lms.services import directory
from lms.services.access import Action, CourseAccess, authorize, require_role
from lms.services.progress_service import ProgressLedger
from lms.services.quiz_lifecycle import QuizState, QuizTransition, apply_transition
from lms.services.scoring import ScoreResult, grade_submission
from lms.utils.logger import get_logger, timed

logger = get_logger(__name__)

AUTHOR_ROLES = (UserRole.INSTRUCTOR, UserRole.ADMIN)


@dataclass(frozen=True)
class QuizView:
    """A quiz plus whether the caller may see answer keys."""
    quiz: Quiz
    show_answers: bool


class QuizService:
    def __init__(self, db: Session):
        self.db = db

    def _managed_quiz(self, identity: Identity, quiz_id: str) -> Quiz:
        require_role(identity, AUTHOR_ROLES)
        quiz = directory.get_quiz(quiz_id, self.db)
        course = directory.get_course(quiz.course_id, self.db)
        authorize(identity, course, Action.MANAGE_COURSE, self.db)
        return quiz

    def create_quiz(self, identity: Identity, req: CreateQuizRequest) -> Quiz:
        require_role(identity, AUTHOR_ROLES)
        course = directory.get_course(req.course_id, self.db)
        authorize(identity, course, Action.MANAGE_COURSE, self.db)
        quiz = Quiz(
            id=str(uuid4()),
            course_id=course.id,
            title=req.title,
            description=req.description,
            questions=[q.model_dump(mode="json") for q in req.questions],
            time_limit=req.time_limit,
            published=False,
            results_published=False,
        )
        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)
        logger.info("quiz created id=%s course_id=%s questions=%s", quiz.id, course.id, len(quiz.questions))
        return quiz

    def update_quiz(self, identity: Identity, quiz_id: str, req: UpdateQuizRequest) -> Quiz:
        quiz = self._managed_quiz(identity, quiz_id)
        changes = req.model_dump(exclude_unset=True, mode="json")
        for field, value in changes.items():
            if value is None and field != "description":
                continue
            setattr(quiz, field, value)
        self.db.commit()
        self.db.refresh(quiz)
        logger.info("quiz updated id=%s fields=%s", quiz.id, sorted(changes))
        return quiz

    def delete_quiz(self, identity: Identity, quiz_id: str) -> None:
        quiz = self._managed_quiz(identity, quiz_id)
        self.db.delete(quiz)
        self.db.commit()
        logger.info("quiz deleted id=%s", quiz_id)

    def transition(self, identity: Identity, quiz_id: str, transition: QuizTransition) -> Quiz:
        quiz = self._managed_quiz(identity, quiz_id)
        before = QuizState.of(quiz)
        after = apply_transition(quiz, transition)
        self.db.commit()
        self.db.refresh(quiz)
        logger.info("quiz %s id=%s state %s -> %s", transition.value, quiz.id, before.value, after.value)
        return quiz

    def get_quiz(self, identity: Identity, quiz_id: str) -> QuizView:
        quiz = directory.get_quiz(quiz_id, self.db)
        course = directory.get_course(quiz.course_id, self.db)
        access = authorize(identity, course, Action.VIEW_QUIZ, self.db, quiz=quiz)
        return QuizView(quiz=quiz, show_answers=access.owner_or_admin)

    def list_course_quizzes(self, identity: Identity, course_id: str) -> tuple[CourseAccess, list[Quiz]]:
        course = directory.get_course(course_id, self.db)
        access = authorize(identity, course, Action.LIST_QUIZZES, self.db)
        query = self.db.query(Quiz).filter(Quiz.course_id == course.id)
        if not access.owner_or_admin:
            query = query.filter(Quiz.published.is_(True))
        return access, query.order_by(Quiz.created_at.asc()).all()

    def list_all(self, identity: Identity) -> list[Quiz]:
        require_role(identity, (UserRole.ADMIN,))
        return self.db.query(Quiz).order_by(Quiz.created_at.desc()).all()

    def submit(self, identity: Identity, quiz_id: str, answers: list[Any]) -> tuple[ScoreResult, QuizAttempt]:
        """Grade and append a new attempt. Not idempotent: every call adds one."""
        quiz = directory.get_quiz(quiz_id, self.db)
        course = directory.get_course(quiz.course_id, self.db)
        authorize(identity, course, Action.SUBMIT_QUIZ, self.db, quiz=quiz)
        with timed(logger, f"submit quiz={quiz.id} user_id={identity.id}"):
            result = grade_submission(quiz.questions or [], answers)
            attempt = ProgressLedger(self.db).record_quiz_attempt(identity.id, quiz, result)
        return result, attempt
