"""
Results visibility gate: shapes attempt data for the caller.

Owners and admins see every user's latest attempt whatever the results flag
says. Anyone else needs enrollment plus published results and sees only
their own latest attempt.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from lms.models.models import Progress, Quiz, QuizAttempt, User
from lms.schemas.user_schemas import Identity
from lms.services import directory
from lms.services.access import Action, authorize


@dataclass(frozen=True)
class ResultRow:
    user: User
    attempt: QuizAttempt


@dataclass(frozen=True)
class QuizResults:
    """What the gate released: all rows for managers, or one optional attempt."""
    quiz: Quiz
    managed: bool
    rows: list[ResultRow]
    own_attempt: Optional[QuizAttempt] = None


def latest_attempt(attempts: Iterable[QuizAttempt]) -> Optional[QuizAttempt]:
    """Most recent by timestamp; on equal timestamps the last appended wins."""
    return max(attempts, key=lambda a: (a.taken_at, a.id), default=None)


class ResultsService:
    def __init__(self, db: Session):
        self.db = db

    def get_results(self, identity: Identity, quiz_id: str) -> QuizResults:
        quiz = directory.get_quiz(quiz_id, self.db)
        course = directory.get_course(quiz.course_id, self.db)
        access = authorize(identity, course, Action.VIEW_RESULTS, self.db, quiz=quiz)

        if access.owner_or_admin:
            return QuizResults(quiz=quiz, managed=True, rows=self._latest_per_user(quiz))

        own = (
            self.db.query(QuizAttempt)
            .join(Progress, Progress.id == QuizAttempt.progress_id)
            .filter(Progress.user_id == identity.id, QuizAttempt.quiz_id == quiz.id)
            .all()
        )
        return QuizResults(quiz=quiz, managed=False, rows=[], own_attempt=latest_attempt(own))

    def _latest_per_user(self, quiz: Quiz) -> list[ResultRow]:
        pairs = (
            self.db.query(QuizAttempt, User)
            .join(Progress, Progress.id == QuizAttempt.progress_id)
            .join(User, User.id == Progress.user_id)
            .filter(QuizAttempt.quiz_id == quiz.id)
            .all()
        )
        by_user: dict[int, list[QuizAttempt]] = {}
        users: dict[int, User] = {}
        for attempt, user in pairs:
            by_user.setdefault(user.id, []).append(attempt)
            users[user.id] = user
        rows = [ResultRow(user=users[uid], attempt=latest_attempt(attempts)) for uid, attempts in by_user.items()]
        rows.sort(key=lambda r: (r.attempt.taken_at, r.attempt.id), reverse=True)
        return rows
