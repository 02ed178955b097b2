"""
Progress ledger: one row per (user, course) holding completed materials,
quiz attempts and the completion percentage.

Rows are created lazily on first interaction. ``percent_complete`` follows
``min(100, round(100 * completed / materials))`` for courses with materials
and is recomputed from the live material count on every completion and read.
For courses without materials only ``complete_course`` changes it.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.models.models import CompletedMaterial, Course, Enrollment, Material, Progress, Quiz, QuizAttempt, User
from lms.services import directory
from lms.services.scoring import ScoreResult
from lms.utils.common import completion_percent, utcnow
from lms.utils.logger import get_logger

logger = get_logger(__name__)


class ProgressLedger:
    """Per-request ledger bound to a DB session."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, user_id: int, course_id: str) -> Optional[Progress]:
        return (
            self.db.query(Progress)
            .filter(Progress.user_id == user_id, Progress.course_id == course_id)
            .first()
        )

    def get_or_create(self, user_id: int, course: Course) -> Progress:
        """Existing row for (user, course), or a new empty one."""
        progress = self.find(user_id, course.id)
        if progress is not None:
            return progress

        progress = Progress(
            id=str(uuid4()),
            user_id=user_id,
            course_id=course.id,
            percent_complete=0,
            last_accessed=utcnow(),
        )
        self.db.add(progress)
        try:
            self.db.commit()
        except IntegrityError:
            # The unique (user, course) constraint turns a create race into a fetch.
            self.db.rollback()
            progress = self.find(user_id, course.id)
            if progress is None:
                raise
            logger.info("progress create race resolved user_id=%s course_id=%s", user_id, course.id)
            return progress
        logger.info("progress created user_id=%s course_id=%s", user_id, course.id)
        return progress

    def completed_count(self, progress: Progress) -> int:
        """Completed materials that still belong to the course."""
        return (
            self.db.query(func.count(CompletedMaterial.material_id))
            .join(Material, Material.id == CompletedMaterial.material_id)
            .filter(CompletedMaterial.progress_id == progress.id, Material.course_id == progress.course_id)
            .scalar()
            or 0
        )

    def _proportional_percent(self, progress: Progress) -> Optional[int]:
        total = directory.material_count(progress.course_id, self.db)
        if total == 0:
            return None
        return completion_percent(self.completed_count(progress), total)

    def view(self, user_id: int, course: Course) -> Progress:
        """Progress for (user, course), reconciled with the course's current materials.

        Not side-effect free: a stale percentage is corrected and persisted.
        """
        progress = self.get_or_create(user_id, course)
        return self.reconcile(progress)

    def reconcile(self, progress: Progress) -> Progress:
        percent = self._proportional_percent(progress)
        if percent is not None and percent != progress.percent_complete:
            logger.info(
                "progress reconciled id=%s percent %s -> %s",
                progress.id, progress.percent_complete, percent,
            )
            progress.percent_complete = percent
            progress.last_accessed = utcnow()
            self.db.commit()
        return progress

    def _has_completion(self, progress_id: str, material_id: str) -> bool:
        return (
            self.db.query(CompletedMaterial)
            .filter(CompletedMaterial.progress_id == progress_id, CompletedMaterial.material_id == material_id)
            .first()
            is not None
        )

    def _add_completion(self, progress_id: str, material_id: str) -> None:
        """Insert one completion row. Duplicate adds collapse into one (set union)."""
        if self._has_completion(progress_id, material_id):
            return
        self.db.add(CompletedMaterial(progress_id=progress_id, material_id=material_id))
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent add hit the primary key first; keep its row, or re-add if it did not survive.
            self.db.rollback()
            logger.info("material completion race resolved progress_id=%s material_id=%s", progress_id, material_id)
            if not self._has_completion(progress_id, material_id):
                self.db.add(CompletedMaterial(progress_id=progress_id, material_id=material_id))
                self.db.commit()

    def complete_material(self, user_id: int, material: Material) -> Progress:
        course = directory.get_course(material.course_id, self.db)
        progress = self.get_or_create(user_id, course)
        progress_id = progress.id
        self._add_completion(progress_id, material.id)

        percent = self._proportional_percent(progress)
        if percent is not None:
            progress.percent_complete = percent
        progress.last_accessed = utcnow()
        self.db.commit()
        self.db.refresh(progress)
        logger.info(
            "material completed user_id=%s course_id=%s material_id=%s percent=%s",
            user_id, course.id, material.id, progress.percent_complete,
        )
        return progress

    def _complete_all(self, progress: Progress, current: list[str]) -> None:
        """Make the completion set equal ``current`` and pin the row at 100%."""
        keep = set(current)
        for completion in list(progress.completions):
            if completion.material_id not in keep:
                progress.completions.remove(completion)
        done = set(progress.completed_material_ids)
        for material_id in current:
            if material_id not in done:
                progress.completions.append(CompletedMaterial(material_id=material_id))
        progress.percent_complete = 100
        progress.last_accessed = utcnow()
        self.db.commit()

    def complete_course(self, user_id: int, course: Course) -> Progress:
        """Override: every current material completed and 100%, even for empty courses."""
        progress = self.get_or_create(user_id, course)
        current = directory.material_ids(course.id, self.db)
        try:
            self._complete_all(progress, current)
        except IntegrityError:
            # A concurrent completion inserted one of the rows first. Re-read the
            # row and the material set, then add only what is still missing.
            self.db.rollback()
            logger.info("course completion race resolved user_id=%s course_id=%s", user_id, course.id)
            progress = self.find(user_id, course.id)
            current = directory.material_ids(course.id, self.db)
            self._complete_all(progress, current)
        self.db.refresh(progress)
        logger.info("course completed user_id=%s course_id=%s materials=%s", user_id, course.id, len(current))
        return progress

    def record_quiz_attempt(self, user_id: int, quiz: Quiz, result: ScoreResult) -> QuizAttempt:
        """Append a scored attempt; attempts are never merged or capped."""
        course = directory.get_course(quiz.course_id, self.db)
        progress = self.get_or_create(user_id, course)
        attempt = QuizAttempt(
            progress_id=progress.id,
            quiz_id=quiz.id,
            score=result.score,
            total_points=result.total_points,
            percentage=result.percentage,
            taken_at=utcnow(),
        )
        self.db.add(attempt)
        progress.last_accessed = attempt.taken_at
        self.db.commit()
        self.db.refresh(attempt)
        logger.info(
            "quiz attempt recorded user_id=%s quiz_id=%s score=%s/%s",
            user_id, quiz.id, result.score, result.total_points,
        )
        return attempt

    def list_for_user(self, user_id: int) -> list[Progress]:
        """Every progress row of the user, each reconciled with its course's current materials."""
        rows = (
            self.db.query(Progress)
            .filter(Progress.user_id == user_id)
            .order_by(Progress.last_accessed.desc())
            .all()
        )
        return [self.reconcile(p) for p in rows]

    def course_roster(self, course: Course) -> list[tuple[User, Optional[Progress]]]:
        """Enrolled users of ``course`` paired with their progress row, if any."""
        users = (
            self.db.query(User)
            .join(Enrollment, Enrollment.user_id == User.id)
            .filter(Enrollment.course_id == course.id)
            .order_by(User.name.asc())
            .all()
        )
        by_user = {
            p.user_id: self.reconcile(p)
            for p in self.db.query(Progress).filter(Progress.course_id == course.id).all()
        }
        return [(u, by_user.get(u.id)) for u in users]
