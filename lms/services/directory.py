"""
Read/write accessors for the course, material and user directories.

These stores are owned elsewhere (course/material CRUD is not part of this
service); the assessment code reaches them only through these helpers so
every lookup hits the current persisted state.
"""

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.errors import NotFound
from lms.models.models import Course, Enrollment, Material, Quiz, User
from lms.utils.logger import get_logger

logger = get_logger(__name__)


def get_course(course_id: str, db: Session) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if course is None:
        raise NotFound("Course")
    return course


def get_material(material_id: str, db: Session) -> Material:
    material = db.query(Material).filter(Material.id == material_id).first()
    if material is None:
        raise NotFound("Material")
    return material


def get_quiz(quiz_id: str, db: Session) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if quiz is None:
        raise NotFound("Quiz")
    return quiz


def get_user(user_id: int, db: Session) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFound("User")
    return user


def material_ids(course_id: str, db: Session) -> list[str]:
    """Current material ids of a course, in course order."""
    rows = (
        db.query(Material.id)
        .filter(Material.course_id == course_id)
        .order_by(Material.order_index.asc(), Material.created_at.asc())
        .all()
    )
    return [r[0] for r in rows]


def material_count(course_id: str, db: Session) -> int:
    return db.query(func.count(Material.id)).filter(Material.course_id == course_id).scalar() or 0


def is_enrolled(user_id: int, course_id: str, db: Session) -> bool:
    return (
        db.query(Enrollment)
        .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
        .first()
        is not None
    )


def enrolled_course_ids(user_id: int, db: Session) -> list[str]:
    rows = db.query(Enrollment.course_id).filter(Enrollment.user_id == user_id).all()
    return [r[0] for r in rows]


def enroll(user_id: int, course_id: str, db: Session) -> bool:
    """Enroll a user; returns False when the enrollment already existed."""
    if is_enrolled(user_id, course_id, db):
        return False
    db.add(Enrollment(user_id=user_id, course_id=course_id))
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against an identical enrollment; the row exists either way.
        db.rollback()
        logger.info("enrollment race resolved user_id=%s course_id=%s", user_id, course_id)
        return False
    logger.info("enrolled user_id=%s course_id=%s", user_id, course_id)
    return True
