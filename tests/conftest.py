"""
Pytest configuration and shared fixtures for the test suite.
Ensures proper Python path and provides an in-memory database plus small
factories for users, courses, materials and quizzes.
"""
import itertools
import os
import sys
from pathlib import Path
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Keep the app module from touching a real database file.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


# ----- In-memory DB (shared by every session in a test) -----
@pytest.fixture
def in_memory_engine():
    """In-memory SQLite engine; StaticPool keeps one connection so all sessions see the same data."""
    return create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def session_factory(in_memory_engine):
    from lms.config import Base
    import lms.models  # noqa: F401

    Base.metadata.create_all(in_memory_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=in_memory_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


# ----- Factories -----
@pytest.fixture
def make_user(db_session):
    from lms.models.models import User, UserRole

    counter = itertools.count(1)

    def _make(role=UserRole.STUDENT, name=None, email=None):
        n = next(counter)
        user = User(
            external_id=f"subject-{n}",
            email=email or f"user{n}@example.com",
            name=name or f"User {n}",
            avatar=f"https://example.com/avatar/{n}.png",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_course(db_session):
    from lms.models.models import Course, Material, MaterialType

    def _make(instructor, materials=0, title="Intro to Statistics"):
        course = Course(id=str(uuid4()), instructor_id=instructor.id, title=title)
        db_session.add(course)
        db_session.flush()
        for i in range(materials):
            db_session.add(
                Material(
                    id=str(uuid4()),
                    course_id=course.id,
                    title=f"Lesson {i + 1}",
                    file_url=f"/uploads/lesson-{i + 1}.pdf",
                    file_type=MaterialType.DOCUMENT,
                    order_index=i,
                )
            )
        db_session.commit()
        db_session.refresh(course)
        return course

    return _make


@pytest.fixture
def add_material(db_session):
    from lms.models.models import Material, MaterialType

    def _add(course, title="Extra reading"):
        material = Material(
            id=str(uuid4()),
            course_id=course.id,
            title=title,
            file_url="/uploads/extra.pdf",
            file_type=MaterialType.OTHER,
            order_index=len(course.materials),
        )
        db_session.add(material)
        db_session.commit()
        return material

    return _add


SAMPLE_QUESTIONS = [
    {
        "question": "Which letter comes second?",
        "type": "multiple-choice",
        "options": ["A", "B", "C"],
        "correct_answer": "B",
        "points": 1,
    },
    {
        "question": "The mean is sensitive to outliers.",
        "type": "true-false",
        "options": [],
        "correct_answer": True,
        "points": 1,
    },
]


@pytest.fixture
def sample_questions():
    return [dict(q) for q in SAMPLE_QUESTIONS]


@pytest.fixture
def make_quiz(db_session):
    from lms.models.models import Quiz

    def _make(course, questions=None, published=False, results_published=False, title="Week 1 quiz"):
        quiz = Quiz(
            id=str(uuid4()),
            course_id=course.id,
            title=title,
            questions=[dict(q) for q in (SAMPLE_QUESTIONS if questions is None else questions)],
            time_limit=30,
            published=published,
            results_published=results_published,
        )
        db_session.add(quiz)
        db_session.commit()
        db_session.refresh(quiz)
        return quiz

    return _make


@pytest.fixture
def enroll(db_session):
    from lms.services import directory

    def _enroll(user, course):
        return directory.enroll(user.id, course.id, db_session)

    return _enroll


@pytest.fixture
def identity_of():
    from lms.utils.auth import to_identity

    return to_identity
