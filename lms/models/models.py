from lms.config import Base
from sqlalchemy import (
    Column,
    Integer,
    String,
    JSON,
    DateTime,
    ForeignKey,
    Text,
    Boolean,
    Float,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from enum import Enum

from lms.utils.common import utcnow


class UserRole(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class MaterialType(str, Enum):
    DOCUMENT = "document"
    VIDEO = "video"
    IMAGE = "image"
    AUDIO = "audio"
    OTHER = "other"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String, unique=True, index=True, nullable=True)  # `sub` from the token issuer
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False, default="User")
    avatar = Column(String, nullable=True)
    role = Column(SQLEnum(UserRole), default=UserRole.STUDENT, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    enrollments = relationship("Enrollment", backref="user", cascade="all, delete-orphan")
    progress = relationship("Progress", backref="user", cascade="all, delete-orphan")


class Enrollment(Base):
    __tablename__ = "enrollments"
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    course_id = Column(String, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Course(Base):
    __tablename__ = "courses"
    id = Column(String, primary_key=True, index=True)  # uuid
    instructor_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    instructor = relationship("User", backref="taught_courses", foreign_keys=[instructor_id])
    materials = relationship(
        "Material",
        backref="course",
        cascade="all, delete-orphan",
        order_by="Material.order_index",
    )
    quizzes = relationship("Quiz", backref="course", cascade="all, delete-orphan")
    enrollments = relationship("Enrollment", backref="course", cascade="all, delete-orphan")
    progress = relationship("Progress", backref="course", cascade="all, delete-orphan")


class Material(Base):
    __tablename__ = "materials"
    id = Column(String, primary_key=True, index=True)  # uuid
    course_id = Column(String, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    file_url = Column(String, nullable=False)
    file_type = Column(SQLEnum(MaterialType), default=MaterialType.OTHER, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    completions = relationship("CompletedMaterial", backref="material", cascade="all, delete-orphan")


class Quiz(Base):
    __tablename__ = "quizzes"
    id = Column(String, primary_key=True, index=True)  # uuid
    course_id = Column(String, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    questions = Column(JSON, nullable=False, default=list)  # list of question dicts, graded in order
    time_limit = Column(Integer, default=30, nullable=False)  # minutes
    published = Column(Boolean, default=False, nullable=False)
    results_published = Column(Boolean, default=False, nullable=False)
    publish_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    attempts = relationship("QuizAttempt", backref="quiz", cascade="all, delete-orphan")


class Progress(Base):
    __tablename__ = "progress"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_progress_user_course"),)

    id = Column(String, primary_key=True, index=True)  # uuid
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    course_id = Column(String, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    percent_complete = Column(Integer, default=0, nullable=False)
    last_accessed = Column(DateTime, default=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    completions = relationship("CompletedMaterial", backref="progress", cascade="all, delete-orphan")
    attempts = relationship(
        "QuizAttempt",
        backref="progress",
        cascade="all, delete-orphan",
        order_by="QuizAttempt.id",
    )

    @property
    def completed_material_ids(self) -> list[str]:
        return [c.material_id for c in self.completions]


class CompletedMaterial(Base):
    __tablename__ = "progress_materials"
    # Composite key gives set semantics: a material is completed at most once per row.
    progress_id = Column(String, ForeignKey("progress.id", ondelete="CASCADE"), primary_key=True)
    material_id = Column(String, ForeignKey("materials.id", ondelete="CASCADE"), primary_key=True)
    completed_at = Column(DateTime, default=utcnow, nullable=False)


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    id = Column(Integer, primary_key=True, autoincrement=True)  # insertion order breaks timestamp ties
    progress_id = Column(String, ForeignKey("progress.id", ondelete="CASCADE"), index=True, nullable=False)
    quiz_id = Column(String, ForeignKey("quizzes.id", ondelete="CASCADE"), index=True, nullable=False)
    score = Column(Float, nullable=False)
    total_points = Column(Float, nullable=False)
    percentage = Column(Float, nullable=False)
    taken_at = Column(DateTime, default=utcnow, nullable=False)
