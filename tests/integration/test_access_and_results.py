"""
Authorization gate, quiz service gating and results visibility against an in-memory database.
"""
from datetime import datetime

import pytest

from lms.errors import Forbidden, ForbiddenReason, NotFound
from lms.models.models import Enrollment, Progress, QuizAttempt, UserRole
from lms.services import directory
from lms.services.access import Action, authorize, require_role
from lms.services.progress_service import ProgressLedger
from lms.services.quiz_lifecycle import QuizTransition
from lms.services.quiz_service import QuizService
from lms.services.results_service import ResultsService, latest_attempt
from lms.services.scoring import ScoreResult


@pytest.fixture
def owner(make_user):
    return make_user(role=UserRole.INSTRUCTOR, name="Olga Owner")


@pytest.fixture
def course(owner, make_course):
    return make_course(owner, materials=2)


def forbidden_reason(excinfo) -> ForbiddenReason:
    return excinfo.value.reason


@pytest.mark.integration
class TestAuthorize:
    def test_unenrolled_student_gets_forbidden_for_draft_quiz(self, db_session, make_user, course, make_quiz, identity_of):
        quiz = make_quiz(course, published=False)
        stranger = identity_of(make_user())

        with pytest.raises(Forbidden) as excinfo:
            QuizService(db_session).get_quiz(stranger, quiz.id)
        assert forbidden_reason(excinfo) is ForbiddenReason.NOT_ENROLLED
        assert excinfo.value.status_code == 403

    def test_missing_quiz_is_not_found(self, db_session, make_user, identity_of):
        with pytest.raises(NotFound):
            QuizService(db_session).get_quiz(identity_of(make_user()), "no-such-quiz")

    def test_enrolled_student_sees_only_published(self, db_session, make_user, course, make_quiz, enroll, identity_of):
        student = make_user()
        enroll(student, course)
        draft = make_quiz(course, published=False)
        live = make_quiz(course, published=True)
        service = QuizService(db_session)

        with pytest.raises(Forbidden) as excinfo:
            service.get_quiz(identity_of(student), draft.id)
        assert forbidden_reason(excinfo) is ForbiddenReason.QUIZ_NOT_PUBLISHED

        view = service.get_quiz(identity_of(student), live.id)
        assert view.quiz.id == live.id
        assert view.show_answers is False

        _, listed = service.list_course_quizzes(identity_of(student), course.id)
        assert [q.id for q in listed] == [live.id]

    def test_owner_and_admin_read_any_state(self, db_session, owner, make_user, course, make_quiz, identity_of):
        draft = make_quiz(course, published=False)
        admin = make_user(role=UserRole.ADMIN)
        service = QuizService(db_session)

        assert service.get_quiz(identity_of(owner), draft.id).show_answers is True
        assert service.get_quiz(identity_of(admin), draft.id).show_answers is True
        _, listed = service.list_course_quizzes(identity_of(owner), course.id)
        assert [q.id for q in listed] == [draft.id]

    def test_other_instructor_cannot_manage(self, db_session, make_user, course, make_quiz, identity_of):
        quiz = make_quiz(course)
        other = identity_of(make_user(role=UserRole.INSTRUCTOR))
        with pytest.raises(Forbidden) as excinfo:
            QuizService(db_session).transition(other, quiz.id, QuizTransition.PUBLISH)
        assert forbidden_reason(excinfo) is ForbiddenReason.NOT_OWNER

    def test_student_role_cannot_author(self, db_session, make_user, course, make_quiz, enroll, identity_of):
        student = make_user()
        enroll(student, course)
        quiz = make_quiz(course)
        with pytest.raises(Forbidden) as excinfo:
            QuizService(db_session).delete_quiz(identity_of(student), quiz.id)
        assert forbidden_reason(excinfo) is ForbiddenReason.ROLE_NOT_ALLOWED

    def test_owner_cannot_submit_to_draft(self, db_session, owner, course, make_quiz, identity_of):
        quiz = make_quiz(course, published=False)
        with pytest.raises(Forbidden) as excinfo:
            QuizService(db_session).submit(identity_of(owner), quiz.id, ["B", True])
        assert forbidden_reason(excinfo) is ForbiddenReason.QUIZ_NOT_PUBLISHED

    def test_enrollment_is_read_on_every_check(self, db_session, make_user, course, make_quiz, identity_of):
        student = make_user()
        identity = identity_of(student)
        quiz = make_quiz(course, published=True)

        with pytest.raises(Forbidden):
            authorize(identity, course, Action.VIEW_QUIZ, db_session, quiz=quiz)
        directory.enroll(student.id, course.id, db_session)
        assert authorize(identity, course, Action.VIEW_QUIZ, db_session, quiz=quiz).enrolled is True

        db_session.query(Enrollment).filter(Enrollment.user_id == student.id).delete()
        db_session.commit()
        with pytest.raises(Forbidden):
            authorize(identity, course, Action.VIEW_QUIZ, db_session, quiz=quiz)

    def test_require_role(self, make_user, identity_of):
        with pytest.raises(Forbidden) as excinfo:
            require_role(identity_of(make_user()), (UserRole.INSTRUCTOR, UserRole.ADMIN))
        assert forbidden_reason(excinfo) is ForbiddenReason.ROLE_NOT_ALLOWED


@pytest.mark.integration
class TestEnrollment:
    def test_enrolling_twice_keeps_one_entry(self, db_session, make_user, course):
        student = make_user()
        assert directory.enroll(student.id, course.id, db_session) is True
        assert directory.enroll(student.id, course.id, db_session) is False
        assert db_session.query(Enrollment).filter(Enrollment.user_id == student.id).count() == 1
        assert directory.enrolled_course_ids(student.id, db_session) == [course.id]


@pytest.mark.integration
class TestLifecycleService:
    def test_publish_twice_keeps_first_stamp(self, db_session, owner, course, make_quiz, identity_of):
        quiz = make_quiz(course)
        service = QuizService(db_session)
        first = service.transition(identity_of(owner), quiz.id, QuizTransition.PUBLISH).publish_at
        again = service.transition(identity_of(owner), quiz.id, QuizTransition.PUBLISH).publish_at
        assert first is not None
        assert again == first

    def test_submission_appends_attempts(self, db_session, make_user, course, make_quiz, enroll, identity_of):
        student = make_user()
        enroll(student, course)
        quiz = make_quiz(course, published=True)
        service = QuizService(db_session)

        result, _ = service.submit(identity_of(student), quiz.id, ["B", "false"])
        assert (result.score, result.total_points, result.percentage) == (1, 2, 50.0)
        service.submit(identity_of(student), quiz.id, ["B", "true"])

        progress = ProgressLedger(db_session).find(student.id, course.id)
        assert [a.score for a in progress.attempts] == [1, 2]


@pytest.mark.integration
class TestResultsVisibility:
    def _attempt(self, db_session, user, quiz, course, score, taken_at=None):
        ledger = ProgressLedger(db_session)
        attempt = ledger.record_quiz_attempt(
            user.id, quiz, ScoreResult(score=score, total_points=2, percentage=score * 50.0)
        )
        if taken_at is not None:
            attempt.taken_at = taken_at
            db_session.commit()
        return attempt

    def test_student_waits_for_published_results(self, db_session, owner, make_user, course, make_quiz, enroll, identity_of):
        student = make_user()
        enroll(student, course)
        quiz = make_quiz(course, published=True)
        self._attempt(db_session, student, quiz, course, 1)
        latest = self._attempt(db_session, student, quiz, course, 2)
        service = ResultsService(db_session)

        with pytest.raises(Forbidden) as excinfo:
            service.get_results(identity_of(student), quiz.id)
        assert forbidden_reason(excinfo) is ForbiddenReason.RESULTS_NOT_PUBLISHED

        QuizService(db_session).transition(identity_of(owner), quiz.id, QuizTransition.PUBLISH_RESULTS)
        results = service.get_results(identity_of(student), quiz.id)
        assert results.managed is False
        assert results.own_attempt.id == latest.id
        assert results.rows == []

    def test_unenrolled_student_is_refused_for_another_reason(self, db_session, make_user, course, make_quiz, identity_of):
        quiz = make_quiz(course, published=True, results_published=True)
        with pytest.raises(Forbidden) as excinfo:
            ResultsService(db_session).get_results(identity_of(make_user()), quiz.id)
        assert forbidden_reason(excinfo) is ForbiddenReason.NOT_ENROLLED

    def test_student_without_attempt_gets_none(self, db_session, make_user, course, make_quiz, enroll, identity_of):
        student = make_user()
        enroll(student, course)
        quiz = make_quiz(course, published=True, results_published=True)
        assert ResultsService(db_session).get_results(identity_of(student), quiz.id).own_attempt is None

    def test_owner_sees_latest_attempt_per_student_regardless_of_flag(
        self, db_session, owner, make_user, course, make_quiz, enroll, identity_of
    ):
        quiz = make_quiz(course, published=True, results_published=False)
        ana, ben = make_user(name="Ana"), make_user(name="Ben")
        for s in (ana, ben):
            enroll(s, course)
        self._attempt(db_session, ana, quiz, course, 0, taken_at=datetime(2026, 1, 1, 10))
        self._attempt(db_session, ana, quiz, course, 2, taken_at=datetime(2026, 1, 2, 10))
        self._attempt(db_session, ana, quiz, course, 1, taken_at=datetime(2026, 1, 1, 12))
        self._attempt(db_session, ben, quiz, course, 1, taken_at=datetime(2026, 1, 3, 10))

        results = ResultsService(db_session).get_results(identity_of(owner), quiz.id)

        assert results.managed is True
        by_name = {r.user.name: r.attempt.score for r in results.rows}
        assert by_name == {"Ana": 2, "Ben": 1}

    def test_timestamp_ties_go_to_last_appended(self, db_session, make_user, course, make_quiz):
        quiz = make_quiz(course, published=True)
        student = make_user()
        same = datetime(2026, 2, 1, 8, 30)
        self._attempt(db_session, student, quiz, course, 1, taken_at=same)
        last = self._attempt(db_session, student, quiz, course, 0, taken_at=same)

        attempts = db_session.query(QuizAttempt).join(Progress).filter(Progress.user_id == student.id).all()
        assert latest_attempt(attempts).id == last.id
