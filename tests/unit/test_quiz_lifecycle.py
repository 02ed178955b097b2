"""Unit tests for the quiz lifecycle state machine."""
from datetime import datetime

import pytest

from lms.models.models import Quiz
from lms.services.quiz_lifecycle import QuizState, QuizTransition, apply_transition, next_state


def draft_quiz(**flags) -> Quiz:
    return Quiz(
        id="quiz-1",
        course_id="course-1",
        title="Quiz",
        questions=[],
        published=flags.get("published", False),
        results_published=flags.get("results_published", False),
        publish_at=None,
    )


@pytest.mark.unit
class TestQuizState:
    @pytest.mark.parametrize(
        "published,results,expected",
        [
            (False, False, QuizState.DRAFT),
            (False, True, QuizState.DRAFT_RESULTS),
            (True, False, QuizState.PUBLISHED),
            (True, True, QuizState.PUBLISHED_RESULTS),
        ],
    )
    def test_every_flag_combination_maps_to_one_state(self, published, results, expected):
        state = QuizState.from_flags(published, results)
        assert state is expected
        assert state.published is published
        assert state.results_published is results

    def test_only_published_states_accept_submissions(self):
        accepting = {s for s in QuizState if s.accepts_submissions}
        assert accepting == {QuizState.PUBLISHED, QuizState.PUBLISHED_RESULTS}


@pytest.mark.unit
class TestTransitions:
    @pytest.mark.parametrize(
        "state,transition,expected",
        [
            (QuizState.DRAFT, QuizTransition.PUBLISH, QuizState.PUBLISHED),
            (QuizState.DRAFT_RESULTS, QuizTransition.PUBLISH, QuizState.PUBLISHED_RESULTS),
            (QuizState.PUBLISHED_RESULTS, QuizTransition.UNPUBLISH, QuizState.DRAFT_RESULTS),
            (QuizState.PUBLISHED, QuizTransition.PUBLISH_RESULTS, QuizState.PUBLISHED_RESULTS),
            (QuizState.DRAFT, QuizTransition.PUBLISH_RESULTS, QuizState.DRAFT_RESULTS),
            (QuizState.PUBLISHED_RESULTS, QuizTransition.UNPUBLISH_RESULTS, QuizState.PUBLISHED),
            (QuizState.PUBLISHED, QuizTransition.PUBLISH, QuizState.PUBLISHED),
            (QuizState.DRAFT, QuizTransition.UNPUBLISH, QuizState.DRAFT),
        ],
    )
    def test_next_state(self, state, transition, expected):
        assert next_state(state, transition) is expected

    def test_publish_stamps_publish_at(self):
        quiz = draft_quiz()
        when = datetime(2026, 3, 1, 9, 0, 0)
        state = apply_transition(quiz, QuizTransition.PUBLISH, now=when)
        assert state is QuizState.PUBLISHED
        assert quiz.published is True
        assert quiz.publish_at == when

    def test_republish_keeps_original_publish_at(self):
        quiz = draft_quiz()
        first = datetime(2026, 3, 1, 9, 0, 0)
        apply_transition(quiz, QuizTransition.PUBLISH, now=first)
        apply_transition(quiz, QuizTransition.PUBLISH, now=datetime(2026, 3, 2, 9, 0, 0))
        assert quiz.publish_at == first

    def test_unpublish_keeps_results_flag(self):
        quiz = draft_quiz(published=True, results_published=True)
        apply_transition(quiz, QuizTransition.UNPUBLISH)
        assert quiz.published is False
        assert quiz.results_published is True

    def test_publish_after_unpublish_restamps(self):
        quiz = draft_quiz()
        apply_transition(quiz, QuizTransition.PUBLISH, now=datetime(2026, 3, 1))
        apply_transition(quiz, QuizTransition.UNPUBLISH)
        apply_transition(quiz, QuizTransition.PUBLISH, now=datetime(2026, 4, 1))
        assert quiz.publish_at == datetime(2026, 4, 1)

    def test_results_toggle_does_not_touch_publication(self):
        quiz = draft_quiz()
        apply_transition(quiz, QuizTransition.PUBLISH_RESULTS)
        assert quiz.published is False
        assert quiz.publish_at is None
        apply_transition(quiz, QuizTransition.UNPUBLISH_RESULTS)
        assert quiz.results_published is False
