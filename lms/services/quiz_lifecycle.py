"""
Quiz lifecycle state machine.

A quiz's state is the product of two independent flags, publication and
results publication, modelled as one tagged state so every combination and
the transitions out of it are enumerable.

    DRAFT ----publish----> PUBLISHED
      |   <--unpublish---     |
 publish_results          publish_results
      v                       v
    DRAFT_RESULTS ------> PUBLISHED_RESULTS

Every transition is total: applying it in a state that already satisfies it
is a no-op (``publish`` on a published quiz keeps the original ``publish_at``).
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from lms.models.models import Quiz
from lms.utils.common import utcnow


class QuizState(str, Enum):
    DRAFT = "draft"
    DRAFT_RESULTS = "draft_results_published"
    PUBLISHED = "published"
    PUBLISHED_RESULTS = "published_results_published"

    @classmethod
    def from_flags(cls, published: bool, results_published: bool) -> "QuizState":
        return _BY_FLAGS[(bool(published), bool(results_published))]

    @classmethod
    def of(cls, quiz: Quiz) -> "QuizState":
        return cls.from_flags(quiz.published, quiz.results_published)

    @property
    def published(self) -> bool:
        return self in (QuizState.PUBLISHED, QuizState.PUBLISHED_RESULTS)

    @property
    def results_published(self) -> bool:
        return self in (QuizState.DRAFT_RESULTS, QuizState.PUBLISHED_RESULTS)

    @property
    def visible_to_students(self) -> bool:
        return self.published

    @property
    def accepts_submissions(self) -> bool:
        return self.published


_BY_FLAGS = {
    (False, False): QuizState.DRAFT,
    (False, True): QuizState.DRAFT_RESULTS,
    (True, False): QuizState.PUBLISHED,
    (True, True): QuizState.PUBLISHED_RESULTS,
}


class QuizTransition(str, Enum):
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    PUBLISH_RESULTS = "publish_results"
    UNPUBLISH_RESULTS = "unpublish_results"


def next_state(state: QuizState, transition: QuizTransition) -> QuizState:
    published, results_published = state.published, state.results_published
    if transition == QuizTransition.PUBLISH:
        published = True
    elif transition == QuizTransition.UNPUBLISH:
        published = False
    elif transition == QuizTransition.PUBLISH_RESULTS:
        results_published = True
    elif transition == QuizTransition.UNPUBLISH_RESULTS:
        results_published = False
    return QuizState.from_flags(published, results_published)


def apply_transition(quiz: Quiz, transition: QuizTransition, now: Optional[datetime] = None) -> QuizState:
    """Move ``quiz`` along ``transition`` in place and return the new state.

    ``publish_at`` is stamped only on the Draft -> Published edge.
    """
    before = QuizState.of(quiz)
    after = next_state(before, transition)
    if after.published and not before.published:
        quiz.publish_at = now or utcnow()
    quiz.published = after.published
    quiz.results_published = after.results_published
    return after
