"""
Scoring engine: grades one answer submission against a quiz definition.

Questions are graded in quiz order and each answer is matched by position.
Rules per question type:

- multiple-choice: full points iff the answer equals ``correct_answer``
  (strict: ``"1"`` does not match ``1``, ``True`` does not match ``1``).
- true-false: both sides are coerced to a boolean (``true``/``"true"``/``1``)
  and compared; an answer with no boolean reading is wrong.
- short-answer: never graded automatically. It scores 0 but its points still
  count towards ``total_points``, so ``percentage`` is relative to the whole
  quiz.

Unanswered trailing questions score 0. Results are immutable.
"""

from dataclasses import dataclass
from numbers import Number
from typing import Any, Mapping, Sequence

from lms.errors import ValidationFailed
from lms.schemas.quiz_schemas import QuestionType
from lms.utils.common import coerce_bool, round_half_up
from lms.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_POINTS = 1


@dataclass(frozen=True)
class ScoreResult:
    score: float
    total_points: float
    percentage: float
    ungraded: int = 0  # short-answer questions that scored 0 by policy


def question_points(question: Mapping[str, Any]) -> float:
    points = question.get("points")
    return DEFAULT_POINTS if points is None else points


def _strict_equal(answer: Any, expected: Any) -> bool:
    if isinstance(answer, bool) or isinstance(expected, bool):
        return isinstance(answer, bool) and isinstance(expected, bool) and answer == expected
    if isinstance(answer, Number) and isinstance(expected, Number):
        return answer == expected
    return type(answer) is type(expected) and answer == expected


def is_correct(question: Mapping[str, Any], answer: Any) -> bool:
    qtype = QuestionType(question.get("type") or QuestionType.MULTIPLE_CHOICE)
    expected = question.get("correct_answer")
    if qtype == QuestionType.MULTIPLE_CHOICE:
        return answer is not None and _strict_equal(answer, expected)
    if qtype == QuestionType.TRUE_FALSE:
        given = coerce_bool(answer)
        return given is not None and given == coerce_bool(expected)
    return False


def percentage_of(score: float, total_points: float) -> float:
    if total_points == 0:
        return 0.0
    return round_half_up(score / total_points * 100, 2)


def grade_submission(questions: Sequence[Mapping[str, Any]], answers: Sequence[Any]) -> ScoreResult:
    """Grade ``answers`` (ordered like ``questions``) and return the score."""
    if len(answers) > len(questions):
        raise ValidationFailed(
            [f"Expected at most {len(questions)} answers, got {len(answers)}"]
        )

    score = 0
    total_points = 0
    ungraded = 0
    for index, question in enumerate(questions):
        points = question_points(question)
        total_points += points
        if question.get("type") == QuestionType.SHORT_ANSWER.value:
            ungraded += 1
            continue
        answer = answers[index] if index < len(answers) else None
        if is_correct(question, answer):
            score += points

    result = ScoreResult(
        score=score,
        total_points=total_points,
        percentage=percentage_of(score, total_points),
        ungraded=ungraded,
    )
    logger.debug(
        "graded submission questions=%s score=%s total=%s ungraded=%s",
        len(questions), result.score, result.total_points, result.ungraded,
    )
    return result
