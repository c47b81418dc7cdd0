"""Exam grading."""

import re
from typing import Any, Mapping, Optional, Sequence

from core.config import settings
from evaluation.generator import resolve_option
from evaluation.types import GradeResult, OpenEndedPolicy, Question, QuestionType

# Share of reference-answer keywords an open-ended answer must cover under the
# keyword policy.
KEYWORD_MATCH_RATIO = 0.5

_WORD = re.compile(r"[a-z0-9+#]+(?:\.[a-z0-9]+)*")
_STOPWORDS = frozenset(
    "a an and are as at be by for from how in into is it of on or that the their this "
    "to was what when where which while who why will with you your".split()
)


def grade_exam(
    questions: Sequence[Question],
    answers: Optional[Mapping[str, Any]],
    pass_mark: int,
    open_ended_policy: Optional[OpenEndedPolicy] = None,
) -> GradeResult:
    """Grade answers against the exam's keys.

    Multiple choice answers must match the correct option exactly; an answer
    given as an option index or letter is resolved to the option text first.
    Every question carries 1/N of the score. Under the manual policy an
    open-ended question earns nothing until reviewed and is listed in
    ``pending_review``; under the keyword policy only questions that have a
    reference answer are counted. Missing answers count as incorrect. When no
    question is automatically gradable the score is 0.
    """
    policy = OpenEndedPolicy(open_ended_policy or settings.open_ended_grading)
    answers = answers or {}

    correct = 0
    graded = 0
    pending_review: list[str] = []

    for question in questions:
        answer = answers.get(question.id)

        if question.type == QuestionType.MULTIPLE_CHOICE:
            graded += 1
            if multiple_choice_correct(question, answer):
                correct += 1
            continue

        if policy == OpenEndedPolicy.KEYWORD and question.correct_answer:
            graded += 1
            if keyword_match(answer, question.correct_answer):
                correct += 1
        else:
            pending_review.append(question.id)

    total = len(questions) if policy == OpenEndedPolicy.MANUAL else graded
    score = int(round(100 * correct / total)) if graded else 0
    return GradeResult(
        score=score,
        passed=score >= pass_mark,
        correct=correct,
        graded=graded,
        pending_review=pending_review,
    )


def multiple_choice_correct(question: Question, answer: Any) -> bool:
    if answer is None or question.correct_answer is None:
        return False
    if isinstance(answer, str):
        answer = answer.strip()
        if answer == question.correct_answer:
            return True
        if not answer.isdigit():
            return False
    # Index answers only; text answers must match exactly
    return resolve_option(answer, question.options or []) == question.correct_answer


def normalize_answers(answers: Any) -> dict[str, Any]:
    """Accept answers as a mapping or as a list of answer objects.

    The list form is ``[{"questionId": "q1", "selectedOption": "..."}]`` with
    ``text`` in place of ``selectedOption`` for open-ended answers. Entries
    without a question id are ignored.
    """
    if answers is None:
        return {}
    if isinstance(answers, Mapping):
        return {str(key): value for key, value in answers.items() if value is not None}
    if not isinstance(answers, (list, tuple)):
        raise TypeError(f"answers must be a mapping or a list, got {type(answers).__name__}")

    normalized: dict[str, Any] = {}
    for entry in answers:
        if not isinstance(entry, Mapping):
            continue
        question_id = entry.get("questionId") or entry.get("question_id")
        if not question_id:
            continue
        for key in ("selectedOption", "selected_option", "answer", "text"):
            if entry.get(key) is not None:
                normalized[str(question_id)] = entry[key]
                break
    return normalized


def keyword_match(answer: Any, reference: str, ratio: float = KEYWORD_MATCH_RATIO) -> bool:
    """True when the answer mentions at least ``ratio`` of the reference keywords."""
    if not isinstance(answer, str) or not answer.strip():
        return False
    expected = keywords(reference)
    if not expected:
        return False
    found = keywords(answer)
    return len(expected & found) / len(expected) >= ratio


def keywords(text: str) -> set[str]:
    return {
        word
        for word in _WORD.findall(text.lower())
        if len(word) > 2 and word not in _STOPWORDS
    }
