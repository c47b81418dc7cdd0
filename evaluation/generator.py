"""Exam generation: drive a backend, then validate and normalise its drafts."""

import asyncio
import logging
import math
import re
from typing import Any, Iterable, Optional, Protocol, Sequence

from core.config import settings
from core.exceptions import GenerationFailure, InvariantViolation
from evaluation.types import ExamDraft, JobRoleProfile, Question, QuestionType

logger = logging.getLogger(__name__)

_TYPE_ALIASES = {
    "multiple_choice": QuestionType.MULTIPLE_CHOICE,
    "multiplechoice": QuestionType.MULTIPLE_CHOICE,
    "mcq": QuestionType.MULTIPLE_CHOICE,
    "choice": QuestionType.MULTIPLE_CHOICE,
    "open_ended": QuestionType.OPEN_ENDED,
    "openended": QuestionType.OPEN_ENDED,
    "open": QuestionType.OPEN_ENDED,
    "essay": QuestionType.OPEN_ENDED,
    "short_answer": QuestionType.OPEN_ENDED,
    "text": QuestionType.OPEN_ENDED,
}


class GenerationBackend(Protocol):
    """Anything that can draft raw question dicts for a role."""

    async def draft_questions(
        self,
        profile: JobRoleProfile,
        multiple_choice_count: int,
        open_ended_count: int,
        seed: Optional[int] = None,
    ) -> list[dict]: ...


def question_mix(
    question_count: int,
    include_multiple_choice: bool = True,
    include_open_ended: bool = True,
    multiple_choice_share: Optional[float] = None,
) -> tuple[int, int]:
    """Split a question count into (multiple_choice, open_ended)."""
    if not include_multiple_choice and not include_open_ended:
        raise ValueError("At least one question type must be enabled")
    if not include_open_ended:
        return question_count, 0
    if not include_multiple_choice:
        return 0, question_count

    share = settings.multiple_choice_share if multiple_choice_share is None else multiple_choice_share
    multiple_choice = min(question_count, math.ceil(question_count * share))
    return multiple_choice, question_count - multiple_choice


async def generate_exam(
    job_role: JobRoleProfile,
    question_count: int,
    pass_mark: Optional[int] = None,
    *,
    backend: GenerationBackend,
    seed: Optional[int] = None,
    title: Optional[str] = None,
    time_limit_minutes: Optional[int] = None,
    include_multiple_choice: bool = True,
    include_open_ended: bool = True,
    timeout: Optional[float] = None,
) -> ExamDraft:
    """Generate an exam with exactly ``question_count`` questions.

    Args:
        job_role: Role the exam screens for
        question_count: Any positive integer
        pass_mark: Percentage needed to pass, defaults to ``DEFAULT_PASS_MARK``
        backend: Source of raw question drafts
        seed: Makes generation reproducible when the backend honours it
        timeout: Seconds to wait for the backend, defaults to
            ``GENERATION_TIMEOUT_SECONDS``

    Raises:
        GenerationFailure: Backend failed, timed out or produced too few
            distinct usable questions
        InvariantViolation: A multiple choice draft has fewer than two options
            or a correct answer outside its options
    """
    if isinstance(question_count, bool) or not isinstance(question_count, int) or question_count < 1:
        raise ValueError(f"question_count must be a positive integer, got {question_count!r}")

    pass_mark = settings.default_pass_mark if pass_mark is None else pass_mark
    time_limit_minutes = time_limit_minutes or settings.default_time_limit_minutes
    timeout = timeout or settings.generation_timeout_seconds

    multiple_choice_count, open_ended_count = question_mix(
        question_count, include_multiple_choice, include_open_ended
    )

    try:
        raw_drafts = await asyncio.wait_for(
            backend.draft_questions(
                job_role,
                multiple_choice_count=multiple_choice_count,
                open_ended_count=open_ended_count,
                seed=seed,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        logger.error("Generation backend timed out after %ss for role %r", timeout, job_role.title)
        raise GenerationFailure(f"generation backend timed out after {timeout:g}s") from exc
    except GenerationFailure:
        raise
    except Exception as exc:
        logger.exception("Generation backend failed for role %r", job_role.title)
        raise GenerationFailure(f"generation backend error: {exc}") from exc

    drafts = normalize_drafts(raw_drafts or [])

    allowed = set()
    if include_multiple_choice:
        allowed.add(QuestionType.MULTIPLE_CHOICE)
    if include_open_ended:
        allowed.add(QuestionType.OPEN_ENDED)

    selected = select_questions(
        [d for d in drafts if d.type in allowed],
        {
            QuestionType.MULTIPLE_CHOICE: multiple_choice_count,
            QuestionType.OPEN_ENDED: open_ended_count,
        },
    )
    if len(selected) != question_count:
        raise GenerationFailure(
            f"backend produced {len(selected)} distinct usable questions, {question_count} required"
        )

    questions = [
        question.model_copy(update={"id": f"q{number}"})
        for number, question in enumerate(selected, start=1)
    ]
    check_question_invariants(questions)

    logger.info(
        "Generated %d questions (%d multiple choice) for role %r",
        len(questions),
        sum(q.type == QuestionType.MULTIPLE_CHOICE for q in questions),
        job_role.title,
    )
    return ExamDraft(
        title=title or f"{job_role.title} Assessment",
        job_role_id=job_role.id,
        questions=questions,
        pass_mark=pass_mark,
        time_limit_minutes=time_limit_minutes,
    )


def select_questions(drafts: list[Question], quotas: dict[QuestionType, int]) -> list[Question]:
    """Fill each type's quota in draft order, then backfill from leftovers."""
    total = sum(quotas.values())
    remaining = dict(quotas)
    chosen: list[int] = []
    for index, draft in enumerate(drafts):
        if remaining.get(draft.type, 0) > 0:
            remaining[draft.type] -= 1
            chosen.append(index)

    for index in range(len(drafts)):
        if len(chosen) >= total:
            break
        if index not in chosen:
            chosen.append(index)

    return [drafts[index] for index in sorted(chosen[:total])]


def normalize_drafts(raw_drafts: Iterable[Any]) -> list[Question]:
    """Turn raw backend drafts into questions, dropping empty and duplicate ones."""
    questions: list[Question] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_drafts, start=1):
        question = normalize_draft(raw, index)
        if question is None:
            continue
        key = _text_key(question.text)
        if key in seen:
            logger.debug("Dropping duplicate draft %r", question.text)
            continue
        seen.add(key)
        questions.append(question)
    return questions


def normalize_draft(raw: Any, index: int) -> Optional[Question]:
    """Normalise one draft. Returns None for drafts with no usable text.

    Raises:
        InvariantViolation: For unknown types and malformed multiple choice drafts
    """
    if not isinstance(raw, dict):
        return None
    text = str(raw.get("text") or raw.get("question") or "").strip()
    if not text:
        return None

    options = raw.get("options") or raw.get("choices") or []
    if isinstance(options, str) or not isinstance(options, (list, tuple)):
        options = []
    options = _clean_options(options)

    question_type = _resolve_type(raw.get("type"), has_options=bool(options))
    correct = _first_present(raw, ("correct_answer", "correctAnswer", "answer"))

    if question_type == QuestionType.MULTIPLE_CHOICE:
        resolved = resolve_option(correct, options)
        question = Question(
            id=f"draft{index}",
            text=text,
            type=question_type,
            options=options,
            correct_answer=resolved if resolved is not None else _as_text(correct),
        )
    else:
        question = Question(
            id=f"draft{index}",
            text=text,
            type=question_type,
            correct_answer=_as_text(correct),
        )

    check_question_invariants([question])
    return question


def check_question_invariants(questions: Sequence[Question]) -> None:
    """Validate an exam's question list.

    Raises:
        InvariantViolation: On duplicate or empty ids, empty text, or a
            multiple choice question without two distinct options and a
            correct answer among them
    """
    seen_ids: set[str] = set()
    for question in questions:
        if not question.id or question.id in seen_ids:
            raise InvariantViolation(
                f"Question ids must be unique and non-empty, got {question.id!r}",
                question_id=question.id,
            )
        seen_ids.add(question.id)

        if not question.text.strip():
            raise InvariantViolation(f"Question {question.id} has no text", question_id=question.id)

        if question.type == QuestionType.MULTIPLE_CHOICE:
            options = question.options or []
            if len({option.strip().lower() for option in options}) < 2:
                raise InvariantViolation(
                    f"Multiple choice question {question.id} needs at least 2 distinct options",
                    question_id=question.id,
                )
            if question.correct_answer not in options:
                raise InvariantViolation(
                    f"Correct answer of question {question.id} is not one of its options",
                    question_id=question.id,
                )
        elif question.options:
            raise InvariantViolation(
                f"Open-ended question {question.id} must not carry options",
                question_id=question.id,
            )


def resolve_option(answer: Any, options: Sequence[str]) -> Optional[str]:
    """Map an answer given as option text, index or letter to the option text."""
    if answer is None or isinstance(answer, bool) or not options:
        return None
    if isinstance(answer, int):
        return options[answer] if 0 <= answer < len(options) else None
    if isinstance(answer, float) and answer.is_integer():
        return resolve_option(int(answer), options)

    text = str(answer).strip()
    for option in options:
        if option == text:
            return option
    lowered = text.lower()
    for option in options:
        if option.lower() == lowered:
            return option
    if text.isdigit():
        return resolve_option(int(text), options)
    if len(text) == 1 and text.isalpha():
        return resolve_option(ord(lowered) - ord("a"), options)
    return None


def _resolve_type(value: Any, has_options: bool) -> QuestionType:
    if value is None or value == "":
        return QuestionType.MULTIPLE_CHOICE if has_options else QuestionType.OPEN_ENDED
    key = re.sub(r"[\s\-]+", "_", str(value).strip().lower())
    try:
        return _TYPE_ALIASES[key]
    except KeyError:
        raise InvariantViolation(f"Unknown question type: {value!r}") from None


def _clean_options(options: Iterable[Any]) -> list[str]:
    cleaned: list[str] = []
    seen: set[str] = set()
    for option in options:
        if isinstance(option, dict):
            option = option.get("text") or option.get("label")
        text = _as_text(option)
        if text and text.lower() not in seen:
            seen.add(text.lower())
            cleaned.append(text)
    return cleaned


def _first_present(raw: dict, keys: Sequence[str]) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _text_key(text: str) -> str:
    return re.sub(r"[^\w]+", " ", text.lower()).strip()
