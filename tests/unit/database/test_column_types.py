"""Tests for the JSON column types and model validation."""

import json

import pytest
from sqlalchemy import select, text

from core.exceptions import InvariantViolation
from database.models import Exam
from database.types import FlagListType, QuestionListType
from evaluation.types import FlagType, QuestionType


LEGACY_QUESTIONS = [
    {
        "id": "q1",
        "text": "Which keyword defines a function?",
        "type": "multiple_choice",
        "options": ["func", "def"],
        "correctAnswer": "def",
    },
    {"id": "q2", "text": "Describe an index.", "type": "open_ended"},
]


class TestQuestionListType:
    def test_decodes_legacy_string_payload(self):
        questions = QuestionListType().process_result_value(json.dumps(LEGACY_QUESTIONS), None)

        assert [q.id for q in questions] == ["q1", "q2"]
        assert questions[0].correct_answer == "def"
        assert questions[1].type == QuestionType.OPEN_ENDED

    def test_decodes_double_encoded_payload(self):
        payload = json.dumps(json.dumps(LEGACY_QUESTIONS))
        questions = QuestionListType().process_result_value(payload, None)
        assert len(questions) == 2

    def test_binds_snake_case(self):
        bound = QuestionListType().process_bind_param(LEGACY_QUESTIONS, None)
        assert bound[0]["correct_answer"] == "def"
        assert "correctAnswer" not in bound[0]

    def test_null_reads_as_empty(self):
        assert QuestionListType().process_result_value(None, None) == []

    @pytest.mark.parametrize("payload", [
        [{"id": "q1"}],
        '[{"id": "q1", "text": "x", "type": "essay"}]',
        "{not json",
    ])
    def test_malformed_payload(self, payload):
        with pytest.raises(InvariantViolation, match="malformed"):
            QuestionListType().process_result_value(payload, None)


class TestFlagListType:
    def test_round_trip_shape(self):
        flags = [{"timestamp": "2024-05-01T12:00:00+00:00", "type": "tab_switch", "details": "x"}]

        bound = FlagListType().process_bind_param(flags, None)
        decoded = FlagListType().process_result_value(bound, None)

        assert decoded[0].type == FlagType.TAB_SWITCH
        assert decoded[0].detail == "x"

    def test_null_binds_as_empty_list(self):
        assert FlagListType().process_bind_param(None, None) == []


class TestExamModel:
    def test_rejects_empty_question_list(self):
        with pytest.raises(InvariantViolation, match="at least one question"):
            Exam(title="Empty", job_role_id=1, admin_id=1, questions=[], pass_mark=70, time_limit_minutes=45)

    def test_rejects_malformed_questions(self):
        with pytest.raises(InvariantViolation):
            Exam(title="Bad", job_role_id=1, admin_id=1, questions=[{"id": "q1"}], pass_mark=70,
                 time_limit_minutes=45)

    @pytest.mark.asyncio
    async def test_reads_legacy_rows(self, session, seed):
        await session.execute(
            text("UPDATE exams SET questions = :questions WHERE id = :id"),
            {"questions": json.dumps(json.dumps(LEGACY_QUESTIONS)), "id": seed.exam_id},
        )
        await session.commit()

        result = await session.execute(
            select(Exam).where(Exam.id == seed.exam_id).execution_options(populate_existing=True)
        )
        exam = result.scalar_one()

        assert [q.id for q in exam.questions] == ["q1", "q2"]
        assert exam.questions[0].correct_answer == "def"
