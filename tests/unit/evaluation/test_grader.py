"""Tests for exam grading."""

import pytest

from evaluation.grader import grade_exam, keyword_match, normalize_answers
from evaluation.types import OpenEndedPolicy
from tests.conftest import make_questions


QUESTIONS = make_questions()


class TestGradeExam:
    def test_all_correct(self):
        result = grade_exam(QUESTIONS, {"q1": "def", "q2": "HAVING"}, pass_mark=70)

        assert result.score == 67
        assert result.passed is False
        assert (result.correct, result.graded) == (2, 2)
        assert result.pending_review == ["q3"]

    def test_all_wrong(self):
        result = grade_exam(QUESTIONS, {"q1": "func", "q2": "WHERE"}, pass_mark=70)

        assert result.score == 0
        assert result.passed is False

    def test_missing_answers_are_incorrect(self):
        result = grade_exam(QUESTIONS, {"q1": "def"}, pass_mark=30)

        assert result.score == 33
        assert result.passed is True

    def test_no_answers(self):
        assert grade_exam(QUESTIONS, None, pass_mark=0).score == 0

    def test_text_answers_must_match_exactly(self):
        result = grade_exam(QUESTIONS, {"q1": "DEF", "q2": "having"}, pass_mark=50)
        assert result.score == 0

    def test_index_answers(self):
        result = grade_exam(QUESTIONS, {"q1": 1, "q2": "1"}, pass_mark=50)
        assert result.score == 67

    def test_open_ended_pending_review_under_manual_policy(self):
        result = grade_exam(
            QUESTIONS,
            {"q1": "def", "q2": "HAVING", "q3": "Check the explain plan"},
            pass_mark=70,
            open_ended_policy=OpenEndedPolicy.MANUAL,
        )

        assert result.graded == 2
        assert result.score == 67
        assert result.passed is False
        assert result.pending_review == ["q3"]

    def test_unreviewed_open_ended_questions_still_count_towards_total(self):
        questions = make_questions() + [
            make_questions()[2].model_copy(update={"id": "q4"}),
        ]
        result = grade_exam(questions, {"q1": "def", "q2": "HAVING"}, pass_mark=50)

        assert result.score == 50
        assert result.passed is True
        assert result.pending_review == ["q3", "q4"]

    def test_multiple_choice_only_exam(self):
        result = grade_exam(QUESTIONS[:2], {"q1": "def", "q2": "HAVING"}, pass_mark=70)

        assert result.score == 100
        assert result.passed is True

    def test_open_ended_keyword_policy(self):
        answers = {
            "q1": "def",
            "q2": "WHERE",
            "q3": "I read the explain plan and add indexes where needed",
        }
        result = grade_exam(QUESTIONS, answers, pass_mark=60, open_ended_policy="keyword")

        assert result.graded == 3
        assert result.correct == 2
        assert result.score == 67
        assert result.passed is True
        assert result.pending_review == []

    def test_only_open_ended_questions_score_zero(self):
        result = grade_exam(QUESTIONS[2:], {"q3": "anything"}, pass_mark=0, open_ended_policy="manual")

        assert result.score == 0
        assert result.graded == 0
        assert result.passed is True

    @pytest.mark.parametrize("pass_mark,passed", [(33, True), (34, False)])
    def test_pass_mark_is_inclusive(self, pass_mark, passed):
        result = grade_exam(QUESTIONS, {"q1": "def"}, pass_mark=pass_mark)
        assert result.passed is passed


class TestNormalizeAnswers:
    def test_mapping(self):
        assert normalize_answers({"q1": "def", "q2": None, 3: "x"}) == {"q1": "def", "3": "x"}

    def test_list_form(self):
        answers = [
            {"questionId": "q1", "selectedOption": "def"},
            {"question_id": "q3", "text": "explain plan"},
            {"selectedOption": "orphan"},
            "garbage",
        ]
        assert normalize_answers(answers) == {"q1": "def", "q3": "explain plan"}

    def test_none(self):
        assert normalize_answers(None) == {}

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            normalize_answers("q1=def")


class TestKeywordMatch:
    def test_half_the_keywords(self):
        assert keyword_match("explain plan with indexes", "explain plan, indexes, query statistics")

    def test_too_few_keywords(self):
        assert not keyword_match("add an index", "explain plan, indexes, query statistics")

    def test_blank_answer(self):
        assert not keyword_match("   ", "explain plan")
        assert not keyword_match(None, "explain plan")
