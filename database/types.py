"""Column types that keep JSON encoding out of the pipeline code.

Exam questions and proctoring flags are stored as JSON. Older rows may hold
the question list as a JSON-encoded string and use camelCase keys such as
``correctAnswer``; both shapes decode to the same typed lists.
"""

import json
from typing import Any

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.types import TypeDecorator

from core.exceptions import InvariantViolation
from evaluation.types import ProctoringFlag, Question

# BIGINT ids everywhere except SQLite, which only autoincrements INTEGER keys
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")

_questions_adapter = TypeAdapter(list[Question])
_flags_adapter = TypeAdapter(list[ProctoringFlag])


def _decode_json_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    # Legacy rows stored the list as a JSON string inside the JSON column
    while isinstance(value, str):
        value = json.loads(value) if value.strip() else []
    return value


class QuestionListType(TypeDecorator):
    """``list[Question]`` stored as a JSON array."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        questions = _questions_adapter.validate_python(_decode_json_value(value))
        return _questions_adapter.dump_python(questions, mode="json")

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        try:
            return _questions_adapter.validate_python(_decode_json_value(value))
        except (ValidationError, json.JSONDecodeError) as exc:
            raise InvariantViolation(f"Stored exam questions are malformed: {exc}") from exc


class FlagListType(TypeDecorator):
    """``list[ProctoringFlag]`` stored as a JSON array."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return []
        flags = _flags_adapter.validate_python(_decode_json_value(value))
        return _flags_adapter.dump_python(flags, mode="json")

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        return _flags_adapter.validate_python(_decode_json_value(value))
