"""
Typed failures raised by the candidate evaluation pipeline.

Each error carries a stable ``code`` used by the API error envelope.
"""

from typing import Any, Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    code = "PIPELINE_ERROR"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ParseFailure(PipelineError):
    """Resume document could not be read or is not a supported type."""

    code = "PARSE_FAILURE"

    def __init__(self, file_ref: str, reason: str):
        super().__init__(f"Could not parse {file_ref}: {reason}", file_ref=file_ref)
        self.file_ref = file_ref
        self.reason = reason


class GenerationFailure(PipelineError):
    """Generation backend was unavailable or produced too few usable questions."""

    code = "GENERATION_FAILURE"

    def __init__(self, reason: str):
        super().__init__(f"Exam generation failed: {reason}")
        self.reason = reason


class InvalidTransition(PipelineError):
    """An exam attempt operation was called from a state that does not allow it."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        action: str,
        current_status: Optional[str],
        attempt_id: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        message = detail or f"Cannot {action} an attempt that is {current_status}"
        super().__init__(message, attempt_id=attempt_id, status=current_status)
        self.action = action
        self.current_status = current_status
        self.attempt_id = attempt_id


class InvariantViolation(PipelineError):
    """Exam or question data is malformed and must not be persisted."""

    code = "INVARIANT_VIOLATION"


class StorageUnavailable(PipelineError):
    """Document storage failed or timed out."""

    code = "STORAGE_UNAVAILABLE"


class PersistenceFailure(PipelineError):
    """The database rejected or could not complete an operation."""

    code = "PERSISTENCE_FAILURE"


class RecordNotFound(PipelineError):
    """A referenced entity does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, record_id: Any):
        super().__init__(f"{entity} {record_id} not found", entity=entity, id=record_id)
        self.entity = entity
        self.record_id = record_id


class RecordInUse(PipelineError):
    """Deletion refused because historical records still reference the entity."""

    code = "RECORD_IN_USE"


class DuplicateApplication(PipelineError):
    """The candidate already has a resume on file for the role."""

    code = "DUPLICATE_APPLICATION"

    def __init__(self, candidate_id: int, job_role_id: int):
        super().__init__(
            f"Candidate {candidate_id} has already applied to job role {job_role_id}",
            candidate_id=candidate_id,
            job_role_id=job_role_id,
        )
