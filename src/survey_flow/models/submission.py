"""Submission models — the contract between the validator and API callers.

  - SubmissionRecord: one answered question, in submission order
  - Cursor: the validator's immutable per-record state
  - SubmissionOutcome: what a successful validation returns

A failed validation raises the first typed error from ``survey_flow.errors``
instead of returning an outcome.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class SubmissionRecord(BaseModel):
    """One submitted answer.

    Exactly one of ``answer_id`` / ``other`` must be set; the validator
    enforces this so that the error carries the question context.
    """

    section_id: int
    question_id: int
    # A list is accepted for MULTIPLE_CHOICE questions
    answer_id: Optional[Union[int, list[int]]] = None
    other: Optional[str] = None


class Cursor(BaseModel):
    """Validator state between two records.

    Frozen: each transition returns a new cursor via ``model_copy``.

    ``remaining_question_ids`` is the not-yet-answered tail of the current
    section's chain; its head is the expected question.  An empty tail means
    the section is complete.
    """

    model_config = ConfigDict(frozen=True)

    current_section_id: Optional[int] = None
    pending_next_section_id: Optional[int] = None
    remaining_question_ids: tuple[int, ...] = ()
    # True when pending_next_section_id came from a direct pointer
    resolved_by_direct: bool = False
    visited_section_ids: tuple[int, ...] = ()
    answered: int = 0

    @property
    def started(self) -> bool:
        return self.current_section_id is not None

    @property
    def expected_question_id(self) -> Optional[int]:
        if not self.remaining_question_ids:
            return None
        return self.remaining_question_ids[0]

    @property
    def section_complete(self) -> bool:
        return self.started and not self.remaining_question_ids


class SubmissionOutcome(BaseModel):
    """Successful validation result.

    ``complete`` is True when the last visited section was fully answered
    and leads nowhere, i.e. the submission walked a whole path.  Partial
    prefixes are still valid (``complete=False``).
    """

    valid: bool = True
    answered: int
    sections: list[int]
    complete: bool
    next_section_id: Optional[int] = None
