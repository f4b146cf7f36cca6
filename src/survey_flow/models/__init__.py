"""Public model re-exports for survey_flow.

Consumers should import from ``survey_flow.models`` rather than reaching
into sub-modules directly.
"""

# --- Graph nodes ---
from survey_flow.models.graph import (
    Answer,
    Condition,
    Question,
    QuestionType,
    Section,
)

# --- Next pointer ---
from survey_flow.models.next import (
    AnswerKey,
    ConditionalNext,
    DirectNext,
    NextPointer,
    NoNext,
)

# --- Submission ---
from survey_flow.models.submission import (
    Cursor,
    SubmissionOutcome,
    SubmissionRecord,
)

__all__ = [
    # Graph
    "Answer",
    "Condition",
    "Question",
    "QuestionType",
    "Section",
    # Next
    "AnswerKey",
    "ConditionalNext",
    "DirectNext",
    "NextPointer",
    "NoNext",
    # Submission
    "Cursor",
    "SubmissionOutcome",
    "SubmissionRecord",
]
