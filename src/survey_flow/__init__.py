"""survey_flow — form flow & submission validation SDK.

Public API:
    SubmissionValidator — replays an ordered submission against the form graph
    SectionLinker       — reads/rewrites a section's next-section relation
    FormAuthor          — section/question/answer editing + publish check
    GraphStore          — ABC of the graph persistence collaborator
    InMemoryGraphStore  — arena-backed store (tests, YAML snapshots, tooling)
    load_form           — build an InMemoryGraphStore from a YAML file
    resolve_order       — linearize a section's question chain

Models:
    Section, Question, Answer, Condition, QuestionType
    NextPointer (NoNext | DirectNext | ConditionalNext)
    SubmissionRecord, SubmissionOutcome, Cursor

Errors (all subclasses of FormError):
    ResourceNotFound, WrongData, SameElement, BadRequest,
    FormIntegrityError, GraphIntegrityError
"""

from survey_flow.authoring import FormAuthor
from survey_flow.errors import (
    BadRequest,
    FormError,
    FormIntegrityError,
    GraphIntegrityError,
    ResourceNotFound,
    SameElement,
    WrongData,
)
from survey_flow.interfaces import GraphStore
from survey_flow.linker import SectionLinker
from survey_flow.loader import build_store, load_form
from survey_flow.models import (
    Answer,
    Condition,
    ConditionalNext,
    Cursor,
    DirectNext,
    NextPointer,
    NoNext,
    Question,
    QuestionType,
    Section,
    SubmissionOutcome,
    SubmissionRecord,
)
from survey_flow.ordering import resolve_order
from survey_flow.store import InMemoryGraphStore
from survey_flow.validator import SubmissionValidator, validate_submission

__all__ = [
    # Engine
    "FormAuthor",
    "SectionLinker",
    "SubmissionValidator",
    "validate_submission",
    "resolve_order",
    # Stores
    "GraphStore",
    "InMemoryGraphStore",
    "build_store",
    "load_form",
    # Models
    "Answer",
    "Condition",
    "ConditionalNext",
    "Cursor",
    "DirectNext",
    "NextPointer",
    "NoNext",
    "Question",
    "QuestionType",
    "Section",
    "SubmissionOutcome",
    "SubmissionRecord",
    # Errors
    "BadRequest",
    "FormError",
    "FormIntegrityError",
    "GraphIntegrityError",
    "ResourceNotFound",
    "SameElement",
    "WrongData",
]
