"""survey_flow_db — PostgreSQL persistence layer for the form graph.

This package provides the ORM models, async engine factory, and the
repositories the server hands to the SDK: ``GraphRepository`` implements
``survey_flow.GraphStore`` over an ``AsyncSession``, and
``FormConfigRepository`` answers the published / editing-locked predicates.
"""

from survey_flow_db.engine import get_engine, get_session_factory
from survey_flow_db.models.form import (
    FormAnswer,
    FormCondition,
    FormConfigEntry,
    FormQuestion,
    FormSection,
)
from survey_flow_db.repository import FormConfigRepository, GraphRepository

__all__ = [
    "FormAnswer",
    "FormCondition",
    "FormConfigEntry",
    "FormQuestion",
    "FormSection",
    "get_engine",
    "get_session_factory",
    "FormConfigRepository",
    "GraphRepository",
]
