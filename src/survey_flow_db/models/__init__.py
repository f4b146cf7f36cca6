"""ORM models for survey_flow_db."""

from survey_flow_db.models.base import Base
from survey_flow_db.models.form import (
    FormAnswer,
    FormCondition,
    FormConfigEntry,
    FormQuestion,
    FormSection,
)

__all__ = [
    "Base",
    "FormAnswer",
    "FormCondition",
    "FormConfigEntry",
    "FormQuestion",
    "FormSection",
]
