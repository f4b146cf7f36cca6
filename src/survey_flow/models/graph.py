"""Graph node models: sections, questions, answers, and conditional edges.

Nodes are addressed by integer id and never embed references to each
other.  Relations are expressed by id only:

  - Question.section_id          — owning section
  - Question.previous_question_id — singly linked order within the section
  - Answer.question_id           — owning choice question
  - Condition                    — edge from one answer (or "other") of the
                                   section's conditioning question to a
                                   target section

The direct "next section" pointer is *not* a field of ``Section``; it lives
in the store's edge table so that it can never go stale against the
Conditions written for the same section.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, model_validator


class QuestionType(str, enum.Enum):
    """Question kinds.

    SINGLE_CHOICE   — pick one answer (or "other" when has_other)
    MULTIPLE_CHOICE — pick answers from a list
    FREEFIELD       — free text, optionally constrained by a regex
    """

    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    FREEFIELD = "FREEFIELD"


class Section(BaseModel):
    """A page/group of questions."""

    id: int
    title: str
    description: Optional[str] = None


class Question(BaseModel):
    """A single prompt inside a section."""

    id: int
    section_id: int
    title: str
    description: Optional[str] = None
    type: QuestionType
    required: bool = False
    has_other: bool = False
    # Only meaningful for FREEFIELD questions
    regex: Optional[str] = None
    previous_question_id: Optional[int] = None

    @model_validator(mode="after")
    def _chk(self):
        # A free field is already "other" text; the flag is meaningless there
        if self.type == QuestionType.FREEFIELD and self.has_other:
            self.has_other = False
        if self.regex == "":
            self.regex = None
        return self

    @property
    def is_choice(self) -> bool:
        return self.type != QuestionType.FREEFIELD


class Answer(BaseModel):
    """A predefined selectable option of a choice question."""

    id: int
    question_id: int
    title: str


class Condition(BaseModel):
    """Conditional edge; ``answer_id=None`` is the synthetic "other" branch."""

    question_id: int
    answer_id: Optional[int] = None
    next_section_id: int

    @property
    def is_other(self) -> bool:
        return self.answer_id is None
