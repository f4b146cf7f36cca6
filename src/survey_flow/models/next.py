"""The "what comes after this section" pointer.

A section's next relation is exactly one of:

  - NoNext          — the section ends the form
  - DirectNext      — unconditional jump to one section
  - ConditionalNext — jump chosen by the answer given to the section's
                      conditioning question

The discriminated ``NextPointer`` union uses ``type`` as its discriminator,
matching the body accepted by ``PUT /sections/{id}/next``.  Pointers are
computed on demand by the section linker and never cached on a section.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

# Mapping key: a real answer id, or the literal "other"
AnswerKey = Union[int, Literal["other"]]


class NoNext(BaseModel):
    """The section is terminal."""

    type: Literal["NONE"] = "NONE"


class DirectNext(BaseModel):
    """Unconditional next section."""

    type: Literal["SECTION"] = "SECTION"
    section: int


class ConditionalNext(BaseModel):
    """Next section keyed by the answer given to ``question``."""

    type: Literal["CONDITION"] = "CONDITION"
    question: int
    answers: dict[AnswerKey, int]


NextPointer = Annotated[
    Union[NoNext, DirectNext, ConditionalNext],
    Field(discriminator="type"),
]
