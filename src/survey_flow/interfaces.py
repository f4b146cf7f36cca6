"""Abstract graph store — the persistence collaborator of the engine.

The linker, the validator, and the form author only ever talk to a
``GraphStore``.  Two implementations ship with the project:

  - ``survey_flow.store.InMemoryGraphStore`` — arena of nodes plus edge
    tables; used for tests, YAML-loaded snapshots, and tooling
  - ``survey_flow_db.repository.GraphRepository`` — SQLAlchemy over an
    ``AsyncSession``; the caller owns the transaction

Lookups return ``None`` (or an empty list) for unknown ids; raising the
typed error is the engine's job, since only the engine knows which context
to attach.

Mutations that rewrite the next-section relation (``set_direct_next`` /
``set_conditional_next``) must be atomic: a reader never observes a section
with both a direct pointer and Conditions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from survey_flow.models.graph import Answer, Condition, Question, Section
from survey_flow.ordering import resolve_order


class GraphStore(ABC):
    """Graph query / mutation contract."""

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_section(self, section_id: int) -> Section | None: ...

    @abstractmethod
    async def get_sections(self) -> list[Section]:
        """All sections ordered by id."""
        ...

    @abstractmethod
    async def get_root_sections(self) -> list[Section]:
        """Sections with no incoming direct or conditional edge."""
        ...

    @abstractmethod
    async def get_direct_next(self, section_id: int) -> int | None: ...

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_question(self, question_id: int, section_id: int) -> Question | None:
        """Return the question only if it belongs to ``section_id``."""
        ...

    @abstractmethod
    async def get_questions(self, section_id: int) -> list[Question]:
        """All questions of a section, unordered."""
        ...

    async def get_ordered_questions(self, section_id: int) -> list[Question]:
        """Questions of a section in chain order.

        Raises:
            GraphIntegrityError: if the chain is malformed.
        """
        questions = await self.get_questions(section_id)
        by_id = {q.id: q for q in questions}
        return [by_id[qid] for qid in resolve_order(questions, section_id)]

    # ------------------------------------------------------------------
    # Answers & conditions
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_answer(self, answer_id: int, question_id: int) -> Answer | None:
        """Return the answer only if it belongs to ``question_id``."""
        ...

    @abstractmethod
    async def get_answers(self, question_id: int) -> list[Answer]: ...

    @abstractmethod
    async def get_conditions(self, question_id: int) -> list[Condition]: ...

    @abstractmethod
    async def get_section_conditions(self, section_id: int) -> list[Condition]:
        """Conditions carried by any question of the section."""
        ...

    # ------------------------------------------------------------------
    # Next-section mutations (atomic)
    # ------------------------------------------------------------------

    @abstractmethod
    async def set_direct_next(self, section_id: int, next_section_id: int | None) -> None:
        """Delete the section's Conditions and set (or clear) the direct pointer."""
        ...

    @abstractmethod
    async def set_conditional_next(
        self, section_id: int, question_id: int, conditions: list[Condition]
    ) -> None:
        """Replace the section's Conditions, force the question required,
        and clear the direct pointer."""
        ...

    # ------------------------------------------------------------------
    # Authoring primitives
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_section(self, title: str, description: str | None = None) -> Section: ...

    @abstractmethod
    async def update_section(self, section_id: int, **fields: Any) -> Section: ...

    @abstractmethod
    async def delete_section(self, section_id: int) -> None:
        """Remove the section, its questions, and every edge pointing to it."""
        ...

    @abstractmethod
    async def create_question(
        self, section_id: int, *, previous_question_id: int | None, **fields: Any
    ) -> Question:
        """Insert a question right after ``previous_question_id`` (None = head),
        relinking its new successor."""
        ...

    @abstractmethod
    async def update_question(self, question_id: int, **fields: Any) -> Question: ...

    @abstractmethod
    async def delete_question(self, question_id: int) -> None:
        """Remove a question and its answers, relinking its successor."""
        ...

    @abstractmethod
    async def relink_questions(self, section_id: int, ordered_ids: list[int]) -> None:
        """Rewrite every previous pointer of the section to follow ``ordered_ids``."""
        ...

    @abstractmethod
    async def create_answer(self, question_id: int, title: str) -> Answer: ...

    @abstractmethod
    async def update_answer(self, answer_id: int, title: str) -> Answer: ...

    @abstractmethod
    async def delete_answer(self, answer_id: int) -> None: ...

    @abstractmethod
    async def delete_answers(self, question_id: int) -> None:
        """Remove every answer of a question."""
        ...
