"""SectionLinker — reads and rewrites the "next section" relation.

A section continues either directly to one section or conditionally on the
answer given to its single conditioning question, never both.  The linker
validates every rewrite completely before handing it to the store, and the
store applies it atomically, so a failed rewrite leaves the graph untouched.

Usage::

    linker = SectionLinker(store)
    await linker.set_direct_next(1, 2)
    await linker.set_conditional_next(2, 20, {21: 3, 22: 4, "other": 4})
    pointer = await linker.resolve_section_next(2)   # ConditionalNext(...)
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from survey_flow.constants import OTHER_KEY
from survey_flow.errors import (
    FormIntegrityError,
    ResourceNotFound,
    SameElement,
    WrongData,
)
from survey_flow.interfaces import GraphStore
from survey_flow.models.graph import Condition, Question, QuestionType, Section
from survey_flow.models.next import (
    AnswerKey,
    ConditionalNext,
    DirectNext,
    NextPointer,
    NoNext,
)

logger = logging.getLogger(__name__)


def normalize_mapping(mapping: Mapping[Any, Any]) -> dict[AnswerKey, int]:
    """Coerce JSON-style mapping keys to answer ids.

    JSON object keys are always strings, so ``{"5": 2, "other": 3}`` becomes
    ``{5: 2, "other": 3}``.  Target values must be integers.

    Raises:
        WrongData: for a key that is neither an integer nor ``"other"``, or a
            non-integer target.
    """
    normalized: dict[AnswerKey, int] = {}
    for key, target in mapping.items():
        if key == OTHER_KEY:
            norm_key: AnswerKey = OTHER_KEY
        else:
            try:
                norm_key = int(key)
            except (TypeError, ValueError):
                raise WrongData(f"Invalid answer key {key!r} in conditions") from None
        if isinstance(target, bool) or not isinstance(target, int):
            raise WrongData(f"Target of answer {key!r} must be a section id")
        if norm_key in normalized:
            raise WrongData(f"Answer {key!r} is mapped more than once")
        normalized[norm_key] = target
    return normalized


class SectionLinker:
    """Maintains the next-section relation of a form.

    Args:
        store: the graph collaborator
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    # ==================================================================
    # Read
    # ==================================================================

    async def resolve_section_next(self, section_id: int) -> NextPointer:
        """Return the tagged next pointer of a section.

        Computed from the store on every call.

        Raises:
            ResourceNotFound: unknown section.
            FormIntegrityError: the stored relation is both direct and
                conditional, or its Conditions span several questions.
        """
        await self._require_section(section_id)
        direct = await self._store.get_direct_next(section_id)
        conditions = await self._store.get_section_conditions(section_id)

        if direct is not None and conditions:
            raise FormIntegrityError(
                f"Section #{section_id} has both a direct next section and conditions",
                section_id=section_id,
            )
        if direct is not None:
            return DirectNext(section=direct)
        if not conditions:
            return NoNext()

        question_ids = {c.question_id for c in conditions}
        if len(question_ids) > 1:
            raise FormIntegrityError(
                f"Section #{section_id} has conditions on questions {sorted(question_ids)}",
                section_id=section_id,
            )
        answers: dict[AnswerKey, int] = {}
        for c in conditions:
            answers[OTHER_KEY if c.is_other else c.answer_id] = c.next_section_id
        return ConditionalNext(question=question_ids.pop(), answers=answers)

    # ==================================================================
    # Write
    # ==================================================================

    async def set_direct_next(self, section_id: int, next_section_id: int | None) -> None:
        """Point a section at another one unconditionally (None clears it).

        Any Conditions on the section's questions are deleted in the same
        transaction.

        Raises:
            ResourceNotFound: unknown section or target.
            SameElement: target equals the section.
        """
        await self._require_section(section_id)
        if next_section_id is not None:
            if next_section_id == section_id:
                raise SameElement(
                    "You cannot point to the section itself", section_id=section_id
                )
            await self._require_section(next_section_id)

        await self._store.set_direct_next(section_id, next_section_id)
        logger.info("Section #%d next set to %s", section_id, next_section_id)

    async def set_conditional_next(
        self, section_id: int, question_id: int, mapping: Mapping[Any, Any]
    ) -> None:
        """Branch a section on the answer given to ``question_id``.

        ``mapping`` must cover every answer of the question exactly once,
        plus ``"other"`` iff the question has an "other" option.  On success
        the section's Conditions are replaced, the question is made required,
        and any direct pointer is cleared, all in one transaction.

        Raises:
            ResourceNotFound: unknown section or target section.
            WrongData: question is not a SINGLE_CHOICE question of the
                section, or the key set differs
                from the required answer set.
            SameElement: a target equals the section.
        """
        await self._require_section(section_id)
        question = await self._store.get_question(question_id, section_id)
        if question is None:
            raise WrongData(
                f"Question #{question_id} does not belong to section #{section_id}",
                section_id=section_id,
                question_id=question_id,
            )
        if question.type != QuestionType.SINGLE_CHOICE:
            raise WrongData(
                f"Question #{question_id} is not a single choice question",
                section_id=section_id,
                question_id=question_id,
            )

        answers = normalize_mapping(mapping)
        await self._check_coverage(question, answers)

        for target in answers.values():
            if target == section_id:
                raise SameElement(
                    "You cannot point to the section itself",
                    section_id=section_id,
                    question_id=question_id,
                )
        for target in set(answers.values()):
            await self._require_section(target)

        conditions = [
            Condition(
                question_id=question_id,
                answer_id=None if key == OTHER_KEY else key,
                next_section_id=target,
            )
            for key, target in answers.items()
        ]
        await self._store.set_conditional_next(section_id, question_id, conditions)
        logger.info(
            "Section #%d now branches on question #%d (%d conditions)",
            section_id,
            question_id,
            len(conditions),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _check_coverage(self, question: Question, answers: dict[AnswerKey, int]) -> None:
        """The mapping keys must equal the question's answer ids (+ "other")."""
        required: set[AnswerKey] = {a.id for a in await self._store.get_answers(question.id)}
        if question.has_other:
            required.add(OTHER_KEY)

        given = set(answers)
        if given == required:
            return
        missing = sorted(map(str, required - given))
        extra = sorted(map(str, given - required))
        parts = []
        if missing:
            parts.append(f"missing answers {missing}")
        if extra:
            parts.append(f"unknown answers {extra}")
        raise WrongData(
            f"Conditions for question #{question.id} do not match its answers: "
            + ", ".join(parts),
            section_id=question.section_id,
            question_id=question.id,
        )

    async def _require_section(self, section_id: int) -> Section:
        section = await self._store.get_section(section_id)
        if section is None:
            raise ResourceNotFound(f"Section #{section_id}", section_id=section_id)
        return section
