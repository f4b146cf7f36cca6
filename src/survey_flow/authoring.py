"""FormAuthor — editing operations for sections, questions, and answers.

Every operation validates against the current graph, then issues a single
store primitive, so the chain and branching invariants hold after each
call:

  - questions of a section stay one chain (insert, reorder and delete are
    expressed as pointer splices or a full chain rewrite)
  - a regex only exists on FREEFIELD questions
  - a conditioning question stays required and SINGLE_CHOICE, cannot be
    deleted, and its answers cannot be deleted while a Condition uses them

``check_publishable`` runs the whole-form checks that must pass before the
form can be published.

The caller is responsible for the editing phase: nothing here checks
whether the form is published or locked.
"""

from __future__ import annotations

import logging
from typing import Any

from survey_flow.errors import ResourceNotFound, SameElement, WrongData
from survey_flow.interfaces import GraphStore
from survey_flow.models.graph import Answer, Question, QuestionType, Section

logger = logging.getLogger(__name__)

# Question fields an edit may change
_EDITABLE_QUESTION_FIELDS = {"title", "description", "type", "required", "has_other", "regex"}


class FormAuthor:
    """Authoring operations over a graph store.

    Args:
        store: the graph collaborator
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    # ==================================================================
    # Sections
    # ==================================================================

    async def add_section(self, title: str, description: str | None = None) -> Section:
        section = await self._store.create_section(title, description)
        logger.info("Section #%d created", section.id)
        return section

    async def edit_section(
        self,
        section_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> Section:
        await self._require_section(section_id)
        fields = {k: v for k, v in (("title", title), ("description", description)) if v is not None}
        return await self._store.update_section(section_id, **fields)

    async def delete_section(self, section_id: int) -> None:
        """Delete a section; edges pointing at it are removed with it."""
        await self._require_section(section_id)
        await self._store.delete_section(section_id)
        logger.info("Section #%d deleted", section_id)

    # ==================================================================
    # Questions
    # ==================================================================

    async def add_question(
        self,
        section_id: int,
        *,
        title: str,
        type: QuestionType,
        previous_id: int | None = None,
        required: bool = False,
        has_other: bool = False,
        regex: str | None = None,
        description: str | None = None,
    ) -> Question:
        """Insert a question after ``previous_id`` (None = first position).

        Raises:
            ResourceNotFound: unknown section or previous question.
            WrongData: regex on a non-FREEFIELD question.
            GraphIntegrityError: the section's chain is already broken.
        """
        await self._require_section(section_id)
        # Refuse to splice into a broken chain
        await self._store.get_ordered_questions(section_id)

        if previous_id is not None:
            if await self._store.get_question(previous_id, section_id) is None:
                raise ResourceNotFound(
                    "Previous question", section_id=section_id, question_id=previous_id
                )
        if regex and type != QuestionType.FREEFIELD:
            raise WrongData("Regex can only be set for freefield questions", section_id=section_id)

        question = await self._store.create_question(
            section_id,
            previous_question_id=previous_id,
            title=title,
            description=description,
            type=type,
            required=required,
            has_other=has_other,
            regex=regex or None,
        )
        logger.info("Question #%d added to section #%d", question.id, section_id)
        return question

    async def reorder_question(
        self, section_id: int, question_id: int, previous_id: int | None
    ) -> None:
        """Move a question right after ``previous_id`` (None = first position).

        Raises:
            SameElement: the question and the new previous are the same.
            ResourceNotFound: unknown question or previous question.
        """
        if question_id == previous_id:
            raise SameElement(
                "Question and new previous question are the same",
                section_id=section_id,
                question_id=question_id,
            )
        question = await self._require_question(section_id, question_id)
        if question.previous_question_id == previous_id:
            return

        order = [q.id for q in await self._store.get_ordered_questions(section_id)]
        if previous_id is not None and previous_id not in order:
            raise ResourceNotFound(
                f"Question #{previous_id} in section #{section_id}",
                section_id=section_id,
                question_id=previous_id,
            )

        order.remove(question_id)
        position = 0 if previous_id is None else order.index(previous_id) + 1
        order.insert(position, question_id)
        await self._store.relink_questions(section_id, order)

    async def edit_question(self, section_id: int, question_id: int, **changes: Any) -> Question:
        """Apply a partial update to a question.

        ``regex=""`` clears the regex.  Switching to FREEFIELD deletes the
        question's answers; switching away from FREEFIELD drops its regex.

        Raises:
            ResourceNotFound: unknown question.
            WrongData: unknown field, regex on a choice question, or a change
                that would break the section's branching.
        """
        unknown = set(changes) - _EDITABLE_QUESTION_FIELDS
        if unknown:
            raise WrongData(f"Unknown question fields: {sorted(unknown)}", question_id=question_id)

        question = await self._require_question(section_id, question_id)
        new_type = QuestionType(changes.get("type", question.type))

        if "regex" in changes and changes["regex"] == "":
            changes["regex"] = None
        if changes.get("regex") and new_type != QuestionType.FREEFIELD:
            raise WrongData(
                "Regex can only be set for freefield questions",
                section_id=section_id,
                question_id=question_id,
            )
        if new_type != QuestionType.FREEFIELD and question.regex:
            changes["regex"] = None

        if await self._store.get_conditions(question_id):
            if changes.get("required") is False:
                raise WrongData(
                    "This question is linked to a condition. It must be required",
                    section_id=section_id,
                    question_id=question_id,
                )
            if new_type != QuestionType.SINGLE_CHOICE:
                raise WrongData(
                    "You cannot change the type of this question because it is "
                    "used as a condition for the next section",
                    section_id=section_id,
                    question_id=question_id,
                )
            if "has_other" in changes and changes["has_other"] != question.has_other:
                raise WrongData(
                    "This question is linked to a condition. Its 'other' option "
                    "cannot change",
                    section_id=section_id,
                    question_id=question_id,
                )

        updated = await self._store.update_question(question_id, **changes)
        if new_type == QuestionType.FREEFIELD and question.type != QuestionType.FREEFIELD:
            await self._store.delete_answers(question_id)
        return updated

    async def delete_question(self, section_id: int, question_id: int) -> None:
        """Delete a question and relink the chain around it.

        Raises:
            ResourceNotFound: unknown question.
            WrongData: the question conditions the next section.
        """
        await self._require_question(section_id, question_id)
        if await self._store.get_conditions(question_id):
            raise WrongData(
                "This question is linked to a condition and cannot be deleted",
                section_id=section_id,
                question_id=question_id,
            )
        await self._store.delete_question(question_id)
        logger.info("Question #%d deleted from section #%d", question_id, section_id)

    # ==================================================================
    # Answers
    # ==================================================================

    async def add_answer(self, section_id: int, question_id: int, title: str) -> Answer:
        """Add a predefined answer to a choice question.

        Adding an answer to a conditioning question leaves it without a
        branch until the conditions are rewritten; ``check_publishable``
        reports that.
        """
        question = await self._require_question(section_id, question_id)
        if not question.is_choice:
            raise WrongData(
                "Freefield questions cannot have answers",
                section_id=section_id,
                question_id=question_id,
            )
        return await self._store.create_answer(question_id, title)

    async def edit_answer(
        self, section_id: int, question_id: int, answer_id: int, title: str
    ) -> Answer:
        await self._require_answer(section_id, question_id, answer_id)
        return await self._store.update_answer(answer_id, title)

    async def delete_answer(self, section_id: int, question_id: int, answer_id: int) -> None:
        await self._require_answer(section_id, question_id, answer_id)
        conditions = await self._store.get_conditions(question_id)
        if any(c.answer_id == answer_id for c in conditions):
            raise WrongData(
                "This answer is used as a condition for the next section",
                section_id=section_id,
                question_id=question_id,
                answer_id=answer_id,
            )
        await self._store.delete_answer(answer_id)

    # ==================================================================
    # Publish check
    # ==================================================================

    async def check_publishable(self) -> None:
        """Detect inconsistencies that forbid publishing the form.

        Raises:
            WrongData: the first inconsistency found.
            GraphIntegrityError: a section's question chain is broken.
        """
        sections = await self._store.get_sections()
        if not sections:
            raise WrongData("Form is empty")

        roots = await self._store.get_root_sections()
        if len(roots) != 1:
            raise WrongData(f"The form must have exactly one first section, found {len(roots)}")

        has_exit = False
        for section in sections:
            questions = await self._store.get_ordered_questions(section.id)
            if not questions:
                raise WrongData(f"Section #{section.id} is empty", section_id=section.id)

            conditions = await self._store.get_section_conditions(section.id)
            if await self._store.get_direct_next(section.id) is None and not conditions:
                has_exit = True

            for question in questions:
                answers = await self._store.get_answers(question.id)
                if question.is_choice and not answers:
                    raise WrongData(
                        f"Question #{question.id} in section #{section.id} is a choice "
                        f"question and must have answers",
                        section_id=section.id,
                        question_id=question.id,
                    )
                own = [c for c in conditions if c.question_id == question.id]
                if own:
                    # None stands for the "other" condition
                    expected: set[int | None] = {a.id for a in answers}
                    if question.has_other:
                        expected.add(None)
                    covered = {c.answer_id for c in own}
                    if len(own) != len(covered) or covered != expected:
                        raise WrongData(
                            f"Question #{question.id} in section #{section.id} is "
                            f"conditioned but not all answers have target sections",
                            section_id=section.id,
                            question_id=question.id,
                        )

        if not has_exit:
            raise WrongData("There is no exiting section")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_section(self, section_id: int) -> Section:
        section = await self._store.get_section(section_id)
        if section is None:
            raise ResourceNotFound(f"Section #{section_id}", section_id=section_id)
        return section

    async def _require_question(self, section_id: int, question_id: int) -> Question:
        question = await self._store.get_question(question_id, section_id)
        if question is None:
            raise ResourceNotFound(
                f"Question #{question_id} in section #{section_id}",
                section_id=section_id,
                question_id=question_id,
            )
        return question

    async def _require_answer(self, section_id: int, question_id: int, answer_id: int) -> Answer:
        await self._require_question(section_id, question_id)
        answer = await self._store.get_answer(answer_id, question_id)
        if answer is None:
            raise ResourceNotFound(
                f"Answer #{answer_id} on question #{question_id}",
                section_id=section_id,
                question_id=question_id,
                answer_id=answer_id,
            )
        return answer
