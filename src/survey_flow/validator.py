"""SubmissionValidator — checks that a submission is one legal walk of the form.

A submission is an ordered list of :class:`SubmissionRecord`.  The validator
replays it against the graph as a finite-state machine: an immutable
:class:`Cursor` is threaded through the records, each record producing the
next cursor.  Nothing is persisted between calls and the store is only
read, so validating the same submission twice gives the same answer.

Transition per record:

  1. Section entry  — the first record must open a root section; a later
                      record may only change section once the current one
                      is complete, and only to the resolved next section.
  2. Question order — the record must answer the chain successor of the
                      previous record (the head on entry).
  3. Exclusivity    — exactly one of ``answer_id`` / ``other``.
  4. Answer         — predefined answers must belong to the question (a list
                      on MULTIPLE_CHOICE, a single id otherwise); the
                      conditioning question resolves the pending next
                      section.
  5. Free text      — ``other`` must fully match the question's regex.
  6. Advance        — pop the answered question off the remaining chain.

The first violation raises its typed error; there is no partial result.
Prefixes are valid: the walk does not have to reach a terminal section.

Default branch: when a predefined answer of the conditioning question has no
Condition of its own, the "other" Condition is used if the question has one.
Well-formed graphs never reach this (the linker requires full coverage), so
the fallback is logged as a warning.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from survey_flow.constants import TRACE_TRANSITIONS
from survey_flow.errors import (
    BadRequest,
    FormIntegrityError,
    ResourceNotFound,
)
from survey_flow.interfaces import GraphStore
from survey_flow.models.graph import Condition, Question, QuestionType
from survey_flow.models.submission import Cursor, SubmissionOutcome, SubmissionRecord

logger = logging.getLogger(__name__)


class SubmissionValidator:
    """Replays submissions against a graph store.

    Args:
        store: the graph collaborator (read-only use)
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    # ==================================================================
    # Public API
    # ==================================================================

    async def validate_submission(
        self, records: Sequence[SubmissionRecord]
    ) -> SubmissionOutcome:
        """Validate an ordered submission.

        Returns:
            A :class:`SubmissionOutcome` describing the accepted walk.

        Raises:
            ResourceNotFound: unknown section/question/answer, or a
                conditioning answer with no branch.
            BadRequest: ordering, exclusivity, or regex violation.
            FormIntegrityError: the graph resolves a branch twice, or a
                section's question chain is broken.
        """
        cursor = Cursor()
        for record in records:
            cursor = await self.step(cursor, record)
        return self._outcome(cursor)

    async def step(self, cursor: Cursor, record: SubmissionRecord) -> Cursor:
        """Consume one record and return the next cursor."""
        cursor = await self._enter_section(cursor, record)
        question = await self._check_question(cursor, record)
        self._check_exclusive(record, question)

        if record.answer_id is not None:
            cursor = await self._apply_answer(cursor, record, question)
        else:
            cursor = await self._apply_other(cursor, record, question)

        cursor = cursor.model_copy(
            update={
                "remaining_question_ids": cursor.remaining_question_ids[1:],
                "answered": cursor.answered + 1,
            }
        )
        if TRACE_TRANSITIONS:
            logger.debug("Record %s -> %s", record, cursor)
        return cursor

    # ==================================================================
    # Transition steps
    # ==================================================================

    async def _enter_section(self, cursor: Cursor, record: SubmissionRecord) -> Cursor:
        """Step 1: validate a section change and reset the cursor on entry."""
        section_id = record.section_id

        if not cursor.started:
            section = await self._store.get_section(section_id)
            if section is None:
                raise ResourceNotFound(f"Section #{section_id}", section_id=section_id)
            roots = {s.id for s in await self._store.get_root_sections()}
            if section_id not in roots:
                raise BadRequest(
                    f"Section #{section_id} is not first", section_id=section_id
                )
            return await self._enter(cursor, section_id)

        if section_id == cursor.current_section_id:
            return cursor

        if not cursor.section_complete or cursor.pending_next_section_id != section_id:
            raise BadRequest(
                f"Bad section #{section_id} positioning", section_id=section_id
            )
        return await self._enter(cursor, section_id)

    async def _enter(self, cursor: Cursor, section_id: int) -> Cursor:
        ordered = await self._store.get_ordered_questions(section_id)
        direct = await self._store.get_direct_next(section_id)
        return cursor.model_copy(
            update={
                "current_section_id": section_id,
                "pending_next_section_id": direct,
                "remaining_question_ids": tuple(q.id for q in ordered),
                "resolved_by_direct": direct is not None,
                "visited_section_ids": cursor.visited_section_ids + (section_id,),
            }
        )

    async def _check_question(self, cursor: Cursor, record: SubmissionRecord) -> Question:
        """Step 2: the record must answer the expected question."""
        question = await self._store.get_question(record.question_id, record.section_id)
        if question is None:
            raise ResourceNotFound(
                f"Question #{record.question_id} on section #{record.section_id}",
                section_id=record.section_id,
                question_id=record.question_id,
            )
        if question.id != cursor.expected_question_id:
            raise BadRequest(
                f"Bad question #{question.id} positioning",
                section_id=record.section_id,
                question_id=question.id,
            )
        return question

    @staticmethod
    def _check_exclusive(record: SubmissionRecord, question: Question) -> None:
        """Step 3: exactly one of answer_id / other."""
        has_answer = record.answer_id is not None
        # An empty string carries no answer
        has_other = bool(record.other)
        if has_answer == has_other:
            raise BadRequest(
                f"One of 'answer_id' and 'other' is required and not both "
                f"in question #{question.id}",
                section_id=question.section_id,
                question_id=question.id,
            )

    async def _apply_answer(
        self, cursor: Cursor, record: SubmissionRecord, question: Question
    ) -> Cursor:
        """Step 4: predefined answer(s), branch resolution."""
        answer_ids = record.answer_id if isinstance(record.answer_id, list) else [record.answer_id]
        if question.type == QuestionType.MULTIPLE_CHOICE and not isinstance(record.answer_id, list):
            raise BadRequest(
                f"Answer on question #{question.id} must be an array",
                section_id=question.section_id,
                question_id=question.id,
            )
        if isinstance(record.answer_id, list):
            if question.type != QuestionType.MULTIPLE_CHOICE:
                raise BadRequest(
                    f"Question #{question.id} accepts a single answer",
                    section_id=question.section_id,
                    question_id=question.id,
                )
            if not answer_ids or len(set(answer_ids)) != len(answer_ids):
                raise BadRequest(
                    f"Answers on question #{question.id} must be distinct and non-empty",
                    section_id=question.section_id,
                    question_id=question.id,
                )

        for answer_id in answer_ids:
            answer = await self._store.get_answer(answer_id, question.id)
            if answer is None:
                raise ResourceNotFound(
                    f"Answer #{answer_id} on question #{question.id}",
                    section_id=question.section_id,
                    question_id=question.id,
                    answer_id=answer_id,
                )

        conditions = await self._store.get_conditions(question.id)
        if not conditions:
            return cursor
        return self._resolve_branch(cursor, question, conditions, answer_ids[0])

    async def _apply_other(
        self, cursor: Cursor, record: SubmissionRecord, question: Question
    ) -> Cursor:
        """Step 5: free text, regex check, "other" branch resolution."""
        text = record.other
        if question.is_choice and not question.has_other:
            raise BadRequest(
                f"Question #{question.id} does not accept a free answer",
                section_id=question.section_id,
                question_id=question.id,
            )
        if question.regex:
            try:
                matched = re.fullmatch(question.regex, text) is not None
            except re.error as exc:
                raise FormIntegrityError(
                    f"Question #{question.id} has an invalid regular expression: {exc}",
                    section_id=question.section_id,
                    question_id=question.id,
                ) from exc
            if not matched:
                raise BadRequest(
                    f"Answer {text!r} for question #{question.id} does not match "
                    f"the regular expression",
                    section_id=question.section_id,
                    question_id=question.id,
                )

        conditions = await self._store.get_conditions(question.id)
        if not conditions:
            return cursor
        return self._resolve_branch(cursor, question, conditions, None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_branch(
        cursor: Cursor,
        question: Question,
        conditions: list[Condition],
        answer_id: int | None,
    ) -> Cursor:
        """Set the pending next section from the conditioning question.

        ``answer_id=None`` selects the "other" branch.
        """
        if cursor.pending_next_section_id is not None:
            source = "direct pointer" if cursor.resolved_by_direct else "another condition"
            raise FormIntegrityError(
                f"Section #{question.section_id} next section is already resolved "
                f"by a {source}",
                section_id=question.section_id,
                question_id=question.id,
            )

        other = next((c for c in conditions if c.is_other), None)
        match = other if answer_id is None else next(
            (c for c in conditions if c.answer_id == answer_id), None
        )
        if match is None and answer_id is not None and other is not None:
            logger.warning(
                "Answer #%d of question #%d has no condition; using the 'other' branch",
                answer_id,
                question.id,
            )
            match = other
        if match is None:
            raise ResourceNotFound(
                "answer",
                section_id=question.section_id,
                question_id=question.id,
                answer_id=answer_id,
            )
        return cursor.model_copy(update={"pending_next_section_id": match.next_section_id})

    @staticmethod
    def _outcome(cursor: Cursor) -> SubmissionOutcome:
        return SubmissionOutcome(
            answered=cursor.answered,
            sections=list(cursor.visited_section_ids),
            complete=cursor.section_complete and cursor.pending_next_section_id is None,
            next_section_id=cursor.pending_next_section_id,
        )


async def validate_submission(
    store: GraphStore, records: Sequence[SubmissionRecord]
) -> SubmissionOutcome:
    """Module-level shortcut for ``SubmissionValidator(store).validate_submission``."""
    return await SubmissionValidator(store).validate_submission(records)
