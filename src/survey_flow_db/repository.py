"""Async repositories for the form graph and the form config.

``GraphRepository`` implements ``survey_flow.GraphStore`` on top of one
``AsyncSession``.  Like every repository here it calls ``flush()`` but never
``commit()``: the caller owns the transaction, so a linker rewrite made of
several statements is committed or rolled back as a whole.

Business-logic validation lives in the SDK.  The repositories return SDK
pydantic models, never ORM rows.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from survey_flow.constants import (
    CONFIG_EDITING_LOCKED,
    CONFIG_PUBLISHED,
    DEFAULT_CONFIG,
)
from survey_flow.interfaces import GraphStore
from survey_flow.models.graph import Answer, Condition, Question, QuestionType, Section

from survey_flow_db.models.form import (
    FormAnswer,
    FormCondition,
    FormConfigEntry,
    FormQuestion,
    FormSection,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Row -> model conversion
# ------------------------------------------------------------------

def _to_section(row: FormSection) -> Section:
    return Section(id=row.id, title=row.title, description=row.description)


def _to_question(row: FormQuestion) -> Question:
    return Question(
        id=row.id,
        section_id=row.section_id,
        title=row.title,
        description=row.description,
        type=row.type,
        required=row.required,
        has_other=row.has_other,
        regex=row.regex,
        previous_question_id=row.previous_question_id,
    )


def _to_answer(row: FormAnswer) -> Answer:
    return Answer(id=row.id, question_id=row.question_id, title=row.title)


def _to_condition(row: FormCondition) -> Condition:
    return Condition(
        question_id=row.question_id,
        answer_id=row.answer_id,
        next_section_id=row.next_section_id,
    )


class GraphRepository(GraphStore):
    """``GraphStore`` backed by PostgreSQL.

    Args:
        db: the request-scoped session; the caller commits
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    async def get_section(self, section_id: int) -> Section | None:
        row = await self._db.get(FormSection, section_id)
        return _to_section(row) if row is not None else None

    async def get_sections(self) -> list[Section]:
        result = await self._db.execute(select(FormSection).order_by(FormSection.id))
        return [_to_section(r) for r in result.scalars().all()]

    async def get_root_sections(self) -> list[Section]:
        """Sections that no direct pointer and no condition targets."""
        # Aliased so the subquery is not correlated with the outer sections
        source = aliased(FormSection)
        direct_targets = select(source.next_section_id).where(
            source.next_section_id.is_not(None)
        )
        condition_targets = select(FormCondition.next_section_id)
        stmt = (
            select(FormSection)
            .where(
                FormSection.id.not_in(direct_targets),
                FormSection.id.not_in(condition_targets),
            )
            .order_by(FormSection.id)
        )
        result = await self._db.execute(stmt)
        return [_to_section(r) for r in result.scalars().all()]

    async def get_direct_next(self, section_id: int) -> int | None:
        stmt = select(FormSection.next_section_id).where(FormSection.id == section_id)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def get_question(self, question_id: int, section_id: int) -> Question | None:
        stmt = select(FormQuestion).where(
            FormQuestion.id == question_id,
            FormQuestion.section_id == section_id,
        )
        result = await self._db.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_question(row) if row is not None else None

    async def get_questions(self, section_id: int) -> list[Question]:
        stmt = select(FormQuestion).where(FormQuestion.section_id == section_id)
        result = await self._db.execute(stmt)
        return [_to_question(r) for r in result.scalars().all()]

    # ------------------------------------------------------------------
    # Answers & conditions
    # ------------------------------------------------------------------

    async def get_answer(self, answer_id: int, question_id: int) -> Answer | None:
        stmt = select(FormAnswer).where(
            FormAnswer.id == answer_id,
            FormAnswer.question_id == question_id,
        )
        result = await self._db.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_answer(row) if row is not None else None

    async def get_answers(self, question_id: int) -> list[Answer]:
        stmt = (
            select(FormAnswer)
            .where(FormAnswer.question_id == question_id)
            .order_by(FormAnswer.id)
        )
        result = await self._db.execute(stmt)
        return [_to_answer(r) for r in result.scalars().all()]

    async def get_conditions(self, question_id: int) -> list[Condition]:
        stmt = select(FormCondition).where(FormCondition.question_id == question_id)
        result = await self._db.execute(stmt)
        return [_to_condition(r) for r in result.scalars().all()]

    async def get_section_conditions(self, section_id: int) -> list[Condition]:
        stmt = (
            select(FormCondition)
            .join(FormQuestion, FormQuestion.id == FormCondition.question_id)
            .where(FormQuestion.section_id == section_id)
        )
        result = await self._db.execute(stmt)
        return [_to_condition(r) for r in result.scalars().all()]

    # ------------------------------------------------------------------
    # Next-section mutations (one caller transaction)
    # ------------------------------------------------------------------

    def _delete_section_conditions(self, section_id: int):
        section_questions = select(FormQuestion.id).where(FormQuestion.section_id == section_id)
        return delete(FormCondition).where(FormCondition.question_id.in_(section_questions))

    async def set_direct_next(self, section_id: int, next_section_id: int | None) -> None:
        await self._db.execute(self._delete_section_conditions(section_id))
        await self._db.execute(
            update(FormSection)
            .where(FormSection.id == section_id)
            .values(next_section_id=next_section_id)
        )
        await self._db.flush()

    async def set_conditional_next(
        self, section_id: int, question_id: int, conditions: list[Condition]
    ) -> None:
        await self._db.execute(self._delete_section_conditions(section_id))
        await self._db.execute(
            update(FormQuestion).where(FormQuestion.id == question_id).values(required=True)
        )
        await self._db.execute(
            update(FormSection).where(FormSection.id == section_id).values(next_section_id=None)
        )
        self._db.add_all(
            FormCondition(
                question_id=c.question_id,
                answer_id=c.answer_id,
                next_section_id=c.next_section_id,
            )
            for c in conditions
        )
        await self._db.flush()

    # ------------------------------------------------------------------
    # Authoring primitives
    # ------------------------------------------------------------------

    async def create_section(self, title: str, description: str | None = None) -> Section:
        row = FormSection(title=title, description=description)
        self._db.add(row)
        await self._db.flush()  # Populate the id
        return _to_section(row)

    async def update_section(self, section_id: int, **fields: Any) -> Section:
        row = await self._db.get(FormSection, section_id)
        for key, value in fields.items():
            setattr(row, key, value)
        await self._db.flush()
        return _to_section(row)

    async def delete_section(self, section_id: int) -> None:
        # Questions, answers, conditions into or out of the section cascade;
        # direct pointers to it are set to NULL by the FK.
        await self._db.execute(delete(FormSection).where(FormSection.id == section_id))
        await self._db.flush()

    async def _successor_row(self, section_id: int, previous_id: int | None) -> FormQuestion | None:
        stmt = select(FormQuestion).where(FormQuestion.section_id == section_id)
        if previous_id is None:
            stmt = stmt.where(FormQuestion.previous_question_id.is_(None))
        else:
            stmt = stmt.where(FormQuestion.previous_question_id == previous_id)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_question(
        self, section_id: int, *, previous_question_id: int | None, **fields: Any
    ) -> Question:
        successor = await self._successor_row(section_id, previous_question_id)
        row = FormQuestion(
            section_id=section_id,
            previous_question_id=previous_question_id,
            **fields,
        )
        if row.type == QuestionType.FREEFIELD:
            row.has_other = False
        self._db.add(row)
        await self._db.flush()
        if successor is not None:
            successor.previous_question_id = row.id
            await self._db.flush()
        return _to_question(row)

    async def update_question(self, question_id: int, **fields: Any) -> Question:
        row = await self._db.get(FormQuestion, question_id)
        for key, value in fields.items():
            setattr(row, key, value)
        if row.type == QuestionType.FREEFIELD:
            row.has_other = False
        await self._db.flush()
        return _to_question(row)

    async def delete_question(self, question_id: int) -> None:
        row = await self._db.get(FormQuestion, question_id)
        successor = await self._successor_row(row.section_id, row.id)
        if successor is not None:
            successor.previous_question_id = row.previous_question_id
            await self._db.flush()
        await self._db.delete(row)
        await self._db.flush()

    async def relink_questions(self, section_id: int, ordered_ids: list[int]) -> None:
        stmt = select(FormQuestion).where(FormQuestion.section_id == section_id)
        result = await self._db.execute(stmt)
        rows = {r.id: r for r in result.scalars().all()}
        previous: int | None = None
        for qid in ordered_ids:
            rows[qid].previous_question_id = previous
            previous = qid
        await self._db.flush()

    async def create_answer(self, question_id: int, title: str) -> Answer:
        row = FormAnswer(question_id=question_id, title=title)
        self._db.add(row)
        await self._db.flush()
        return _to_answer(row)

    async def update_answer(self, answer_id: int, title: str) -> Answer:
        row = await self._db.get(FormAnswer, answer_id)
        row.title = title
        await self._db.flush()
        return _to_answer(row)

    async def delete_answer(self, answer_id: int) -> None:
        await self._db.execute(delete(FormAnswer).where(FormAnswer.id == answer_id))
        await self._db.flush()

    async def delete_answers(self, question_id: int) -> None:
        await self._db.execute(delete(FormAnswer).where(FormAnswer.question_id == question_id))
        await self._db.flush()


class FormConfigRepository:
    """Async read/write operations on the ``form_config`` table.

    Answers the two boundary predicates the server checks before letting a
    request reach the SDK: ``is_published`` and ``is_editing_locked``.
    """

    async def get_all(self, db: AsyncSession) -> dict[str, str]:
        """Stored settings, with defaults filled in for missing keys."""
        result = await db.execute(select(FormConfigEntry))
        stored = {row.key: row.value for row in result.scalars().all()}
        return {**DEFAULT_CONFIG, **stored}

    async def get_value(self, db: AsyncSession, key: str) -> str | None:
        row = await db.get(FormConfigEntry, key)
        if row is None:
            return DEFAULT_CONFIG.get(key)
        return row.value

    async def set_value(self, db: AsyncSession, key: str, value: str) -> None:
        row = await db.get(FormConfigEntry, key)
        if row is None:
            db.add(FormConfigEntry(key=key, value=value))
        else:
            row.value = value
        await db.flush()
        logger.info("Form config %s set to %s", key, value)

    async def is_published(self, db: AsyncSession) -> bool:
        return await self.get_value(db, CONFIG_PUBLISHED) == "true"

    async def is_editing_locked(self, db: AsyncSession) -> bool:
        return await self.get_value(db, CONFIG_EDITING_LOCKED) == "true"
