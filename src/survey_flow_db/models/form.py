"""ORM models for the form graph — sections, questions, answers, conditions.

Relations are plain foreign keys with database-side cascades; no ORM
``relationship()`` is declared because the repository always queries by id
and converts rows into the SDK's pydantic models before returning them.

Edges:
  - sections.next_section_id      — direct next pointer (SET NULL on delete)
  - questions.previous_question_id — chain order inside a section
  - conditions                    — (question_id, answer_id | NULL, next_section_id);
                                    answer_id NULL is the "other" branch
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from survey_flow.models.graph import QuestionType
from survey_flow_db.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormSection(Base):
    """One row per section."""

    __tablename__ = "sections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Direct next pointer (mutually exclusive with conditions) ---
    next_section_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("sections.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        # A section never continues to itself
        CheckConstraint(
            "next_section_id IS NULL OR next_section_id <> id",
            name="ck_section_no_self_loop",
        ),
    )

    def __repr__(self) -> str:
        return f"<FormSection(id={self.id}, next={self.next_section_id})>"


class FormQuestion(Base):
    """One row per question; ``previous_question_id`` links the section order."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    section_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Store as the string value, not the Python name
    type: Mapped[QuestionType] = mapped_column(String(20), nullable=False)
    required: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    has_other: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    regex: Mapped[str | None] = mapped_column(Text, nullable=True)
    previous_question_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("questions.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "type IN ('SINGLE_CHOICE', 'MULTIPLE_CHOICE', 'FREEFIELD')",
            name="ck_question_type",
        ),
        # Regex only constrains free text
        CheckConstraint(
            "regex IS NULL OR type = 'FREEFIELD'",
            name="ck_question_regex_freefield",
        ),
        CheckConstraint(
            "previous_question_id IS NULL OR previous_question_id <> id",
            name="ck_question_no_self_previous",
        ),
        Index("ix_question_previous", "section_id", "previous_question_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<FormQuestion(id={self.id}, section={self.section_id}, "
            f"type={self.type!r}, previous={self.previous_question_id})>"
        )


class FormAnswer(Base):
    """Predefined answer of a choice question."""

    __tablename__ = "answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)


class FormCondition(Base):
    """Conditional edge from an answer (NULL = "other") to a section."""

    __tablename__ = "conditions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Deleting a used answer is refused by the SDK; the FK only guards drift.
    answer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("answers.id", ondelete="CASCADE"), nullable=True
    )
    next_section_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("question_id", "answer_id", name="uq_condition_answer"),
        # NULLs are distinct in a plain unique constraint; one "other" per question
        Index(
            "uq_condition_other",
            "question_id",
            unique=True,
            postgresql_where=text("answer_id IS NULL"),
        ),
    )


class FormConfigEntry(Base):
    """Key/value form settings (``published``, ``editing_locked``)."""

    __tablename__ = "form_config"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
