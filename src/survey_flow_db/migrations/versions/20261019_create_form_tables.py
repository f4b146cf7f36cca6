"""Create the form graph tables.

Creates ``sections``, ``questions``, ``answers``, ``conditions`` and
``form_config``, and seeds the two config keys with ``false``.

Revision ID: 20261019_form_tables
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import TIMESTAMP

# revision identifiers, used by Alembic.
revision = "20261019_form_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Sections ---
    op.create_table(
        "sections",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "next_section_id",
            sa.Integer,
            sa.ForeignKey("sections.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint(
            "next_section_id IS NULL OR next_section_id <> id",
            name="ck_section_no_self_loop",
        ),
    )
    op.create_index("ix_sections_next_section_id", "sections", ["next_section_id"])

    # --- Questions ---
    op.create_table(
        "questions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "section_id",
            sa.Integer,
            sa.ForeignKey("sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("required", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("has_other", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("regex", sa.Text, nullable=True),
        sa.Column(
            "previous_question_id",
            sa.Integer,
            sa.ForeignKey("questions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint(
            "type IN ('SINGLE_CHOICE', 'MULTIPLE_CHOICE', 'FREEFIELD')",
            name="ck_question_type",
        ),
        sa.CheckConstraint(
            "regex IS NULL OR type = 'FREEFIELD'",
            name="ck_question_regex_freefield",
        ),
        sa.CheckConstraint(
            "previous_question_id IS NULL OR previous_question_id <> id",
            name="ck_question_no_self_previous",
        ),
    )
    op.create_index("ix_questions_section_id", "questions", ["section_id"])
    op.create_index("ix_question_previous", "questions", ["section_id", "previous_question_id"])

    # --- Answers ---
    op.create_table(
        "answers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "question_id",
            sa.Integer,
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text, nullable=False),
    )
    op.create_index("ix_answers_question_id", "answers", ["question_id"])

    # --- Conditions (answer_id NULL = "other") ---
    op.create_table(
        "conditions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "question_id",
            sa.Integer,
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "answer_id",
            sa.Integer,
            sa.ForeignKey("answers.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "next_section_id",
            sa.Integer,
            sa.ForeignKey("sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("question_id", "answer_id", name="uq_condition_answer"),
    )
    op.create_index("ix_conditions_question_id", "conditions", ["question_id"])
    op.create_index(
        "uq_condition_other",
        "conditions",
        ["question_id"],
        unique=True,
        postgresql_where=sa.text("answer_id IS NULL"),
    )

    # --- Form config ---
    form_config = op.create_table(
        "form_config",
        sa.Column("key", sa.Text, primary_key=True),
        sa.Column("value", sa.Text, nullable=False),
    )
    op.bulk_insert(
        form_config,
        [
            {"key": "published", "value": "false"},
            {"key": "editing_locked", "value": "false"},
        ],
    )


def downgrade() -> None:
    op.drop_table("form_config")
    op.drop_table("conditions")
    op.drop_table("answers")
    op.drop_table("questions")
    op.drop_table("sections")
