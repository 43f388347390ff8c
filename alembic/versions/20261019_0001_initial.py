"""initial schema

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


scoring_enum = sa.Enum("COUNT_CORRECT", "WEIGHTED", name="scoringtype")


def upgrade() -> None:
    op.create_table(
        "contests",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("creator_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("scoring_type", scoring_enum, nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("leaderboard_frozen_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("price >= 0", name="ck_contests_price_non_negative"),
        sa.CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR start_date < end_date",
            name="ck_contests_start_before_end",
        ),
    )
    op.create_index("ix_contests_creator_id", "contests", ["creator_id"], unique=False)
    op.create_index("ix_contests_start_date", "contests", ["start_date"], unique=False)
    op.create_index("ix_contests_end_date", "contests", ["end_date"], unique=False)

    op.create_table(
        "questions",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("contest_id", sa.UUID(), sa.ForeignKey("contests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("correct_answer", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("points", sa.Float(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
    )
    op.create_index("ix_questions_contest_id", "questions", ["contest_id"], unique=False)

    op.create_table(
        "question_options",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("question_id", sa.UUID(), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("option_index", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.UniqueConstraint("question_id", "option_index", name="uq_question_options_question_idoption_index"),
    )
    op.create_index("ix_question_options_question_id", "question_options", ["question_id"], unique=False)

    op.create_table(
        "attempts",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("contest_id", sa.UUID(), sa.ForeignKey("contests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("participant_id", sa.String(length=64), nullable=False),
        sa.Column("participant_email", sa.String(length=320), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("correct_count", sa.Integer(), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("answers_json", sa.JSON(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("contest_id", "participant_id", name="uq_attempts_contest_idparticipant_id"),
    )
    op.create_index("ix_attempts_contest_id", "attempts", ["contest_id"], unique=False)
    op.create_index("ix_attempts_participant_id", "attempts", ["participant_id"], unique=False)
    op.create_index("ix_attempts_completed_at", "attempts", ["completed_at"], unique=False)

    op.create_table(
        "leaderboard_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("contest_id", sa.UUID(), sa.ForeignKey("contests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("participant_id", sa.String(length=64), nullable=False),
        sa.Column("participant_email", sa.String(length=320), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("contest_id", "participant_id", name="uq_leaderboard_entries_contest_idparticipant_id"),
        sa.UniqueConstraint("contest_id", "rank", name="uq_leaderboard_entries_contest_idrank"),
    )
    op.create_index("ix_leaderboard_entries_contest_id", "leaderboard_entries", ["contest_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("entity_type", sa.String(length=120), nullable=False),
        sa.Column("entity_id", sa.String(length=120), nullable=False),
        sa.Column("payload_json", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_entity_id", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_leaderboard_entries_contest_id", table_name="leaderboard_entries")
    op.drop_table("leaderboard_entries")
    op.drop_index("ix_attempts_completed_at", table_name="attempts")
    op.drop_index("ix_attempts_participant_id", table_name="attempts")
    op.drop_index("ix_attempts_contest_id", table_name="attempts")
    op.drop_table("attempts")
    op.drop_index("ix_question_options_question_id", table_name="question_options")
    op.drop_table("question_options")
    op.drop_index("ix_questions_contest_id", table_name="questions")
    op.drop_table("questions")
    op.drop_index("ix_contests_end_date", table_name="contests")
    op.drop_index("ix_contests_start_date", table_name="contests")
    op.drop_index("ix_contests_creator_id", table_name="contests")
    op.drop_table("contests")
    scoring_enum.drop(op.get_bind(), checkfirst=True)
