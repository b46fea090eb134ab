"""Initial heritage schema

Revision ID: 001
Revises: None
Create Date: 2026-01-10 00:00:00.000000+00:00

What:  Creates every table of the platform: users, families and memberships,
       categories, contents and publication requests, genealogy trees,
       invitations, notifications and quizzes.
How:   Portable column types (sa.Uuid, TIMESTAMP WITH TIME ZONE, JSON) so the
       same revision runs on PostgreSQL and SQLite. Enumerations are stored
       as VARCHAR holding the member value.

Rollback: downgrade() drops every table in reverse dependency order.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=None if nullable else sa.text("CURRENT_TIMESTAMP"),
        nullable=nullable,
    )


def upgrade() -> None:
    # ── Accounts ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("ethnicity", sa.String(100), nullable=True),
        sa.Column("role", sa.String(30), nullable=False, server_default=sa.text("'ROLE_MEMBER'")),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── Families ──────────────────────────────────────────────────────────
    op.create_table(
        "families",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("ethnicity", sa.String(100), nullable=True),
        sa.Column("region", sa.String(100), nullable=True),
        sa.Column("creator_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "family_memberships",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("family_id", sa.Uuid(), sa.ForeignKey("families.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'READER'")),
        sa.Column("kinship", sa.String(100), nullable=True),
        _timestamp("joined_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "family_id", name="uq_family_memberships_user_family"),
    )
    op.create_index("ix_family_memberships_user_id", "family_memberships", ["user_id"])
    op.create_index("ix_family_memberships_family_id", "family_memberships", ["family_id"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(100), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # ── Contents ──────────────────────────────────────────────────────────
    op.create_table(
        "contents",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("family_id", sa.Uuid(), sa.ForeignKey("families.id", ondelete="CASCADE"), nullable=True),
        sa.Column("author_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("category_id", sa.Uuid(), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("content_type", sa.String(20), nullable=False),
        sa.Column("file_url", sa.String(500), nullable=True),
        sa.Column("photo_url", sa.String(500), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("region", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'DRAFT'")),
        sa.Column("proverb_text", sa.Text(), nullable=True),
        sa.Column("proverb_meaning", sa.Text(), nullable=True),
        sa.Column("proverb_origin", sa.String(255), nullable=True),
        sa.Column("riddle_text", sa.Text(), nullable=True),
        sa.Column("riddle_answer", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contents_family_id", "contents", ["family_id"])
    # Public catalogue: WHERE status = 'PUBLISHED' AND content_type = ?
    op.create_index("idx_contents_status_type", "contents", ["status", "content_type"])

    op.create_table(
        "publication_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("content_id", sa.Uuid(), sa.ForeignKey("contents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("requester_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("reviewer_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("comment", sa.Text(), nullable=True),
        _timestamp("requested_at"),
        _timestamp("processed_at", nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_publication_requests_content_id", "publication_requests", ["content_id"])

    # ── Genealogy ─────────────────────────────────────────────────────────
    op.create_table(
        "genealogy_trees",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("family_id", sa.Uuid(), sa.ForeignKey("families.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("creator_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_genealogy_trees_family_id", "genealogy_trees", ["family_id"], unique=True)

    op.create_table(
        "tree_members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tree_id", sa.Uuid(), sa.ForeignKey("genealogy_trees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("gender", sa.String(1), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("birth_place", sa.String(255), nullable=True),
        sa.Column("death_date", sa.Date(), nullable=True),
        sa.Column("death_place", sa.String(255), nullable=True),
        sa.Column("father_id", sa.Uuid(), sa.ForeignKey("tree_members.id", ondelete="SET NULL"), nullable=True),
        sa.Column("mother_id", sa.Uuid(), sa.ForeignKey("tree_members.id", ondelete="SET NULL"), nullable=True),
        sa.Column("linked_user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("biography", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.String(500), nullable=True),
        sa.Column("relationship", sa.String(100), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tree_members_tree_id", "tree_members", ["tree_id"])
    op.create_index("ix_tree_members_father_id", "tree_members", ["father_id"])
    op.create_index("ix_tree_members_mother_id", "tree_members", ["mother_id"])

    # ── Invitations ───────────────────────────────────────────────────────
    op.create_table(
        "invitations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("family_id", sa.Uuid(), sa.ForeignKey("families.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sender_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("invited_user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("invitee_name", sa.String(200), nullable=False),
        sa.Column("invitee_email", sa.String(255), nullable=False),
        sa.Column("invitee_phone", sa.String(30), nullable=True),
        sa.Column("kinship", sa.String(100), nullable=True),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        _timestamp("used_at", nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_invitations_family_id", "invitations", ["family_id"])
    op.create_index("ix_invitations_invitee_email", "invitations", ["invitee_email"])
    op.create_index("ix_invitations_code", "invitations", ["code"], unique=True)

    # ── Notifications ─────────────────────────────────────────────────────
    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("channel", sa.String(10), nullable=False, server_default=sa.text("'IN_APP'")),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("sent_at"),
        _timestamp("read_at", nullable=True),
        sa.Column("link", sa.String(500), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_notifications_recipient_read", "notifications", ["recipient_id", "read"])

    # ── Quizzes ───────────────────────────────────────────────────────────
    op.create_table(
        "quizzes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("family_id", sa.Uuid(), sa.ForeignKey("families.id", ondelete="CASCADE"), nullable=True),
        sa.Column("content_id", sa.Uuid(), sa.ForeignKey("contents.id", ondelete="SET NULL"), nullable=True),
        sa.Column("creator_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("difficulty", sa.String(20), nullable=False, server_default=sa.text("'MEDIUM'")),
        sa.Column("time_limit", sa.Integer(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_quizzes_family_id", "quizzes", ["family_id"])
    op.create_index("ix_quizzes_content_id", "quizzes", ["content_id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("quiz_id", sa.Uuid(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("question_type", sa.String(20), nullable=False, server_default=sa.text("'MCQ'")),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"])

    op.create_table(
        "propositions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("question_id", sa.Uuid(), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_propositions_question_id", "propositions", ["question_id"])

    op.create_table(
        "quiz_results",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("quiz_id", sa.Uuid(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("elapsed_time", sa.Integer(), nullable=True),
        _timestamp("taken_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_quiz_results_quiz_id", "quiz_results", ["quiz_id"])
    op.create_index("ix_quiz_results_user_id", "quiz_results", ["user_id"])


def downgrade() -> None:
    """Drop every table. Destructive: all platform data is lost."""
    for table in (
        "quiz_results",
        "propositions",
        "questions",
        "quizzes",
        "notifications",
        "invitations",
        "tree_members",
        "genealogy_trees",
        "publication_requests",
        "contents",
        "categories",
        "family_memberships",
        "families",
        "users",
    ):
        op.drop_table(table)
