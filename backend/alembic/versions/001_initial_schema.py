"""Initial Polygram schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("profile_picture", sa.String(), nullable=True),
        sa.Column("otp_code", sa.String(), nullable=False),
        sa.Column("otp_generated_at", sa.DateTime(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("followed_topics", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "topics",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_topics_name", "topics", ["name"], unique=True)

    op.create_table(
        "questions",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("author_id", sa.String(24), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("options", postgresql.JSONB(), nullable=False),
        sa.Column("topics", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_author_id", "questions", ["author_id"], unique=False)

    op.create_table(
        "question_topics",
        sa.Column("question_id", sa.String(24), nullable=False),
        sa.Column("topic_name", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"]),
        sa.PrimaryKeyConstraint("question_id", "topic_name"),
    )
    op.create_index("ix_question_topics_topic_name", "question_topics", ["topic_name"], unique=False)

    op.create_table(
        "opinions",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("question_id", sa.String(24), nullable=False),
        sa.Column("author_id", sa.String(24), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("option", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"]),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("question_id", "author_id", name="uq_opinion_question_author"),
    )
    op.create_index("ix_opinions_question_id", "opinions", ["question_id"], unique=False)
    op.create_index("ix_opinions_author_id", "opinions", ["author_id"], unique=False)

    op.create_table(
        "opinion_votes",
        sa.Column("opinion_id", sa.String(24), nullable=False),
        sa.Column("user_id", sa.String(24), nullable=False),
        sa.Column("kind", sa.String(4), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["opinion_id"], ["opinions.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("opinion_id", "user_id"),
    )
    op.create_index("ix_opinion_votes_user_id", "opinion_votes", ["user_id"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("receiver_id", sa.String(24), nullable=False),
        sa.Column("sender_id", sa.String(24), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("target_content_id", sa.String(24), nullable=True),
        sa.Column("has_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_receiver_id", "notifications", ["receiver_id"], unique=False)
    op.create_index("ix_notifications_sender_id", "notifications", ["sender_id"], unique=False)
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"], unique=False)

    op.create_table(
        "pictures",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("owner_key", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("data", sa.LargeBinary(), nullable=False),
        sa.Column("content_type", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_key", "type", name="uq_picture_owner_type"),
    )
    op.create_index("ix_pictures_owner_key", "pictures", ["owner_key"], unique=False)

    op.create_table(
        "devices",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("user_id", sa.String(24), nullable=False),
        sa.Column("push_token", sa.String(), nullable=False),
        sa.Column("platform", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_devices_user_id", "devices", ["user_id"], unique=False)
    op.create_index("ix_devices_push_token", "devices", ["push_token"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_devices_push_token", table_name="devices")
    op.drop_index("ix_devices_user_id", table_name="devices")
    op.drop_table("devices")
    op.drop_index("ix_pictures_owner_key", table_name="pictures")
    op.drop_table("pictures")
    op.drop_index("ix_notifications_created_at", table_name="notifications")
    op.drop_index("ix_notifications_sender_id", table_name="notifications")
    op.drop_index("ix_notifications_receiver_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_opinion_votes_user_id", table_name="opinion_votes")
    op.drop_table("opinion_votes")
    op.drop_index("ix_opinions_author_id", table_name="opinions")
    op.drop_index("ix_opinions_question_id", table_name="opinions")
    op.drop_table("opinions")
    op.drop_index("ix_question_topics_topic_name", table_name="question_topics")
    op.drop_table("question_topics")
    op.drop_index("ix_questions_author_id", table_name="questions")
    op.drop_table("questions")
    op.drop_index("ix_topics_name", table_name="topics")
    op.drop_table("topics")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
