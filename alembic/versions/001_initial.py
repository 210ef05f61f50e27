"""Initial schema: profiles, voice_profiles, clients, posts, usage_logs.

Startup also runs Base.metadata.create_all, so every table is created only if missing.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _missing(table: str) -> bool:
    return not sa.inspect(op.get_bind()).has_table(table)


def upgrade() -> None:
    if _missing("profiles"):
        op.create_table(
            "profiles",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("headline", sa.String(), nullable=True),
            sa.Column("avatar_url", sa.String(), nullable=True),
            sa.Column("linkedin_person_id", sa.String(), nullable=True),
            sa.Column("linkedin_access_token", sa.String(), nullable=True),
            sa.Column("linkedin_refresh_token", sa.String(), nullable=True),
            sa.Column("token_expires_at", sa.DateTime(), nullable=True),
            sa.Column("niche", sa.String(), nullable=True),
            sa.Column("target_audience", sa.String(), nullable=True),
            sa.Column("onboarding_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("plan", sa.String(), nullable=False, server_default="free"),
            sa.Column("plan_status", sa.String(), nullable=False, server_default="active"),
            sa.Column("plan_expires_at", sa.DateTime(), nullable=True),
            sa.Column("dodo_customer_id", sa.String(), nullable=True),
            sa.Column("posts_used_this_month", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("posts_reset_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
        op.create_index("ix_profiles_linkedin_person_id", "profiles", ["linkedin_person_id"], unique=True)

    if _missing("voice_profiles"):
        op.create_table(
            "voice_profiles",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("sample_posts", sa.JSON(), nullable=False),
            sa.Column("tone", sa.String(), nullable=True),
            sa.Column("sentence_length", sa.String(), nullable=True),
            sa.Column("emoji_usage", sa.String(), nullable=True),
            sa.Column("hook_style", sa.String(), nullable=True),
            sa.Column("vocabulary", sa.JSON(), nullable=False),
            sa.Column("avoids", sa.JSON(), nullable=False),
            sa.Column("personality_traits", sa.JSON(), nullable=False),
            sa.Column("signature", sa.Text(), nullable=True),
            sa.Column("raw_analysis", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_voice_profiles_user_id", "voice_profiles", ["user_id"])

    if _missing("clients"):
        op.create_table(
            "clients",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("niche", sa.String(), nullable=True),
            sa.Column("linkedin_url", sa.String(), nullable=True),
            sa.Column(
                "voice_profile_id", sa.String(36),
                sa.ForeignKey("voice_profiles.id", ondelete="SET NULL"), nullable=True,
            ),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_clients_user_id", "clients", ["user_id"])

    if _missing("posts"):
        op.create_table(
            "posts",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("client_id", sa.String(36), sa.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True),
            sa.Column("title", sa.String(), nullable=True),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("type", sa.String(), nullable=False, server_default="post"),
            sa.Column("status", sa.String(), nullable=False, server_default="draft"),
            sa.Column("scheduled_at", sa.DateTime(), nullable=True),
            sa.Column("published_at", sa.DateTime(), nullable=True),
            sa.Column("linkedin_post_id", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_posts_user_id", "posts", ["user_id"])
        op.create_index("ix_posts_status", "posts", ["status"])
        op.create_index("ix_posts_scheduled_at", "posts", ["scheduled_at"])

    if _missing("usage_logs"):
        op.create_table(
            "usage_logs",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("action", sa.String(), nullable=False),
            sa.Column("model_used", sa.String(), nullable=True),
            sa.Column("tokens_used", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_usage_logs_id", "usage_logs", ["id"])
        op.create_index("ix_usage_logs_user_id", "usage_logs", ["user_id"])
        op.create_index("ix_usage_logs_created_at", "usage_logs", ["created_at"])


def downgrade() -> None:
    for table in ("usage_logs", "posts", "clients", "voice_profiles", "profiles"):
        op.drop_table(table)
