"""initial schema

Revision ID: 5c1e2a9d7f30
Revises:
Create Date: 2026-10-16 09:12:44.318207

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9d7f30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create sessions, posts, replies, grants, votes and counters."""
    op.create_table(
        "user_session",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("wallet_address", sa.String(length=64), nullable=False),
        sa.Column("identity", sa.String(length=64), nullable=False),
        sa.Column("session_token", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("wallet_address"),
        sa.UniqueConstraint("identity"),
    )
    op.create_table(
        "post",
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("author_identity", sa.String(length=64), nullable=False),
        sa.Column("visibility_tier", sa.String(length=16), nullable=False),
        sa.Column("min_price", sa.Numeric(precision=38, scale=18), nullable=True),
        sa.Column("content_hash", sa.String(length=66), nullable=False),
        sa.Column("preview_hash", sa.String(length=66), nullable=False),
        sa.Column("encoded_content", sa.Text(), nullable=False),
        sa.Column("encoded_preview", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "visibility_tier IN ('public', 'gated')",
            name="ck_post_visibility_tier",
        ),
        sa.CheckConstraint(
            "(visibility_tier = 'public' AND min_price IS NULL) OR "
            "(visibility_tier = 'gated' AND min_price IS NOT NULL AND min_price > 0)",
            name="ck_post_tier_price",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_author_identity", "post", ["author_identity"])
    op.create_table(
        "reply",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("replier_identity", sa.String(length=64), nullable=False),
        sa.Column("content_hash", sa.String(length=66), nullable=False),
        sa.Column("preview_hash", sa.String(length=66), nullable=False),
        sa.Column("encoded_content", sa.Text(), nullable=False),
        sa.Column("encoded_preview", sa.Text(), nullable=False),
        sa.Column("depth", sa.SmallInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_id"], ["reply.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reply_post_created", "reply", ["post_id", "created_at"])
    op.create_table(
        "access_grant",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content_id", sa.BigInteger(), nullable=False),
        sa.Column("content_type", sa.String(length=16), nullable=False),
        sa.Column("identity", sa.String(length=64), nullable=False),
        sa.Column("grant_type", sa.String(length=16), nullable=False),
        sa.Column("amount", sa.Numeric(precision=38, scale=18), nullable=False),
        sa.Column("tx_hash", sa.String(length=66), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("grant_type IN ('tip', 'unlock')", name="ck_access_grant_type"),
        sa.CheckConstraint(
            "content_type IN ('post', 'reply')",
            name="ck_access_grant_content_type",
        ),
        sa.CheckConstraint("amount >= 0", name="ck_access_grant_amount"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tx_hash"),
    )
    op.create_index(
        "ix_access_grant_lookup",
        "access_grant",
        ["content_type", "content_id", "identity"],
    )
    op.create_table(
        "content_vote",
        sa.Column("content_type", sa.String(length=16), nullable=False),
        sa.Column("content_id", sa.BigInteger(), nullable=False),
        sa.Column("voter_identity", sa.String(length=64), nullable=False),
        sa.Column("direction", sa.String(length=8), nullable=False),
        sa.CheckConstraint("direction IN ('up', 'down')", name="ck_content_vote_direction"),
        sa.CheckConstraint(
            "content_type IN ('post', 'reply')",
            name="ck_content_vote_content_type",
        ),
        sa.PrimaryKeyConstraint("content_type", "content_id", "voter_identity"),
    )
    op.create_index("ix_content_vote_content", "content_vote", ["content_type", "content_id"])
    op.create_table(
        "post_stats",
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("upvote_count", sa.Integer(), nullable=False),
        sa.Column("downvote_count", sa.Integer(), nullable=False),
        sa.Column("reply_count", sa.Integer(), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("upvote_count >= 0", name="ck_post_stats_upvotes"),
        sa.CheckConstraint("downvote_count >= 0", name="ck_post_stats_downvotes"),
        sa.CheckConstraint("reply_count >= 0", name="ck_post_stats_replies"),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("post_id"),
    )
    op.create_table(
        "reply_stats",
        sa.Column("reply_id", sa.Integer(), nullable=False),
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("upvote_count", sa.Integer(), nullable=False),
        sa.Column("downvote_count", sa.Integer(), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("upvote_count >= 0", name="ck_reply_stats_upvotes"),
        sa.CheckConstraint("downvote_count >= 0", name="ck_reply_stats_downvotes"),
        sa.ForeignKeyConstraint(["reply_id"], ["reply.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("reply_id"),
    )
    op.create_index("ix_reply_stats_post_id", "reply_stats", ["post_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("ix_reply_stats_post_id", table_name="reply_stats")
    op.drop_table("reply_stats")
    op.drop_table("post_stats")
    op.drop_index("ix_content_vote_content", table_name="content_vote")
    op.drop_table("content_vote")
    op.drop_index("ix_access_grant_lookup", table_name="access_grant")
    op.drop_table("access_grant")
    op.drop_index("ix_reply_post_created", table_name="reply")
    op.drop_table("reply")
    op.drop_index("ix_post_author_identity", table_name="post")
    op.drop_table("post")
    op.drop_table("user_session")
