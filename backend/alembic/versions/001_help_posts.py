"""Help posts table — one row per post, offers embedded as JSON.

Revision ID: 001_help_posts
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_help_posts"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "help_posts",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("author_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("needed_by", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("offers", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("version", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('open', 'in-progress', 'completed')",
            name="ck_help_posts_status",
        ),
    )
    op.create_index(
        "ix_help_posts_author_created", "help_posts", ["author_id", "created_at"],
    )
    op.create_index(
        "ix_help_posts_category_status", "help_posts", ["category", "status"],
    )


def downgrade() -> None:
    op.drop_index("ix_help_posts_category_status", table_name="help_posts")
    op.drop_index("ix_help_posts_author_created", table_name="help_posts")
    op.drop_table("help_posts")
