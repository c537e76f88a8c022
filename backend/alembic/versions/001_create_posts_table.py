"""Create posts table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the `posts` table and its created_at DESC index.
How:   Portable column types only, so the same revision runs on SQLite and PostgreSQL.

Rollback: downgrade() drops the table (all posts are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the posts table. Column notes live in posts_api/models/post.py."""
    op.create_table(
        "posts",
        sa.Column(
            "seq",
            sa.Integer(),
            autoincrement=True,
            nullable=False,
            comment="Insertion sequence; tie-breaker for equal created_at values",
        ),
        sa.Column("id", sa.String(36), nullable=False, comment="Public opaque identifier"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("photo", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "is_favourite",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("seq"),
        sa.UniqueConstraint("id", name="uq_posts_id"),
    )

    op.create_index(
        "idx_posts_created_at",
        "posts",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_posts_created_at", table_name="posts")
    op.drop_table("posts")
