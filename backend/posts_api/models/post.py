"""
Posts API — Post SQLAlchemy Model
==================================

What:  ORM model for the `posts` table, the service's only entity.
Who:   Used by PostService for persistence and by Alembic for schema management.

Table Design:
    - seq: integer primary key, autoincrement. Internal insertion order, used
      to break ties between posts sharing a created_at value. Never exposed.
    - id: public opaque identifier (UUID4 string), unique, never reused.
    - title / description / photo / body: required text, immutable after creation.
    - is_favourite: the only mutable column.
    - created_at: UTC timestamp set once at creation.

    Index on created_at DESC serves the list query (newest first).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column

from posts_api.database import Base


def generate_post_id() -> str:
    """Fresh opaque post identifier."""
    return str(uuid.uuid4())


class Post(Base):
    """
    A persisted blog post.

    Lifecycle:
        1. Inserted by PostService.create_post() with is_favourite = False
        2. is_favourite may later be set by PostService.set_favorite()
        3. Never updated otherwise, never deleted
    """

    __tablename__ = "posts"

    seq: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Insertion sequence; tie-breaker for equal created_at values",
    )

    id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        default=generate_post_id,
        comment="Public opaque identifier",
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # A URL string; the service does not fetch or validate the target
    photo: Mapped[str] = mapped_column(Text, nullable=False)

    body: Mapped[str] = mapped_column(Text, nullable=False)

    is_favourite: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    # Stored in UTC. SQLite drops the offset on read; the response schema restores it.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("id", name="uq_posts_id"),
        Index("idx_posts_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Post(id={self.id}, title='{self.title}', "
            f"is_favourite={self.is_favourite}, created_at='{self.created_at}')>"
        )
