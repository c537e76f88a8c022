"""
Posts API — Post Service (the Post Store)
==========================================

What:  All reads and writes of the `posts` table.
How:   Each method receives the request-scoped AsyncSession, runs its query,
       and returns Pydantic response models. ORM rows never leave this module.
Who:   Called by the route handlers in posts_api.routes.posts.

Operations:
    create_post()   validate → insert → commit → PostResponse
    get_post()      PostResponse or NotFoundError
    list_posts()    every post, newest first (ties: most recently inserted first)
    set_favorite()  update is_favourite → commit → PostResponse, or NotFoundError

Error Handling:
    Domain failures raise ValidationError / NotFoundError. Any SQLAlchemyError
    is logged and re-raised as StorageError so the handlers can answer 500
    without leaking SQL or schema details.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from posts_api.exceptions import NotFoundError, StorageError, ValidationError
from posts_api.models.post import Post, generate_post_id
from posts_api.schemas.post import PostResponse

logger = logging.getLogger(__name__)

REQUIRED_POST_FIELDS = ("title", "description", "photo", "body")


class PostService:
    """
    Business logic layer for post operations.

    Stateless: the application creates one instance and every request passes
    in its own session.
    """

    async def create_post(
        self,
        db: AsyncSession,
        title: Optional[str],
        description: Optional[str],
        photo: Optional[str],
        body: Optional[str],
    ) -> PostResponse:
        """
        Validate and persist a new post.

        Args:
            db: Async database session
            title, description, photo, body: Post content; each must be a non-empty string

        Returns:
            PostResponse for the stored post (is_favourite=False)

        Raises:
            ValidationError: One or more fields missing or empty; nothing is written
            StorageError: Insert or commit failed
        """
        values = {
            "title": title,
            "description": description,
            "photo": photo,
            "body": body,
        }
        missing = [name for name in REQUIRED_POST_FIELDS if not values[name]]
        if missing:
            raise ValidationError(
                message=(
                    "Missing required fields: title, description, photo, "
                    "and body are required."
                ),
                fields=missing,
            )

        post = Post(
            id=generate_post_id(),
            is_favourite=False,
            created_at=datetime.now(timezone.utc),
            **values,
        )

        try:
            db.add(post)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error creating post: %s", str(e), exc_info=True)
            raise StorageError(
                message="Could not save the post. Please try again.",
                context={"operation": "create_post", "error_type": type(e).__name__},
            ) from e

        logger.info("Post created: %s", post.id)
        return PostResponse.model_validate(post)

    async def get_post(self, db: AsyncSession, post_id: str) -> PostResponse:
        """
        Retrieve a single post by its public ID.

        Raises:
            NotFoundError: No post with this ID (→ 404)
            StorageError: Query execution failed (→ 500)
        """
        post = await self._fetch(db, post_id, operation="get_post")
        if post is None:
            raise NotFoundError(resource="post", resource_id=post_id)
        return PostResponse.model_validate(post)

    async def list_posts(self, db: AsyncSession) -> List[PostResponse]:
        """
        Every post, newest first.

        Posts created within the same timestamp resolution come back in
        reverse insertion order, so the ordering is total and stable.
        """
        try:
            result = await db.execute(
                select(Post).order_by(Post.created_at.desc(), Post.seq.desc())
            )
            posts = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise StorageError(
                message="Could not retrieve posts. Please try again.",
                context={"operation": "list_posts", "error_type": type(e).__name__},
            ) from e

        return [PostResponse.model_validate(post) for post in posts]

    async def set_favorite(
        self,
        db: AsyncSession,
        post_id: str,
        value: bool = True,
    ) -> PostResponse:
        """
        Set the favourite flag of an existing post.

        Raises:
            NotFoundError: No post with this ID; nothing is written
            StorageError: Query, update or commit failed
        """
        post = await self._fetch(db, post_id, operation="set_favorite")
        if post is None:
            raise NotFoundError(resource="post", resource_id=post_id)

        try:
            post.is_favourite = value
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error updating post %s: %s", post_id, str(e), exc_info=True)
            raise StorageError(
                message="Could not update the post. Please try again.",
                context={
                    "operation": "set_favorite",
                    "post_id": post_id,
                    "error_type": type(e).__name__,
                },
            ) from e

        logger.info("Post %s favourite=%s", post_id, value)
        return PostResponse.model_validate(post)

    async def _fetch(self, db: AsyncSession, post_id: str, operation: str) -> Optional[Post]:
        try:
            result = await db.execute(select(Post).where(Post.id == post_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e))
            raise StorageError(
                message="Could not retrieve the post. Please try again.",
                context={"operation": operation, "post_id": post_id},
            ) from e
