"""
Posts API — Post Route Handlers
================================

What:  GET /posts, GET /posts/{post_id}, POST /posts, POST /posts/{post_id}/favorite.
How:   Each handler is a thin composition: resolve dependencies, call
       PostService, return a response model. Errors raised by the service or
       the auth dependency are rendered by the global handlers in main.py.

Authorization:
    Only POST /posts requires a bearer token. `require_identity` runs before
    the service is touched, so unauthenticated requests never reach the store.
    Marking a favourite needs no token.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from posts_api.database import get_db_session
from posts_api.dependencies import get_post_service, require_identity
from posts_api.schemas.post import (
    ErrorResponse,
    FavoriteResponse,
    PostCreatedResponse,
    PostCreateRequest,
    PostList,
    PostResponse,
    UserInfo,
)
from posts_api.services.post_service import PostService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])


@router.get(
    "/posts",
    response_model=PostList,
    responses={500: {"description": "Storage error", "model": ErrorResponse}},
    summary="Get all posts",
    description="Returns every post, newest first.",
)
async def list_posts(
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> PostList:
    return await service.list_posts(db)


@router.get(
    "/posts/{post_id}",
    response_model=PostResponse,
    responses={
        404: {"description": "Post not found", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Get a post by ID",
)
async def get_post(
    post_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    return await service.get_post(db, post_id)


@router.post(
    "/posts",
    status_code=201,
    response_model=PostCreatedResponse,
    responses={
        400: {"description": "Missing required fields", "model": ErrorResponse},
        401: {"description": "Authentication required", "model": ErrorResponse},
        403: {"description": "Invalid or expired token", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Create a new post",
    description=(
        "Creates a post from title, description, photo URL and body. "
        "Requires `Authorization: Bearer <token>` obtained from POST /login."
    ),
)
async def create_post(
    payload: PostCreateRequest,
    identity: UserInfo = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> PostCreatedResponse:
    post = await service.create_post(
        db,
        title=payload.title,
        description=payload.description,
        photo=payload.photo,
        body=payload.body,
    )
    logger.info("Post %s created by %s", post.id, identity.email)
    return PostCreatedResponse(message="Post added successfully", post=post)


@router.post(
    "/posts/{post_id}/favorite",
    response_model=FavoriteResponse,
    responses={
        404: {"description": "Post not found", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Add a post to favorites",
)
async def favorite_post(
    post_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: PostService = Depends(get_post_service),
) -> FavoriteResponse:
    post = await service.set_favorite(db, post_id, True)
    return FavoriteResponse(message="Post added to favorites", post=post)
