"""
Posts API — Pydantic Request/Response Schemas
==============================================

What:  The API contract: request bodies, response payloads, error format.
How:   FastAPI validates request bodies against these models, serializes
       responses through them and builds the OpenAPI document from them.

Request bodies declare every field optional on purpose: a missing or empty
field must surface as our own 400 `validation_error` raised by the service
layer, with the same message whether the key is absent or blank.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class LoginRequest(BaseModel):
    """Body of POST /login."""
    email: Optional[str] = Field(default=None, description="Account email")
    password: Optional[str] = Field(default=None, description="Account password")


class PostCreateRequest(BaseModel):
    """Body of POST /posts. All four fields are required and must be non-empty."""
    title: Optional[str] = Field(default=None, description="Post title")
    description: Optional[str] = Field(default=None, description="Short summary shown in lists")
    photo: Optional[str] = Field(default=None, description="URL of the post's photo")
    body: Optional[str] = Field(default=None, description="Full post text")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PostResponse(BaseModel):
    """
    What:  Full representation of a post.
    Who:   GET /posts (as array items), GET /posts/{id}, and nested in the
           create/favorite responses.

    JSON keys follow the existing frontend contract: `isFavourite` is
    camelCase while `created_at` is snake_case.
    """
    id: str = Field(description="Opaque post identifier")
    title: str
    description: str
    photo: str = Field(description="Photo URL")
    body: str
    is_favourite: bool = Field(alias="isFavourite", description="Favourite flag")
    created_at: datetime = Field(description="Creation time (UTC, ISO 8601)")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """SQLite returns naive datetimes; stored values are always UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class PostCreatedResponse(BaseModel):
    """Returned by POST /posts with HTTP 201."""
    message: str = Field(default="Post added successfully")
    post: PostResponse


class FavoriteResponse(BaseModel):
    """Returned by POST /posts/{id}/favorite."""
    message: str = Field(default="Post added to favorites")
    post: PostResponse


class UserInfo(BaseModel):
    """Identity claims carried by a credential."""
    email: str
    role: str = Field(default="user")


class LoginResponse(BaseModel):
    """Returned by POST /login."""
    message: str = Field(default="Login successful")
    token: str = Field(description="Signed bearer token (JWT)")
    user: UserInfo


class MessageResponse(BaseModel):
    """Plain informational payload."""
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for every non-2xx response.

    Example:
        {
            "error": "not_found",
            "message": "Post with ID 'abc' was not found",
            "request_id": "1f3a9c2e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and container probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


PostList = List[PostResponse]
