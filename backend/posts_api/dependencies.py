"""
Dependency injection for route handlers.

Services live on `app.state` (built once by `create_app`); these functions
hand them to handlers via FastAPI's Depends().
"""

from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from posts_api.schemas.post import UserInfo
from posts_api.services.auth_service import AuthService
from posts_api.services.post_service import PostService

# auto_error=False: a missing header must become our 401, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False, description="JWT returned by POST /login")


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


async def require_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserInfo:
    """
    Resolve the caller's identity from `Authorization: Bearer <token>`.

    Raises:
        AuthenticationRequiredError: header absent or not a Bearer credential (→ 401)
        ForbiddenError: token fails verification (→ 403)
    """
    token = credentials.credentials if credentials else None
    return auth_service.authorize(token)
