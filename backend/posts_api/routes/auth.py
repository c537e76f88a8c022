"""
Posts API — Login Route Handler
================================

What:  POST /login exchanges an email/password pair for a signed bearer token.
How:   Delegates to AuthService.login(); ValidationError (400) and
       InvalidCredentialsError (401) are rendered by the global handlers.
Who:   Called by the frontend login page, which stores the returned token and
       sends it as `Authorization: Bearer <token>` on POST /posts.
"""

from fastapi import APIRouter, Depends

from posts_api.dependencies import get_auth_service
from posts_api.schemas.post import ErrorResponse, LoginRequest, LoginResponse
from posts_api.services.auth_service import AuthService

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Email and password are required", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Login to get authentication token",
)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """
    Issue a token valid for the configured window (24 hours by default).

    Token claims: {email, role: "user", iat, exp}.
    """
    result = auth_service.login(payload.email, payload.password)
    return LoginResponse(message="Login successful", token=result.token, user=result.user)
