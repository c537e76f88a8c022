"""
Posts API — Auth Service (issue and verify bearer credentials)
===============================================================

What:  Issues signed JWTs on login and verifies the bearer token presented to
       protected routes.
How:   PyJWT with a shared HMAC secret from Settings. Tokens carry
       {email, role, iat, exp}; verification re-derives validity from the
       signature and expiry on every call. Nothing is stored.
Who:   POST /login, and the `require_identity` dependency guarding POST /posts.

Login policy:
    Default: any non-empty email/password pair receives a token.
    AUTH_VERIFY_PASSWORD=true: the pair must match the single account
    configured in Settings, compared in constant time.
"""

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from posts_api.config import Settings
from posts_api.exceptions import (
    AuthenticationRequiredError,
    ForbiddenError,
    InvalidCredentialsError,
    ValidationError,
)
from posts_api.schemas.post import UserInfo

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: UserInfo


class AuthService:
    """Credential issuing and verification. Pure apart from reading the clock."""

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._expiry = timedelta(hours=settings.token_expiry_hours)
        self._verify_password = settings.auth_verify_password
        self._user_email = settings.auth_user_email
        self._user_password = settings.auth_user_password

    def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        """
        Exchange an email/password pair for a signed token.

        Raises:
            ValidationError: email or password missing/empty (→ 400)
            InvalidCredentialsError: verification enabled and the pair does not match (→ 401)
        """
        if not email or not password:
            raise ValidationError(
                message="Email and password are required.",
                fields=[name for name, v in (("email", email), ("password", password)) if not v],
            )

        if self._verify_password and not self._matches_account(email, password):
            logger.warning("Rejected login for %s", email)
            raise InvalidCredentialsError()

        user = UserInfo(email=email, role=DEFAULT_ROLE)
        token = self.issue_token(user)
        logger.info("Issued token for %s", email)
        return LoginResult(token=token, user=user)

    def issue_token(self, user: UserInfo, now: Optional[datetime] = None) -> str:
        """Sign a token for `user`, valid from `now` for the configured window."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "email": user.email,
            "role": user.role,
            "iat": issued_at,
            "exp": issued_at + self._expiry,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def authorize(self, token: Optional[str]) -> UserInfo:
        """
        Verify a bearer token and return the identity it carries.

        Raises:
            AuthenticationRequiredError: no token presented (→ 401)
            ForbiddenError: bad signature, malformed, missing claims, or expired (→ 403)
        """
        if not token:
            raise AuthenticationRequiredError()

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "email"]},
            )
        except jwt.ExpiredSignatureError:
            raise ForbiddenError(reason="expired")
        except jwt.PyJWTError as e:
            raise ForbiddenError(reason=type(e).__name__)

        email = claims.get("email")
        if not isinstance(email, str) or not email:
            raise ForbiddenError(reason="invalid email claim")

        role = claims.get("role")
        if not isinstance(role, str) or not role:
            role = DEFAULT_ROLE
        return UserInfo(email=email, role=role)

    def _matches_account(self, email: str, password: str) -> bool:
        if not self._user_password:
            return False
        email_ok = hmac.compare_digest(email.lower().encode(), self._user_email.lower().encode())
        password_ok = hmac.compare_digest(password.encode(), self._user_password.encode())
        return email_ok and password_ok
