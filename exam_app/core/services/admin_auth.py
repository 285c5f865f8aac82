"""Password login and signed-token verification for the admin API."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from hmac import compare_digest
from typing import Any

import jwt

from exam_app.constants.auth_constants import (
    ADMIN_PASSWORD,
    ADMIN_ROLE,
    JWT_ALGORITHM,
    JWT_SECRET,
    TOKEN_TTL_HOURS,
)

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base class for admin authentication failures."""


class MissingPasswordError(AuthError):
    pass


class InvalidPasswordError(AuthError):
    pass


class InvalidTokenError(AuthError):
    pass


class AdminAuthenticator:
    """Exchanges the shared admin password for a time-boxed JWT."""

    def __init__(
        self,
        password: str = ADMIN_PASSWORD,
        secret: str = JWT_SECRET,
        token_ttl: timedelta = timedelta(hours=TOKEN_TTL_HOURS),
    ) -> None:
        if not password:
            raise ValueError("Admin password must not be empty.")
        self._password = password
        self._secret = secret
        self._token_ttl = token_ttl

    def login(self, password: str | None) -> str:
        if not password:
            raise MissingPasswordError("Password is required")
        if not compare_digest(password.encode("utf-8"), self._password.encode("utf-8")):
            logger.warning("Rejected admin login with a wrong password")
            raise InvalidPasswordError("Wrong password")
        logger.info("Admin logged in")
        return self.create_token()

    def create_token(self, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": "admin",
            "role": ADMIN_ROLE,
            "iat": issued_at,
            "exp": issued_at + self._token_ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: str) -> dict[str, Any]:
        try:
            claims = jwt.decode(token, self._secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError("Invalid token") from exc
        if claims.get("role") != ADMIN_ROLE:
            raise InvalidTokenError("Token does not grant admin access")
        return claims
