"""Bearer credential verification.

``TokenVerifier.verify`` never raises for a bad credential: it returns an
``AuthResult`` that is turned into an HTTP error exactly once, in the
FastAPI dependencies at the bottom of this module.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

import jwt
from fastapi import Depends, HTTPException, Request

from orderdesk.core.config import settings


@dataclass(frozen=True)
class Identity:
    """A verified caller."""

    email: str
    is_admin: bool = False


class AuthFailure(str, Enum):
    MISSING = "missing"
    INVALID = "invalid"
    FORBIDDEN = "forbidden"


_FAILURE_RESPONSES: dict[AuthFailure, tuple[int, str]] = {
    AuthFailure.MISSING: (401, "No token provided"),
    AuthFailure.INVALID: (401, "Invalid token"),
    AuthFailure.FORBIDDEN: (403, "Admin only"),
}


@dataclass(frozen=True)
class AuthResult:
    identity: Identity | None = None
    failure: AuthFailure | None = None

    @property
    def ok(self) -> bool:
        return self.identity is not None and self.failure is None

    @classmethod
    def success(cls, identity: Identity) -> "AuthResult":
        return cls(identity=identity)

    @classmethod
    def failed(cls, failure: AuthFailure) -> "AuthResult":
        return cls(failure=failure)


class TokenVerifier:
    """Decodes HS256 bearer tokens carrying ``email`` and ``admin`` claims."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self.secret = secret
        self.algorithm = algorithm

    def issue(self, email: str, admin: bool = False, expires_in: timedelta | None = None) -> str:
        """Issue a token for ``email``. Used by tooling and tests."""
        payload: dict[str, object] = {"email": email, "admin": admin}
        if expires_in is not None:
            payload["exp"] = datetime.now(UTC) + expires_in
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, authorization: str | None) -> AuthResult:
        """Verify an ``Authorization`` header value."""
        if not authorization:
            return AuthResult.failed(AuthFailure.MISSING)

        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return AuthResult.failed(AuthFailure.INVALID)

        try:
            payload = jwt.decode(token.strip(), self.secret, algorithms=[self.algorithm])
        except jwt.InvalidTokenError:
            return AuthResult.failed(AuthFailure.INVALID)

        email = payload.get("email")
        if not isinstance(email, str) or not email:
            return AuthResult.failed(AuthFailure.INVALID)

        return AuthResult.success(Identity(email=email, is_admin=payload.get("admin") is True))

    @staticmethod
    def authorize_admin(result: AuthResult) -> AuthResult:
        """Narrow a successful result to admins only."""
        if result.ok and not result.identity.is_admin:  # type: ignore[union-attr]
            return AuthResult.failed(AuthFailure.FORBIDDEN)
        return result


def auth_failure_exception(failure: AuthFailure) -> HTTPException:
    status_code, message = _FAILURE_RESPONSES[failure]
    return HTTPException(status_code=status_code, detail=message)


def get_token_verifier() -> TokenVerifier:
    return TokenVerifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


def _resolve(result: AuthResult) -> Identity:
    if not result.ok:
        raise auth_failure_exception(result.failure or AuthFailure.INVALID)
    return result.identity  # type: ignore[return-value]


def get_current_identity(
    request: Request,
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity:
    """Require a valid bearer token."""
    return _resolve(verifier.verify(request.headers.get("Authorization")))


def require_admin(
    request: Request,
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity:
    """Require a valid bearer token with the admin flag."""
    result = verifier.verify(request.headers.get("Authorization"))
    return _resolve(verifier.authorize_admin(result))
