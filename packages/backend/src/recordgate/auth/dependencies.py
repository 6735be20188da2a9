"""Auth gate and FastAPI auth dependencies.

Learn: The gate only answers "who is calling?". It turns an
Authorization header into a SessionContext or refuses the request.
It never checks roles — each service operation decides for itself
whether the caller's role may proceed.

The gate is built once in create_app() around the app's TokenCodec
and stored on app.state, so route handlers reach it through the
request rather than through a module global.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import Depends, Header, Request

from recordgate.auth.jwt import TokenCodec, TokenError
from recordgate.errors import InvalidOrExpiredCredential, MissingCredential


@dataclass(frozen=True)
class SessionContext:
    """The authenticated identity making the request.

    Lives for one request only and is never persisted.
    """

    user_id: uuid.UUID
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime


class AuthGate:
    """Validates bearer credentials into a SessionContext."""

    def __init__(self, codec: TokenCodec):
        self.codec = codec

    def authenticate(self, authorization: Optional[str]) -> SessionContext:
        token = _bearer_token(authorization)
        if not token:
            raise MissingCredential()

        try:
            claims = self.codec.verify(token)
            user_id = uuid.UUID(claims.user_id)
        except (TokenError, ValueError):
            raise InvalidOrExpiredCredential()

        return SessionContext(
            user_id=user_id,
            username=claims.username,
            role=claims.role,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of a "Bearer <token>" header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth_gate


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


async def get_current_user(
    authorization: Optional[str] = Header(None),
    gate: AuthGate = Depends(get_auth_gate),
) -> SessionContext:
    """Extract the current session (required — 401/403 on failure).

    Learn: This is the "hard" auth dependency. Used as Depends() on
    every protected route; the raised MissingCredential or
    InvalidOrExpiredCredential is rendered by the app's error handler.
    """
    return gate.authenticate(authorization)
