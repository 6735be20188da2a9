"""JWT session token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. A single
token kind is issued at register/login time and lives for a fixed
window (7 days by default). There is no refresh flow and no sliding
renewal: once it expires the user logs in again.

The token carries the user id, username and role, so protected routes
never hit the database just to learn who is calling. The role is the
one stored at issuance; later role changes only show up after the
next login.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

REQUIRED_CLAIMS = ["sub", "username", "role", "exp", "iat"]


class TokenError(Exception):
    """Raised when token verification fails."""


class MalformedTokenError(TokenError):
    """Token is not a JWT, has a bad signature, or lacks required claims."""


class ExpiredTokenError(TokenError):
    """Token was well-formed and signed, but its expiry has passed."""


@dataclass(frozen=True)
class TokenConfig:
    """Signing configuration, built once at startup and never mutated."""

    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = timedelta(days=7)

    @classmethod
    def from_settings(cls, settings) -> "TokenConfig":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl=timedelta(days=settings.token_expire_days),
        )


@dataclass(frozen=True)
class SessionClaims:
    """Decoded claim set of a verified token."""

    user_id: str
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """Signs and verifies session tokens with one symmetric key."""

    def __init__(self, config: TokenConfig):
        self.config = config

    def issue(
        self,
        user_id: str,
        username: str,
        role: str,
        ttl: Optional[timedelta] = None,
    ) -> str:
        """Create a signed session token."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "username": username,
            "role": role,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self.config.ttl),
        }
        return jwt.encode(
            payload, self.config.secret, algorithm=self.config.algorithm
        )

    def verify(self, token: str) -> SessionClaims:
        """Verify and decode a session token.

        Returns the claims on success.
        Raises ExpiredTokenError or MalformedTokenError on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Invalid token: {e}")

        return SessionClaims(
            user_id=payload["sub"],
            username=payload["username"],
            role=payload["role"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
