"""Identity service — registration and login.

Learn: Registration and login both end by issuing a session token, so
a freshly registered user is already logged in. Login looks a user up
by "username OR email", so registration treats usernames and emails as
one namespace: a new username may not equal anyone's email, and the
other way round.

Duplicate protection is two-layered. The lookup catches the common
case early, but two concurrent registrations can both pass it; the
unique constraints on users.username/users.email then reject the
second insert, and that violation is reported as the same
DuplicateIdentity error.
"""

from functools import lru_cache
from typing import Optional

import structlog
from sqlalchemy import or_, select

from recordgate.auth.jwt import TokenCodec
from recordgate.auth.password import DEFAULT_ROUNDS, hash_password, verify_password
from recordgate.db.models import Role, User
from recordgate.db.store import ConstraintViolation, SqlStore
from recordgate.errors import DuplicateIdentity, InvalidCredentials, ValidationError

logger = structlog.get_logger()


@lru_cache(maxsize=None)
def _dummy_digest(rounds: int) -> str:
    """A throwaway hash to verify against when the login user is unknown."""
    return hash_password("not-a-real-password", rounds=rounds)


def public_view(user: User) -> dict:
    """The user fields that are safe to hand back to a client."""
    return {"id": user.id, "username": user.username, "role": user.role}


class IdentityService:
    """Business logic for user registration and login."""

    def __init__(
        self,
        store: SqlStore,
        codec: TokenCodec,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        self.store = store
        self.codec = codec
        self.bcrypt_rounds = bcrypt_rounds

    async def find_by_login(self, login: str) -> Optional[User]:
        """Find the user whose username OR email is `login`.

        A store failure propagates as StoreError; it is never read as
        "no such user".
        """
        return await self.store.find_one(
            select(User).where(or_(User.username == login, User.email == login))
        )

    async def find_taken(self, username: str, email: str) -> Optional[User]:
        """Find any user already holding `username` or `email` in either column.

        Login accepts a username or an email in one field, so a new
        username must not equal someone's email (and vice versa).
        """
        candidates = [username, email]
        return await self.store.find_one(
            select(User).where(
                or_(User.username.in_(candidates), User.email.in_(candidates))
            )
        )

    async def register(
        self,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        role: Optional[str] = None,
    ) -> dict:
        """Create an account and log it in.

        Returns {"token": ..., "user": {id, username, role}}.
        """
        if not username or not email or not password:
            raise ValidationError("Username, email and password are required")
        role = role or Role.SUBMITTER.value
        if role not in {r.value for r in Role}:
            raise ValidationError(f"Unknown role: {role}")

        if await self.find_taken(username, email):
            raise DuplicateIdentity()

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            role=role,
            is_verified=True,
        )
        try:
            await self.store.insert(user)
        except ConstraintViolation as e:
            if e.is_unique_violation:
                raise DuplicateIdentity()
            raise

        logger.info("identity.registered", user_id=str(user.id), role=user.role)
        return self._session_for(user)

    async def login(
        self, username_or_email: Optional[str], password: Optional[str]
    ) -> dict:
        """Check a password and issue a session token.

        Unknown user and wrong password raise the same InvalidCredentials.
        """
        if not username_or_email or not password:
            raise ValidationError("Username and password are required")

        user = await self.find_by_login(username_or_email)
        if not user:
            # Same bcrypt cost as a wrong password, so timing says nothing.
            verify_password(password, _dummy_digest(self.bcrypt_rounds))
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        logger.info("identity.logged_in", user_id=str(user.id))
        return self._session_for(user)

    def _session_for(self, user: User) -> dict:
        token = self.codec.issue(
            user_id=str(user.id), username=user.username, role=user.role
        )
        return {"token": token, "user": public_view(user)}
