"""Link service — guardian → submitter relationships.

Learn: A guardian sees the records of every submitter it is linked to.
Links are created here (bind) and read back as a set of submitter ids
(resolve_submitter_ids), which the record service turns into a
listing filter.

Only submitters can be link targets. A second bind of the same pair
is an error (DuplicateRelationship), detected from the database's
unique constraint rather than from a prior lookup.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select

from recordgate.auth.dependencies import SessionContext
from recordgate.db.models import GuardianLink, Role, User
from recordgate.db.store import ConstraintViolation, SqlStore
from recordgate.errors import (
    DuplicateRelationship,
    InvalidTargetRole,
    TargetNotFound,
    UnauthorizedRole,
    ValidationError,
)

logger = structlog.get_logger()


class LinkService:
    """Business logic for guardian links."""

    def __init__(self, store: SqlStore):
        self.store = store

    async def resolve_submitter_ids(self, guardian_id: uuid.UUID) -> set[uuid.UUID]:
        """Ids of every submitter linked to this guardian (may be empty)."""
        links = await self.store.list_where(
            GuardianLink, GuardianLink.guardian_id == guardian_id
        )
        return {link.submitter_id for link in links}

    @staticmethod
    def authorize_bind(ctx: SessionContext) -> None:
        if ctx.role != Role.GUARDIAN.value:
            raise UnauthorizedRole("Only guardians can link submitters")

    async def bind(self, ctx: SessionContext, username: Optional[str]) -> dict:
        """Link the calling guardian to the submitter named `username`."""
        self.authorize_bind(ctx)
        if not username:
            raise ValidationError("Submitter username is required")

        target = await self.store.find_one(
            select(User).where(User.username == username)
        )
        if not target:
            raise TargetNotFound(f"No user named {username}")
        if target.role != Role.SUBMITTER.value:
            raise InvalidTargetRole(f"{username} is not a submitter")

        link = GuardianLink(guardian_id=ctx.user_id, submitter_id=target.id)
        try:
            await self.store.insert(link)
        except ConstraintViolation as e:
            if e.is_unique_violation:
                raise DuplicateRelationship()
            raise

        logger.info(
            "link.created",
            guardian_id=str(ctx.user_id),
            submitter_id=str(target.id),
        )
        return {
            "message": f"Linked submitter {username}",
            "guardian_id": ctx.user_id,
            "submitter_id": target.id,
            "submitter_username": target.username,
        }

    async def list_linked(self, ctx: SessionContext) -> list[User]:
        """Submitters linked to the calling guardian, by username."""
        if ctx.role != Role.GUARDIAN.value:
            raise UnauthorizedRole("Only guardians have linked submitters")

        ids = await self.resolve_submitter_ids(ctx.user_id)
        if not ids:
            return []
        return await self.store.list_where(
            User, User.id.in_(list(ids)), order_by=User.username
        )
