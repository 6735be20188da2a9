"""Record service — submitting records and role-scoped listing.

Learn: Who sees what is decided in one place, build_scope():

    submitter → only records they own
    reviewer  → every record
    guardian  → records owned by their linked submitters

Each role has its own explicit branch. A role that matches none of
them (a stale or forged claim) is refused with UnauthorizedRole; it
never falls through to the unrestricted reviewer view.

A guardian with no links gets an empty list straight away, without
querying the records table at all.
"""

import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import structlog

from recordgate.auth.dependencies import SessionContext
from recordgate.db.models import Record, RecordStatus, Role
from recordgate.db.store import SqlStore
from recordgate.errors import UnauthorizedRole, ValidationError
from recordgate.services.link_service import LinkService

logger = structlog.get_logger()

SubmitterResolver = Callable[[uuid.UUID], Awaitable[set[uuid.UUID]]]


@dataclass(frozen=True)
class RecordScope:
    """Filter for a record listing.

    `criteria` are SQLAlchemy where-clauses (none = unrestricted).
    `matches_nothing` means the listing is empty without a query.
    """

    criteria: tuple = ()
    matches_nothing: bool = False

    @classmethod
    def nothing(cls) -> "RecordScope":
        return cls(matches_nothing=True)


async def build_scope(
    ctx: SessionContext, resolve_submitter_ids: SubmitterResolver
) -> RecordScope:
    """Turn the caller's role into a record filter. Fails closed."""
    try:
        role = Role(ctx.role)
    except ValueError:
        raise UnauthorizedRole(f"Unknown role: {ctx.role}")

    if role is Role.SUBMITTER:
        return RecordScope(criteria=(Record.owner_id == ctx.user_id,))
    elif role is Role.REVIEWER:
        return RecordScope()
    elif role is Role.GUARDIAN:
        submitter_ids = await resolve_submitter_ids(ctx.user_id)
        if not submitter_ids:
            return RecordScope.nothing()
        return RecordScope(criteria=(Record.owner_id.in_(list(submitter_ids)),))

    # A Role member without a branch above.
    raise UnauthorizedRole(f"No listing rule for role: {role.value}")


class RecordService:
    """Business logic for records."""

    def __init__(self, store: SqlStore, links: Optional[LinkService] = None):
        self.store = store
        self.links = links or LinkService(store)

    @staticmethod
    def authorize_submit(ctx: SessionContext) -> None:
        if ctx.role != Role.SUBMITTER.value:
            raise UnauthorizedRole("Only submitters can submit records")

    async def submit(
        self,
        ctx: SessionContext,
        title: Optional[str],
        content: Optional[str],
    ) -> Record:
        """Create a pending record owned by the calling submitter.

        Owner id and name always come from the session, never the body.
        """
        self.authorize_submit(ctx)
        if not title or not title.strip() or not content or not content.strip():
            raise ValidationError("Title and content must not be empty")

        record = Record(
            owner_id=ctx.user_id,
            owner_name=ctx.username,
            title=title,
            content=content,
            status=RecordStatus.PENDING.value,
        )
        await self.store.insert(record)
        logger.info(
            "record.submitted", record_id=str(record.id), owner_id=str(ctx.user_id)
        )
        return record

    async def list_records(self, ctx: SessionContext) -> list[Record]:
        """Records visible to the caller, newest first."""
        scope = await build_scope(ctx, self.links.resolve_submitter_ids)
        if scope.matches_nothing:
            return []
        return await self.store.list_where(
            Record, *scope.criteria, order_by=Record.created_at.desc()
        )
