"""Record store adapter — the only place services touch the session.

Learn: Services never call session.execute() directly. They go through
SqlStore, which gives them three operations (find_one, insert,
list_where) and one error contract:

- a uniqueness violation on insert → ConstraintViolation with
  is_unique_violation=True, so callers can reclassify it
  (duplicate user, duplicate link);
- anything else the database throws → StoreError, whose public message
  is generic. The real error only goes to the log.

Each insert commits on its own. There are no cross-call transactions
and no retries; a failed call is reported at once.
"""

from typing import Any, Optional, TypeVar

import structlog
from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from recordgate.errors import StoreError

logger = structlog.get_logger()

T = TypeVar("T")

UNIQUE_VIOLATION_SQLSTATE = "23505"


class ConstraintViolation(StoreError):
    """An insert broke a database constraint."""

    def __init__(self, detail: str, is_unique_violation: bool):
        super().__init__(detail)
        self.is_unique_violation = is_unique_violation


def is_unique_violation(err: IntegrityError) -> bool:
    """Tell a unique-constraint failure apart from other integrity errors.

    Postgres drivers expose SQLSTATE 23505; SQLite only says so in the
    message ("UNIQUE constraint failed: ...").
    """
    orig = err.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code == UNIQUE_VIOLATION_SQLSTATE
    return "unique" in str(orig).lower()


class SqlStore:
    """Thin adapter over one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_one(self, stmt: Select) -> Optional[Any]:
        """Run a select and return the first row's entity, or None."""
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise self._store_error("find_one", e)
        return result.scalars().first()

    async def insert(self, obj: T) -> T:
        """Persist a new row and commit."""
        self.db.add(obj)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            unique = is_unique_violation(e)
            logger.info(
                "store.constraint_violation",
                table=getattr(obj, "__tablename__", None),
                unique=unique,
            )
            raise ConstraintViolation(str(e.orig), is_unique_violation=unique)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise self._store_error("insert", e)
        return obj

    async def list_where(
        self,
        model: type[T],
        *criteria,
        order_by: Any = None,
    ) -> list[T]:
        """Select every row of `model` matching all criteria."""
        stmt = select(model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise self._store_error("list_where", e)
        return list(result.scalars().all())

    def _store_error(self, op: str, err: SQLAlchemyError) -> StoreError:
        logger.error("store.error", op=op, error=str(err))
        return StoreError(str(err))
