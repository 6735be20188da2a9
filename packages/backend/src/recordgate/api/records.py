"""Record API routes.

Learn: Both routes take the caller's SessionContext from the auth gate
and hand it to RecordService, which does the role checks. The route
never reads an owner id from the request body.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recordgate.api.body import parse_body
from recordgate.auth.dependencies import SessionContext, get_current_user
from recordgate.db.engine import get_db
from recordgate.db.store import SqlStore
from recordgate.schemas.record import RecordCreate, RecordRead
from recordgate.services.record_service import RecordService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> RecordService:
    return RecordService(SqlStore(db))


@router.post("/records", response_model=RecordRead, status_code=201)
async def submit_record(
    request: Request,
    ctx: SessionContext = Depends(get_current_user),
    svc: RecordService = Depends(_svc),
):
    """Submit a record (submitters only).

    The role is checked before the body is read, so a reviewer or
    guardian is refused even when the body is malformed.
    """
    svc.authorize_submit(ctx)
    body = await parse_body(request, RecordCreate)
    return await svc.submit(ctx, title=body.title, content=body.content)


@router.get("/records", response_model=list[RecordRead])
async def list_records(
    ctx: SessionContext = Depends(get_current_user),
    svc: RecordService = Depends(_svc),
):
    """List the records the caller's role may see, newest first."""
    return await svc.list_records(ctx)
