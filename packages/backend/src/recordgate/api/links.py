"""Guardian link API routes."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recordgate.api.body import parse_body
from recordgate.auth.dependencies import SessionContext, get_current_user
from recordgate.db.engine import get_db
from recordgate.db.store import SqlStore
from recordgate.schemas.record import LinkCreate, LinkCreated, LinkedSubmitter
from recordgate.services.link_service import LinkService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> LinkService:
    return LinkService(SqlStore(db))


@router.post("/links", response_model=LinkCreated, status_code=201)
async def bind_submitter(
    request: Request,
    ctx: SessionContext = Depends(get_current_user),
    svc: LinkService = Depends(_svc),
):
    """Link the calling guardian to a submitter by username."""
    svc.authorize_bind(ctx)
    body = await parse_body(request, LinkCreate)
    return await svc.bind(ctx, body.username)


@router.get("/links", response_model=list[LinkedSubmitter])
async def list_links(
    ctx: SessionContext = Depends(get_current_user),
    svc: LinkService = Depends(_svc),
):
    return await svc.list_linked(ctx)
