"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Unlike a router-wide dependency, auth is declared per handler
(Depends(get_current_user)) because the handlers need the resulting
SessionContext for role checks and scoping. Health and register/login
are open.
"""

from fastapi import APIRouter

from recordgate.api.auth import router as auth_router
from recordgate.api.health import router as health_router
from recordgate.api.links import router as links_router
from recordgate.api.records import router as records_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(records_router, tags=["records"])
api_router.include_router(links_router, tags=["links"])
