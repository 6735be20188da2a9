"""Auth API — registration, login, current session.

Learn: Routes for user authentication:
- POST /auth/register → create an account, returns a session token
- POST /auth/login → username-or-email/password → session token
- GET /auth/me → the caller's session, as decoded from the token

Register and login are open; /me goes through the auth gate.
"""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from recordgate.auth.dependencies import (
    SessionContext,
    get_current_user,
    get_token_codec,
)
from recordgate.auth.jwt import TokenCodec
from recordgate.db.engine import get_db
from recordgate.db.store import SqlStore
from recordgate.services.identity_service import IdentityService

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None  # username or email
    password: Optional[str] = None


class UserPublic(BaseModel):
    id: uuid.UUID
    username: str
    role: str


class SessionResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
    user: UserPublic


class MeResponse(BaseModel):
    id: uuid.UUID
    username: str
    role: str
    expires_at: datetime


def _svc(
    request: Request,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> IdentityService:
    return IdentityService(
        SqlStore(db), codec, bcrypt_rounds=request.app.state.bcrypt_rounds
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=SessionResponse, status_code=201)
async def register(body: RegisterRequest, svc: IdentityService = Depends(_svc)):
    """Create a new account. The response already carries a token."""
    session = await svc.register(
        username=body.username,
        email=body.email,
        password=body.password,
        role=body.role,
    )
    return {"message": "Registered", **session}


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=SessionResponse)
async def login(body: LoginRequest, svc: IdentityService = Depends(_svc)):
    """Login with username (or email) and password → session token."""
    session = await svc.login(body.username, body.password)
    return {"message": "Logged in", **session}


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=MeResponse)
async def get_me(ctx: SessionContext = Depends(get_current_user)):
    """Who the token says the caller is. No database round trip."""
    return {
        "id": ctx.user_id,
        "username": ctx.username,
        "role": ctx.role,
        "expires_at": ctx.expires_at,
    }
