"""Pydantic schemas for records and guardian links.

Learn: Pydantic v2 models validate request/response data. Separate
"Create" schemas (input) from "Read" schemas (output) for clean APIs.
Input fields are optional here on purpose: emptiness is checked by the
services, which report it as a validation_error like every other
domain error.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


# ─── Records ────────────────────────────────────────────

class RecordCreate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class RecordRead(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    owner_name: str
    title: str
    content: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


# ─── Guardian links ─────────────────────────────────────

class LinkCreate(BaseModel):
    username: Optional[str] = None


class LinkCreated(BaseModel):
    message: str
    guardian_id: uuid.UUID
    submitter_id: uuid.UUID
    submitter_username: str


class LinkedSubmitter(BaseModel):
    id: uuid.UUID
    username: str

    model_config = {"from_attributes": True}
