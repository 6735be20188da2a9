"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Constraints and indexes defined here.
Alembic migrations mirror these models.

Key concepts:
- UUID primary keys via the portable Uuid type (native UUID on Postgres)
- Uniqueness lives in the database (unique columns, UniqueConstraint) so
  concurrent check-then-insert races still end in a constraint error
- created_at gets a Python-side default for sub-second ordering, plus a
  server_default so raw SQL inserts are covered too
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class Role(str, enum.Enum):
    """The three roles a user can hold."""

    SUBMITTER = "submitter"
    REVIEWER = "reviewer"
    GUARDIAN = "guardian"


class RecordStatus(str, enum.Enum):
    PENDING = "pending"


class User(Base):
    """A registered identity.

    Learn: Created at registration and never edited by this service.
    The role is copied into every session token issued for the user.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=new_uuid
    )
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Role.SUBMITTER.value
    )  # submitter, reviewer, guardian
    is_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class GuardianLink(Base):
    """Guardian → submitter link. Grants the guardian read access.

    Learn: One row per pair; the unique constraint is what actually
    rejects a second bind of the same pair.
    """

    __tablename__ = "guardian_links"
    __table_args__ = (
        UniqueConstraint(
            "guardian_id", "submitter_id", name="uq_guardian_links_pair"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=new_uuid
    )
    guardian_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    submitter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class Record(Base):
    """A submitted work item. Owned by exactly one submitter."""

    __tablename__ = "records"
    __table_args__ = (
        Index("ix_records_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=new_uuid
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    owner_name: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RecordStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
