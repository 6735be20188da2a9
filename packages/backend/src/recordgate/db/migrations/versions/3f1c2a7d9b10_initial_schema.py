"""initial schema: users, guardian_links, records

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2026-10-18 09:12:44.518302
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a7d9b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "guardian_links",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "guardian_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "submitter_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "guardian_id", "submitter_id", name="uq_guardian_links_pair"
        ),
    )
    op.create_index(
        "ix_guardian_links_guardian_id", "guardian_links", ["guardian_id"]
    )

    op.create_table(
        "records",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "owner_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("owner_name", sa.String(100), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_records_owner_created", "records", ["owner_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_records_owner_created", table_name="records")
    op.drop_table("records")
    op.drop_index("ix_guardian_links_guardian_id", table_name="guardian_links")
    op.drop_table("guardian_links")
    op.drop_table("users")
