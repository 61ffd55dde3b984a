"""Create users and concession applications

Revision ID: 5b2e9c41d7a3
Revises:
Create Date: 2026-10-16 10:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "5b2e9c41d7a3"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create the account and application tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("roll_number", sa.String(length=50), nullable=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=7), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("roll_number"),
    )
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "concession_applications",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("student_name", sa.String(length=200), nullable=False),
        sa.Column("year", sa.String(length=32), nullable=False),
        sa.Column("branch", sa.String(length=32), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("concession_form_no", sa.String(length=50), nullable=False),
        sa.Column("season_ticket_no", sa.String(length=50), nullable=True),
        sa.Column("from_station", sa.String(length=100), nullable=False),
        sa.Column("to_station", sa.String(length=100), nullable=False),
        sa.Column("class_type", sa.String(length=32), nullable=False),
        sa.Column("railway_type", sa.String(length=32), nullable=False),
        sa.Column("pass_type", sa.String(length=32), nullable=False),
        sa.Column("previous_pass_date", sa.Date(), nullable=True),
        sa.Column("previous_pass_expiry", sa.Date(), nullable=True),
        sa.Column("id_card_url", sa.Text(), nullable=True),
        sa.Column("aadhar_url", sa.Text(), nullable=True),
        sa.Column("fee_receipt_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("decided_by", sa.String(length=36), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("supersedes_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["decided_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["supersedes_id"], ["concession_applications.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_concession_applications_student_id", "concession_applications", ["student_id"]
    )
    op.create_index("ix_concession_applications_branch", "concession_applications", ["branch"])
    op.create_index("ix_concession_applications_status", "concession_applications", ["status"])
    op.create_index(
        "ix_concession_applications_supersedes_id", "concession_applications", ["supersedes_id"]
    )
    op.create_index(
        "ix_concession_applications_created_at", "concession_applications", ["created_at"]
    )


def downgrade() -> None:
    """Drop the account and application tables."""
    op.drop_table("concession_applications")
    op.drop_table("users")
