"""Create reports table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the `reports` table and its lookup indexes.
Rollback: downgrade() drops the table (all reports are lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "reports",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "study_uid",
            sa.String(128),
            nullable=True,
            comment="Imaging study correlation key (not unique)",
        ),
        sa.Column("content", sa.Text(), nullable=True, comment="Free-form report body"),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'new'"),
            comment="Lifecycle state: new, completed, verified",
        ),
        sa.Column(
            "owner",
            sa.String(64),
            nullable=False,
            comment="Caller id of the creating user; immutable",
        ),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("patient_id", sa.String(64), nullable=True),
        sa.Column("patient_name", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this report was created (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this report was last modified (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
        # Status values outside the lifecycle never reach the table
        sa.CheckConstraint(
            "status IN ('new', 'completed', 'verified')",
            name="ck_reports_status",
        ),
    )

    op.create_index("idx_reports_study_uid", "reports", ["study_uid"])
    op.create_index("idx_reports_owner", "reports", ["owner"])
    op.create_index("idx_reports_created_at", "reports", [sa.text("created_at DESC")])


def downgrade() -> None:
    op.drop_index("idx_reports_created_at", table_name="reports")
    op.drop_index("idx_reports_owner", table_name="reports")
    op.drop_index("idx_reports_study_uid", table_name="reports")
    op.drop_table("reports")
