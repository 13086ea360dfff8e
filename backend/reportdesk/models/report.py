"""
ReportDesk Backend: Report SQLAlchemy Model
============================================

What:  ORM model representing the `reports` table.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by ReportRepository for CRUD operations.

Table Design:
    - UUID primary key, generated in Python so every dialect gets one
    - study_uid: external correlation key from the imaging system. NOT unique:
      several reports may describe the same study
    - owner: caller id of the creating user, never reassigned
    - status: 'new' → 'completed' → 'verified' (no enforced transition graph)
    - created_at / updated_at: UTC, maintained by the persistence layer

Indexes:
    study_uid   every studyUID lookup (fetch, status, update-by-study)
    owner       the "own reports" half of the visibility predicate
    created_at  newest-first ordering of list results
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from reportdesk.database import Base

# Width of the owner column; longer caller ids are rejected at the edge.
OWNER_MAX_LENGTH = 64


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportStatus(str, enum.Enum):
    """
    Lifecycle states of a report.

    `verified` locks the report against every update path. Only a
    privileged role can remove a verified report afterwards.
    """

    NEW = "new"
    COMPLETED = "completed"
    VERIFIED = "verified"


class Report(Base):
    """
    A medical-style report written against an imaging study.

    Lifecycle:
        1. Created by an authenticated user (owner = caller, status = 'new')
        2. Edited by its owner while status != 'verified'
        3. Verified by its owner: from then on read-only for everyone
        4. Hard-deleted by its owner (unverified only) or a privileged role
    """

    __tablename__ = "reports"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier assigned on insert",
    )

    study_uid: Mapped[Optional[str]] = mapped_column(
        String(128),
        nullable=True,
        comment="Imaging study correlation key (not unique)",
    )

    content: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Free-form report body",
    )

    # Stored as the enum value so the column stays readable in SQL
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReportStatus.NEW.value,
        server_default=text("'new'"),
        comment="Lifecycle state: new, completed, verified",
    )

    owner: Mapped[str] = mapped_column(
        String(OWNER_MAX_LENGTH),
        nullable=False,
        comment="Caller id of the creating user; immutable",
    )

    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    patient_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    patient_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this report was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this report was last modified (UTC)",
    )

    __table_args__ = (
        Index("idx_reports_study_uid", study_uid),
        Index("idx_reports_owner", owner),
        Index("idx_reports_created_at", created_at.desc()),
        CheckConstraint(
            "status IN ('new', 'completed', 'verified')",
            name="ck_reports_status",
        ),
    )

    @property
    def is_verified(self) -> bool:
        return self.status == ReportStatus.VERIFIED.value

    def __repr__(self) -> str:
        return (
            f"<Report(id={self.id}, study_uid='{self.study_uid}', "
            f"owner='{self.owner}', status='{self.status}')>"
        )
