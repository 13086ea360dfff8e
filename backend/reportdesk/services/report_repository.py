"""
ReportDesk Backend: Report Repository
======================================

What:  Document-store style persistence API for reports.
Why:   The access controller only needs a handful of primitives (insert,
       find by id, find one/many by predicate, update, delete). Hiding the
       SQLAlchemy session behind them keeps the controller readable and
       gives one place to translate driver errors.
How:   Predicates are SQLAlchemy boolean clauses, composed by the caller
       with ==, !=, and_() and or_(). Writes are flushed, not committed;
       the request-scoped session commits in get_db_session.

Ordering:
    find_one and find_many return the most recently created match first
    (created_at DESC, id DESC). When several reports share a studyUID,
    find_one therefore selects the newest one, deterministically.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from reportdesk.exceptions import PersistenceError
from reportdesk.models.report import Report

logger = logging.getLogger(__name__)

# Attributes the update primitives are allowed to write
MUTABLE_FIELDS = frozenset({"content", "status", "title", "patient_id", "patient_name"})


@contextmanager
def _persistence_errors(operation: str) -> Iterator[None]:
    """Translates SQLAlchemy failures into PersistenceError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Report %s failed: %s", operation, str(e), exc_info=True)
        raise PersistenceError(
            context={"operation": operation, "original_error": type(e).__name__},
        ) from e


class ReportRepository:
    """Persistence primitives over one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _newest_first(query):
        return query.order_by(Report.created_at.desc(), Report.id.desc())

    async def insert(self, fields: Dict[str, Any]) -> Report:
        report = Report(**fields)
        with _persistence_errors("insert"):
            self.db.add(report)
            await self.db.flush()
        return report

    async def find_by_id(self, report_id: UUID) -> Optional[Report]:
        with _persistence_errors("find_by_id"):
            return await self.db.get(Report, report_id)

    async def find_one(self, predicate: ColumnElement[bool]) -> Optional[Report]:
        query = self._newest_first(select(Report).where(predicate)).limit(1)
        with _persistence_errors("find_one"):
            result = await self.db.execute(query)
            return result.scalars().first()

    async def find_many(self, predicate: ColumnElement[bool]) -> List[Report]:
        query = self._newest_first(select(Report).where(predicate))
        with _persistence_errors("find_many"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def _apply(self, report: Report, fields: Dict[str, Any], operation: str) -> Report:
        # owner, id and timestamps are never taken from the caller
        for name, value in fields.items():
            if name in MUTABLE_FIELDS:
                setattr(report, name, value)
        report.updated_at = datetime.now(timezone.utc)
        with _persistence_errors(operation):
            await self.db.flush()
        return report

    async def update_by_id(self, report_id: UUID, fields: Dict[str, Any]) -> Optional[Report]:
        """Applies `fields` to the report with `report_id`; None if it no longer exists."""
        report = await self.find_by_id(report_id)
        if report is None:
            return None
        return await self._apply(report, fields, "update_by_id")

    async def update_one(
        self, predicate: ColumnElement[bool], fields: Dict[str, Any]
    ) -> Optional[Report]:
        """Applies `fields` to the first report matching `predicate`; None if none match."""
        report = await self.find_one(predicate)
        if report is None:
            return None
        return await self._apply(report, fields, "update_one")

    async def delete_by_id(self, report_id: UUID) -> None:
        report = await self.find_by_id(report_id)
        if report is None:
            return
        with _persistence_errors("delete_by_id"):
            await self.db.delete(report)
            await self.db.flush()
