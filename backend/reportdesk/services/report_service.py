"""
ReportDesk Backend: Report Service (Access Controller)
=======================================================

What:  Mediates every operation on reports: decides whether the caller may
       perform it, then delegates to ReportRepository.
Why:   One place owns the read-decide-write sequence for each operation,
       independent of HTTP concerns.
How:   Load the current state (if any), evaluate the rule from
       report_policy, then either persist or raise a typed error.
Who:   Called by the route handlers in routes/reports.py.

Operations:
    list_reports           own reports + everyone's verified reports
    create_report          owner := caller, status := 'new'
    get_reports_by_study   same visibility as list, NotFound when empty
    get_status_by_study    NOT filtered by caller (see below)
    update_report          NotFound → verified-locked → not-owner → write
    update_by_study        same rules, keyed by studyUID
    delete_report          owner (unverified) or privileged role

Status by studyUID:
    get_status_by_study answers for any caller, unlike get_reports_by_study.
    Existing clients poll it before they have a report of their own, so the
    asymmetry is kept.

Concurrency:
    The load-check-write sequence is not atomic against other writers. A
    verification racing an edit resolves as last-write-wins in the
    database. The service itself keeps no state between calls.
"""

import logging
from typing import List, Union
from uuid import UUID

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession

from reportdesk.config import settings
from reportdesk.exceptions import ForbiddenError, NotFoundError
from reportdesk.identity import CallerIdentity
from reportdesk.models.report import Report, ReportStatus
from reportdesk.schemas.report import ReportCreate, ReportResponse, ReportUpdate
from reportdesk.services.report_policy import Decision, can_delete, can_update, visible_to
from reportdesk.services.report_repository import ReportRepository

logger = logging.getLogger(__name__)


def _report_id(value: Union[UUID, str]) -> UUID:
    """Parses a report id; a malformed id cannot match any report."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(value)
    except ValueError:
        raise NotFoundError(key="id", value=value) from None


class ReportService:
    """
    Stateless access controller for reports.

    Every method receives the request's database session and, where the
    rules depend on it, the caller. Errors:
        NotFoundError     lookup matched nothing visible (→ 404)
        ForbiddenError    a policy check denied the operation (→ 403)
        PersistenceError  raised by the repository, propagated as-is (→ 500)
    """

    def _enforce(self, decision: Decision, report: Report, caller_id: str, action: str) -> None:
        if decision:
            return
        reason = decision.reason.value
        logger.warning(
            "Denied %s of report %s to %s: %s", action, report.id, caller_id, reason
        )
        raise ForbiddenError(reason, context={"report_id": str(report.id)})

    async def list_reports(self, db: AsyncSession, caller_id: str) -> List[ReportResponse]:
        reports = await ReportRepository(db).find_many(visible_to(caller_id))
        return [ReportResponse.model_validate(r) for r in reports]

    async def create_report(
        self, db: AsyncSession, caller_id: str, data: ReportCreate
    ) -> ReportResponse:
        fields = data.model_dump()
        # Never taken from the client
        fields["owner"] = caller_id
        fields["status"] = ReportStatus.NEW.value

        report = await ReportRepository(db).insert(fields)
        logger.info("Report %s created by %s (studyUID=%s)", report.id, caller_id, report.study_uid)
        return ReportResponse.model_validate(report)

    async def get_reports_by_study(
        self, db: AsyncSession, caller_id: str, study_uid: str
    ) -> List[ReportResponse]:
        """
        Reports for a study that the caller may see.

        "No report for this study" and "none visible to you" are both
        reported as NotFound.
        """
        reports = await ReportRepository(db).find_many(
            and_(Report.study_uid == study_uid, visible_to(caller_id))
        )
        if not reports:
            raise NotFoundError(key="studyUID", value=study_uid)
        return [ReportResponse.model_validate(r) for r in reports]

    async def get_status_by_study(self, db: AsyncSession, study_uid: str) -> ReportStatus:
        """
        Status of the newest report on a study.

        Not filtered by visibility: any authenticated caller may read the
        status of any study, unlike get_reports_by_study.
        """
        report = await ReportRepository(db).find_one(Report.study_uid == study_uid)
        if report is None:
            raise NotFoundError(key="studyUID", value=study_uid)
        return ReportStatus(report.status)

    async def update_report(
        self, db: AsyncSession, caller_id: str, report_id: Union[UUID, str], data: ReportUpdate
    ) -> ReportResponse:
        report_id = _report_id(report_id)
        repo = ReportRepository(db)
        report = await repo.find_by_id(report_id)
        if report is None:
            raise NotFoundError(key="id", value=str(report_id))

        self._enforce(can_update(report, caller_id), report, caller_id, "update")

        changes = data.changes()
        updated = await repo.update_by_id(report_id, changes)
        if updated is None:
            # Deleted between the read and the write
            raise NotFoundError(key="id", value=str(report_id))

        logger.info("Report %s updated by %s: %s", report_id, caller_id, sorted(changes))
        return ReportResponse.model_validate(updated)

    async def update_by_study(
        self, db: AsyncSession, caller_id: str, study_uid: str, data: ReportUpdate
    ) -> ReportResponse:
        """
        Update the report selected by studyUID.

        With several reports on the same study, the newest one is the one
        checked and the one written.
        """
        repo = ReportRepository(db)
        report = await repo.find_one(Report.study_uid == study_uid)
        if report is None:
            raise NotFoundError(key="studyUID", value=study_uid)

        self._enforce(can_update(report, caller_id), report, caller_id, "update")

        changes = data.changes()
        updated = await repo.update_one(
            and_(Report.study_uid == study_uid, Report.id == report.id), changes
        )
        if updated is None:
            raise NotFoundError(key="studyUID", value=study_uid)

        logger.info(
            "Report %s (studyUID=%s) updated by %s: %s",
            updated.id, study_uid, caller_id, sorted(changes),
        )
        return ReportResponse.model_validate(updated)

    async def delete_report(
        self, db: AsyncSession, caller: CallerIdentity, report_id: Union[UUID, str]
    ) -> None:
        report_id = _report_id(report_id)
        repo = ReportRepository(db)
        report = await repo.find_by_id(report_id)
        if report is None:
            raise NotFoundError(key="id", value=str(report_id))

        decision = can_delete(report, caller, settings.privileged_roles_set)
        self._enforce(decision, report, caller.user_id, "delete")

        status, owner = report.status, report.owner
        await repo.delete_by_id(report_id)
        logger.info(
            "Report %s (status=%s, owner=%s) deleted by %s",
            report_id, status, owner, caller.user_id,
        )


report_service = ReportService()
