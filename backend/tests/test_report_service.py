"""
ReportDesk Backend: Report Service Tests
=========================================

What:  The access controller against a real (SQLite) database.
Why:   Visibility is enforced in SQL, so these tests exercise the actual
       queries rather than mocked results.

What we test:
    ✅ list: own reports in any status, others' reports only when verified
    ✅ create: owner and status forced by the service
    ✅ fetch by studyUID: visibility + NotFound
    ✅ status by studyUID: unfiltered, newest match on duplicates
    ✅ update by id / by studyUID: NotFound → verified-locked → not-owner
    ✅ delete: owner-unverified or privileged
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from reportdesk.exceptions import ForbiddenError, NotFoundError
from reportdesk.identity import CallerIdentity
from reportdesk.models.report import ReportStatus
from reportdesk.schemas.report import ReportCreate, ReportUpdate
from reportdesk.services.report_repository import ReportRepository
from reportdesk.services.report_service import ReportService


async def seed(db, owner, status=ReportStatus.NEW, study_uid="S1", **extra):
    fields = {"owner": owner, "status": status.value, "study_uid": study_uid}
    fields.update(extra)
    return await ReportRepository(db).insert(fields)


class TestListReports:

    def setup_method(self):
        self.service = ReportService()

    @pytest.mark.asyncio
    async def test_includes_own_reports_in_every_status(self, db_session):
        for status in ReportStatus:
            await seed(db_session, "alice", status, study_uid=f"A-{status.value}")

        result = await self.service.list_reports(db_session, "alice")

        assert {r.status for r in result} == set(ReportStatus)
        assert all(r.owner == "alice" for r in result)

    @pytest.mark.asyncio
    async def test_others_reports_only_when_verified(self, db_session):
        await seed(db_session, "bob", ReportStatus.NEW, study_uid="B1")
        await seed(db_session, "bob", ReportStatus.COMPLETED, study_uid="B2")
        verified = await seed(db_session, "bob", ReportStatus.VERIFIED, study_uid="B3")

        result = await self.service.list_reports(db_session, "alice")

        assert [r.id for r in result] == [verified.id]

    @pytest.mark.asyncio
    async def test_empty_list_for_new_user(self, db_session):
        await seed(db_session, "bob")
        assert await self.service.list_reports(db_session, "alice") == []


class TestCreateReport:

    def setup_method(self):
        self.service = ReportService()

    @pytest.mark.asyncio
    async def test_owner_and_status_are_forced(self, db_session):
        body = ReportCreate.model_validate({
            "studyUID": "S1",
            "content": "x",
            "owner": "mallory",
            "status": "verified",
            "patientID": "P-7",
        })

        result = await self.service.create_report(db_session, "alice", body)

        assert result.owner == "alice"
        assert result.status is ReportStatus.NEW
        assert result.study_uid == "S1"
        assert result.patient_id == "P-7"
        assert result.id is not None


class TestFetchByStudy:

    def setup_method(self):
        self.service = ReportService()

    @pytest.mark.asyncio
    async def test_unverified_report_of_other_user_is_not_found(self, db_session):
        await seed(db_session, "alice", ReportStatus.COMPLETED)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_reports_by_study(db_session, "bob", "S1")

        assert exc_info.value.key == "studyUID"
        assert exc_info.value.value == "S1"

    @pytest.mark.asyncio
    async def test_returns_own_and_verified_reports_for_study(self, db_session):
        own = await seed(db_session, "bob", ReportStatus.NEW)
        verified = await seed(db_session, "alice", ReportStatus.VERIFIED)
        await seed(db_session, "carol", ReportStatus.COMPLETED)
        await seed(db_session, "alice", ReportStatus.VERIFIED, study_uid="S2")

        result = await self.service.get_reports_by_study(db_session, "bob", "S1")

        assert {r.id for r in result} == {own.id, verified.id}


class TestStatusByStudy:

    def setup_method(self):
        self.service = ReportService()

    @pytest.mark.asyncio
    async def test_status_is_not_filtered_by_caller(self, db_session):
        await seed(db_session, "alice", ReportStatus.COMPLETED)

        status = await self.service.get_status_by_study(db_session, "S1")

        assert status is ReportStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_unknown_study_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_status_by_study(db_session, "nope")

    @pytest.mark.asyncio
    async def test_duplicates_resolve_to_newest(self, db_session):
        now = datetime.now(timezone.utc)
        await seed(db_session, "alice", ReportStatus.VERIFIED, created_at=now - timedelta(days=1))
        await seed(db_session, "bob", ReportStatus.NEW, created_at=now)

        assert await self.service.get_status_by_study(db_session, "S1") is ReportStatus.NEW


class TestUpdateReport:

    def setup_method(self):
        self.service = ReportService()

    @pytest.mark.asyncio
    async def test_missing_report_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.update_report(
                db_session, "alice", uuid4(), ReportUpdate(content="y")
            )
        assert exc_info.value.key == "id"

    @pytest.mark.asyncio
    async def test_malformed_id_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.update_report(
                db_session, "alice", "not-a-uuid", ReportUpdate(content="y")
            )
        assert exc_info.value.context == {"key": "id", "value": "not-a-uuid"}

    @pytest.mark.asyncio
    async def test_string_id_is_accepted(self, db_session):
        report = await seed(db_session, "alice")

        updated = await self.service.update_report(
            db_session, "alice", str(report.id), ReportUpdate(title="T")
        )

        assert updated.id == report.id
        assert updated.title == "T"

    @pytest.mark.asyncio
    async def test_non_owner_is_forbidden(self, db_session):
        report = await seed(db_session, "alice")

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.update_report(
                db_session, "bob", report.id, ReportUpdate(content="hijack")
            )

        assert exc_info.value.reason == "not-owner"
        assert report.content is None

    @pytest.mark.asyncio
    async def test_verified_is_locked_even_for_owner(self, db_session):
        report = await seed(db_session, "alice", ReportStatus.VERIFIED, content="final")

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.update_report(
                db_session, "alice", report.id, ReportUpdate(status=ReportStatus.NEW)
            )

        assert exc_info.value.reason == "verified-locked"
        assert report.status == "verified"

    @pytest.mark.asyncio
    async def test_owner_update_keeps_owner(self, db_session):
        report = await seed(db_session, "alice", title="draft")
        body = ReportUpdate.model_validate(
            {"content": "findings", "status": "completed", "owner": "bob"}
        )

        result = await self.service.update_report(db_session, "alice", report.id, body)

        assert result.owner == "alice"
        assert result.content == "findings"
        assert result.status is ReportStatus.COMPLETED
        # Fields absent from the body are left alone
        assert result.title == "draft"

    @pytest.mark.asyncio
    async def test_owner_can_move_status_backwards(self, db_session):
        report = await seed(db_session, "alice", ReportStatus.COMPLETED)

        result = await self.service.update_report(
            db_session, "alice", report.id, ReportUpdate(status=ReportStatus.NEW)
        )

        assert result.status is ReportStatus.NEW


class TestUpdateByStudy:

    def setup_method(self):
        self.service = ReportService()

    @pytest.mark.asyncio
    async def test_unknown_study_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.update_by_study(db_session, "alice", "S9", ReportUpdate())

    @pytest.mark.asyncio
    async def test_same_rules_as_update_by_id(self, db_session):
        await seed(db_session, "alice")

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.update_by_study(
                db_session, "bob", "S1", ReportUpdate(content="x")
            )
        assert exc_info.value.reason == "not-owner"

        result = await self.service.update_by_study(
            db_session, "alice", "S1", ReportUpdate(status=ReportStatus.VERIFIED)
        )
        assert result.status is ReportStatus.VERIFIED

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.update_by_study(
                db_session, "alice", "S1", ReportUpdate(content="late edit")
            )
        assert exc_info.value.reason == "verified-locked"

    @pytest.mark.asyncio
    async def test_only_newest_duplicate_is_updated(self, db_session):
        now = datetime.now(timezone.utc)
        older = await seed(db_session, "alice", content="old", created_at=now - timedelta(hours=1))
        newer = await seed(db_session, "alice", content="new", created_at=now)

        result = await self.service.update_by_study(
            db_session, "alice", "S1", ReportUpdate(content="edited")
        )

        assert result.id == newer.id
        assert newer.content == "edited"
        assert older.content == "old"


class TestDeleteReport:

    def setup_method(self):
        self.service = ReportService()

    @pytest.mark.asyncio
    async def test_missing_report_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.delete_report(db_session, CallerIdentity("admin", frozenset({"admin"})), uuid4())

    @pytest.mark.asyncio
    async def test_owner_deletes_unverified(self, db_session):
        report = await seed(db_session, "alice", ReportStatus.COMPLETED)

        await self.service.delete_report(db_session, CallerIdentity("alice"), report.id)

        assert await ReportRepository(db_session).find_by_id(report.id) is None

    @pytest.mark.asyncio
    async def test_owner_cannot_delete_verified(self, db_session):
        report = await seed(db_session, "alice", ReportStatus.VERIFIED)

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.delete_report(db_session, CallerIdentity("alice"), report.id)

        assert exc_info.value.reason == "insufficient-role"
        assert await ReportRepository(db_session).find_by_id(report.id) is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["admin", "manager"])
    async def test_privileged_role_deletes_verified_report_of_others(self, db_session, role):
        report = await seed(db_session, "alice", ReportStatus.VERIFIED)

        await self.service.delete_report(
            db_session, CallerIdentity("carol", frozenset({role})), report.id
        )

        assert await ReportRepository(db_session).find_by_id(report.id) is None

    @pytest.mark.asyncio
    async def test_role_match_is_case_sensitive(self, db_session):
        report = await seed(db_session, "alice", ReportStatus.VERIFIED)

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.delete_report(
                db_session, CallerIdentity("carol", frozenset({"ADMIN"})), report.id
            )

        assert exc_info.value.reason == "insufficient-role"

    @pytest.mark.asyncio
    async def test_stranger_is_forbidden(self, db_session):
        report = await seed(db_session, "alice")

        with pytest.raises(ForbiddenError):
            await self.service.delete_report(
                db_session, CallerIdentity("bob", frozenset({"user"})), report.id
            )
