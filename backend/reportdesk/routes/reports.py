"""
ReportDesk Backend: Report Route Handlers
==========================================

What:  HTTP endpoints for reports under /api/v1/reports.
Why:   Entry point for the report viewer and the imaging workstation.
How:   Resolves the caller identity and the DB session, delegates to
       ReportService, wraps the result in the response envelope.

Route Inventory:
    GET    /api/v1/reports                    list visible reports
    POST   /api/v1/reports                    create a report
    GET    /api/v1/reports/status/{studyUID}  status of a study's report
    PUT    /api/v1/reports/status/{studyUID}  update a study's report
    GET    /api/v1/reports/{studyUID}         visible reports of a study
    PUT    /api/v1/reports/{id}               update a report
    DELETE /api/v1/reports/{id}               delete a report
"""

import logging
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from reportdesk.database import get_db_session
from reportdesk.identity import CallerIdentity, get_caller
from reportdesk.schemas.report import (
    ErrorResponse,
    ReportCollectionEnvelope,
    ReportCreate,
    ReportCreatedResponse,
    ReportEnvelope,
    ReportListResponse,
    ReportStatusResponse,
    ReportUpdate,
)
from reportdesk.services.report_service import report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])

_AUTH_ERRORS = {401: {"description": "Missing caller identity", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "No matching report", "model": ErrorResponse}}
_FORBIDDEN = {403: {"description": "Operation not permitted", "model": ErrorResponse}}


@router.get(
    "",
    response_model=ReportListResponse,
    responses={**_AUTH_ERRORS},
    summary="List reports visible to the caller",
    description=(
        "Returns the caller's own reports in any status plus every verified "
        "report written by other users, newest first."
    ),
)
async def list_reports(
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
) -> ReportListResponse:
    reports = await report_service.list_reports(db=db, caller_id=caller.user_id)
    return ReportListResponse(count=len(reports), data=reports)


@router.post(
    "",
    status_code=201,
    response_model=ReportCreatedResponse,
    responses={**_AUTH_ERRORS, 500: {"description": "Server error", "model": ErrorResponse}},
    summary="Create a report",
    description="Creates a report owned by the caller with status 'new'.",
)
async def create_report(
    body: ReportCreate,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
) -> ReportCreatedResponse:
    report = await report_service.create_report(db=db, caller_id=caller.user_id, data=body)
    return ReportCreatedResponse(data=report)


@router.get(
    "/status/{study_uid}",
    response_model=ReportStatusResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Get report status by studyUID",
    description=(
        "Returns the status of the newest report for the study. "
        "Not restricted to the caller's own or verified reports."
    ),
)
async def get_report_status(
    study_uid: str,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
) -> ReportStatusResponse:
    status = await report_service.get_status_by_study(db=db, study_uid=study_uid)
    return ReportStatusResponse(status=status)


@router.put(
    "/status/{study_uid}",
    response_model=ReportEnvelope,
    responses={**_AUTH_ERRORS, **_FORBIDDEN, **_NOT_FOUND},
    summary="Update a report by studyUID",
    description=(
        "Updates content, status, title and patient fields of the newest report "
        "for the study. Only the owner may update, and never once verified."
    ),
)
async def update_report_by_study(
    study_uid: str,
    body: ReportUpdate,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
) -> ReportEnvelope:
    report = await report_service.update_by_study(
        db=db, caller_id=caller.user_id, study_uid=study_uid, data=body
    )
    return ReportEnvelope(data=report)


@router.get(
    "/{study_uid}",
    response_model=ReportCollectionEnvelope,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Get reports by studyUID",
    description="Returns the study's reports that the caller may see.",
)
async def get_reports_by_study(
    study_uid: str,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
) -> ReportCollectionEnvelope:
    reports = await report_service.get_reports_by_study(
        db=db, caller_id=caller.user_id, study_uid=study_uid
    )
    return ReportCollectionEnvelope(data=reports)


@router.put(
    "/{report_id}",
    response_model=ReportEnvelope,
    responses={**_AUTH_ERRORS, **_FORBIDDEN, **_NOT_FOUND},
    summary="Update a report",
    description=(
        "Updates content, status, title and patient fields. Only the owner may "
        "update, and never once the report is verified."
    ),
)
async def update_report(
    report_id: str,
    body: ReportUpdate,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
) -> ReportEnvelope:
    report = await report_service.update_report(
        db=db, caller_id=caller.user_id, report_id=report_id, data=body
    )
    return ReportEnvelope(data=report)


@router.delete(
    "/{report_id}",
    status_code=204,
    responses={**_AUTH_ERRORS, **_FORBIDDEN, **_NOT_FOUND},
    summary="Delete a report",
    description=(
        "Owners may delete their unverified reports; admins and managers "
        "may delete any report."
    ),
)
async def delete_report(
    report_id: str,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await report_service.delete_report(db=db, caller=caller, report_id=report_id)
    return Response(status_code=204)
