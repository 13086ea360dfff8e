"""
ReportDesk Backend: Report Access Policy
=========================================

What:  The visibility and mutation rules for reports, as pure functions.
Why:   Keeping the rules free of I/O and exceptions makes every rule
       testable against a plain object, and lets the service decide how a
       denial is surfaced.
How:   Each check inspects an already-loaded report plus the caller and
       returns a Decision. The visibility rule is expressed once, as a
       SQLAlchemy predicate, so list and fetch-by-study share it.

Rules:
    Visibility   own reports (any status) + everyone's verified reports
    Update       verified → denied for everyone (checked first)
                 otherwise only the owner
    Delete       owner while not verified, or any privileged role
"""

import enum
from dataclasses import dataclass
from typing import FrozenSet, Optional

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from reportdesk.identity import CallerIdentity
from reportdesk.models.report import Report, ReportStatus

DEFAULT_PRIVILEGED_ROLES: FrozenSet[str] = frozenset({"admin", "manager"})


class DenyReason(str, enum.Enum):
    VERIFIED_LOCKED = "verified-locked"
    NOT_OWNER = "not-owner"
    INSUFFICIENT_ROLE = "insufficient-role"


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy check: allowed, or denied with a reason."""

    allowed: bool
    reason: Optional[DenyReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


def visible_to(caller_id: str) -> ColumnElement[bool]:
    """Predicate matching the reports `caller_id` may read."""
    return or_(
        Report.owner == caller_id,
        and_(Report.status == ReportStatus.VERIFIED.value, Report.owner != caller_id),
    )


def can_update(report: Report, caller_id: str) -> Decision:
    """
    Update rule shared by update-by-id and update-by-studyUID.

    The lock is checked before ownership so that even the owner gets
    `verified-locked` rather than succeeding.
    """
    if report.is_verified:
        return deny(DenyReason.VERIFIED_LOCKED)
    if report.owner != caller_id:
        return deny(DenyReason.NOT_OWNER)
    return ALLOW


def can_delete(
    report: Report,
    caller: CallerIdentity,
    privileged_roles: FrozenSet[str] = DEFAULT_PRIVILEGED_ROLES,
) -> Decision:
    """Owner may delete while unverified; privileged roles may always delete."""
    is_owner = report.owner == caller.user_id
    is_privileged = caller.has_any_role(privileged_roles)
    if (is_owner and not report.is_verified) or is_privileged:
        return ALLOW
    return deny(DenyReason.INSUFFICIENT_ROLE)
