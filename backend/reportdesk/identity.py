"""
ReportDesk Backend: Caller Identity
====================================

What:  The authenticated caller (user id + role set) and the FastAPI
       dependency that resolves it for each request.
Why:   Every access decision needs to know who is asking. Passing the
       identity explicitly into each service call keeps the service free
       of request-global state and lets tests build identities directly.
How:   Token verification happens upstream (API gateway / auth proxy),
       which forwards the verified user id and roles as request headers.
       This module trusts those headers and only parses them.

Headers (names configurable in settings):
    X-User-ID:     opaque caller id, required
    X-User-Roles:  comma-separated roles, optional (e.g. "user,manager")
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from fastapi import Request

from reportdesk.config import settings
from reportdesk.exceptions import AuthenticationError
from reportdesk.models.report import OWNER_MAX_LENGTH

logger = logging.getLogger(__name__)


def parse_roles(raw: Optional[str]) -> FrozenSet[str]:
    """Splits a comma-separated role header into a frozenset; names are case-sensitive."""
    if not raw:
        return frozenset()
    return frozenset(role.strip() for role in raw.split(",") if role.strip())


@dataclass(frozen=True)
class CallerIdentity:
    """An authenticated caller as seen by the access controller."""

    user_id: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return not self.roles.isdisjoint(roles)


async def get_caller(request: Request) -> CallerIdentity:
    """
    FastAPI dependency returning the caller of the current request.

    Raises:
        AuthenticationError: the identity header is missing, blank or longer
            than OWNER_MAX_LENGTH (→ 401)
    """
    user_id = request.headers.get(settings.identity_header, "").strip()
    if not user_id:
        logger.warning("Request to %s without %s header", request.url.path, settings.identity_header)
        raise AuthenticationError(context={"header": settings.identity_header})
    if len(user_id) > OWNER_MAX_LENGTH:
        logger.warning(
            "Request to %s with a %d-character %s header",
            request.url.path, len(user_id), settings.identity_header,
        )
        raise AuthenticationError(
            message="Caller id is too long",
            context={"header": settings.identity_header, "max_length": OWNER_MAX_LENGTH},
        )

    caller = CallerIdentity(
        user_id=user_id,
        roles=parse_roles(request.headers.get(settings.roles_header)),
    )
    request.state.caller = caller
    return caller
