"""
Impersonation end endpoint.

POST /impersonate/end is reachable from the practitioner app's
impersonation banner as well as from the admin portal, so it does not
require an admin session. It always succeeds and always clears the
impersonation cookies, even when the database update fails: a broken
session must never leave a browser stuck impersonating.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from supabase import Client

from bodywork.auth import cookies
from bodywork.auth.admin import AdminUser, get_admin_user
from bodywork.auth.tokens import peek_impersonation_session_id
from bodywork.db.client import get_service_role_client
from bodywork.schemas.admin import RedirectResult
from bodywork.services import end_impersonation_session, log_admin_event
from bodywork.utils.constants import ADMIN_EVENT_TYPES, IMPERSONATION_END_REDIRECT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/impersonate", tags=["impersonation"])

# Tells clients to drop any cached /auth/me result
IDENTITY_CHANGED_HEADER = "X-Identity-Changed"


def mark_identity_changed(response: Response) -> None:
    response.headers[IDENTITY_CHANGED_HEADER] = "1"


async def end_carried_session(
    carried: cookies.ImpersonationCookies,
    admin: Optional[AdminUser],
    service_client: Optional[Client] = None
) -> bool:
    """
    Close the session referenced by the request's impersonation cookie.

    Writes admin.impersonation_ended when an admin is resolvable and this
    call closed the row, so one session yields at most one ended event.
    Does not touch cookies; callers clear them.

    Returns:
        True if a still-open session was closed by this call.

    Raises:
        Exception: propagated from Supabase; callers log it and carry on.
    """
    if not carried.session_token:
        return False

    session_id = peek_impersonation_session_id(carried.session_token)
    if not session_id:
        return False

    client = service_client or get_service_role_client()
    closed = await end_impersonation_session(client, session_id)

    if closed and admin is not None:
        await log_admin_event(
            client,
            event_type=ADMIN_EVENT_TYPES["IMPERSONATION_ENDED"],
            actor_type="admin",
            actor_id=admin.id,
            actor_email=admin.email,
            practitioner_id=carried.practitioner_id,
            description="Ended impersonation session",
            metadata={"session_id": session_id},
        )

    return closed


@router.post(
    "/end",
    response_model=RedirectResult,
    status_code=status.HTTP_200_OK,
    summary="End impersonation",
    description="""
    End the impersonation session carried by this browser.

    - Marks the session ended (if still open)
    - Records admin.impersonation_ended when an admin session is present
    - Always clears the impersonation cookies and returns success
    """
)
async def end_impersonation(
    request: Request,
    response: Response,
    admin: Annotated[Optional[AdminUser], Depends(get_admin_user)]
) -> RedirectResult:
    """End impersonation. Idempotent; safe with or without cookies."""
    carried = cookies.read_impersonation(request.cookies)

    try:
        await end_carried_session(carried, admin)
    except Exception as e:
        logger.error(f"Failed to close impersonation session: {e}", exc_info=True)

    cookies.clear_impersonation(response)
    mark_identity_changed(response)

    return RedirectResult(success=True, redirect=IMPERSONATION_END_REDIRECT)
