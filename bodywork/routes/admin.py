"""
Admin portal API endpoints.

- POST /admin/login                   - Email/password login, sets admin_session
- POST /admin/logout                  - Ends any impersonation, clears cookies
- POST /admin/impersonate             - Start impersonating a practitioner
- GET  /admin/impersonation/sessions  - Sessions that have not been ended
- GET  /admin/events                  - Audit trail

Everything here runs with the service-role client. Access is gated by the
signed admin_session cookie (require_admin), not by RLS.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from bodywork.auth import cookies
from bodywork.auth.admin import AdminUser, get_admin_user, require_admin
from bodywork.auth.tokens import issue_admin_token, issue_impersonation_token
from bodywork.db.client import get_service_role_client
from bodywork.routes.impersonation import end_carried_session, mark_identity_changed
from bodywork.schemas.admin import (
    AdminEventListResponse,
    AdminEventResponse,
    AdminLoginRequest,
    ImpersonationSessionListResponse,
    ImpersonationSessionResponse,
    ImpersonationStartRequest,
    RedirectResult,
    SuccessResponse,
)
from bodywork.services import (
    create_impersonation_session,
    get_practitioner_by_id,
    list_active_sessions,
    list_admin_events,
    log_admin_event,
    record_admin_login,
    verify_admin_credentials,
)
from bodywork.utils.constants import ADMIN_EVENT_TYPES, IMPERSONATION_START_REDIRECT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/login",
    response_model=SuccessResponse,
    status_code=status.HTTP_200_OK,
    summary="Admin login",
    description="""
    Verify admin credentials and set the admin_session cookie.

    - 400 if email or password is missing
    - 401 on bad credentials or an inactive admin
    """
)
async def admin_login(
    request: AdminLoginRequest,
    response: Response
) -> SuccessResponse:
    """Log an admin in."""
    if not request.email or not request.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "invalid_request",
                "details": "Email and password are required"
            }
        )

    try:
        service_client = get_service_role_client()
        admin = await verify_admin_credentials(service_client, request.email, request.password)

        if not admin:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={
                    "error": "invalid_credentials",
                    "details": "Invalid email or password"
                }
            )

        admin_id = str(admin["id"])
        token = issue_admin_token(admin_id, str(admin.get("email") or request.email), str(admin.get("role") or "admin"))

        await record_admin_login(service_client, admin_id)
        await log_admin_event(
            service_client,
            event_type=ADMIN_EVENT_TYPES["LOGIN"],
            actor_type="admin",
            actor_id=admin_id,
            actor_email=admin.get("email"),
            description=f"Admin {admin.get('name') or admin.get('email')} logged in",
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Admin login failed unexpectedly: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "login_failed",
                "details": "An unexpected error occurred"
            }
        )

    cookies.set_admin_session(response, token)
    logger.info(f"Admin {admin_id} logged in")

    return SuccessResponse(success=True)


@router.post(
    "/logout",
    response_model=SuccessResponse,
    status_code=status.HTTP_200_OK,
    summary="Admin logout",
    description="""
    Clear the admin session. Any impersonation this browser carries is
    ended as well, so a logged-out admin cannot keep acting as a
    practitioner.
    """
)
async def admin_logout(
    request: Request,
    response: Response,
    admin: Annotated[Optional[AdminUser], Depends(get_admin_user)]
) -> SuccessResponse:
    """Log the admin out. Always succeeds and always clears cookies."""
    try:
        service_client = get_service_role_client()
        await end_carried_session(cookies.read_impersonation(request.cookies), admin, service_client)

        if admin is not None:
            await log_admin_event(
                service_client,
                event_type=ADMIN_EVENT_TYPES["LOGOUT"],
                actor_type="admin",
                actor_id=admin.id,
                actor_email=admin.email,
                description=f"Admin {admin.name or admin.email} logged out",
            )
    except Exception as e:
        logger.error(f"Error during admin logout cleanup: {e}", exc_info=True)

    cookies.clear_impersonation(response)
    cookies.clear_admin_session(response)
    mark_identity_changed(response)

    return SuccessResponse(success=True)


@router.post(
    "/impersonate",
    response_model=RedirectResult,
    status_code=status.HTTP_200_OK,
    summary="Start impersonating a practitioner",
    description="""
    Open an impersonation session and set the impersonation cookies.

    - 401 without an admin session
    - 400 if practitioner_id is missing
    - 404 if the practitioner does not exist
    - 409 if the practitioner has no linked account to act as
    - 500 if the session could not be recorded

    A session already carried by this browser is ended first.
    """
)
async def start_impersonation(
    body: ImpersonationStartRequest,
    request: Request,
    response: Response,
    admin: Annotated[AdminUser, Depends(require_admin)]
) -> RedirectResult:
    """Start impersonation for support purposes."""
    practitioner_id = body.practitioner_id
    if not practitioner_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "invalid_request",
                "details": "Practitioner ID is required"
            }
        )

    try:
        service_client = get_service_role_client()
        practitioner = await get_practitioner_by_id(service_client, practitioner_id)

        if not practitioner:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={
                    "error": "not_found",
                    "details": "Practitioner not found"
                }
            )

        if not practitioner.get("user_id"):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "error": "not_linked",
                    "details": "Practitioner has no linked account to impersonate"
                }
            )

        # One impersonation per browser; a failed close must not block the switch
        try:
            await end_carried_session(cookies.read_impersonation(request.cookies), admin, service_client)
        except Exception as e:
            logger.error(f"Failed to close previous impersonation session: {e}", exc_info=True)

        session = await create_impersonation_session(
            service_client,
            admin_id=admin.id,
            practitioner_id=practitioner_id,
            ip_address=request.headers.get("x-forwarded-for") or (request.client.host if request.client else None),
            user_agent=request.headers.get("user-agent"),
        )
        session_token = issue_impersonation_token(str(session["id"]), practitioner_id, admin.id)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            f"Failed to start impersonation of {practitioner_id} by admin {admin.id}: {e}",
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "start_failed",
                "details": "Failed to start impersonation"
            }
        )

    await log_admin_event(
        service_client,
        event_type=ADMIN_EVENT_TYPES["IMPERSONATION_STARTED"],
        actor_type="admin",
        actor_id=admin.id,
        actor_email=admin.email,
        practitioner_id=practitioner_id,
        description=f"Started impersonating {practitioner.get('name')} ({practitioner.get('email')})",
        metadata={"session_id": str(session["id"])},
    )

    cookies.set_impersonation(
        response,
        session_token=session_token,
        practitioner_id=practitioner_id,
        admin_return_url=f"/admin/practitioners/{practitioner_id}",
    )
    mark_identity_changed(response)

    logger.info(f"Admin {admin.id} started impersonation session {session['id']}")

    return RedirectResult(success=True, redirect=IMPERSONATION_START_REDIRECT)


@router.get(
    "/impersonation/sessions",
    response_model=ImpersonationSessionListResponse,
    status_code=status.HTTP_200_OK,
    summary="List active impersonation sessions"
)
async def get_active_impersonation_sessions(
    admin: Annotated[AdminUser, Depends(require_admin)]
) -> ImpersonationSessionListResponse:
    try:
        sessions = await list_active_sessions(get_service_role_client())
    except Exception as e:
        logger.error(f"Failed to list impersonation sessions: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "fetch_error",
                "details": "Failed to fetch impersonation sessions"
            }
        )

    items = [
        ImpersonationSessionResponse(
            id=str(row["id"]),
            admin_id=str(row["admin_id"]),
            practitioner_id=str(row["practitioner_id"]),
            started_at=row.get("started_at"),
            ended_at=row.get("ended_at"),
            ip_address=row.get("ip_address"),
            user_agent=row.get("user_agent"),
        )
        for row in sessions
    ]
    return ImpersonationSessionListResponse(sessions=items, count=len(items))


@router.get(
    "/events",
    response_model=AdminEventListResponse,
    status_code=status.HTTP_200_OK,
    summary="List admin audit events",
    description="Audit trail, newest first. Filter by practitioner, event type, or category."
)
async def get_admin_events(
    admin: Annotated[AdminUser, Depends(require_admin)],
    practitioner_id: Annotated[Optional[str], Query()] = None,
    event_type: Annotated[Optional[str], Query()] = None,
    event_category: Annotated[Optional[str], Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0
) -> AdminEventListResponse:
    """Read the admin audit trail."""
    try:
        events = await list_admin_events(
            get_service_role_client(),
            practitioner_id=practitioner_id,
            event_type=event_type,
            event_category=event_category,
            limit=limit,
            offset=offset,
        )
    except Exception as e:
        logger.error(f"Failed to fetch admin events: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "fetch_error",
                "details": "Failed to fetch admin events"
            }
        )

    items = [
        AdminEventResponse(
            id=str(event["id"]) if event.get("id") is not None else None,
            actor_type=str(event.get("actor_type") or "system"),
            actor_id=event.get("actor_id"),
            actor_email=event.get("actor_email"),
            event_type=str(event.get("event_type") or ""),
            event_category=event.get("event_category"),
            practitioner_id=event.get("practitioner_id"),
            description=event.get("description"),
            metadata=event.get("metadata") or {},
            created_at=str(event["created_at"]) if event.get("created_at") is not None else None,
        )
        for event in events
    ]

    return AdminEventListResponse(events=items, count=len(items), limit=limit, offset=offset)
