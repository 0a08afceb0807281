"""
Effective identity resolution.

Every data route needs to know whose rows to read: the practitioner making
the request, or, while an admin is impersonating, the practitioner being
impersonated. get_effective_identity is the single place that decides.
It is read only and recomputed on every request.

Resolution order:
1. Impersonation cookies present -> verify the signed session token, check
   the session row is still open, then look up the practitioner's account
   with the service-role client. Any failure yields an anonymous identity
   (never the caller's own identity, never a partial one).
2. Otherwise -> the Supabase Auth user from the bearer token or auth cookie.
3. Otherwise -> anonymous.
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

from fastapi import Request

from bodywork.auth import cookies
from bodywork.auth.dependencies import authenticate_user, extract_access_token
from bodywork.auth.tokens import (
    SessionTokenError,
    SessionTokenExpired,
    read_impersonation_token,
)
from bodywork.db.client import get_service_role_client
from bodywork.services import get_impersonation_session, lookup_practitioner_identity

logger = logging.getLogger(__name__)

# Why impersonation cookies were present but not honoured
FAILURE_INVALID_TOKEN = "invalid_token"
FAILURE_SESSION_EXPIRED = "session_expired"
FAILURE_SESSION_ENDED = "session_ended"
FAILURE_PRACTITIONER_UNRESOLVED = "practitioner_unresolved"
FAILURE_LOOKUP_ERROR = "lookup_error"


@dataclass(frozen=True)
class EffectiveIdentity:
    """
    The identity downstream queries are scoped to.

    Attributes:
        user_id: Account id to scope data to (None when anonymous)
        email: Email of that account
        is_impersonating: True when an admin is acting as a practitioner
        practitioner_id: Impersonated practitioner record id
        practitioner_name: Impersonated practitioner's display name
        admin_return_url: Where the admin lands after ending the session
        session_id: Impersonation session row id
        admin_id: Admin who started the impersonation
        access_token: The practitioner's own Supabase token (not impersonating)
        failure: Diagnostic reason impersonation cookies were rejected
    """
    user_id: Optional[str] = None
    email: Optional[str] = None
    is_impersonating: bool = False
    practitioner_id: Optional[str] = None
    practitioner_name: Optional[str] = None
    admin_return_url: Optional[str] = None
    session_id: Optional[str] = None
    admin_id: Optional[str] = None
    access_token: Optional[str] = field(default=None, repr=False)
    failure: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls, failure: Optional[str] = None) -> "EffectiveIdentity":
        return cls(failure=failure)


async def _resolve_impersonation(carried: cookies.ImpersonationCookies) -> EffectiveIdentity:
    try:
        claims = read_impersonation_token(carried.session_token or "")
    except SessionTokenExpired:
        return EffectiveIdentity.anonymous(FAILURE_SESSION_EXPIRED)
    except SessionTokenError as e:
        logger.warning(f"Rejected impersonation token: {e}")
        return EffectiveIdentity.anonymous(FAILURE_INVALID_TOKEN)

    # The plain practitioner cookie must agree with the signed claim
    if claims.practitioner_id != carried.practitioner_id:
        logger.warning(
            f"Impersonation cookie mismatch for session {claims.session_id}: "
            f"token pid={claims.practitioner_id} cookie pid={carried.practitioner_id}"
        )
        return EffectiveIdentity.anonymous(FAILURE_INVALID_TOKEN)

    try:
        service_client = get_service_role_client()
        session = await get_impersonation_session(service_client, claims.session_id)
    except Exception as e:
        logger.error(f"Impersonation session lookup failed for {claims.session_id}: {e}")
        return EffectiveIdentity.anonymous(FAILURE_LOOKUP_ERROR)

    if not session or session.get("ended_at"):
        return EffectiveIdentity.anonymous(FAILURE_SESSION_ENDED)

    if str(session.get("practitioner_id")) != claims.practitioner_id:
        logger.warning(f"Impersonation session {claims.session_id} belongs to another practitioner")
        return EffectiveIdentity.anonymous(FAILURE_INVALID_TOKEN)

    practitioner = await lookup_practitioner_identity(service_client, claims.practitioner_id)
    if practitioner is None:
        return EffectiveIdentity.anonymous(FAILURE_PRACTITIONER_UNRESOLVED)

    return EffectiveIdentity(
        user_id=practitioner.user_id,
        email=practitioner.email,
        is_impersonating=True,
        practitioner_id=practitioner.practitioner_id,
        practitioner_name=practitioner.name,
        admin_return_url=carried.admin_return_url,
        session_id=claims.session_id,
        admin_id=claims.admin_id,
    )


async def resolve_effective_identity(
    request_cookies: Mapping[str, str],
    authorization: Optional[str] = None
) -> EffectiveIdentity:
    """
    Compute the effective identity for one request.

    Args:
        request_cookies: The request's cookies
        authorization: The raw Authorization header, if any

    Returns:
        EffectiveIdentity. Never raises.
    """
    try:
        carried = cookies.read_impersonation(request_cookies)
        if carried.present:
            return await _resolve_impersonation(carried)

        user = authenticate_user(extract_access_token(authorization, request_cookies))
        if user is None:
            return EffectiveIdentity.anonymous()

        return EffectiveIdentity(
            user_id=user.user_id,
            email=user.email,
            access_token=user.access_token,
        )
    except Exception as e:
        logger.error(f"Unexpected error resolving effective identity: {e}", exc_info=True)
        return EffectiveIdentity.anonymous(FAILURE_LOOKUP_ERROR)


async def get_effective_identity(request: Request) -> EffectiveIdentity:
    """FastAPI dependency wrapping resolve_effective_identity."""
    identity = await resolve_effective_identity(
        request.cookies,
        request.headers.get("authorization"),
    )

    if identity.failure:
        # Distinguish "not impersonating" from "impersonation broke" in logs;
        # the caller still just sees an anonymous identity.
        logger.warning(
            f"Impersonation cookies rejected on {request.method} {request.url.path}: "
            f"{identity.failure}"
        )

    return identity
