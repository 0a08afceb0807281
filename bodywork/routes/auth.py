"""
Auth API endpoints.

- GET /auth/me - Effective identity (real practitioner or impersonated)

/auth/me is public: an anonymous caller gets {"user": null}.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from bodywork.auth.context import EffectiveIdentity, get_effective_identity
from bodywork.schemas.auth import AuthMeResponse, EffectiveUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/me",
    response_model=AuthMeResponse,
    status_code=status.HTTP_200_OK,
    summary="Get the effective user",
    description="""
    Return the identity data is currently scoped to.

    - Impersonating: the practitioner's account, isImpersonating=true, and
      the banner fields (practitionerName, adminReturnUrl)
    - Signed in practitioner: their own account
    - Otherwise: user=null

    Rejected or stale impersonation cookies resolve to user=null, never to
    the caller's own account.
    """
)
async def get_auth_me(
    identity: Annotated[EffectiveIdentity, Depends(get_effective_identity)]
) -> AuthMeResponse:
    """Get the effective user for session hydration and the impersonation banner."""
    if not identity.is_authenticated:
        return AuthMeResponse(user=None, is_impersonating=False)

    user = EffectiveUser(id=identity.user_id, email=identity.email)

    if identity.is_impersonating:
        logger.debug(
            f"auth/me resolved impersonation session {identity.session_id} "
            f"-> practitioner {identity.practitioner_id}"
        )
        return AuthMeResponse(
            user=user,
            is_impersonating=True,
            practitioner_name=identity.practitioner_name,
            admin_return_url=identity.admin_return_url,
        )

    return AuthMeResponse(user=user, is_impersonating=False)
