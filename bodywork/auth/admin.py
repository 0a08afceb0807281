"""
Admin session dependencies.

The admin_session cookie holds a signed token (see tokens.py). On every
admin request the token is verified and the admin row is re-checked, so
deactivating an admin takes effect immediately.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status

from bodywork.auth import cookies
from bodywork.auth.tokens import SessionTokenError, read_admin_token
from bodywork.db.client import get_service_role_client
from bodywork.services import get_active_admin

logger = logging.getLogger(__name__)


@dataclass
class AdminUser:
    """An admin resolved from a verified admin_session cookie."""
    id: str
    email: str
    name: str
    role: str


async def get_admin_user(request: Request) -> Optional[AdminUser]:
    """
    Resolve the admin behind the request, or None.

    Never raises: a missing, tampered, or expired cookie, a deactivated
    admin, and a database error all mean "no admin".
    """
    token = cookies.read_admin_session(request.cookies)
    if not token:
        return None

    try:
        claims = read_admin_token(token)
    except SessionTokenError as e:
        logger.info(f"Rejected admin session cookie: {e}")
        return None

    try:
        admin = await get_active_admin(get_service_role_client(), claims.admin_id)
    except Exception as e:
        logger.error(f"Admin lookup failed for admin_id={claims.admin_id}: {e}")
        return None

    if not admin:
        logger.warning(f"Admin session for missing or inactive admin_id={claims.admin_id}")
        return None

    return AdminUser(
        id=str(admin["id"]),
        email=str(admin.get("email") or claims.email),
        name=str(admin.get("name") or ""),
        role=str(admin.get("role") or claims.role),
    )


async def require_admin(
    admin: Annotated[Optional[AdminUser], Depends(get_admin_user)]
) -> AdminUser:
    """
    Dependency for admin-only routes.

    Raises:
        HTTPException: 401 if no valid admin session
    """
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "unauthorized", "details": "Admin access required"}
        )
    return admin
