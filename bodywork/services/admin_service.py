"""
Admin account service.

Admins are not Supabase Auth users; they live in admin_users and their
passwords are checked by the verify_admin_password RPC (bcrypt in the
database). All calls use the service-role client.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, cast

from supabase import Client

logger = logging.getLogger(__name__)


async def verify_admin_credentials(
    supabase_client: Client,
    email: str,
    password: str
) -> Optional[Dict[str, Any]]:
    """
    Check an admin's email and password.

    Returns:
        The admin row on success, None for bad credentials or an RPC error.
    """
    try:
        result = supabase_client.rpc(
            "verify_admin_password",
            {"admin_email": email, "admin_password": password}
        ).execute()
    except Exception as e:
        logger.error(f"Admin password verification RPC failed: {e}")
        return None

    # RPC returns SETOF admin_users
    admins = result.data
    if not admins or not isinstance(admins, list):
        logger.info("Admin login rejected: invalid credentials")
        return None

    admin = cast(Dict[str, Any], admins[0])
    if admin.get("is_active") is False:
        logger.info(f"Admin login rejected: admin {admin.get('id')} is inactive")
        return None

    return admin


async def record_admin_login(supabase_client: Client, admin_id: str) -> None:
    """Stamp last_login_at. Failures are logged, not raised."""
    try:
        (
            supabase_client.table("admin_users")
            .update({"last_login_at": datetime.now(timezone.utc).isoformat()})
            .eq("id", admin_id)
            .execute()
        )
    except Exception as e:
        logger.warning(f"Could not update last_login_at for admin {admin_id}: {e}")


async def get_active_admin(
    supabase_client: Client,
    admin_id: str
) -> Optional[Dict[str, Any]]:
    """
    Fetch an admin that still exists and is active.

    Raises:
        Exception: propagated from Supabase.
    """
    result = (
        supabase_client.table("admin_users")
        .select("id, email, name, role, is_active, last_login_at")
        .eq("id", admin_id)
        .eq("is_active", True)
        .limit(1)
        .execute()
    )

    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])
