"""
Impersonation session store.

Rows in impersonation_sessions are created when an admin starts
impersonating a practitioner and are only ever mutated to set ended_at.
They are never deleted.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from bodywork.config import settings

logger = logging.getLogger(__name__)


async def create_impersonation_session(
    supabase_client: Client,
    admin_id: str,
    practitioner_id: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None
) -> Dict[str, Any]:
    """
    Open a new impersonation session.

    Args:
        supabase_client: Service-role Supabase client
        admin_id: The admin starting the session
        practitioner_id: The practitioner being impersonated
        ip_address: Client address, for the audit view
        user_agent: Client user agent, for the audit view

    Returns:
        The created session row (id, admin_id, practitioner_id, started_at, ...)

    Raises:
        Exception: If Supabase returns no row or the insert fails.
    """
    session_data = {
        "admin_id": admin_id,
        "practitioner_id": practitioner_id,
        "ip_address": ip_address,
        "user_agent": user_agent,
    }

    logger.info(f"Creating impersonation session: admin_id={admin_id} practitioner_id={practitioner_id}")

    result = supabase_client.table("impersonation_sessions").insert(session_data).execute()

    if not result.data:
        raise Exception("Failed to create impersonation session: no data returned")

    session = cast(Dict[str, Any], result.data[0])
    logger.info(f"Impersonation session {session.get('id')} started")
    return session


async def end_impersonation_session(
    supabase_client: Client,
    session_id: str,
    now: Optional[datetime] = None
) -> bool:
    """
    Mark a session ended.

    Only rows with ended_at still NULL are touched, so ending twice leaves
    the first ended_at in place. Concurrent calls are safe.

    Returns:
        True if this call closed the session, False if it was already
        closed or does not exist.

    Raises:
        Exception: propagated from Supabase.
    """
    ended_at = (now or datetime.now(timezone.utc)).isoformat()

    result = (
        supabase_client.table("impersonation_sessions")
        .update({"ended_at": ended_at})
        .eq("id", session_id)
        .is_("ended_at", "null")
        .execute()
    )

    closed = bool(result.data)
    if closed:
        logger.info(f"Impersonation session {session_id} ended")
    else:
        logger.info(f"Impersonation session {session_id} was already ended or does not exist")
    return closed


async def get_impersonation_session(
    supabase_client: Client,
    session_id: str
) -> Optional[Dict[str, Any]]:
    """
    Fetch one session row, or None if it does not exist.

    Raises:
        Exception: propagated from Supabase.
    """
    result = (
        supabase_client.table("impersonation_sessions")
        .select("*")
        .eq("id", session_id)
        .limit(1)
        .execute()
    )

    if not result.data:
        return None
    return cast(Dict[str, Any], result.data[0])


async def list_active_sessions(
    supabase_client: Client,
    now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """
    Sessions that are neither ended nor past IMPERSONATION_TTL_SECONDS,
    newest first. Abandoned rows keep a NULL ended_at, so the TTL cutoff is
    what drops them from this view.
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=settings.IMPERSONATION_TTL_SECONDS)

    result = (
        supabase_client.table("impersonation_sessions")
        .select("*")
        .is_("ended_at", "null")
        .gte("started_at", cutoff.isoformat())
        .order("started_at", desc=True)
        .execute()
    )
    return cast(List[Dict[str, Any]], result.data or [])
