"""
Admin audit trail service.

Writes to and reads from the append-only admin_events table. Writes never
raise; a failed insert is logged and swallowed.
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from bodywork.utils.constants import ACTOR_TYPES

logger = logging.getLogger(__name__)

DEFAULT_EVENT_LIMIT = 100


async def log_admin_event(
    supabase_client: Client,
    event_type: str,
    actor_type: str = "admin",
    actor_id: Optional[str] = None,
    actor_email: Optional[str] = None,
    practitioner_id: Optional[str] = None,
    description: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Append one event to admin_events.

    Args:
        supabase_client: Service-role Supabase client
        event_type: Dotted event name, e.g. "admin.impersonation_started"
        actor_type: "admin" or "system"
        actor_id: Id of the acting admin (None for system events)
        actor_email: Email of the acting admin
        practitioner_id: Practitioner the event concerns, if any
        description: Human readable summary shown in the admin portal
        metadata: Free-form JSON details

    Returns:
        True if the row was written, False if the write failed.
    """
    if actor_type not in ACTOR_TYPES:
        logger.error(f"Refusing to log admin event with unknown actor_type={actor_type!r}")
        return False

    event = {
        "actor_type": actor_type,
        "actor_id": actor_id,
        "actor_email": actor_email,
        "event_type": event_type,
        "event_category": event_type.split(".")[0],
        "practitioner_id": practitioner_id,
        "description": description,
        "metadata": metadata or {},
    }

    try:
        supabase_client.table("admin_events").insert(event).execute()
    except Exception as e:
        logger.error(
            f"Failed to log admin event {event_type} (actor_id={actor_id}): {e}",
            exc_info=True
        )
        return False

    logger.info(f"Admin event logged: {event_type} actor_id={actor_id}")
    return True


async def list_admin_events(
    supabase_client: Client,
    practitioner_id: Optional[str] = None,
    event_type: Optional[str] = None,
    event_category: Optional[str] = None,
    limit: int = DEFAULT_EVENT_LIMIT,
    offset: int = 0
) -> List[Dict[str, Any]]:
    """
    Fetch admin events, newest first.

    Raises:
        Exception: propagated from Supabase; the route maps it to a 500.
    """
    query = (
        supabase_client.table("admin_events")
        .select("*")
        .order("created_at", desc=True)
    )

    if practitioner_id:
        query = query.eq("practitioner_id", practitioner_id)
    if event_type:
        query = query.eq("event_type", event_type)
    if event_category:
        query = query.eq("event_category", event_category)

    result = query.range(offset, offset + limit - 1).execute()

    events = cast(List[Dict[str, Any]], result.data or [])
    logger.debug(f"Fetched {len(events)} admin events (offset={offset}, limit={limit})")
    return events
