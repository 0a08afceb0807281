"""
Privileged practitioner lookups.

An admin is never the owner of a practitioner row, so RLS would hide it.
These functions run with the service-role client and are only called from
admin routes and from the effective-identity resolver.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, cast

from supabase import Client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PractitionerIdentity:
    """The account behind a practitioner record."""
    practitioner_id: str
    user_id: str
    name: str
    email: Optional[str]


async def get_practitioner_by_id(
    supabase_client: Client,
    practitioner_id: str
) -> Optional[Dict[str, Any]]:
    """
    Fetch a practitioner row for the admin portal.

    Returns:
        The practitioner dict, or None if no row matches.

    Raises:
        Exception: propagated from Supabase.
    """
    result = (
        supabase_client.table("practitioners")
        .select("*")
        .eq("id", practitioner_id)
        .limit(1)
        .execute()
    )

    if not result.data:
        logger.warning(f"Practitioner not found: {practitioner_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


async def lookup_practitioner_identity(
    supabase_client: Client,
    practitioner_id: str
) -> Optional[PractitionerIdentity]:
    """
    Resolve the account a practitioner record is linked to.

    Fails closed: a query error, a missing row, or a row with no linked
    user_id all return None. A partial identity is never returned.
    """
    try:
        result = (
            supabase_client.table("practitioners")
            .select("id, user_id, name, email")
            .eq("id", practitioner_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.error(f"Practitioner lookup failed for {practitioner_id}: {e}")
        return None

    if not result.data:
        logger.warning(f"Practitioner lookup found no row for {practitioner_id}")
        return None

    row = cast(Dict[str, Any], result.data[0])
    user_id = row.get("user_id")
    if not user_id:
        logger.warning(f"Practitioner {practitioner_id} has no linked account")
        return None

    return PractitionerIdentity(
        practitioner_id=str(row.get("id") or practitioner_id),
        user_id=str(user_id),
        name=str(row.get("name") or ""),
        email=row.get("email"),
    )
