"""
Supabase client factories.

Two kinds of client exist:

1. Per-request user clients (get_supabase_client) carry the practitioner's
   JWT so Row Level Security scopes every query to owner_user_id = auth.uid().
2. The service-role client (get_service_role_client) bypasses RLS. It is
   reserved for admin portal code: admin login, impersonation sessions,
   audit events, and the privileged practitioner lookup.
"""

import logging

from bodywork.config import settings
from supabase import Client, create_client

logger = logging.getLogger(__name__)


def get_supabase_client(access_token: str) -> Client:
    """
    Create an authenticated Supabase client for a specific user.

    Args:
        access_token: The user's JWT access token from Supabase Auth.

    Returns:
        An authenticated Supabase client that enforces RLS.
    """
    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_PUBLISHABLE_KEY
    )

    # The token's 'sub' claim is what auth.uid() resolves to in RLS policies
    client.auth.set_session(access_token, access_token)

    logger.debug("Created authenticated Supabase client with user token (RLS enforced)")

    return client


def get_service_role_client() -> Client:
    """
    Create a Supabase client with service_role privileges.

    WARNING: This bypasses RLS. Callers must already have established that
    the request comes from an admin, or be resolving an impersonation that a
    signed session token vouches for.

    Raises:
        ValueError: If SUPABASE_SERVICE_ROLE_KEY is not configured.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError(
            "SUPABASE_SERVICE_ROLE_KEY is not configured. "
            "Admin operations are unavailable."
        )

    return create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_SERVICE_ROLE_KEY
    )
