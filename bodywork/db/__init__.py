"""
Database access layer for the Bodywork practice backend.

Normal practitioner traffic goes through RLS-scoped clients. The
service-role client is only handed to admin and impersonation code.

DO NOT define table schemas, migrations, or RLS policies here.
"""

from .client import get_service_role_client, get_supabase_client

__all__ = ["get_supabase_client", "get_service_role_client"]
