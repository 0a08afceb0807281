"""
Service layer for the Bodywork practice backend.

Services hold the Supabase queries; routes own HTTP concerns (status codes,
cookies) and pick which client a service runs with.
"""

from .admin_service import (
    get_active_admin,
    record_admin_login,
    verify_admin_credentials,
)
from .audit_service import (
    list_admin_events,
    log_admin_event,
)
from .data_query_service import query_owned_rows
from .impersonation_service import (
    create_impersonation_session,
    end_impersonation_session,
    get_impersonation_session,
    list_active_sessions,
)
from .practitioner_service import (
    PractitionerIdentity,
    get_practitioner_by_id,
    lookup_practitioner_identity,
)

__all__ = [
    # Admin accounts
    "get_active_admin",
    "record_admin_login",
    "verify_admin_credentials",
    # Audit trail
    "list_admin_events",
    "log_admin_event",
    # Effective-user data
    "query_owned_rows",
    # Impersonation sessions
    "create_impersonation_session",
    "end_impersonation_session",
    "get_impersonation_session",
    "list_active_sessions",
    # Practitioners
    "PractitionerIdentity",
    "get_practitioner_by_id",
    "lookup_practitioner_identity",
]
