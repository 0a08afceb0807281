"""
Shared constants for the admin portal and effective-user data access.
"""

# admin_events.event_type values. The category column is the prefix before
# the first dot.
ADMIN_EVENT_TYPES = {
    'LOGIN': 'admin.login',
    'LOGOUT': 'admin.logout',
    'IMPERSONATION_STARTED': 'admin.impersonation_started',
    'IMPERSONATION_ENDED': 'admin.impersonation_ended',
}

ACTOR_TYPES = ('admin', 'system')

# Where each impersonation endpoint sends the browser next
IMPERSONATION_START_REDIRECT = '/dashboard'
IMPERSONATION_END_REDIRECT = '/admin/practitioners'

# Tables readable through POST /data/query
QUERYABLE_TABLES = frozenset({
    'patients_non_phi',
    'visits_non_phi',
    'payments_non_phi',
    'claims_non_phi',
    'referrals_non_phi',
    'sessions',
    'intake_templates',
    'intake_responses',
    'portals',
    'physicians',
    'profiles',
    'practices',
    'practitioners',
    'practice_users',
    'document_templates',
})

# Subset of QUERYABLE_TABLES that carries an owner_user_id column
OWNER_SCOPED_TABLES = frozenset({
    'patients_non_phi',
    'visits_non_phi',
    'payments_non_phi',
    'claims_non_phi',
    'referrals_non_phi',
    'sessions',
    'intake_templates',
    'portals',
    'document_templates',
})
