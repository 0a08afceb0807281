"""
Pytest configuration for the Bodywork backend tests.

Sets up the test environment and shared fixtures.
"""
import os
import pytest
from unittest.mock import patch

# Disable config validation during tests
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables (before any bodywork import reads them)
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_PUBLISHABLE_KEY", "test-publishable-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-with-at-least-32-bytes!!")

from fastapi.testclient import TestClient  # noqa: E402

from fakes import (  # noqa: E402
    ADMIN_EMAIL,
    ADMIN_ID,
    ADMIN_PASSWORD,
    PRACTITIONER_EMAIL,
    PRACTITIONER_ID,
    PRACTITIONER_NAME,
    PRACTITIONER_USER_ID,
    UNLINKED_PRACTITIONER_ID,
    FakeSupabase,
)


@pytest.fixture
def fake_db():
    """
    In-memory Supabase seeded with one admin, one linked practitioner and
    one practitioner without an account.
    """
    db = FakeSupabase()
    db.tables["admin_users"] = [
        {
            "id": ADMIN_ID,
            "email": ADMIN_EMAIL,
            "name": "Ops Admin",
            "role": "super_admin",
            "is_active": True,
            "last_login_at": None,
        }
    ]
    db.tables["practitioners"] = [
        {
            "id": PRACTITIONER_ID,
            "user_id": PRACTITIONER_USER_ID,
            "name": PRACTITIONER_NAME,
            "email": PRACTITIONER_EMAIL,
        },
        {
            "id": UNLINKED_PRACTITIONER_ID,
            "user_id": None,
            "name": "Pending Invite",
            "email": "pending@example.com",
        },
    ]
    db.tables["impersonation_sessions"] = []
    db.tables["admin_events"] = []

    def verify_admin_password(params):
        return [
            admin for admin in db.tables["admin_users"]
            if admin["email"] == params["admin_email"] and params["admin_password"] == ADMIN_PASSWORD
        ]

    db.rpc_handlers["verify_admin_password"] = verify_admin_password
    return db


@pytest.fixture
def patched_supabase(fake_db):
    """Route every Supabase client the app builds to the fake."""
    with patch("bodywork.db.client.create_client", return_value=fake_db):
        yield fake_db


@pytest.fixture
def client(patched_supabase):
    """A fresh TestClient (empty cookie jar) per test."""
    from bodywork.main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_token():
    from bodywork.auth.tokens import issue_admin_token
    return issue_admin_token(ADMIN_ID, ADMIN_EMAIL, "super_admin")


@pytest.fixture
def supabase_user_tokens():
    """
    Stub Supabase Auth verification: maps access token -> claims.

    Tests add entries; unknown tokens are rejected as invalid.
    """
    from jwt.exceptions import InvalidTokenError

    claims_by_token = {}

    def fake_decode(token):
        if token not in claims_by_token:
            raise InvalidTokenError("unknown test token")
        return claims_by_token[token]

    with patch("bodywork.auth.dependencies.decode_access_token", side_effect=fake_decode):
        yield claims_by_token

