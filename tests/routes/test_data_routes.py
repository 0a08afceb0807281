"""
Tests for POST /data/query.

Tests cover:
- Table whitelist and authentication checks
- Scoping to the impersonated practitioner's rows
- Scoping to the signed-in practitioner's own rows
"""

import pytest
from unittest.mock import patch

from postgrest.exceptions import APIError

from bodywork.auth.cookies import IMPERSONATED_PRACTITIONER_COOKIE, IMPERSONATION_SESSION_COOKIE
from bodywork.auth.tokens import issue_impersonation_token
from fakes import ADMIN_ID, PRACTITIONER_ID, PRACTITIONER_USER_ID, cookie_header


@pytest.fixture
def patients(fake_db):
    fake_db.tables["patients_non_phi"] = [
        {"id": "pt1", "owner_user_id": PRACTITIONER_USER_ID, "display_name": "A. Client"},
        {"id": "pt2", "owner_user_id": PRACTITIONER_USER_ID, "display_name": "B. Client"},
        {"id": "pt3", "owner_user_id": "user-self", "display_name": "C. Client"},
    ]
    return fake_db


@pytest.fixture
def impersonation_headers(fake_db):
    fake_db.tables["impersonation_sessions"].append({
        "id": "sess-1",
        "admin_id": ADMIN_ID,
        "practitioner_id": PRACTITIONER_ID,
        "started_at": "2025-01-01T00:00:00+00:00",
        "ended_at": None,
    })
    return cookie_header({
        IMPERSONATION_SESSION_COOKIE: issue_impersonation_token("sess-1", PRACTITIONER_ID, ADMIN_ID),
        IMPERSONATED_PRACTITIONER_COOKIE: PRACTITIONER_ID,
    })


class TestDataQuery:

    def test_unknown_table_is_400(self, client, supabase_user_tokens):
        response = client.post("/data/query", json={"table": "admin_users"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_table"

    def test_anonymous_is_401(self, client, supabase_user_tokens):
        response = client.post("/data/query", json={"table": "patients_non_phi"})

        assert response.status_code == 401

    def test_impersonation_sees_only_practitioner_rows(
        self, client, patients, impersonation_headers, supabase_user_tokens
    ):
        response = client.post(
            "/data/query",
            json={"table": "patients_non_phi", "order": {"column": "display_name", "ascending": True}},
            headers=impersonation_headers,
        )

        assert response.status_code == 200
        assert [row["id"] for row in response.json()["data"]] == ["pt1", "pt2"]

    def test_unscoped_table_forbidden_while_impersonating(
        self, client, impersonation_headers, supabase_user_tokens
    ):
        response = client.post("/data/query", json={"table": "practitioners"}, headers=impersonation_headers)

        assert response.status_code == 403

    def test_own_rows_for_signed_in_practitioner(self, client, patients, supabase_user_tokens):
        supabase_user_tokens["tok"] = {"sub": "user-self"}

        response = client.post(
            "/data/query",
            json={"table": "patients_non_phi"},
            headers={"Authorization": "Bearer tok"},
        )

        assert response.status_code == 200
        assert [row["id"] for row in response.json()["data"]] == ["pt3"]
        patients.auth.set_session.assert_called_with("tok", "tok")

    def test_bad_filter_is_400(self, client, patients, impersonation_headers, supabase_user_tokens):
        response = client.post(
            "/data/query",
            json={"table": "patients_non_phi", "filters": {"display_name": {"regex": ".*"}}},
            headers=impersonation_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_filter"

    def test_query_failure_is_500(self, client, patients, impersonation_headers, supabase_user_tokens):
        patients.fail("patients_non_phi", "select")

        response = client.post(
            "/data/query", json={"table": "patients_non_phi"}, headers=impersonation_headers
        )

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "query_failed"

    def test_unknown_column_is_400(self, client, patients, impersonation_headers, supabase_user_tokens):
        error = APIError({"code": "42703", "message": "column patients_non_phi.ssn does not exist"})

        with patch("bodywork.routes.data.query_owned_rows", side_effect=error):
            response = client.post(
                "/data/query",
                json={"table": "patients_non_phi", "select": "ssn"},
                headers=impersonation_headers,
            )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_query"
