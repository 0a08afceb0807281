"""
Tests for the admin audit trail service.

The important property: log_admin_event never raises.
"""

import pytest

from bodywork.services.audit_service import list_admin_events, log_admin_event
from fakes import ADMIN_EMAIL, ADMIN_ID, PRACTITIONER_ID


class TestLogAdminEvent:
    """Tests for log_admin_event"""

    @pytest.mark.asyncio
    async def test_event_is_appended_with_category(self, fake_db):
        written = await log_admin_event(
            fake_db,
            event_type="admin.impersonation_started",
            actor_type="admin",
            actor_id=ADMIN_ID,
            actor_email=ADMIN_EMAIL,
            practitioner_id=PRACTITIONER_ID,
            description="Started impersonating Dana Reyes",
        )

        assert written is True
        event = fake_db.tables["admin_events"][0]
        assert event["event_type"] == "admin.impersonation_started"
        assert event["event_category"] == "admin"
        assert event["actor_id"] == ADMIN_ID
        assert event["practitioner_id"] == PRACTITIONER_ID
        assert event["metadata"] == {}

    @pytest.mark.asyncio
    async def test_insert_failure_is_swallowed(self, fake_db):
        fake_db.fail("admin_events", "insert")

        written = await log_admin_event(fake_db, event_type="admin.login", actor_id=ADMIN_ID)

        assert written is False

    @pytest.mark.asyncio
    async def test_unknown_actor_type_is_rejected_without_insert(self, fake_db):
        written = await log_admin_event(fake_db, event_type="admin.login", actor_type="robot")

        assert written is False
        assert fake_db.tables["admin_events"] == []


class TestListAdminEvents:
    """Tests for list_admin_events"""

    @pytest.fixture
    def seeded_events(self, fake_db):
        fake_db.tables["admin_events"] = [
            {"id": "e1", "event_type": "admin.login", "event_category": "admin",
             "practitioner_id": None, "created_at": "2025-01-01T10:00:00+00:00"},
            {"id": "e2", "event_type": "admin.impersonation_started", "event_category": "admin",
             "practitioner_id": PRACTITIONER_ID, "created_at": "2025-01-01T11:00:00+00:00"},
            {"id": "e3", "event_type": "admin.impersonation_ended", "event_category": "admin",
             "practitioner_id": PRACTITIONER_ID, "created_at": "2025-01-01T12:00:00+00:00"},
        ]
        return fake_db

    @pytest.mark.asyncio
    async def test_newest_first(self, seeded_events):
        events = await list_admin_events(seeded_events)

        assert [e["id"] for e in events] == ["e3", "e2", "e1"]

    @pytest.mark.asyncio
    async def test_filter_by_practitioner_and_type(self, seeded_events):
        events = await list_admin_events(
            seeded_events,
            practitioner_id=PRACTITIONER_ID,
            event_type="admin.impersonation_ended",
        )

        assert [e["id"] for e in events] == ["e3"]

    @pytest.mark.asyncio
    async def test_pagination(self, seeded_events):
        events = await list_admin_events(seeded_events, limit=1, offset=1)

        assert [e["id"] for e in events] == ["e2"]
