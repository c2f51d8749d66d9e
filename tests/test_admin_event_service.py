"""
Tests for the admin event review store.
"""

import pytest

from family_activities.models import AdminEvent, AdminEventStatus, SchemaType
from family_activities.services.admin_event_service import (
    AdminEventError,
    AdminEventNotFound,
    AdminEventService,
    InvalidReviewTransition,
)

PAYLOAD = {
    "events": [
        {"title": "Kids Art Workshop", "location": "Seattle Community Center", "date": "12/15/2024"},
        {"description": "no title here"},
    ]
}


class TestSubmit:
    """Test storing a converted submission."""

    def setup_method(self):
        self.payload = {"events": [dict(record) for record in PAYLOAD["events"]]}

    def test_submit_stores_conversion(self, db_session, service):
        admin = AdminEventService(db_session, service)

        event = admin.submit(self.payload, source_url="https://example.com/events", extracted_by="scraper")

        assert event.id is not None
        assert event.status == AdminEventStatus.PENDING
        assert event.schema_type == SchemaType.EVENTS
        assert event.activities_found == 1
        assert event.records_failed == 1
        assert event.raw_extracted_data == self.payload
        assert event.converted_data[0]["title"] == "Kids Art Workshop"
        assert len(event.diagnostics) == 2
        assert event.conversion_summary["records"] == 2
        assert event.confidence_score > 0

    def test_submit_without_records(self, db_session, service):
        admin = AdminEventService(db_session, service)

        event = admin.submit({})

        assert event.activities_found == 0
        assert event.records_failed == 1
        assert event.confidence_score == 0.0
        assert "No events found" in event.diagnostics[0]["issues"][0]["message"]

    def test_to_dict(self, db_session, service):
        event = AdminEventService(db_session, service).submit(self.payload)

        data = event.to_dict()
        assert data["status"] == "pending"
        assert "raw_extracted_data" not in data
        assert event.to_dict(include_raw=True)["raw_extracted_data"] == self.payload


class TestQueries:
    """Test listing and counting."""

    def test_list_newest_first(self, db_session, service):
        admin = AdminEventService(db_session, service)
        first = admin.submit(PAYLOAD)
        second = admin.submit(PAYLOAD)

        events = admin.list()

        assert [e.id for e in events] == [second.id, first.id]

    def test_list_by_status(self, db_session, service):
        admin = AdminEventService(db_session, service)
        kept = admin.submit(PAYLOAD)
        rejected = admin.submit(PAYLOAD)
        admin.reject(rejected.id, reason="duplicate")

        pending = admin.list(status=AdminEventStatus.PENDING)

        assert [e.id for e in pending] == [kept.id]

    def test_count_by_status(self, db_session, service):
        admin = AdminEventService(db_session, service)
        admin.submit(PAYLOAD)
        approved = admin.submit(PAYLOAD)
        admin.approve(approved.id)

        assert admin.count_by_status() == {"pending": 1, "approved": 1, "rejected": 0}

    def test_get_missing(self, db_session, service):
        admin = AdminEventService(db_session, service)

        assert admin.get(999) is None
        with pytest.raises(AdminEventNotFound):
            admin.get_or_raise(999)


class TestReview:
    """Test approve and reject transitions."""

    def test_approve(self, db_session, service):
        admin = AdminEventService(db_session, service)
        event = admin.submit(PAYLOAD)

        approved = admin.approve(event.id, reviewed_by="sam", admin_notes="looks good")

        assert approved.status == AdminEventStatus.APPROVED
        assert approved.reviewed_by == "sam"
        assert approved.admin_notes == "looks good"
        assert approved.reviewed_at is not None

    def test_reject_records_reason(self, db_session, service):
        admin = AdminEventService(db_session, service)
        event = admin.submit(PAYLOAD)

        rejected = admin.reject(event.id, reason="not a family event")

        assert rejected.status == AdminEventStatus.REJECTED
        assert rejected.admin_notes == "not a family event"
        assert rejected.reviewed_by == "admin"

    def test_cannot_review_twice(self, db_session, service):
        admin = AdminEventService(db_session, service)
        event = admin.submit(PAYLOAD)
        admin.approve(event.id)

        with pytest.raises(InvalidReviewTransition):
            admin.reject(event.id, reason="changed my mind")

    def test_cannot_approve_empty_conversion(self, db_session, service):
        admin = AdminEventService(db_session, service)
        event = admin.submit({"events": []})

        with pytest.raises(AdminEventError):
            admin.approve(event.id)
        assert admin.get(event.id).status == AdminEventStatus.PENDING

    def test_review_missing_event(self, db_session, service):
        with pytest.raises(AdminEventNotFound):
            AdminEventService(db_session, service).approve(42)


class TestReconvert:
    """Test re-running conversion on stored raw data."""

    def test_reconvert_with_new_schema(self, db_session, service, settings, reference_date):
        from family_activities.services.conversion_service import ConversionService
        from family_activities.services.field_definitions import build_schema

        payload = {"events": [{"programme": "Holiday Lights", "location": "Zoo"}]}
        event = AdminEventService(db_session, service).submit(payload)
        assert event.activities_found == 0

        schema = build_schema(settings).with_candidates("title", ("title", "programme"))
        custom = ConversionService(schema=schema, settings=settings, reference_date=reference_date)
        updated = AdminEventService(db_session, custom).reconvert(event.id)

        assert updated.activities_found == 1
        assert updated.converted_data[0]["title"] == "Holiday Lights"

    def test_reconvert_requires_pending(self, db_session, service):
        admin = AdminEventService(db_session, service)
        event = admin.submit(PAYLOAD)
        admin.reject(event.id, reason="spam")

        with pytest.raises(InvalidReviewTransition):
            admin.reconvert(event.id)

    def test_rows_persist(self, db_session, service):
        AdminEventService(db_session, service).submit(PAYLOAD)

        assert db_session.query(AdminEvent).count() == 1
