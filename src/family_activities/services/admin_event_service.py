"""
Admin event service - stores extraction submissions for review.

A submission is converted on arrival; the stored AdminEvent keeps the raw
payload, the converted Activities and every record's diagnostics so admins
can approve or reject it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from family_activities.models import AdminEvent, AdminEventStatus, SchemaType
from family_activities.models.base import utcnow
from family_activities.services.conversion_service import ConversionBatch, ConversionService

logger = logging.getLogger(__name__)


class AdminEventError(Exception):
    """Base error for admin review operations."""


class AdminEventNotFound(AdminEventError):
    def __init__(self, event_id: int):
        super().__init__(f"Admin event {event_id} not found")
        self.event_id = event_id


class InvalidReviewTransition(AdminEventError):
    def __init__(self, event: AdminEvent, target: AdminEventStatus):
        super().__init__(
            f"Admin event {event.id} is {event.status.value}; cannot mark it {target.value}"
        )
        self.event_id = event.id
        self.current = event.status
        self.target = target


class AdminEventService:
    """Service for managing extraction submissions and their review."""

    def __init__(self, session: Session, conversion_service: Optional[ConversionService] = None):
        self.session = session
        self.conversion_service = conversion_service or ConversionService()

    def submit(
        self,
        raw_extracted_data: Any,
        source_url: Optional[str] = None,
        schema_type: SchemaType = SchemaType.EVENTS,
        extracted_by: Optional[str] = None,
    ) -> AdminEvent:
        """Convert a raw extraction and store it as a pending review item."""
        batch = self.conversion_service.convert_all(
            raw_extracted_data,
            schema_type=schema_type.value,
            source_url=source_url,
        )
        event = AdminEvent(
            source_url=source_url,
            schema_type=schema_type,
            extracted_by=extracted_by,
            raw_extracted_data=raw_extracted_data,
            status=AdminEventStatus.PENDING,
        )
        self._apply_batch(event, batch)
        self.session.add(event)
        self.session.commit()
        self.session.refresh(event)

        logger.info(
            f"Stored admin event {event.id}: {event.activities_found} activities, "
            f"{event.records_failed} failed records"
        )
        return event

    @staticmethod
    def _apply_batch(event: AdminEvent, batch: ConversionBatch) -> None:
        event.converted_data = [activity.to_dict() for activity in batch.activities]
        event.diagnostics = [diagnostics.to_dict() for diagnostics in batch.diagnostics]
        event.conversion_summary = batch.summary()
        event.confidence_score = batch.average_confidence()
        event.activities_found = len(batch.activities)
        event.records_failed = len(batch.failures)

    def get(self, event_id: int) -> Optional[AdminEvent]:
        """Get an admin event by ID."""
        return self.session.get(AdminEvent, event_id)

    def get_or_raise(self, event_id: int) -> AdminEvent:
        event = self.get(event_id)
        if event is None:
            raise AdminEventNotFound(event_id)
        return event

    def list(
        self,
        status: Optional[AdminEventStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AdminEvent]:
        """List admin events, newest first."""
        query = self.session.query(AdminEvent)
        if status:
            query = query.filter(AdminEvent.status == status)
        query = query.order_by(AdminEvent.created_at.desc(), AdminEvent.id.desc())
        return query.offset(offset).limit(limit).all()

    def count_by_status(self) -> dict[str, int]:
        """Get counts of admin events grouped by status."""
        results = (
            self.session.query(AdminEvent.status, func.count(AdminEvent.id))
            .group_by(AdminEvent.status)
            .all()
        )
        counts = {status.value: 0 for status in AdminEventStatus}
        counts.update({status.value: count for status, count in results})
        return counts

    def reconvert(self, event_id: int) -> AdminEvent:
        """Re-run conversion on a pending event's stored raw data."""
        event = self.get_or_raise(event_id)
        if event.status != AdminEventStatus.PENDING:
            raise InvalidReviewTransition(event, AdminEventStatus.PENDING)
        batch = self.conversion_service.convert_all(
            event.raw_extracted_data,
            schema_type=event.schema_type.value,
            source_url=event.source_url,
        )
        self._apply_batch(event, batch)
        self.session.commit()
        self.session.refresh(event)
        return event

    def _review(
        self,
        event_id: int,
        target: AdminEventStatus,
        reviewed_by: Optional[str],
        admin_notes: Optional[str],
    ) -> AdminEvent:
        event = self.get_or_raise(event_id)
        if event.status != AdminEventStatus.PENDING:
            raise InvalidReviewTransition(event, target)

        event.status = target
        event.reviewed_by = reviewed_by or "admin"
        event.reviewed_at = utcnow()
        if admin_notes:
            event.admin_notes = admin_notes
        self.session.commit()
        self.session.refresh(event)

        logger.info(f"Admin event {event.id} {target.value} by {event.reviewed_by}")
        return event

    def approve(
        self,
        event_id: int,
        reviewed_by: Optional[str] = None,
        admin_notes: Optional[str] = None,
    ) -> AdminEvent:
        """Approve a pending event. Events without Activities cannot be approved."""
        event = self.get_or_raise(event_id)
        if event.status == AdminEventStatus.PENDING and not event.activities_found:
            raise AdminEventError(f"Admin event {event_id} has no converted activities to approve")
        return self._review(event_id, AdminEventStatus.APPROVED, reviewed_by, admin_notes)

    def reject(
        self,
        event_id: int,
        reason: Optional[str] = None,
        reviewed_by: Optional[str] = None,
    ) -> AdminEvent:
        """Reject a pending event with a reason."""
        return self._review(event_id, AdminEventStatus.REJECTED, reviewed_by, reason)
