"""
Admin review store model.

An AdminEvent is one raw extraction submission together with the result of
converting it. Admins approve or reject the whole submission.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Enum, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from family_activities.models.base import Base, utcnow
from family_activities.models.enums import AdminEventStatus, SchemaType


class AdminEvent(Base):
    """Extraction submission awaiting (or past) admin review."""

    __tablename__ = "admin_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # =========================================================================
    # SOURCE
    # =========================================================================
    source_url: Mapped[Optional[str]] = mapped_column(Text)
    schema_type: Mapped[SchemaType] = mapped_column(Enum(SchemaType), default=SchemaType.EVENTS)
    extracted_by: Mapped[Optional[str]] = mapped_column(String(255))
    raw_extracted_data: Mapped[Optional[Any]] = mapped_column(JSON)

    # =========================================================================
    # CONVERSION RESULT
    # =========================================================================
    converted_data: Mapped[Optional[list]] = mapped_column(JSON)  # Activity dicts
    diagnostics: Mapped[Optional[list]] = mapped_column(JSON)  # One entry per record
    conversion_summary: Mapped[Optional[dict]] = mapped_column(JSON)
    confidence_score: Mapped[float] = mapped_column(Float, default=0.0)
    activities_found: Mapped[int] = mapped_column(Integer, default=0)
    records_failed: Mapped[int] = mapped_column(Integer, default=0)

    # =========================================================================
    # REVIEW
    # =========================================================================
    status: Mapped[AdminEventStatus] = mapped_column(
        Enum(AdminEventStatus), default=AdminEventStatus.PENDING, index=True
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(Text)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(255))
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self, include_raw: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "source_url": self.source_url,
            "schema_type": self.schema_type.value if self.schema_type else None,
            "extracted_by": self.extracted_by,
            "status": self.status.value if self.status else None,
            "confidence_score": self.confidence_score,
            "activities_found": self.activities_found,
            "records_failed": self.records_failed,
            "converted_data": self.converted_data or [],
            "diagnostics": self.diagnostics or [],
            "conversion_summary": self.conversion_summary or {},
            "admin_notes": self.admin_notes,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_raw:
            data["raw_extracted_data"] = self.raw_extracted_data
        return data

    def __repr__(self) -> str:
        return f"<AdminEvent(id={self.id}, status={self.status.value}, activities={self.activities_found})>"
