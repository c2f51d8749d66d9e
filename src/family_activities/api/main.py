"""
FastAPI application for the Family Activities admin API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from family_activities.config import get_settings
from family_activities.models import AdminEventStatus, SchemaType, get_session, init_db
from family_activities.services.admin_event_service import (
    AdminEventError,
    AdminEventNotFound,
    AdminEventService,
    InvalidReviewTransition,
)
from family_activities.services.conversion_service import ConversionService, get_review_status


# ============================================================================
# Pydantic Schemas
# ============================================================================
class ConversionRequest(BaseModel):
    """Raw extraction output to convert."""

    raw_extracted_data: Any
    schema_type: Optional[str] = None
    source_url: Optional[str] = None


class ConversionResponse(BaseModel):
    """Preview of converting a raw extraction."""

    activities: list[dict]
    diagnostics: list[dict]
    summary: dict
    structure: dict
    review_status: list[str]
    can_approve: bool


class AdminEventCreate(BaseModel):
    """Schema for submitting an extraction for review."""

    raw_extracted_data: Any
    source_url: Optional[str] = None
    schema_type: str = SchemaType.EVENTS.value
    extracted_by: Optional[str] = None


class ReviewRequest(BaseModel):
    """Schema for approve/reject."""

    reviewed_by: Optional[str] = None
    admin_notes: Optional[str] = None


class AdminEventResponse(BaseModel):
    """Schema for admin event response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    source_url: Optional[str] = None
    schema_type: str
    extracted_by: Optional[str] = None
    status: str
    confidence_score: float
    activities_found: int
    records_failed: int
    converted_data: list[dict] = []
    diagnostics: list[dict] = []
    conversion_summary: dict = {}
    admin_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime


class AdminStats(BaseModel):
    """Counts of admin events by status."""

    counts_by_status: dict[str, int]
    total: int


# ============================================================================
# App Setup
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: initialize database
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.app_name} Admin API",
        description="Review and convert scraped family-activity listings",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()


# ============================================================================
# Dependencies
# ============================================================================
def get_conversion_service() -> ConversionService:
    """Dependency for conversion service."""
    return ConversionService()


def get_admin_event_service(
    session=Depends(get_session),
    conversion_service: ConversionService = Depends(get_conversion_service),
) -> AdminEventService:
    """Dependency for admin event service."""
    return AdminEventService(session, conversion_service)


def _parse_schema_type(value: Optional[str]) -> Optional[SchemaType]:
    if not value:
        return None
    try:
        return SchemaType(value.lower())
    except ValueError:
        raise HTTPException(400, f"Invalid schema type: {value}")


def _event_to_response(event) -> AdminEventResponse:
    return AdminEventResponse(
        id=event.id,
        source_url=event.source_url,
        schema_type=event.schema_type.value,
        extracted_by=event.extracted_by,
        status=event.status.value,
        confidence_score=event.confidence_score,
        activities_found=event.activities_found,
        records_failed=event.records_failed,
        converted_data=event.converted_data or [],
        diagnostics=event.diagnostics or [],
        conversion_summary=event.conversion_summary or {},
        admin_notes=event.admin_notes,
        reviewed_by=event.reviewed_by,
        reviewed_at=event.reviewed_at,
        created_at=event.created_at,
    )


# ============================================================================
# API Routes - Health
# ============================================================================
@app.get("/api/health")
def health():
    """Liveness check."""
    return {"status": "ok"}


# ============================================================================
# API Routes - Conversion
# ============================================================================
@app.post("/api/conversions/preview", response_model=ConversionResponse)
def preview_conversion(
    data: ConversionRequest,
    service: ConversionService = Depends(get_conversion_service),
):
    """Convert raw extraction output without storing it."""
    schema_type = _parse_schema_type(data.schema_type)
    batch = service.convert_all(
        data.raw_extracted_data,
        schema_type=schema_type.value if schema_type else None,
        source_url=data.source_url,
    )
    result = batch.to_dict()
    return ConversionResponse(
        activities=result["activities"],
        diagnostics=result["diagnostics"],
        summary=result["summary"],
        structure=result["structure"],
        review_status=[get_review_status(d) for d in batch.diagnostics],
        can_approve=bool(batch.activities),
    )


# ============================================================================
# API Routes - Admin Events
# ============================================================================
@app.get("/api/admin/stats", response_model=AdminStats)
def get_admin_stats(service: AdminEventService = Depends(get_admin_event_service)):
    """Get admin event counts."""
    counts = service.count_by_status()
    return AdminStats(counts_by_status=counts, total=sum(counts.values()))


@app.get("/api/admin/events", response_model=list[AdminEventResponse])
def list_admin_events(
    status: Optional[str] = Query(None),
    limit: int = Query(50, le=200),
    offset: int = Query(0),
    service: AdminEventService = Depends(get_admin_event_service),
):
    """List admin events with optional status filter."""
    status_filter = None
    if status:
        try:
            status_filter = AdminEventStatus(status.lower())
        except ValueError:
            raise HTTPException(400, f"Invalid status: {status}")

    events = service.list(status=status_filter, limit=limit, offset=offset)
    return [_event_to_response(e) for e in events]


@app.post("/api/admin/events", response_model=AdminEventResponse, status_code=201)
def submit_admin_event(
    data: AdminEventCreate,
    service: AdminEventService = Depends(get_admin_event_service),
):
    """Convert an extraction and store it for review."""
    schema_type = _parse_schema_type(data.schema_type) or SchemaType.EVENTS
    event = service.submit(
        data.raw_extracted_data,
        source_url=data.source_url,
        schema_type=schema_type,
        extracted_by=data.extracted_by,
    )
    return _event_to_response(event)


@app.get("/api/admin/events/{event_id}", response_model=AdminEventResponse)
def get_admin_event(
    event_id: int,
    service: AdminEventService = Depends(get_admin_event_service),
):
    """Get a specific admin event."""
    event = service.get(event_id)
    if not event:
        raise HTTPException(404, "Admin event not found")
    return _event_to_response(event)


@app.post("/api/admin/events/{event_id}/approve", response_model=AdminEventResponse)
def approve_admin_event(
    event_id: int,
    data: Optional[ReviewRequest] = None,
    service: AdminEventService = Depends(get_admin_event_service),
):
    """Approve a pending admin event."""
    data = data or ReviewRequest()
    try:
        event = service.approve(event_id, reviewed_by=data.reviewed_by, admin_notes=data.admin_notes)
    except AdminEventNotFound:
        raise HTTPException(404, "Admin event not found")
    except InvalidReviewTransition as e:
        raise HTTPException(409, str(e))
    except AdminEventError as e:
        raise HTTPException(400, str(e))
    return _event_to_response(event)


@app.post("/api/admin/events/{event_id}/reject", response_model=AdminEventResponse)
def reject_admin_event(
    event_id: int,
    data: Optional[ReviewRequest] = None,
    service: AdminEventService = Depends(get_admin_event_service),
):
    """Reject a pending admin event."""
    data = data or ReviewRequest()
    try:
        event = service.reject(event_id, reason=data.admin_notes, reviewed_by=data.reviewed_by)
    except AdminEventNotFound:
        raise HTTPException(404, "Admin event not found")
    except InvalidReviewTransition as e:
        raise HTTPException(409, str(e))
    return _event_to_response(event)
