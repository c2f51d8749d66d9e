"""
Models for Family Activities.

This module exports the Activity domain model, enums, the admin review
model and database utilities.
"""

from family_activities.models.base import Base, engine, get_session, init_db, reset_db, session_scope

# Enums
from family_activities.models.enums import (
    ActivityType,
    AdminEventStatus,
    AgeGroupCategory,
    BuildState,
    Category,
    IssueType,
    MappingType,
    PricingType,
    ScheduleType,
    SchemaType,
    Severity,
    ValidationStatus,
    ValidationType,
)

# Domain models
from family_activities.models.activity import (
    Activity,
    AgeGroup,
    Location,
    Pricing,
    Schedule,
    make_activity_id,
)

# Admin review models
from family_activities.models.admin_event import AdminEvent

__all__ = [
    # Base and utilities
    "Base",
    "engine",
    "get_session",
    "init_db",
    "reset_db",
    "session_scope",
    # Enums
    "ActivityType",
    "AdminEventStatus",
    "AgeGroupCategory",
    "BuildState",
    "Category",
    "IssueType",
    "MappingType",
    "PricingType",
    "ScheduleType",
    "SchemaType",
    "Severity",
    "ValidationStatus",
    "ValidationType",
    # Domain models
    "Activity",
    "AgeGroup",
    "Location",
    "Pricing",
    "Schedule",
    "make_activity_id",
    # Admin review models
    "AdminEvent",
]
