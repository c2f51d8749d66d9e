"""
Canonical Activity model.

Activities are immutable once built. Every list-valued field is a tuple so an
Activity can be compared and hashed, and two conversions of the same raw
record produce equal Activities.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from family_activities.models.enums import (
    ActivityType,
    AgeGroupCategory,
    Category,
    PricingType,
    ScheduleType,
)


@dataclass(frozen=True)
class Location:
    """Where an activity takes place."""

    name: str
    address: str = ""
    city: str = ""
    neighborhood: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "neighborhood": self.neighborhood,
        }


@dataclass(frozen=True)
class Schedule:
    """When an activity takes place. Dates are ISO strings, times are HH:MM."""

    start_date: str = ""
    start_time: str = ""
    end_time: str = ""
    end_date: str = ""
    timezone: str = "America/Los_Angeles"
    all_day: bool = False
    schedule_type: ScheduleType = ScheduleType.ONE_TIME

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.schedule_type.value,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "timezone": self.timezone,
            "allDay": self.all_day,
        }


@dataclass(frozen=True)
class Pricing:
    """Normalized price information."""

    type: PricingType
    cost: float = 0.0
    currency: str = "USD"
    unit: str = "per-person"
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "cost": self.cost,
            "currency": self.currency,
            "unit": self.unit,
            "description": self.description,
        }


@dataclass(frozen=True)
class AgeGroup:
    """An age bucket, optionally narrowed to a numeric range in years."""

    category: AgeGroupCategory
    min_age: int = 0
    max_age: int = 99
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "min": self.min_age,
            "max": self.max_age,
            "description": self.description,
        }


def make_activity_id(title: str, location_name: str, start_date: str = "") -> str:
    """Build a stable identifier so repeated conversions yield the same id."""
    key = "|".join(part.strip().lower() for part in (title, location_name, start_date))
    return "act_" + hashlib.sha1(key.encode("utf-8")).hexdigest()[:12]


@dataclass(frozen=True)
class Activity:
    """A normalized family-activity listing ready for admin review."""

    id: str
    title: str
    location: Location
    description: str = ""
    schedule: Schedule = field(default_factory=Schedule)
    pricing: Optional[Pricing] = None
    age_groups: Tuple[AgeGroup, ...] = ()
    registration_url: str = ""
    tags: Tuple[str, ...] = ()
    activity_type: ActivityType = ActivityType.EVENT
    category: Optional[Category] = None
    source_fields: Tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self):
        if not self.title.strip():
            raise ValueError("Activity title must not be empty")
        if not self.location.name.strip():
            raise ValueError("Activity location name must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Render the camelCase shape consumed by the frontend."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.activity_type.value,
            "category": self.category.value if self.category else None,
            "location": self.location.to_dict(),
            "schedule": self.schedule.to_dict(),
            "pricing": self.pricing.to_dict() if self.pricing else None,
            "ageGroups": [group.to_dict() for group in self.age_groups],
            "registrationURL": self.registration_url,
            "tags": list(self.tags),
        }
