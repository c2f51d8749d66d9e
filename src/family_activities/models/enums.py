"""
Enum definitions for the Family Activities system.

This module centralizes all enum types used across the conversion engine
and the admin review store to keep status values and categorizations
consistent.
"""

import enum


class MappingType(str, enum.Enum):
    """How a raw source field was matched to an Activity field."""

    DIRECT = "direct"  # Primary candidate key matched
    FALLBACK = "fallback"  # A later candidate key matched
    DERIVED = "derived"  # Computed from other raw fields
    DEFAULT = "default"  # Filled with a default value
    MISSING = "missing"  # Nothing matched


class ValidationStatus(str, enum.Enum):
    """Outcome of running a field validator on a mapped value."""

    VALID = "valid"
    INVALID = "invalid"
    UNVALIDATED = "unvalidated"  # Field missing, validator never ran


class IssueType(str, enum.Enum):
    """Kinds of conversion issues reported to reviewers."""

    MISSING_FIELD = "missing_field"
    INVALID_FORMAT = "invalid_format"
    LOW_CONFIDENCE = "low_confidence"


class Severity(str, enum.Enum):
    """Severity of a conversion issue."""

    ERROR = "error"  # Record could not be converted
    WARNING = "warning"  # Value dropped or suspicious
    INFO = "info"  # Kept, but worth a look


class ValidationType(str, enum.Enum):
    """Semantic type used to pick a field validator."""

    TITLE = "title"
    DESCRIPTION = "description"
    LOCATION = "location"
    DATE = "date"
    TIME = "time"
    PRICE = "price"
    AGE_RANGE = "age_range"
    URL = "url"
    TEXT = "text"  # No plausibility check


class PricingType(str, enum.Enum):
    """Pricing model of an activity."""

    FREE = "free"
    PAID = "paid"
    DONATION = "donation"
    VARIABLE = "variable"


class AgeGroupCategory(str, enum.Enum):
    """Named age buckets used by the frontend filters."""

    INFANT = "infant"  # 0-12 months
    TODDLER = "toddler"  # 1-2 years
    PRESCHOOL = "preschool"  # 3-5 years
    ELEMENTARY = "elementary"  # 6-10 years
    TWEEN = "tween"  # 11-12 years
    TEEN = "teen"  # 13-17 years
    ADULT = "adult"  # 18+
    ALL_AGES = "all-ages"
    OTHER = "other"  # Unrecognized free text


class ActivityType(str, enum.Enum):
    """Kind of listing."""

    CLASS = "class"
    CAMP = "camp"
    EVENT = "event"
    PERFORMANCE = "performance"
    FREE_ACTIVITY = "free-activity"


class Category(str, enum.Enum):
    """Browse categories shown on the frontend."""

    ARTS_CREATIVITY = "arts-creativity"
    ACTIVE_SPORTS = "active-sports"
    EDUCATIONAL_STEM = "educational-stem"
    ENTERTAINMENT_EVENTS = "entertainment-events"
    CAMPS_PROGRAMS = "camps-programs"
    FREE_COMMUNITY = "free-community"


class ScheduleType(str, enum.Enum):
    """How an activity recurs."""

    ONE_TIME = "one-time"
    RECURRING = "recurring"
    MULTI_DAY = "multi-day"
    ONGOING = "ongoing"


class SchemaType(str, enum.Enum):
    """Extraction schema requested from the upstream scraper."""

    EVENTS = "events"
    ACTIVITIES = "activities"
    VENUES = "venues"
    CUSTOM = "custom"


class AdminEventStatus(str, enum.Enum):
    """Review status of a stored extraction submission."""

    PENDING = "pending"  # Awaiting admin review
    APPROVED = "approved"  # Activities published
    REJECTED = "rejected"  # Discarded with reason


class BuildState(str, enum.Enum):
    """Stages of building one Activity from a raw record."""

    START = "start"
    MAPPING_REQUIRED = "mapping_required"
    ABORTED = "aborted"  # Title or location unresolved
    MAPPING_OPTIONAL = "mapping_optional"
    SCORING = "scoring"
    COMPLETED = "completed"
