"""
Field definitions for the extraction-to-Activity conversion.

This module defines the schema table the conversion engine is driven by:
- Candidate source keys for every Activity field (most specific first)
- Required status and scoring weight
- Validation type
- Suggestions shown to reviewers when the field is missing

The table is passed into the engine explicitly, so tests and callers can
convert with a custom schema without touching module state.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from family_activities.config import Settings, get_settings
from family_activities.models.enums import SchemaType, ValidationType


@dataclass(frozen=True)
class FieldSpec:
    """Definition of one Activity field and where to look for it."""

    name: str                               # Activity field name
    candidates: Tuple[str, ...]             # Raw keys to try, in order
    validation_type: ValidationType         # Validator to run
    required: bool = False                  # Record fails without it
    weight: float = 1.0                     # Weight in the confidence score (0 = not scored)
    suggestion: str = ""                    # Reviewer hint when missing
    examples: Tuple[str, ...] = ()          # Example raw values


@dataclass(frozen=True)
class ScoringConfig:
    """Constants used by the field mapper and the confidence scorer."""

    direct_confidence: float = 0.9
    fallback_confidence: float = 0.7
    fallback_step: float = 0.05
    fallback_floor: float = 0.6
    derived_confidence: float = 0.5
    default_confidence: float = 0.3
    required_field_weight: float = 2.0
    optional_field_weight: float = 1.0
    absent_optional_weight: float = 0.15
    low_confidence_threshold: float = 0.6


@dataclass(frozen=True)
class ConversionSchema:
    """The complete, immutable table the engine converts with."""

    fields: Dict[str, FieldSpec]
    container_keys: Tuple[str, ...]
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    type_hint_keys: Tuple[str, ...] = ("type", "event_type", "category", "kind")

    def get(self, name: str) -> FieldSpec:
        return self.fields[name]

    def candidates(self, name: str) -> Tuple[str, ...]:
        return self.fields[name].candidates

    def scored_fields(self) -> List[FieldSpec]:
        """Fields that take part in the confidence score."""
        return [spec for spec in self.fields.values() if spec.weight > 0]

    def with_candidates(self, name: str, candidates: Tuple[str, ...]) -> "ConversionSchema":
        """Return a copy of the schema with one candidate list replaced."""
        fields = dict(self.fields)
        fields[name] = replace(fields[name], candidates=tuple(candidates))
        return replace(self, fields=fields)


# =============================================================================
# FIELD TABLE
# =============================================================================

ACTIVITY_FIELDS: List[FieldSpec] = [
    # --- Required ---
    FieldSpec(
        name="title",
        candidates=(
            "title", "name", "event_title", "event_name", "activity_name",
            "headline", "heading", "subject",
        ),
        validation_type=ValidationType.TITLE,
        required=True,
        suggestion="Check that the extraction schema captures a title or name field for each listing",
        examples=("Kids Art Workshop", "Pumpkin Patch"),
    ),
    FieldSpec(
        name="location",
        candidates=("location", "venue", "venue_name", "location_name", "place"),
        validation_type=ValidationType.LOCATION,
        required=True,
        suggestion="Check that the extraction schema captures a venue or location name",
        examples=("Seattle Community Center", "Remlinger Farms"),
    ),
    # --- Optional, scored ---
    FieldSpec(
        name="description",
        candidates=("description", "details", "summary", "content", "about", "info", "text"),
        validation_type=ValidationType.DESCRIPTION,
        suggestion="Add a description or summary field to the extraction schema",
    ),
    FieldSpec(
        name="date",
        candidates=(
            "date", "start_date", "startDate", "event_date", "schedule_date",
            "when", "dates", "datetime",
        ),
        validation_type=ValidationType.DATE,
        suggestion="Check the listing page for event dates; ongoing venues may not have one",
        examples=("2024-12-15", "12/15/2024", "December 15, 2024"),
    ),
    FieldSpec(
        name="pricing",
        candidates=("price", "cost", "fee", "admission", "admission_fee", "pricing", "prices"),
        validation_type=ValidationType.PRICE,
        suggestion="Check the listing for admission or ticket prices",
        examples=("Free", "$15", "Suggested donation $5"),
    ),
    FieldSpec(
        name="age_groups",
        candidates=("age_groups", "ages", "age_range", "age_suitability", "age", "audience"),
        validation_type=ValidationType.AGE_RANGE,
        suggestion="Check the listing for recommended ages",
        examples=("Ages 3-5", "All ages", "Teens"),
    ),
    FieldSpec(
        name="registration_url",
        candidates=(
            "registration_url", "registration_link", "register_url", "signup_url",
            "url", "link", "website", "event_url",
        ),
        validation_type=ValidationType.URL,
        suggestion="Use the listing page URL if no registration link is given",
    ),
    # --- Supporting fields, not scored ---
    FieldSpec(
        name="address",
        candidates=(
            "address", "location.address", "venue.address", "location_address",
            "venue_address", "street_address",
        ),
        validation_type=ValidationType.TEXT,
        weight=0.0,
        suggestion="Capture the venue street address for map display",
    ),
    FieldSpec(
        name="start_time",
        candidates=("time", "start_time", "startTime", "event_time", "hours"),
        validation_type=ValidationType.TIME,
        weight=0.0,
        examples=("2:00 PM", "14:00", "10am - 2pm"),
    ),
    FieldSpec(
        name="end_time",
        candidates=("end_time", "endTime"),
        validation_type=ValidationType.TIME,
        weight=0.0,
    ),
    FieldSpec(
        name="end_date",
        candidates=("end_date", "endDate"),
        validation_type=ValidationType.DATE,
        weight=0.0,
    ),
    FieldSpec(
        name="tags",
        candidates=("tags", "categories", "keywords"),
        validation_type=ValidationType.TEXT,
        weight=0.0,
    ),
]


def build_schema(settings: Optional[Settings] = None) -> ConversionSchema:
    """Build the default conversion schema using the configured constants."""
    settings = settings or get_settings()
    required_weight = settings.required_field_weight
    optional_weight = settings.optional_field_weight

    fields = {}
    for spec in ACTIVITY_FIELDS:
        if spec.weight > 0:
            spec = replace(spec, weight=required_weight if spec.required else optional_weight)
        fields[spec.name] = spec

    scoring = ScoringConfig(
        direct_confidence=settings.direct_confidence,
        fallback_confidence=settings.fallback_confidence,
        fallback_step=settings.fallback_step,
        fallback_floor=settings.fallback_floor,
        derived_confidence=settings.derived_confidence,
        default_confidence=settings.default_confidence,
        required_field_weight=required_weight,
        optional_field_weight=optional_weight,
        absent_optional_weight=settings.absent_optional_weight,
        low_confidence_threshold=settings.low_confidence_threshold,
    )
    return ConversionSchema(
        fields=fields,
        container_keys=tuple(settings.container_keys),
        scoring=scoring,
    )


def container_keys_for(schema: ConversionSchema, schema_type: Optional[str] = None) -> List[str]:
    """
    Order the container keys to search, trying the schema type's own key first.

    "custom" (or an unknown type) keeps the configured order.
    """
    keys = list(schema.container_keys)
    if schema_type and schema_type != SchemaType.CUSTOM.value:
        if schema_type in keys:
            keys.remove(schema_type)
        keys.insert(0, schema_type)
    return keys
