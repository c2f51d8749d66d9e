"""
Activity Builder
================

Builds one immutable Activity from one raw record, section by section:
required fields first (title, location), then optional fields (description,
schedule, pricing, age groups, registration URL, tags), then classification
and scoring. Every path returns diagnostics; malformed input never raises.
"""

import logging
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from family_activities.config import Settings, get_settings
from family_activities.models.activity import (
    Activity,
    AgeGroup,
    Location,
    Pricing,
    Schedule,
    make_activity_id,
)
from family_activities.models.enums import (
    ActivityType,
    BuildState,
    Category,
    IssueType,
    ScheduleType,
    Severity,
    ValidationStatus,
    ValidationType,
)
from family_activities.services.confidence_scorer import ConfidenceScorer
from family_activities.services.diagnostics import ConversionDiagnostics, DiagnosticsRecorder
from family_activities.services.field_definitions import ConversionSchema, build_schema
from family_activities.services.field_mapper import FieldMapper, FieldMatch, coerce_text
from family_activities.services.field_validators import (
    FieldValidator,
    ValidationResult,
    is_all_day,
    split_time_range,
)

logger = logging.getLogger(__name__)


# ============================================================================
# CLASSIFICATION
# ============================================================================

ACTIVITY_TYPE_KEYWORDS: List[Tuple[ActivityType, List[str]]] = [
    (ActivityType.PERFORMANCE, ["performance", "show", "concert", "play", "theater", "theatre", "recital"]),
    (ActivityType.CLASS, ["class", "classes", "lesson", "lessons", "course", "workshop", "workshops"]),
    (ActivityType.CAMP, ["camp", "camps", "day camp", "summer camp"]),
]

CATEGORY_KEYWORDS: List[Tuple[Category, List[str]]] = [
    (Category.ARTS_CREATIVITY, ["art", "arts", "paint", "painting", "craft", "crafts", "music", "dance", "theater", "creative", "drawing"]),
    (Category.ACTIVE_SPORTS, ["sport", "sports", "soccer", "basketball", "swim", "swimming", "run", "bike", "active", "fitness", "martial arts", "gymnastics"]),
    (Category.EDUCATIONAL_STEM, ["science", "stem", "math", "engineering", "coding", "robot", "robotics", "experiment", "tech", "museum"]),
    (Category.ENTERTAINMENT_EVENTS, ["performance", "show", "concert", "festival", "movie", "entertainment", "pumpkin patch", "fair"]),
    (Category.CAMPS_PROGRAMS, ["camp", "camps", "program", "programs", "course", "academy", "school"]),
]

RECURRING_PATTERN = re.compile(r"\bevery\b|\bweekly\b|\bdaily\b|\bmonthly\b|\b(?:mon|tues|wednes|thurs|fri|satur|sun)days\b", re.IGNORECASE)


def _contains_keyword(content: str, keywords: List[str]) -> bool:
    return any(re.search(rf"\b{re.escape(keyword)}\b", content) for keyword in keywords)


def classify_activity_type(content: str, type_hint: str = "") -> ActivityType:
    """Pick an activity type from an explicit hint or from title/description keywords."""
    hint = type_hint.strip().lower()
    for activity_type in ActivityType:
        if hint == activity_type.value:
            return activity_type

    content = f"{hint} {content}".lower()
    for activity_type, keywords in ACTIVITY_TYPE_KEYWORDS:
        if _contains_keyword(content, keywords):
            return activity_type
    return ActivityType.EVENT


def classify_category(content: str) -> Category:
    """Pick a browse category from title/description keywords."""
    content = content.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if _contains_keyword(content, keywords):
            return category
    return Category.FREE_COMMUNITY


# ============================================================================
# BUILDER
# ============================================================================

class ActivityBuilder:
    """
    Turns one raw record into (Activity or None, diagnostics).

    The record fails only when title or location cannot be resolved; every
    other problem is reported as an issue and the field is dropped.
    """

    def __init__(
        self,
        schema: Optional[ConversionSchema] = None,
        settings: Optional[Settings] = None,
        reference_date: Optional[date] = None,
    ):
        self.settings = settings or get_settings()
        self.schema = schema or build_schema(self.settings)
        self.reference_date = reference_date
        self.mapper = FieldMapper(self.schema.scoring)
        self.validator = FieldValidator(self.settings, reference_date)
        self.scorer = ConfidenceScorer(self.schema)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _map(self, raw: Dict[str, Any], field_name: str, derive=None, default=None) -> FieldMatch:
        return self.mapper.map_field(
            raw, field_name, self.schema.candidates(field_name), derive=derive, default=default
        )

    def _record(
        self,
        recorder: DiagnosticsRecorder,
        match: FieldMatch,
        result: Optional[ValidationResult] = None,
    ) -> None:
        mapping = match.mapping
        if result is not None:
            status = ValidationStatus.VALID if result.valid else ValidationStatus.INVALID
            mapping = mapping.with_validation(status, result.confidence)
        recorder.record_mapping(mapping)

    def _flag_weak_mapping(self, recorder: DiagnosticsRecorder, match: FieldMatch) -> None:
        """Report mappings at or below the review threshold (floor fallbacks, derivations, defaults)."""
        mapping = match.mapping
        if mapping.found and mapping.confidence <= self.schema.scoring.low_confidence_threshold:
            recorder.add_issue(
                IssueType.LOW_CONFIDENCE,
                mapping.activity_field,
                f"{mapping.activity_field} was {mapping.mapping_type.value} from '{mapping.source_field or 'defaults'}'",
                f"Verify the {mapping.activity_field} against the source listing",
                Severity.INFO,
                raw_value=match.value,
            )

    def _flag_weak_value(self, recorder: DiagnosticsRecorder, field_name: str, result: ValidationResult, raw_value: str) -> None:
        if result.valid and result.confidence < 1.0:
            recorder.add_issue(
                IssueType.LOW_CONFIDENCE,
                field_name,
                result.reason or f"{field_name} may be inaccurate",
                f"Review the {field_name} value before approving",
                Severity.INFO,
                raw_value=raw_value,
            )

    def _missing(self, recorder: DiagnosticsRecorder, field_name: str, severity: Severity) -> None:
        spec = self.schema.get(field_name)
        recorder.add_issue(
            IssueType.MISSING_FIELD,
            field_name,
            f"No {field_name} found (tried: {', '.join(spec.candidates)})",
            spec.suggestion or f"Add a {field_name} field to the extraction schema",
            severity,
        )

    def _is_stale(self, parsed: Optional[date]) -> bool:
        if parsed is None:
            return False
        reference = self.reference_date or date.today()
        return parsed < reference - timedelta(days=self.settings.past_date_threshold_days)

    def _type_hint(self, raw: Dict[str, Any]) -> Tuple[str, str]:
        for key in self.schema.type_hint_keys:
            text = coerce_text(raw.get(key))
            if text:
                return text, key
        return "", ""

    # =========================================================================
    # DERIVATIONS
    # =========================================================================

    def _derive_title(self, location_name: str):
        def derive(raw: Dict[str, Any]) -> Optional[Tuple[str, str]]:
            hint, key = self._type_hint(raw)
            if not hint:
                return None
            label = hint.replace("_", " ").replace("-", " ").strip().title()
            if location_name:
                return f"{label} at {location_name}", f"{key}+location"
            return label, key
        return derive

    def _derive_location_name(self, raw: Dict[str, Any]) -> Optional[Tuple[str, str]]:
        address = self._map(raw, "address")
        if not address.mapping.found:
            return None
        first_segment = address.value.split(",")[0].strip()
        return (first_segment, address.mapping.source_field) if first_segment else None

    @staticmethod
    def _derive_free_price(raw: Dict[str, Any]) -> Optional[Tuple[str, str]]:
        for key in ("is_free", "free"):
            if raw.get(key) is True:
                return "Free", key
        return None

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(
        self,
        raw: Any,
        record_index: int = 0,
        source_url: Optional[str] = None,
    ) -> Tuple[Optional[Activity], ConversionDiagnostics]:
        """Convert one raw record into an Activity plus diagnostics."""

        if not isinstance(raw, dict):
            recorder = DiagnosticsRecorder(record_index)
            recorder.add_issue(
                IssueType.INVALID_FORMAT,
                "<record>",
                f"Record {record_index} is a {type(raw).__name__}, not an object",
                "Check that the extraction returns one JSON object per listing",
                Severity.ERROR,
                raw_value=str(raw)[:200],
            )
            return None, recorder.finalize(success=False)

        recorder = DiagnosticsRecorder(record_index, tuple(str(key) for key in raw.keys()))

        # --- Required fields ---
        recorder.advance(BuildState.MAPPING_REQUIRED)
        location = self._build_location(raw, recorder)
        title = self._build_title(raw, recorder, location.name if location else "")

        if title is None or location is None:
            logger.debug(f"Record {record_index}: required fields missing, skipping")
            return None, recorder.finalize(success=False)

        # --- Optional fields ---
        recorder.advance(BuildState.MAPPING_OPTIONAL)
        description = self._build_description(raw, recorder)
        schedule = self._build_schedule(raw, recorder)
        pricing = self._build_pricing(raw, recorder)
        age_groups = self._build_age_groups(raw, recorder)
        registration_url = self._build_registration_url(raw, recorder, source_url)

        type_hint, _ = self._type_hint(raw)
        content = f"{title} {description}"
        activity_type = classify_activity_type(content, type_hint)
        category = classify_category(f"{type_hint} {content}")
        tags = self._build_tags(raw, category)

        # --- Scoring ---
        recorder.advance(BuildState.SCORING)
        score = self.scorer.score(recorder.field_mappings)

        activity = Activity(
            id=make_activity_id(title, location.name, schedule.start_date),
            title=title,
            location=location,
            description=description,
            schedule=schedule,
            pricing=pricing,
            age_groups=tuple(age_groups),
            registration_url=registration_url,
            tags=tuple(tags),
            activity_type=activity_type,
            category=category,
            source_fields=recorder.source_keys,
        )
        recorder.advance(BuildState.COMPLETED)
        return activity, recorder.finalize(success=True, confidence_score=score)

    # =========================================================================
    # REQUIRED SECTIONS
    # =========================================================================

    def _build_title(self, raw: Dict[str, Any], recorder: DiagnosticsRecorder, location_name: str) -> Optional[str]:
        match = self._map(raw, "title", derive=self._derive_title(location_name))
        if not match.mapping.found:
            self._record(recorder, match)
            self._missing(recorder, "title", Severity.ERROR)
            return None

        result = self.validator.title(match.value)
        self._record(recorder, match, result)
        if not result.valid:
            recorder.add_issue(
                IssueType.MISSING_FIELD,
                "title",
                result.reason,
                self.schema.get("title").suggestion,
                Severity.ERROR,
                raw_value=match.value,
            )
            return None

        self._flag_weak_mapping(recorder, match)
        self._flag_weak_value(recorder, "title", result, match.value)
        return result.normalized_value

    def _build_location(self, raw: Dict[str, Any], recorder: DiagnosticsRecorder) -> Optional[Location]:
        match = self._map(raw, "location", derive=self._derive_location_name)
        address = self._map(raw, "address")
        recorder.record_mapping(address.mapping)

        if not match.mapping.found:
            self._record(recorder, match)
            self._missing(recorder, "location", Severity.ERROR)
            return None

        result = self.validator.location(match.value, address.value)
        self._record(recorder, match, result)
        if not result.valid:
            recorder.add_issue(
                IssueType.MISSING_FIELD,
                "location",
                result.reason,
                self.schema.get("location").suggestion,
                Severity.ERROR,
                raw_value=match.value,
            )
            return None

        self._flag_weak_mapping(recorder, match)
        if not address.mapping.found:
            self._missing(recorder, "address", Severity.INFO)
        return result.parsed

    # =========================================================================
    # OPTIONAL SECTIONS
    # =========================================================================

    def _build_description(self, raw: Dict[str, Any], recorder: DiagnosticsRecorder) -> str:
        match = self._map(raw, "description")
        if not match.mapping.found:
            self._record(recorder, match)
            self._missing(recorder, "description", Severity.INFO)
            return ""

        result = self.validator.description(match.value)
        self._record(recorder, match, result)
        self._flag_weak_mapping(recorder, match)
        self._flag_weak_value(recorder, "description", result, match.value)
        return result.normalized_value if result.valid else ""

    def _build_schedule(self, raw: Dict[str, Any], recorder: DiagnosticsRecorder) -> Schedule:
        start_date = ""
        end_date = ""
        start_time = ""
        end_time = ""
        all_day = False
        schedule_type = ScheduleType.ONE_TIME

        # Date
        match = self._map(raw, "date")
        if not match.mapping.found:
            self._record(recorder, match)
            self._missing(recorder, "date", Severity.WARNING)
        else:
            all_day = is_all_day(match.value)
            result = self.validator.date(match.value)
            self._record(recorder, match, result)
            self._flag_weak_mapping(recorder, match)
            if result.valid:
                start_date = result.normalized_value
                if self._is_stale(result.parsed):
                    recorder.add_issue(
                        IssueType.LOW_CONFIDENCE,
                        "date",
                        result.reason,
                        "Check whether the listing is still current before approving",
                        Severity.WARNING,
                        raw_value=match.value,
                    )
                else:
                    self._flag_weak_value(recorder, "date", result, match.value)
            else:
                recurring = bool(RECURRING_PATTERN.search(match.value))
                if recurring:
                    schedule_type = ScheduleType.RECURRING
                recorder.add_issue(
                    IssueType.INVALID_FORMAT,
                    "date",
                    result.reason,
                    "Recurring schedules need a start date; add it manually"
                    if recurring
                    else "Use a date like 2024-12-15, 12/15/2024 or December 15, 2024",
                    Severity.WARNING,
                    raw_value=match.value,
                )

        # End date
        match = self._map(raw, "end_date")
        if match.mapping.found:
            result = self.validator.date(match.value)
            self._record(recorder, match, result)
            if result.valid:
                end_date = result.normalized_value
                if start_date and end_date > start_date:
                    schedule_type = ScheduleType.MULTI_DAY
            else:
                recorder.add_issue(
                    IssueType.INVALID_FORMAT,
                    "end_date",
                    result.reason,
                    "Use a date like 2024-12-15",
                    Severity.WARNING,
                    raw_value=match.value,
                )

        # Times
        match = self._map(raw, "start_time")
        end_text = ""
        if match.mapping.found:
            if is_all_day(match.value):
                all_day = True
                recorder.record_mapping(match.mapping.with_validation(ValidationStatus.VALID, 1.0))
            else:
                start_text, end_text = split_time_range(match.value)
                result = self.validator.validate(ValidationType.TIME, start_text)
                self._record(recorder, match, result)
                if result.valid:
                    start_time = result.normalized_value
                else:
                    recorder.add_issue(
                        IssueType.INVALID_FORMAT,
                        "start_time",
                        result.reason,
                        "Use a time like 2:00 PM or 14:00",
                        Severity.WARNING,
                        raw_value=match.value,
                    )

        match = self._map(raw, "end_time")
        if match.mapping.found:
            end_text = match.value
        if end_text:
            result = self.validator.validate(ValidationType.TIME, end_text)
            if match.mapping.found:
                self._record(recorder, match, result)
            if result.valid:
                end_time = result.normalized_value
            else:
                recorder.add_issue(
                    IssueType.INVALID_FORMAT,
                    "end_time",
                    result.reason,
                    "Use a time like 4:00 PM or 16:00",
                    Severity.WARNING,
                    raw_value=end_text,
                )

        if not start_date and schedule_type == ScheduleType.ONE_TIME:
            schedule_type = ScheduleType.ONGOING
        return Schedule(
            start_date=start_date,
            start_time=start_time,
            end_time=end_time,
            end_date=end_date,
            timezone=self.settings.default_timezone,
            all_day=all_day,
            schedule_type=schedule_type,
        )

    def _build_pricing(self, raw: Dict[str, Any], recorder: DiagnosticsRecorder) -> Optional[Pricing]:
        match = self._map(raw, "pricing", derive=self._derive_free_price)
        if not match.mapping.found:
            self._record(recorder, match)
            self._missing(recorder, "pricing", Severity.INFO)
            return None

        result = self.validator.price(match.value)
        self._record(recorder, match, result)
        self._flag_weak_mapping(recorder, match)
        self._flag_weak_value(recorder, "pricing", result, match.value)
        return result.parsed if result.valid else None

    def _build_age_groups(self, raw: Dict[str, Any], recorder: DiagnosticsRecorder) -> List[AgeGroup]:
        match = self._map(raw, "age_groups")
        if not match.mapping.found:
            self._record(recorder, match)
            self._missing(recorder, "age_groups", Severity.INFO)
            return []

        result = self.validator.validate(self.schema.get("age_groups").validation_type, match.value)
        self._record(recorder, match, result)
        self._flag_weak_mapping(recorder, match)
        self._flag_weak_value(recorder, "age_groups", result, match.value)
        return list(result.parsed) if result.valid else []

    def _build_registration_url(
        self,
        raw: Dict[str, Any],
        recorder: DiagnosticsRecorder,
        source_url: Optional[str],
    ) -> str:
        match = self._map(raw, "registration_url", default=source_url)
        if not match.mapping.found:
            self._record(recorder, match)
            self._missing(recorder, "registration_url", Severity.INFO)
            return ""

        result = self.validator.validate(self.schema.get("registration_url").validation_type, match.value)
        self._record(recorder, match, result)
        if not result.valid:
            recorder.add_issue(
                IssueType.INVALID_FORMAT,
                "registration_url",
                result.reason,
                "Use an absolute http(s) link to the listing or signup page",
                Severity.WARNING,
                raw_value=match.value,
            )
            return ""

        self._flag_weak_mapping(recorder, match)
        self._flag_weak_value(recorder, "registration_url", result, match.value)
        return result.normalized_value

    def _build_tags(self, raw: Dict[str, Any], category: Category) -> List[str]:
        tags = []
        value = self.mapper.raw_value(raw, self.schema.candidates("tags"))
        if isinstance(value, str):
            tags.extend(value.split(","))
        elif isinstance(value, list):
            tags.extend(coerce_text(item) or "" for item in value)
        tags.append(category.value)

        seen = []
        for tag in tags:
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

