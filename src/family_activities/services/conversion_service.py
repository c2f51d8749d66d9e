"""
Conversion service: raw extraction payload -> Activities + diagnostics.

Locates the array of records inside an arbitrary JSON payload and builds
every record independently. One bad record never aborts the batch; a payload
with no locatable records yields a single failure diagnostics entry that
explains which keys were tried.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple

from family_activities.config import Settings, get_settings
from family_activities.models.activity import Activity
from family_activities.models.enums import IssueType, SchemaType, Severity
from family_activities.services.activity_builder import ActivityBuilder
from family_activities.services.diagnostics import (
    ConversionDiagnostics,
    DiagnosticsRecorder,
    summarize_issues,
)
from family_activities.services.field_definitions import (
    ConversionSchema,
    build_schema,
    container_keys_for,
)
from family_activities.services.field_mapper import coerce_text

logger = logging.getLogger(__name__)

ROOT_FIELD = "<root>"


class ConversionOutcome(NamedTuple):
    """One record's result: the Activity (None on failure) and its diagnostics."""

    activity: Optional[Activity]
    diagnostics: ConversionDiagnostics


@dataclass(frozen=True)
class ConversionBatch:
    """All outcomes for one payload, plus where the records were found."""

    outcomes: Tuple[ConversionOutcome, ...]
    container_key: Optional[str] = None
    keys_tried: Tuple[str, ...] = ()
    structure: Dict[str, str] = field(default_factory=dict)

    def __iter__(self) -> Iterator[ConversionOutcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def __getitem__(self, index: int) -> ConversionOutcome:
        return self.outcomes[index]

    @property
    def activities(self) -> List[Activity]:
        return [outcome.activity for outcome in self.outcomes if outcome.activity is not None]

    @property
    def diagnostics(self) -> List[ConversionDiagnostics]:
        return [outcome.diagnostics for outcome in self.outcomes]

    @property
    def failures(self) -> List[ConversionDiagnostics]:
        return [outcome.diagnostics for outcome in self.outcomes if not outcome.diagnostics.success]

    def average_confidence(self) -> float:
        scores = [d.confidence_score for d in self.diagnostics if d.success]
        return round(sum(scores) / len(scores), 1) if scores else 0.0

    def summary(self) -> Dict[str, Any]:
        issues = [issue for d in self.diagnostics for issue in d.issues]
        return {
            "records": len(self.outcomes),
            "activities": len(self.activities),
            "failures": len(self.failures),
            "average_confidence": self.average_confidence(),
            "container_key": self.container_key,
            "keys_tried": list(self.keys_tried),
            "issues": summarize_issues(issues),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activities": [activity.to_dict() for activity in self.activities],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "summary": self.summary(),
            "structure": dict(self.structure),
        }


def describe_value(value: Any) -> str:
    """Short type description used in payload structure analysis."""
    if isinstance(value, dict):
        return f"object[{len(value)} keys]"
    if isinstance(value, list):
        return f"array[{len(value)}]"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    return type(value).__name__


def analyze_structure(payload: Any) -> Dict[str, str]:
    """Describe the top-level keys of a payload for diagnostics."""
    if isinstance(payload, dict):
        return {str(key): describe_value(value) for key, value in payload.items()}
    return {ROOT_FIELD: describe_value(payload)}


def get_review_status(diagnostics: ConversionDiagnostics) -> str:
    """
    Determine the review path for one converted record.

    Returns:
        "ready" - confident enough to approve as-is
        "needs_review" - converted, but an admin should check the issues
        "failed" - no Activity was produced
    """
    if not diagnostics.success:
        return "failed"
    if diagnostics.confidence_score >= 80 and not diagnostics.warnings:
        return "ready"
    return "needs_review"


class ConversionService:
    """
    Converts raw extraction payloads into Activities.

    The schema (candidate keys, container keys, scoring constants) is passed
    in at construction; nothing is read from module state during conversion.
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

    # =========================================================================
    # RECORD LOCATION
    # =========================================================================

    def _looks_like_record(self, payload: Dict[str, Any]) -> bool:
        return any(coerce_text(payload.get(key)) for key in self.schema.candidates("title"))

    def _is_record_array(self, value: Any, root_is_record: bool) -> bool:
        """
        A container list qualifies when it holds objects. If the payload
        itself reads as a record, its own list fields only count when one of
        their objects reads as a record too.
        """
        if not isinstance(value, list):
            return False
        objects = [item for item in value if isinstance(item, dict)]
        if not objects:
            return False
        if root_is_record:
            return any(self._looks_like_record(item) for item in objects)
        return True

    @staticmethod
    def _largest_object_array(payload: Dict[str, Any]) -> Optional[str]:
        best_key = None
        best_length = 0
        for key, value in payload.items():
            if isinstance(value, list) and value and isinstance(value[0], dict):
                if len(value) > best_length:
                    best_key = key
                    best_length = len(value)
        return best_key

    def locate_records(
        self,
        payload: Any,
        schema_type: Optional[str] = None,
    ) -> Tuple[Optional[List[Any]], Optional[str], List[str]]:
        """
        Find the array of records inside a payload.

        Returns (records, key used, container keys tried). records is None
        when nothing usable was found.
        """
        if isinstance(payload, list):
            return payload, ROOT_FIELD, []
        if not isinstance(payload, dict):
            return None, None, []

        keys = container_keys_for(self.schema, schema_type)
        root_is_record = self._looks_like_record(payload)
        empty_key = None

        for key in keys:
            value = payload.get(key)
            if self._is_record_array(value, root_is_record):
                return value, key, keys
            if value == []:
                empty_key = empty_key or key

        for key in keys:
            value = payload.get(key)
            if not isinstance(value, dict):
                continue
            for inner in keys:
                nested = value.get(inner)
                if self._is_record_array(nested, root_is_record):
                    return nested, f"{key}.{inner}", keys

        if root_is_record:
            return [payload], ROOT_FIELD, keys

        if empty_key is not None:
            return [], empty_key, keys

        alternative = self._largest_object_array(payload)
        if alternative is not None:
            logger.info(f"Using alternative array '{alternative}' with {len(payload[alternative])} items")
            return payload[alternative], alternative, keys

        return None, None, keys

    def _no_records(
        self,
        payload: Any,
        keys_tried: List[str],
        empty_key: Optional[str] = None,
    ) -> ConversionDiagnostics:
        recorder = DiagnosticsRecorder(0, tuple(payload.keys()) if isinstance(payload, dict) else ())
        tried = ", ".join(keys_tried) or "none"
        if empty_key:
            message = f"No events found in extracted data: '{empty_key}' is an empty list"
        else:
            message = f"No events found in extracted data (tried keys: {tried})"

        present = ", ".join(str(key) for key in payload.keys()) if isinstance(payload, dict) and payload else "none"
        schema_types = ", ".join(schema_type.value for schema_type in SchemaType)
        recorder.add_issue(
            IssueType.MISSING_FIELD,
            ROOT_FIELD,
            message,
            f"Tried container keys: {tried}. Keys present: {present}. "
            f"Try a different schema type for extraction ({schema_types}) "
            f"or check that the source page lists activities.",
            Severity.ERROR,
        )
        return recorder.finalize(success=False)

    # =========================================================================
    # CONVERSION
    # =========================================================================

    def _convert_record(
        self,
        builder: ActivityBuilder,
        record: Any,
        index: int,
        source_url: Optional[str],
    ) -> ConversionOutcome:
        try:
            activity, diagnostics = builder.build(record, index, source_url=source_url)
        except Exception as e:
            logger.exception(f"Unexpected error converting record {index}")
            recorder = DiagnosticsRecorder(index, tuple(record.keys()) if isinstance(record, dict) else ())
            recorder.add_issue(
                IssueType.INVALID_FORMAT,
                "<record>",
                f"Unexpected error converting record: {e}",
                "Inspect the raw record; it may contain an unsupported structure",
                Severity.ERROR,
            )
            return ConversionOutcome(None, recorder.finalize(success=False))

        if not diagnostics.success:
            reasons = "; ".join(issue.message for issue in diagnostics.errors)
            logger.warning(f"Record {index} not converted: {reasons}")
        return ConversionOutcome(activity, diagnostics)

    def convert_all(
        self,
        payload: Any,
        schema_type: Optional[str] = None,
        source_url: Optional[str] = None,
    ) -> ConversionBatch:
        """
        Convert every record in a payload.

        Args:
            payload: Raw extraction output (object or list)
            schema_type: Extraction schema used upstream; its key is searched first
            source_url: Page the data was extracted from, used as a default link

        Returns:
            ConversionBatch with one outcome per record
        """
        structure = analyze_structure(payload)
        records, container_key, keys_tried = self.locate_records(payload, schema_type)

        if not records:
            logger.info(f"No records found in payload (tried: {', '.join(keys_tried) or 'none'})")
            return ConversionBatch(
                outcomes=(ConversionOutcome(None, self._no_records(payload, keys_tried, container_key)),),
                container_key=container_key,
                keys_tried=tuple(keys_tried),
                structure=structure,
            )

        logger.info(f"Converting {len(records)} records from '{container_key}'")
        builder = ActivityBuilder(self.schema, self.settings, self.reference_date)
        outcomes = tuple(
            self._convert_record(builder, record, index, source_url)
            for index, record in enumerate(records)
        )

        batch = ConversionBatch(
            outcomes=outcomes,
            container_key=container_key,
            keys_tried=tuple(keys_tried),
            structure=structure,
        )
        summary = batch.summary()
        logger.info(
            f"Converted {summary['activities']}/{summary['records']} records "
            f"(avg confidence {summary['average_confidence']})"
        )
        return batch


def convert_all(
    payload: Any,
    schema_type: Optional[str] = None,
    source_url: Optional[str] = None,
    schema: Optional[ConversionSchema] = None,
    reference_date: Optional[date] = None,
) -> ConversionBatch:
    """Convenience wrapper around ConversionService.convert_all."""
    service = ConversionService(schema=schema, reference_date=reference_date)
    return service.convert_all(payload, schema_type=schema_type, source_url=source_url)
