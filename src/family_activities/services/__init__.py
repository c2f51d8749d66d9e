"""
Conversion engine and admin services.
"""

from family_activities.services.activity_builder import ActivityBuilder
from family_activities.services.admin_event_service import (
    AdminEventError,
    AdminEventNotFound,
    AdminEventService,
    InvalidReviewTransition,
)
from family_activities.services.confidence_scorer import ConfidenceScorer
from family_activities.services.conversion_service import (
    ConversionBatch,
    ConversionOutcome,
    ConversionService,
    convert_all,
    get_review_status,
)
from family_activities.services.diagnostics import (
    ConversionDiagnostics,
    ConversionIssue,
    DiagnosticsRecorder,
)
from family_activities.services.field_definitions import (
    ConversionSchema,
    FieldSpec,
    ScoringConfig,
    build_schema,
)
from family_activities.services.field_mapper import FieldMapper, FieldMapping, FieldMatch
from family_activities.services.field_validators import FieldValidator, ValidationResult

__all__ = [
    "ActivityBuilder",
    "AdminEventError",
    "AdminEventNotFound",
    "AdminEventService",
    "InvalidReviewTransition",
    "ConfidenceScorer",
    "ConversionBatch",
    "ConversionOutcome",
    "ConversionService",
    "convert_all",
    "get_review_status",
    "ConversionDiagnostics",
    "ConversionIssue",
    "DiagnosticsRecorder",
    "ConversionSchema",
    "FieldSpec",
    "ScoringConfig",
    "build_schema",
    "FieldMapper",
    "FieldMapping",
    "FieldMatch",
    "FieldValidator",
    "ValidationResult",
]
