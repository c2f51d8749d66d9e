"""
Confidence scoring for converted records.

The score is a weighted average of mapping quality times validation
confidence over the scored fields, on a 0-100 scale.
"""

from typing import Dict, Optional

from family_activities.models.enums import ValidationStatus
from family_activities.services.field_definitions import ConversionSchema, build_schema
from family_activities.services.field_mapper import FieldMapping


class ConfidenceScorer:
    """
    Aggregates per-field mappings into one score.

    Required fields carry the required weight and optional fields the
    optional weight. A missing optional field contributes nothing and only
    a fraction of its weight to the denominator, so absence lowers the score
    without outweighing what was found. Missing required fields count at
    full weight.
    """

    def __init__(self, schema: Optional[ConversionSchema] = None):
        self.schema = schema or build_schema()

    def field_score(self, mapping: Optional[FieldMapping]) -> float:
        """Quality of one field on a 0-1 scale."""
        if mapping is None or not mapping.found:
            return 0.0
        if mapping.validation_status == ValidationStatus.INVALID:
            return 0.0
        if mapping.validation_status == ValidationStatus.UNVALIDATED:
            return mapping.confidence
        return mapping.confidence * mapping.validation_confidence

    def score(self, mappings: Dict[str, FieldMapping]) -> int:
        numerator = 0.0
        denominator = 0.0
        absent_weight = self.schema.scoring.absent_optional_weight

        for spec in self.schema.scored_fields():
            mapping = mappings.get(spec.name)
            if (mapping is None or not mapping.found) and not spec.required:
                denominator += spec.weight * absent_weight
                continue
            numerator += self.field_score(mapping) * spec.weight
            denominator += spec.weight

        if denominator <= 0:
            return 0
        return max(0, min(100, round(numerator / denominator * 100)))
