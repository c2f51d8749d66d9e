"""
Tests for confidence scoring.
"""

import pytest

from family_activities.models.enums import MappingType, ValidationStatus
from family_activities.services.confidence_scorer import ConfidenceScorer
from family_activities.services.field_definitions import build_schema
from family_activities.services.field_mapper import FieldMapping

SCORED = ("title", "location", "description", "date", "pricing", "age_groups", "registration_url")


def make_mapping(
    name,
    mapping_type=MappingType.DIRECT,
    confidence=0.9,
    status=ValidationStatus.VALID,
    validation_confidence=1.0,
):
    return FieldMapping(
        activity_field=name,
        source_field=name,
        candidates=(name,),
        mapping_type=mapping_type,
        confidence=confidence,
        validation_status=status,
        validation_confidence=validation_confidence,
    )


class TestConfidenceScorer:
    """Test the weighted confidence score."""

    def setup_method(self):
        self.scorer = ConfidenceScorer(build_schema())

    def test_all_direct_and_valid(self):
        mappings = {name: make_mapping(name) for name in SCORED}

        assert self.scorer.score(mappings) == 90

    def test_nothing_mapped(self):
        assert self.scorer.score({}) == 0

    def test_required_only(self):
        """Missing optional fields lower the score without dominating it."""
        mappings = {name: make_mapping(name) for name in ("title", "location")}

        assert self.scorer.score(mappings) == 76

    def test_invalid_field_counts_as_zero(self):
        mappings = {name: make_mapping(name) for name in ("title", "location")}
        mappings["date"] = make_mapping("date", status=ValidationStatus.INVALID, validation_confidence=0.0)

        # 3.6 / (4 + 1 + 4 * 0.15)
        assert self.scorer.score(mappings) == 64

    def test_fallback_scores_lower_than_direct(self):
        direct = {name: make_mapping(name) for name in SCORED}
        fallback = {name: make_mapping(name, MappingType.FALLBACK, 0.7) for name in SCORED}

        assert self.scorer.score(fallback) < self.scorer.score(direct)
        assert self.scorer.score(fallback) == 70

    def test_validation_confidence_multiplies(self):
        mappings = {name: make_mapping(name) for name in SCORED}
        mappings["pricing"] = make_mapping("pricing", validation_confidence=0.6)

        # (8 * 0.9 + 0.54) / 9
        assert self.scorer.score(mappings) == 86

    def test_unvalidated_uses_mapping_confidence(self):
        mapping = make_mapping("title", status=ValidationStatus.UNVALIDATED, validation_confidence=0.0)

        assert self.scorer.field_score(mapping) == pytest.approx(0.9)

    def test_missing_mapping_scores_zero(self):
        missing = make_mapping("title", MappingType.MISSING, 0.0, ValidationStatus.UNVALIDATED, 0.0)

        assert self.scorer.field_score(missing) == 0.0
        assert self.scorer.field_score(None) == 0.0

    def test_unscored_fields_ignored(self):
        mappings = {name: make_mapping(name) for name in SCORED}
        mappings["start_time"] = make_mapping("start_time", status=ValidationStatus.INVALID)

        assert self.scorer.score(mappings) == 90

    @pytest.mark.parametrize("confidence", [0.0, 0.3, 0.9, 1.0])
    def test_score_within_bounds(self, confidence):
        mappings = {name: make_mapping(name, confidence=confidence) for name in SCORED}

        assert 0 <= self.scorer.score(mappings) <= 100
