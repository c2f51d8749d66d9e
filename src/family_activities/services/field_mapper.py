"""
Field mapper: resolves one Activity field from an untyped raw record.

Raw records are treated as opaque key-value bags. Every lookup goes through
an ordered candidate list and explicit coercion to text; values that cannot
be coerced count as absent for that candidate.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from family_activities.models.enums import MappingType, ValidationStatus
from family_activities.services.field_definitions import ScoringConfig

# Keys inspected when a candidate value is itself an object
NESTED_TEXT_KEYS = ("name", "title", "value", "text")


@dataclass(frozen=True)
class FieldMapping:
    """The decision of which raw field supplies an Activity field."""

    activity_field: str
    source_field: Optional[str]
    candidates: Tuple[str, ...]
    mapping_type: MappingType
    confidence: float
    validation_status: ValidationStatus = ValidationStatus.UNVALIDATED
    validation_confidence: float = 0.0

    @property
    def found(self) -> bool:
        return self.mapping_type != MappingType.MISSING

    def with_validation(self, status: ValidationStatus, confidence: float) -> "FieldMapping":
        return FieldMapping(
            activity_field=self.activity_field,
            source_field=self.source_field,
            candidates=self.candidates,
            mapping_type=self.mapping_type,
            confidence=self.confidence,
            validation_status=status,
            validation_confidence=confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activity_field": self.activity_field,
            "source_field": self.source_field,
            "candidates": list(self.candidates),
            "mapping_type": self.mapping_type.value,
            "confidence": round(self.confidence, 3),
            "validation_status": self.validation_status.value,
            "validation_confidence": round(self.validation_confidence, 3),
        }


@dataclass(frozen=True)
class FieldMatch:
    """A mapped value together with its mapping decision."""

    value: str
    mapping: FieldMapping


# A derivation receives the raw record and returns (value, source description)
Derivation = Callable[[Dict[str, Any]], Optional[Tuple[str, str]]]


def coerce_text(value: Any) -> Optional[str]:
    """
    Coerce a raw JSON value to text.

    Returns None for values that should not satisfy a candidate: None,
    booleans, empty strings, empty collections and unsupported shapes.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, dict):
        for key in NESTED_TEXT_KEYS:
            nested = value.get(key)
            if isinstance(nested, str) and nested.strip():
                return nested.strip()
        return None
    if isinstance(value, (list, tuple)):
        parts = [coerce_text(item) for item in value if not isinstance(item, (dict, list, tuple))]
        parts = [part for part in parts if part]
        return ", ".join(parts) or None
    return None


def lookup(raw: Dict[str, Any], key: str) -> Any:
    """Get a value by key, walking dotted paths through nested objects."""
    if key in raw:
        return raw[key]
    if "." not in key:
        return None
    current: Any = raw
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


class FieldMapper:
    """
    Maps raw record keys onto Activity fields.

    Confidence depends on the position of the matching candidate: the first
    candidate is a direct match, later ones are fallbacks with decreasing
    confidence down to a floor.
    """

    def __init__(self, scoring: Optional[ScoringConfig] = None):
        self.scoring = scoring or ScoringConfig()

    def fallback_confidence(self, position: int) -> float:
        """Confidence for a match at candidate position >= 1."""
        confidence = self.scoring.fallback_confidence - self.scoring.fallback_step * (position - 1)
        return round(max(confidence, self.scoring.fallback_floor), 4)

    def map_field(
        self,
        raw: Dict[str, Any],
        target_field: str,
        candidates: Sequence[str],
        derive: Optional[Derivation] = None,
        default: Optional[str] = None,
    ) -> FieldMatch:
        """
        Find the best source for target_field in raw.

        Tries candidates in order, then the derivation, then the default.
        Never raises; an unresolved field comes back as MISSING with an
        empty value.
        """
        candidates = tuple(candidates)
        for position, key in enumerate(candidates):
            text = coerce_text(lookup(raw, key))
            if text is None:
                continue
            if position == 0:
                mapping_type = MappingType.DIRECT
                confidence = self.scoring.direct_confidence
            else:
                mapping_type = MappingType.FALLBACK
                confidence = self.fallback_confidence(position)
            return FieldMatch(
                value=text,
                mapping=FieldMapping(
                    activity_field=target_field,
                    source_field=key,
                    candidates=candidates,
                    mapping_type=mapping_type,
                    confidence=confidence,
                ),
            )

        if derive is not None:
            derived = derive(raw)
            if derived and derived[0]:
                value, source = derived
                return FieldMatch(
                    value=value,
                    mapping=FieldMapping(
                        activity_field=target_field,
                        source_field=source,
                        candidates=candidates,
                        mapping_type=MappingType.DERIVED,
                        confidence=self.scoring.derived_confidence,
                    ),
                )

        if default:
            return FieldMatch(
                value=default,
                mapping=FieldMapping(
                    activity_field=target_field,
                    source_field=None,
                    candidates=candidates,
                    mapping_type=MappingType.DEFAULT,
                    confidence=self.scoring.default_confidence,
                ),
            )

        return FieldMatch(
            value="",
            mapping=FieldMapping(
                activity_field=target_field,
                source_field=None,
                candidates=candidates,
                mapping_type=MappingType.MISSING,
                confidence=0.0,
            ),
        )

    def raw_value(self, raw: Dict[str, Any], candidates: Sequence[str]) -> Any:
        """Return the first present raw (uncoerced) value among candidates."""
        for key in candidates:
            value = lookup(raw, key)
            if value is not None and value != "" and value != [] and value != {}:
                return value
        return None
