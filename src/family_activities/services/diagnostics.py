"""
Conversion diagnostics: the report attached to every conversion attempt.

A DiagnosticsRecorder collects mapping decisions and issues while one record
is built, then freezes them into a ConversionDiagnostics.
"""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from family_activities.models.enums import BuildState, IssueType, Severity
from family_activities.services.field_mapper import FieldMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionIssue:
    """One problem found while converting a record."""

    type: IssueType
    field: str
    message: str
    suggestion: str
    severity: Severity
    raw_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "field": self.field,
            "message": self.message,
            "suggestion": self.suggestion,
            "severity": self.severity.value,
            "raw_value": self.raw_value,
        }


@dataclass(frozen=True)
class ConversionDiagnostics:
    """Structured report of mapping and validation decisions for one record."""

    record_index: int
    success: bool
    confidence_score: int
    field_mappings: Dict[str, FieldMapping]
    issues: Tuple[ConversionIssue, ...]
    source_keys: Tuple[str, ...] = ()
    state: BuildState = BuildState.COMPLETED  # Stage the build ended in
    processing_time_ms: float = field(default=0.0, compare=False)

    @property
    def errors(self) -> List[ConversionIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[ConversionIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.WARNING]

    def issues_for(self, field_name: str) -> List[ConversionIssue]:
        return [issue for issue in self.issues if issue.field == field_name]

    def summary(self) -> Dict[str, Any]:
        """Issue counts by severity and by type."""
        return summarize_issues(self.issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_index": self.record_index,
            "success": self.success,
            "state": self.state.value,
            "confidence_score": self.confidence_score,
            "field_mappings": {name: mapping.to_dict() for name, mapping in self.field_mappings.items()},
            "issues": [issue.to_dict() for issue in self.issues],
            "source_keys": list(self.source_keys),
            "processing_time_ms": round(self.processing_time_ms, 3),
            "summary": self.summary(),
        }


def summarize_issues(issues) -> Dict[str, Any]:
    """Count issues by severity and by type."""
    issues = list(issues)
    by_severity = Counter(issue.severity.value for issue in issues)
    by_type = Counter(issue.type.value for issue in issues)
    return {
        "total": len(issues),
        "by_severity": {severity.value: by_severity.get(severity.value, 0) for severity in Severity},
        "by_type": {issue_type.value: by_type.get(issue_type.value, 0) for issue_type in IssueType},
    }


class DiagnosticsRecorder:
    """Mutable collector used for the duration of one record's conversion."""

    def __init__(self, record_index: int = 0, source_keys: Tuple[str, ...] = ()):
        self.record_index = record_index
        self.source_keys = tuple(source_keys)
        self.field_mappings: Dict[str, FieldMapping] = {}
        self.issues: List[ConversionIssue] = []
        self.state = BuildState.START
        self._started = time.perf_counter()

    def advance(self, state: BuildState) -> None:
        logger.debug(f"Record {self.record_index}: {self.state.value} -> {state.value}")
        self.state = state

    def record_mapping(self, mapping: FieldMapping) -> None:
        self.field_mappings[mapping.activity_field] = mapping

    def add_issue(
        self,
        issue_type: IssueType,
        field_name: str,
        message: str,
        suggestion: str,
        severity: Severity,
        raw_value: Optional[str] = None,
    ) -> None:
        self.issues.append(
            ConversionIssue(
                type=issue_type,
                field=field_name,
                message=message,
                suggestion=suggestion,
                severity=severity,
                raw_value=raw_value,
            )
        )

    def finalize(self, success: bool, confidence_score: int = 0) -> ConversionDiagnostics:
        """Stamp the elapsed time and freeze the report."""
        if not success:
            self.state = BuildState.ABORTED
        elapsed_ms = (time.perf_counter() - self._started) * 1000
        diagnostics = ConversionDiagnostics(
            record_index=self.record_index,
            success=success,
            confidence_score=max(0, min(100, int(confidence_score))),
            field_mappings=dict(self.field_mappings),
            issues=tuple(self.issues),
            source_keys=self.source_keys,
            state=self.state,
            processing_time_ms=elapsed_ms,
        )
        logger.debug(
            f"Record {self.record_index}: success={success} "
            f"confidence={diagnostics.confidence_score} issues={len(self.issues)} "
            f"({elapsed_ms:.2f}ms)"
        )
        return diagnostics
