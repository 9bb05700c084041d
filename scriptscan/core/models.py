from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .matcher import CompiledPattern


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Ordinal used for sorting and exit-code policy (low=0 .. critical=3)."""
        return SEVERITY_ORDER.index(self)

    @classmethod
    def parse(cls, value: Any, strict: bool = False) -> "Severity":
        """Accept a Severity or its name. ``strict`` requires the exact lowercase value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value if strict else value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"invalid severity {value!r}; expected one of {', '.join(s.value for s in cls)}")


SEVERITY_ORDER: Tuple[Severity, ...] = (
    Severity.LOW,
    Severity.MEDIUM,
    Severity.HIGH,
    Severity.CRITICAL,
)


@dataclass(frozen=True)
class Rule:
    pattern: CompiledPattern
    title: str
    description: str
    severity: Severity
    suggestion: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern": str(self.pattern),
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class Category:
    name: str
    rules: Tuple[Rule, ...] = ()


@dataclass(frozen=True, order=True)
class Location:
    line: int
    column: int


@dataclass(frozen=True)
class Finding:
    category: str
    rule: Rule
    location: Location
    matched_text: str
    file_path: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return self.rule.severity

    @property
    def identity(self) -> Tuple[str, str, int, str]:
        return (self.category, self.rule.title, self.location.line, self.matched_text)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_location": self.file_path,
            "line_num": self.location.line,
            "column": self.location.column,
            "category": self.category,
            "title": self.rule.title,
            "description": self.rule.description,
            "severity": self.rule.severity.value,
            "suggestion": self.rule.suggestion,
            "matched_text": self.matched_text,
        }


@dataclass(frozen=True)
class SkippedRule:
    """Diagnostic for a rule that raised or ran out of budget during a scan."""

    category: str
    title: str
    reason: str
    file_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "title": self.title,
            "reason": self.reason,
            "file_location": self.file_path,
        }


def _freeze(counts: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(counts))


def empty_summary() -> Dict[str, int]:
    # highest severity first, the order renderers print it in
    return {s.value: 0 for s in reversed(SEVERITY_ORDER)}


@dataclass(frozen=True)
class Report:
    findings: Tuple[Finding, ...] = ()
    summary: Mapping[str, int] = field(default_factory=lambda: _freeze(empty_summary()))
    by_category: Mapping[str, int] = field(default_factory=lambda: _freeze({}))
    rules_skipped: int = 0
    skipped: Tuple[SkippedRule, ...] = ()
    file_path: Optional[str] = None
    files_scanned: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "findings", tuple(self.findings))
        object.__setattr__(self, "skipped", tuple(self.skipped))
        object.__setattr__(self, "summary", _freeze(self.summary))
        object.__setattr__(self, "by_category", _freeze(self.by_category))

    @property
    def total_count(self) -> int:
        return len(self.findings)

    def highest_severity(self) -> Optional[Severity]:
        for sev in reversed(SEVERITY_ORDER):
            if self.summary.get(sev.value):
                return sev
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_location": self.file_path,
            "files_scanned": self.files_scanned,
            "total_count": self.total_count,
            "summary": dict(self.summary),
            "by_category": dict(self.by_category),
            "rules_skipped": self.rules_skipped,
            "skipped": [s.to_dict() for s in self.skipped],
            "findings": [f.to_dict() for f in self.findings],
        }
