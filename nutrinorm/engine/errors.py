"""Engine exceptions and record-level issue reporting."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class NormEngineError(Exception):
    """Base class for configuration faults raised by the engine."""


class TableDefinitionError(NormEngineError, ValueError):
    """Raised at load time when a rule table is self-inconsistent."""


class UnsupportedYearError(NormEngineError, LookupError):
    """Raised when no table is loaded for a regulation year."""

    def __init__(self, year: int, kind: str) -> None:
        super().__init__(f"No {kind} table loaded for regulation year {year}")
        self.year = year
        self.kind = kind


class YearMismatchError(NormEngineError, ValueError):
    """Raised when a table for one year is used to evaluate another."""


class IssueKind(StrEnum):
    """Record-level problems that are reported but never abort a calculation."""

    rule_ambiguity = "rule_ambiguity"
    no_match = "no_match"
    invalid_record = "invalid_record"
    undetermined_ceiling = "undetermined_ceiling"


@dataclass(frozen=True, slots=True)
class EngineIssue:
    kind: IssueKind
    message: str
    record_id: str | None = None
    field_id: str | None = None
