"""Budget record dataclasses and pipeline result types.

This module contains pure data structures with no business logic dependencies,
ensuring they can be imported without circular dependencies.

Serialized forms use the camelCase keys of the dashboard's JSON contract
(``sourceUrl``, ``isRealData``, ``executionPercentage``...), while attributes
stay snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "AvailabilityStatus",
    "BudgetLine",
    "BudgetSnapshot",
    "BudgetTotals",
    "ExtractionOutcome",
    "FailureKind",
    "FetchResult",
    "MinistryRollup",
    "StandardBudget",
]


def _ratio(part: float, whole: float) -> float:
    """Return ``part / whole * 100``, or 0 when ``whole`` is zero."""
    return (part / whole) * 100 if whole else 0.0


class FailureKind(Enum):
    """Documented failure kinds that send the orchestrator to its fallback chain."""

    UNSUPPORTED_YEAR = "unsupported_year"
    TRANSPORT = "transport"
    EXTRACTION = "extraction"


@dataclass(frozen=True)
class BudgetLine:
    """One partida row extracted from the BCN table.

    Amounts are integer pesos (cells are in thousands and scaled on parse).
    """

    number: str
    name: str
    approved: int = 0
    modifications: int = 0
    current: int = 0
    executed: int = 0
    execution_percentage: float = 0.0

    def is_valid(self) -> bool:
        """Check the retention rule: named, with approved or current budget."""
        return bool(self.name) and (self.approved > 0 or self.current > 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "name": self.name,
            "approved": self.approved,
            "modifications": self.modifications,
            "current": self.current,
            "executed": self.executed,
            "executionPercentage": self.execution_percentage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BudgetLine:
        return cls(
            number=data.get("number", ""),
            name=data.get("name", ""),
            approved=data.get("approved", 0),
            modifications=data.get("modifications", 0),
            current=data.get("current", 0),
            executed=data.get("executed", 0),
            execution_percentage=data.get("executionPercentage", 0.0),
        )


@dataclass(frozen=True)
class BudgetTotals:
    """Column sums across retained lines."""

    approved: int = 0
    modifications: int = 0
    current: int = 0
    executed: int = 0
    execution_percentage: float = 0.0

    @classmethod
    def from_lines(cls, lines: tuple[BudgetLine, ...] | list[BudgetLine]) -> BudgetTotals:
        """Sum each amount column and derive the execution ratio."""
        current = sum(line.current for line in lines)
        executed = sum(line.executed for line in lines)
        return cls(
            approved=sum(line.approved for line in lines),
            modifications=sum(line.modifications for line in lines),
            current=current,
            executed=executed,
            execution_percentage=_ratio(executed, current),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "approved": self.approved,
            "modifications": self.modifications,
            "current": self.current,
            "executed": self.executed,
            "executionPercentage": self.execution_percentage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BudgetTotals:
        return cls(
            approved=data.get("approved", 0),
            modifications=data.get("modifications", 0),
            current=data.get("current", 0),
            executed=data.get("executed", 0),
            execution_percentage=data.get("executionPercentage", 0.0),
        )


@dataclass(frozen=True)
class BudgetSnapshot:
    """Parsed and totalled budget for one fiscal year.

    Attributes
    ----------
        year: Fiscal year
        source: Provenance label
        source_url: URL the document was (or would have been) fetched from
        last_updated: ISO 8601 UTC timestamp of construction
        is_real_data: True only for a successful extraction with >=1 line
        is_fallback: True for the placeholder built when nothing is available
        note: Human-readable explanation for fallback snapshots
        totals: Column sums over ``lines``
        lines: Retained lines in document order
    """

    year: int
    source: str
    source_url: str
    last_updated: str
    is_real_data: bool
    totals: BudgetTotals = field(default_factory=BudgetTotals)
    lines: tuple[BudgetLine, ...] = ()
    is_fallback: bool = False
    note: str | None = None

    @property
    def lines_count(self) -> int:
        return len(self.lines)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable form stored in the cache."""
        return {
            "year": self.year,
            "source": self.source,
            "sourceUrl": self.source_url,
            "lastUpdated": self.last_updated,
            "isRealData": self.is_real_data,
            "isFallback": self.is_fallback,
            "note": self.note,
            "totals": self.totals.to_dict(),
            "lines": [line.to_dict() for line in self.lines],
            "linesCount": self.lines_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BudgetSnapshot:
        """Rebuild a snapshot from :meth:`to_dict` output."""
        return cls(
            year=data["year"],
            source=data.get("source", ""),
            source_url=data.get("sourceUrl", ""),
            last_updated=data.get("lastUpdated", ""),
            is_real_data=bool(data.get("isRealData", False)),
            totals=BudgetTotals.from_dict(data.get("totals", {})),
            lines=tuple(BudgetLine.from_dict(line) for line in data.get("lines", [])),
            is_fallback=bool(data.get("isFallback", False)),
            note=data.get("note"),
        )


@dataclass
class MinistryRollup:
    """Lines of one ministry summed together.

    ``lines`` holds references to the snapshot's own BudgetLine objects.
    """

    code: str
    name: str
    budget: int = 0
    approved: int = 0
    modifications: int = 0
    current: int = 0
    executed: int = 0
    execution_percentage: float = 0.0
    percentage: float = 0.0
    lines: list[BudgetLine] = field(default_factory=list, repr=False)

    def add_line(self, line: BudgetLine) -> None:
        """Accumulate a line's amounts into the rollup."""
        self.budget += line.current
        self.approved += line.approved
        self.modifications += line.modifications
        self.current += line.current
        self.executed += line.executed
        self.lines.append(line)

    def finalize(self, total_current: int) -> None:
        """Compute execution ratio and share of the snapshot total."""
        self.execution_percentage = _ratio(self.executed, self.current)
        self.percentage = _ratio(self.budget, total_current)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "budget": self.budget,
            "approved": self.approved,
            "modifications": self.modifications,
            "current": self.current,
            "executed": self.executed,
            "executionPercentage": self.execution_percentage,
            "percentage": self.percentage,
            "lines": [line.number for line in self.lines],
        }


@dataclass
class StandardBudget:
    """Snapshot reshaped into the application's standard budget contract."""

    year: int
    total_budget: int
    total_approved: int
    total_modifications: int
    total_executed: int
    execution_percentage: float
    last_updated: str
    source: str
    source_url: str
    is_real_data: bool
    ministries: list[MinistryRollup] = field(default_factory=list)
    lines_count: int = 0
    currency: str = "CLP"

    @property
    def ministries_count(self) -> int:
        return len(self.ministries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "totalBudget": self.total_budget,
            "totalApproved": self.total_approved,
            "totalModifications": self.total_modifications,
            "totalExecuted": self.total_executed,
            "executionPercentage": self.execution_percentage,
            "currency": self.currency,
            "lastUpdated": self.last_updated,
            "source": self.source,
            "sourceUrl": self.source_url,
            "isRealData": self.is_real_data,
            "ministries": [ministry.to_dict() for ministry in self.ministries],
            "ministriesCount": self.ministries_count,
            "linesCount": self.lines_count,
        }


@dataclass
class FetchResult:
    """Outcome of one document request."""

    url: str
    html: str | None = None
    status: int | None = None
    failure: FailureKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.html is not None


@dataclass
class ExtractionOutcome:
    """Outcome of locating the budget table and extracting its rows."""

    lines: list[BudgetLine] = field(default_factory=list)
    failure: FailureKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and bool(self.lines)


@dataclass
class AvailabilityStatus:
    """Result of probing the BCN site."""

    available: bool
    status: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"available": self.available, "status": self.status, "message": self.message}
