"""
Per-row outcome tracking for import stages.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class RowOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    SKIPPED_MISSING = "skipped_missing"
    ERROR = "error"


@dataclass
class RowResult:
    row_number: int
    outcome: RowOutcome
    key: Optional[str] = None
    message: Optional[str] = None


@dataclass
class StageReport:
    """Tally and detail list of one reconciliation stage (assets or movements)."""
    stage: str
    details: List[RowResult] = field(default_factory=list)

    def record(
        self,
        row_number: int,
        outcome: RowOutcome,
        key: Optional[str] = None,
        message: Optional[str] = None,
    ) -> RowResult:
        result = RowResult(row_number=row_number, outcome=outcome, key=key, message=message)
        self.details.append(result)
        return result

    def count(self, outcome: RowOutcome) -> int:
        return sum(1 for d in self.details if d.outcome == outcome)

    @property
    def total_processed(self) -> int:
        return len(self.details)

    @property
    def created(self) -> int:
        return self.count(RowOutcome.CREATED)

    @property
    def updated(self) -> int:
        return self.count(RowOutcome.UPDATED)

    @property
    def skipped(self) -> int:
        return self.count(RowOutcome.SKIPPED_DUPLICATE) + self.count(RowOutcome.SKIPPED_MISSING)

    @property
    def errors(self) -> int:
        return self.count(RowOutcome.ERROR)

    def summary(self) -> Dict[str, Any]:
        return {
            "total_processed": self.total_processed,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "skipped_duplicate": self.count(RowOutcome.SKIPPED_DUPLICATE),
            "skipped_missing": self.count(RowOutcome.SKIPPED_MISSING),
            "errors": self.errors,
        }
