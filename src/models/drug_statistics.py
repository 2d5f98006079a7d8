"""
Statistics and sweep result models.
Both are derived snapshots and never persisted.
"""
from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class DrugStatistics:
    """Counts over one owner's drugs taken against a single point in time."""

    total_drugs: int
    expired_drugs: int
    active_drugs: int
    alert_sent_count: int
    drugs_by_form: Dict[str, int] = field(default_factory=dict)


@dataclass
class SweepSummary:
    """Outcome of one expiry alert sweep pass."""

    groups_attempted: int = 0
    groups_succeeded: int = 0
    groups_skipped: int = 0
    drugs_marked: int = 0
    skipped: bool = False
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def groups_failed(self) -> int:
        return self.groups_attempted - self.groups_succeeded
