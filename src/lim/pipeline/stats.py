"""
Run-scoped statistics for the pipeline driver.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.models import CombinationState, UnitOfWork


OUTCOMES = ("successful", "failed", "skipped")


def _empty_counts() -> Dict[str, int]:
    return {outcome: 0 for outcome in OUTCOMES}


@dataclass
class PipelineRunStats:
    """
    Accumulator for one pipeline run.

    Mutated only by the driver's single control thread. Every combination
    ends in exactly one of successful, failed or skipped.

    Attributes:
        run_id: Identifier of the run
        total_combinations: |locations| x |interests|
        successful: Combinations whose batch was stored
        failed: Combinations marked FAILED
        skipped: Combinations skipped as fresh
        by_location: Outcome counts per location id
        by_interest: Outcome counts per interest id
        history: State transitions per combination ("location:interest")
        failures: One entry per failed combination (stage and error)
        fallback_batches: Stored batches that came from the fallback
        records_stored: Total records written
    """
    run_id: str
    total_combinations: int
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    by_location: Dict[str, Dict[str, int]] = field(default_factory=dict)
    by_interest: Dict[str, Dict[str, int]] = field(default_factory=dict)
    history: Dict[str, List[CombinationState]] = field(default_factory=dict)
    failures: List[Dict[str, Any]] = field(default_factory=list)
    fallback_batches: int = 0
    records_stored: int = 0
    trending: List[str] = field(default_factory=list)

    @staticmethod
    def key_for(unit: UnitOfWork) -> str:
        return f"{unit.location.id}:{unit.interest.id}"

    def register(self, unit: UnitOfWork) -> None:
        """Start tracking a combination in the PENDING state."""
        self.by_location.setdefault(unit.location.id, _empty_counts())
        self.by_interest.setdefault(unit.interest.id, _empty_counts())
        self.history[self.key_for(unit)] = [CombinationState.PENDING]

    def transition(self, unit: UnitOfWork, state: CombinationState) -> None:
        self.history.setdefault(self.key_for(unit), []).append(state)

    def state_of(self, unit: UnitOfWork) -> Optional[CombinationState]:
        states = self.history.get(self.key_for(unit))
        return states[-1] if states else None

    def record_success(self, unit: UnitOfWork, record_count: int, from_fallback: bool) -> None:
        self.transition(unit, CombinationState.STORED)
        self._count(unit, "successful")
        self.records_stored += record_count
        if from_fallback:
            self.fallback_batches += 1

    def record_failure(self, unit: UnitOfWork, stage: CombinationState, error: Exception) -> None:
        self.transition(unit, CombinationState.FAILED)
        self._count(unit, "failed")
        self.failures.append({
            "location": unit.location.id,
            "interest": unit.interest.id,
            "stage": stage.value,
            "errorType": type(error).__name__,
            "error": str(error),
        })

    def record_skip(self, unit: UnitOfWork) -> None:
        self.transition(unit, CombinationState.SKIPPED)
        self._count(unit, "skipped")

    def finish(self, completed_at: Optional[datetime] = None) -> None:
        self.completed_at = completed_at or datetime.now(timezone.utc)

    @property
    def processed(self) -> int:
        return self.successful + self.failed + self.skipped

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def success_rate(self) -> float:
        """Successful combinations as a percentage of all combinations."""
        if self.total_combinations == 0:
            return 0.0
        return round(self.successful / self.total_combinations * 100, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runId": self.run_id,
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "totalCombinations": self.total_combinations,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "fallbackBatches": self.fallback_batches,
            "recordsStored": self.records_stored,
            "byLocation": self.by_location,
            "byInterest": self.by_interest,
            "failures": self.failures,
            "trending": self.trending,
        }

    def _count(self, unit: UnitOfWork, outcome: str) -> None:
        setattr(self, outcome, getattr(self, outcome) + 1)
        self.by_location.setdefault(unit.location.id, _empty_counts())[outcome] += 1
        self.by_interest.setdefault(unit.interest.id, _empty_counts())[outcome] += 1
