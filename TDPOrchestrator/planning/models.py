from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence

from ..diagnosis.models import Diagnosis
from ..execution.models import AvailableTest
from .entropy import entropy

PlanningStrategy = Literal["entropy", "random", "none"]


@dataclass(frozen=True)
class DiagnosisStatistics:
    """Read-only summary of a diagnosis list.

    Complete when a single diagnosis remains, or when the most likely one
    reaches `convergence_threshold` (None disables that second rule).
    """

    entropy: float
    highest_probability: float
    most_likely: Optional[Diagnosis]
    count: int
    convergence_threshold: Optional[float] = None

    @staticmethod
    def of(diagnoses: Sequence[Diagnosis], *, convergence_threshold: Optional[float] = None) -> "DiagnosisStatistics":
        best: Optional[Diagnosis] = None
        for d in diagnoses:
            # First of equal maxima wins, matching the ranked order.
            if best is None or d.probability > best.probability:
                best = d
        return DiagnosisStatistics(
            entropy=entropy(diagnoses),
            highest_probability=best.probability if best is not None else 0.0,
            most_likely=best,
            count=len(diagnoses),
            convergence_threshold=convergence_threshold,
        )

    @property
    def is_complete(self) -> bool:
        if self.count == 1:
            return True
        if self.count == 0 or self.convergence_threshold is None:
            return False
        return self.highest_probability >= float(self.convergence_threshold)

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "entropy": self.entropy,
            "highest_probability": self.highest_probability,
            "most_likely": self.most_likely.to_json_dict() if self.most_likely is not None else None,
            "count": self.count,
            "is_complete": self.is_complete,
        }


@dataclass(frozen=True)
class TestScore:
    __test__ = False

    name: str
    pass_probability: float
    expected_entropy: float
    info_gain: float

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "pass_probability": self.pass_probability,
            "expected_entropy": self.expected_entropy,
            "info_gain": self.info_gain,
        }


@dataclass(frozen=True)
class PlanningDecision:
    test: Optional[AvailableTest]
    strategy: PlanningStrategy
    current_entropy: float = 0.0
    scores: List[TestScore] = field(default_factory=list)
    reason: str = ""

    @property
    def info_gain(self) -> Optional[float]:
        if self.test is None:
            return None
        for s in self.scores:
            if s.name == self.test.name:
                return s.info_gain
        return None
