"""
Per-cycle events emitted by the orchestrator.

Observers are plain callables taking one event. The recorders below cover the
usual needs: keep events in memory, append them to a JSONL file, or forward
them to a logger.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..diagnosis.models import Diagnosis
from ..execution.models import TestResult
from ..planning.models import DiagnosisStatistics, PlanningDecision, TestScore


@dataclass(frozen=True)
class CycleStarted:
    iteration: int
    observed_count: int
    failed_count: int
    available_count: int

    kind = "cycle_started"

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "observed_count": self.observed_count,
            "failed_count": self.failed_count,
            "available_count": self.available_count,
        }


@dataclass(frozen=True)
class DiagnosesComputed:
    iteration: int
    conflict_count: int
    diagnoses: Tuple[Diagnosis, ...]
    statistics: DiagnosisStatistics

    kind = "diagnoses_computed"

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "conflict_count": self.conflict_count,
            "diagnoses": [d.to_json_dict() for d in self.diagnoses],
            "statistics": self.statistics.to_json_dict(),
        }


@dataclass(frozen=True)
class TestSelected:
    __test__ = False

    iteration: int
    test_name: Optional[str]
    strategy: str
    info_gain: Optional[float]
    current_entropy: float
    scores: Tuple[TestScore, ...] = field(default_factory=tuple)
    reason: str = ""

    kind = "test_selected"

    @staticmethod
    def from_decision(iteration: int, decision: PlanningDecision) -> "TestSelected":
        return TestSelected(
            iteration=iteration,
            test_name=decision.test.name if decision.test is not None else None,
            strategy=decision.strategy,
            info_gain=decision.info_gain,
            current_entropy=decision.current_entropy,
            scores=tuple(decision.scores),
            reason=decision.reason,
        )

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "test_name": self.test_name,
            "strategy": self.strategy,
            "info_gain": self.info_gain,
            "current_entropy": self.current_entropy,
            "scores": [s.to_json_dict() for s in self.scores],
            "reason": self.reason,
        }


@dataclass(frozen=True)
class TestExecuted:
    __test__ = False

    iteration: int
    result: TestResult

    kind = "test_executed"

    def to_json_dict(self) -> Dict[str, Any]:
        return {"iteration": self.iteration, "result": self.result.to_json_dict()}


@dataclass(frozen=True)
class RunFinished:
    iteration: int
    status: str
    diagnosis: Optional[Diagnosis]
    detail: str = ""

    kind = "run_finished"

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "status": self.status,
            "diagnosis": self.diagnosis.to_json_dict() if self.diagnosis is not None else None,
            "detail": self.detail,
        }


TDPEvent = Union[CycleStarted, DiagnosesComputed, TestSelected, TestExecuted, RunFinished]
Observer = Callable[[TDPEvent], None]


class EventRecorder:
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: List[TDPEvent] = []

    def __call__(self, event: TDPEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> List[TDPEvent]:
        return [e for e in self.events if e.kind == kind]


class JsonlEventWriter:
    """Appends one JSON object per event to `path`."""

    def __init__(self, path: str | Path, *, meta: Optional[Dict[str, Any]] = None):
        self.file_path = Path(path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with self.file_path.open("w", encoding="utf-8") as f:
            f.write(json.dumps({"event": "run_meta", "meta": dict(meta or {})}) + "\n")

    def __call__(self, event: TDPEvent) -> None:
        record = {"event": event.kind, "time": time.time()}
        record.update(event.to_json_dict())
        with self.file_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")


class LoggingObserver:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("TDPOrchestrator")

    def __call__(self, event: TDPEvent) -> None:
        if isinstance(event, CycleStarted):
            self.logger.info(
                f"Iteration {event.iteration}: observed={event.observed_count} "
                f"(failed={event.failed_count}), available={event.available_count}"
            )
        elif isinstance(event, DiagnosesComputed):
            stats = event.statistics
            self.logger.info(
                f"Iteration {event.iteration}: {stats.count} diagnoses from {event.conflict_count} conflicts, "
                f"entropy={stats.entropy:.4f}, best={stats.highest_probability:.3f}"
            )
            for d in event.diagnoses[:5]:
                self.logger.debug(f"  [{d.probability:.3f}] {list(d.sorted_components)}")
        elif isinstance(event, TestSelected):
            if event.test_name is None:
                self.logger.info(f"Iteration {event.iteration}: no test selected ({event.reason})")
            else:
                gain = f"{event.info_gain:.4f}" if event.info_gain is not None else "n/a"
                self.logger.info(
                    f"Iteration {event.iteration}: selected {event.test_name} ({event.strategy}, info gain={gain})"
                )
        elif isinstance(event, TestExecuted):
            verdict = "PASSED" if event.result.passed else "FAILED"
            self.logger.info(f"Iteration {event.iteration}: {event.result.name} {verdict}")
        elif isinstance(event, RunFinished):
            comps = list(event.diagnosis.sorted_components) if event.diagnosis is not None else None
            self.logger.info(f"Finished after {event.iteration} iterations: status={event.status}, diagnosis={comps}")
