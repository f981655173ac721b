"""
TDPOrchestrator: drives the Diagnose -> Plan -> Test -> Update loop.

State machine per run:

    INIT -> DIAGNOSE -> (COMPLETE | PLAN) -> TEST -> UPDATE -> DIAGNOSE ...

Terminal statuses:
- converged:       one diagnosis remains or dominates
- no_evidence:     no observed test failed, nothing to explain
- exhausted:       the planner had no test to offer
- budget_exceeded: `max_iterations` cycles ran without convergence
- oracle_timeout:  the oracle did not answer within `oracle_timeout_seconds`
- oracle_error:    the oracle raised

Every status except `no_evidence` carries the best diagnosis known at that
point. Only INIT can raise (`CoverageConfigError`).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence

from ..coverage.models import CoverageConfigError, CoverageSuite
from ..discovery.catalog import TestCatalogProvider
from ..diagnosis.hitting_set import HittingSetDiagnoser
from ..diagnosis.models import Diagnosis
from ..execution.models import AvailableTest, TestResult
from ..execution.oracle import TestOracle
from ..planning.models import DiagnosisStatistics
from ..planning.planner import EntropyTestPlanner
from .config import TDPConfig
from .events import (
    CycleStarted,
    DiagnosesComputed,
    Observer,
    RunFinished,
    TDPEvent,
    TestExecuted,
    TestSelected,
)
from .state import TDPState, apply_test_result, diagnose, initial_state, plan

logger = logging.getLogger(__name__)

RunStatus = Literal[
    "converged",
    "no_evidence",
    "exhausted",
    "budget_exceeded",
    "oracle_timeout",
    "oracle_error",
]


class OracleTimeout(RuntimeError):
    pass


@dataclass(frozen=True)
class TDPOutcome:
    status: RunStatus
    diagnosis: Optional[Diagnosis]
    diagnoses: List[Diagnosis]
    statistics: Optional[DiagnosisStatistics]
    iterations: int
    state: TDPState = field(repr=False)
    executed: List[TestResult] = field(default_factory=list)
    detail: str = ""

    @property
    def converged(self) -> bool:
        return self.status == "converged"

    @property
    def best_effort(self) -> bool:
        return self.diagnosis is not None and not self.converged

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "converged": self.converged,
            "diagnosis": self.diagnosis.to_json_dict() if self.diagnosis is not None else None,
            "diagnoses": [d.to_json_dict() for d in self.diagnoses],
            "statistics": self.statistics.to_json_dict() if self.statistics is not None else None,
            "iterations": self.iterations,
            "executed": [r.to_json_dict() for r in self.executed],
            "observed_tests": self.state.observed_names,
            "detail": self.detail,
        }


class TDPOrchestrator:
    """Runs TDP cycles against an injected test oracle.

    The orchestrator is the only place a new `TDPState` is produced; the
    diagnoser and planner only ever see the state of the current cycle.
    """

    def __init__(
        self,
        oracle: TestOracle,
        *,
        config: Optional[TDPConfig] = None,
        planner: Optional[EntropyTestPlanner] = None,
        diagnoser: Optional[HittingSetDiagnoser] = None,
        observers: Iterable[Observer] = (),
    ):
        self.oracle = oracle
        self.config = config or TDPConfig()
        self.planner = planner or EntropyTestPlanner(max_workers=self.config.max_workers, seed=self.config.seed)
        self.diagnoser = diagnoser or HittingSetDiagnoser(
            max_diagnoses=self.config.max_diagnoses,
            max_candidates=self.config.max_candidates,
            max_cardinality=self.config.max_cardinality,
        )
        self._observers: List[Observer] = list(observers)

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def _emit(self, event: TDPEvent) -> None:
        for observer in self._observers:
            observer(event)

    def initialize(
        self,
        suite: Optional[CoverageSuite],
        selection: Optional[Iterable[str | int]] = None,
        *,
        catalog: Optional[TestCatalogProvider] = None,
    ) -> TDPState:
        """INIT. Missing or empty coverage is a configuration error."""
        if suite is None:
            raise CoverageConfigError("No coverage data supplied")
        state = initial_state(suite, selection, catalog=catalog)
        if not state.observed:
            raise CoverageConfigError("Initial selection matched no tests in the coverage data")
        logger.info(
            "Initialized: %d elements, %d observed tests (%d failed), %d available for planning",
            len(state.elements),
            len(state.observed),
            state.failed_count,
            len(state.available),
        )
        return state

    def run_suite(
        self,
        suite: Optional[CoverageSuite],
        selection: Optional[Iterable[str | int]] = None,
        *,
        catalog: Optional[TestCatalogProvider] = None,
    ) -> TDPOutcome:
        return self.run(self.initialize(suite, selection, catalog=catalog))

    def statistics(self, diagnoses: Sequence[Diagnosis]) -> DiagnosisStatistics:
        return self.planner.statistics(diagnoses, convergence_threshold=self.config.convergence_threshold)

    def run(self, state: TDPState) -> TDPOutcome:
        executed: List[TestResult] = []
        diagnoses: List[Diagnosis] = []
        stats: Optional[DiagnosisStatistics] = None

        iteration = 1
        while iteration <= self.config.max_iterations:
            self._emit(
                CycleStarted(
                    iteration=iteration,
                    observed_count=len(state.observed),
                    failed_count=state.failed_count,
                    available_count=len(state.available),
                )
            )

            # DIAGNOSE
            result = diagnose(state, self.diagnoser)
            if not result.diagnoses:
                detail = (
                    "no failed observed tests to explain" if not result.conflicts
                    else "no hitting set within max_cardinality"
                )
                return self._finish("no_evidence", None, [], None, iteration, state, executed, detail=detail)
            diagnoses = result.diagnoses
            stats = self.statistics(diagnoses)
            self._emit(DiagnosesComputed(iteration, len(result.conflicts), tuple(diagnoses), stats))

            if stats.is_complete:
                return self._finish("converged", stats.most_likely, diagnoses, stats, iteration, state, executed)

            # PLAN
            decision = plan(state, diagnoses, self.planner)
            self._emit(TestSelected.from_decision(iteration, decision))
            if decision.test is None:
                return self._finish("exhausted", stats.most_likely, diagnoses, stats, iteration, state, executed,
                                    detail=decision.reason)

            # TEST
            try:
                test_result = self._execute(decision.test)
            except OracleTimeout as exc:
                return self._finish("oracle_timeout", stats.most_likely, diagnoses, stats, iteration, state,
                                    executed, detail=str(exc))
            except Exception as exc:
                logger.exception("Oracle failed on %s", decision.test.name)
                return self._finish("oracle_error", stats.most_likely, diagnoses, stats, iteration, state,
                                    executed, detail=f"{type(exc).__name__}: {exc}")
            executed.append(test_result)
            self._emit(TestExecuted(iteration, test_result))

            # UPDATE
            state = apply_test_result(state, test_result)
            iteration += 1

        # Budget spent: one last DIAGNOSE so the final observation counts.
        iterations = self.config.max_iterations
        result = diagnose(state, self.diagnoser)
        if result.diagnoses:
            diagnoses = result.diagnoses
            stats = self.statistics(diagnoses)
        status: RunStatus = "converged" if stats is not None and stats.is_complete else "budget_exceeded"
        best = stats.most_likely if stats is not None else None
        return self._finish(status, best, diagnoses, stats, iterations, state, executed)

    def _execute(self, test: AvailableTest) -> TestResult:
        timeout = self.config.oracle_timeout_seconds
        if timeout is None:
            return self.oracle.execute(test)

        # Daemon thread: an oracle that never returns must not block interpreter exit.
        box: Dict[str, Any] = {}

        def call() -> None:
            try:
                box["result"] = self.oracle.execute(test)
            except Exception as exc:
                box["error"] = exc

        worker = threading.Thread(target=call, name=f"tdp-oracle-{test.name}", daemon=True)
        worker.start()
        worker.join(float(timeout))
        if worker.is_alive():
            raise OracleTimeout(f"Oracle did not answer for {test.name} within {timeout}s")
        if "error" in box:
            raise box["error"]
        return box["result"]

    def _finish(
        self,
        status: RunStatus,
        diagnosis: Optional[Diagnosis],
        diagnoses: List[Diagnosis],
        stats: Optional[DiagnosisStatistics],
        iterations: int,
        state: TDPState,
        executed: List[TestResult],
        *,
        detail: str = "",
    ) -> TDPOutcome:
        self._emit(RunFinished(iteration=iterations, status=status, diagnosis=diagnosis, detail=detail))
        return TDPOutcome(
            status=status,
            diagnosis=diagnosis,
            diagnoses=list(diagnoses),
            statistics=stats,
            iterations=iterations,
            state=state,
            executed=list(executed),
            detail=detail,
        )
