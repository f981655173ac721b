"""
Immutable loop state and the pure DIAGNOSE / PLAN / UPDATE stage functions.

Each cycle takes a `TDPState` and the UPDATE stage returns a new one, so the
observed tests, coverage rows, element statistics and available pool always
change together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..coverage.models import CoverageSuite, Element, ElemStats, TestCase, build_element_stats
from ..diagnosis.conflicts import extract_conflicts
from ..diagnosis.hitting_set import HittingSetDiagnoser
from ..diagnosis.models import Conflict, Diagnosis
from ..discovery.catalog import TestCatalogProvider, build_available_tests, catalog_tests, extend_pool
from ..execution.models import AvailableTest, TestResult
from ..planning.models import PlanningDecision
from ..planning.planner import EntropyTestPlanner


@dataclass(frozen=True, eq=False)
class TDPState:
    elements: Tuple[Element, ...]
    observed: Tuple[TestCase, ...]
    matrix: np.ndarray = field(repr=False)
    stats: Mapping[Element, ElemStats] = field(repr=False)
    available: Tuple[AvailableTest, ...] = ()

    @staticmethod
    def build(
        elements: Sequence[Element],
        observed: Sequence[TestCase],
        matrix: np.ndarray,
        available: Sequence[AvailableTest] = (),
    ) -> "TDPState":
        rows = np.array(matrix, dtype=bool).reshape(len(observed), len(elements))
        rows.setflags(write=False)
        stats = build_element_stats(observed, rows, elements)
        return TDPState(
            elements=tuple(elements),
            observed=tuple(observed),
            matrix=rows,
            stats=MappingProxyType(dict(stats)),
            available=tuple(available),
        )

    @property
    def observed_names(self) -> List[str]:
        return [t.name for t in self.observed]

    @property
    def failed_count(self) -> int:
        return sum(1 for t in self.observed if t.failed)


def initial_state(
    suite: CoverageSuite,
    selection: Optional[Iterable[str | int]] = None,
    *,
    catalog: Optional[TestCatalogProvider] = None,
) -> TDPState:
    """INIT: observe the selected tests, offer the rest of the suite for planning.

    A catalog adds tests the coverage data does not describe, using its
    estimated traces.
    """
    observed = suite.select(selection)
    names = [t.name for t in observed]
    pool = build_available_tests(suite, names)
    if catalog is not None:
        pool = extend_pool(pool, catalog_tests(catalog, suite), observed_names=names)
    return TDPState.build(suite.elements, observed, suite.rows_for(observed), pool)


@dataclass(frozen=True)
class DiagnoseResult:
    conflicts: List[Conflict]
    diagnoses: List[Diagnosis]


def diagnose(state: TDPState, diagnoser: HittingSetDiagnoser) -> DiagnoseResult:
    conflicts = extract_conflicts(state.observed, state.matrix, state.elements)
    if not conflicts:
        return DiagnoseResult(conflicts=[], diagnoses=[])
    return DiagnoseResult(conflicts=conflicts, diagnoses=diagnoser.compute(conflicts, state.stats))


def plan(state: TDPState, diagnoses: Sequence[Diagnosis], planner: EntropyTestPlanner) -> PlanningDecision:
    return planner.plan(state.available, diagnoses, state.stats)


def apply_test_result(state: TDPState, result: TestResult) -> TDPState:
    """UPDATE: record the outcome as a new observation and drop it from the pool."""
    observed = list(state.observed) + [TestCase(name=result.name, failed=result.failed)]
    row = np.array([e in result.actual_trace for e in state.elements], dtype=bool)
    matrix = np.vstack([state.matrix, row.reshape(1, -1)])
    available = [t for t in state.available if t.name != result.name]
    return TDPState.build(state.elements, observed, matrix, available)
