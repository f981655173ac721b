from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

import numpy as np

Element = str


class CoverageConfigError(RuntimeError):
    """Coverage data is missing or unusable; the run cannot start."""


@dataclass(frozen=True)
class TestCase:
    __test__ = False

    name: str
    failed: bool

    @property
    def passed(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class ElemStats:
    element: Element
    ef: int = 0
    ep: int = 0
    nf: int = 0
    np: int = 0

    @property
    def executed(self) -> int:
        return int(self.ef) + int(self.ep)

    @property
    def total(self) -> int:
        return int(self.ef) + int(self.ep) + int(self.nf) + int(self.np)

    def to_json_dict(self) -> Dict[str, Any]:
        return asdict(self)


def as_coverage_matrix(rows: Any, *, n_elements: int) -> np.ndarray:
    """Coerce rows of 0/1 (or bool) values into a 2-D boolean array."""
    matrix = np.asarray(rows, dtype=bool)
    if matrix.size == 0:
        return np.zeros((0, int(n_elements)), dtype=bool)
    if matrix.ndim != 2 or matrix.shape[1] != int(n_elements):
        raise CoverageConfigError(
            f"Coverage matrix shape {matrix.shape} does not match {n_elements} elements"
        )
    return matrix


def build_element_stats(
    tests: Sequence[TestCase],
    coverage_matrix: np.ndarray,
    elements: Sequence[Element],
) -> Dict[Element, ElemStats]:
    """Recount ef/ep/nf/np for every element over the given tests.

    Always computed from scratch; rows are matched to `tests` by position.
    """

    matrix = as_coverage_matrix(coverage_matrix, n_elements=len(elements))
    if matrix.shape[0] != len(tests):
        raise CoverageConfigError(
            f"Coverage matrix has {matrix.shape[0]} rows for {len(tests)} tests"
        )

    failed = np.array([t.failed for t in tests], dtype=bool).reshape(-1, 1)
    ef = np.sum(matrix & failed, axis=0)
    ep = np.sum(matrix & ~failed, axis=0)
    nf = np.sum(~matrix & failed, axis=0)
    n_p = np.sum(~matrix & ~failed, axis=0)

    return {
        elem: ElemStats(element=elem, ef=int(ef[j]), ep=int(ep[j]), nf=int(nf[j]), np=int(n_p[j]))
        for j, elem in enumerate(elements)
    }


def trace_from_row(row: np.ndarray, elements: Sequence[Element]) -> FrozenSet[Element]:
    return frozenset(elements[j] for j in np.flatnonzero(row))


@dataclass(frozen=True, eq=False)
class CoverageSuite:
    """Everything the coverage reader knows about the whole test suite.

    `matrix[i, j]` is True when `tests[i]` covers `elements[j]`.
    """

    elements: List[Element]
    tests: List[TestCase]
    matrix: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        if not self.elements:
            raise CoverageConfigError("Coverage data lists no elements")
        if not self.tests:
            raise CoverageConfigError("Coverage data lists no tests")
        if len(set(self.elements)) != len(self.elements):
            raise CoverageConfigError("Duplicate element identifiers in coverage data")
        matrix = as_coverage_matrix(np.array(self.matrix, dtype=bool), n_elements=len(self.elements))
        if matrix.shape[0] != len(self.tests):
            raise CoverageConfigError(
                f"Coverage matrix has {matrix.shape[0]} rows for {len(self.tests)} tests"
            )
        matrix.setflags(write=False)
        object.__setattr__(self, "matrix", matrix)

    @property
    def test_names(self) -> List[str]:
        return [t.name for t in self.tests]

    def index_of(self, name: str) -> Optional[int]:
        for i, t in enumerate(self.tests):
            if t.name == name:
                return i
        return None

    def trace_of(self, name: str) -> FrozenSet[Element]:
        idx = self.index_of(name)
        if idx is None:
            return frozenset()
        return trace_from_row(self.matrix[idx], self.elements)

    def test_named(self, name: str) -> Optional[TestCase]:
        idx = self.index_of(name)
        return None if idx is None else self.tests[idx]

    def select(self, selection: Optional[Iterable[str | int]] = None) -> List[TestCase]:
        """Pick the initial observations.

        `None` selects every test. Integers are 1-based positions in the suite,
        strings are test names; unknown entries are ignored and duplicates kept
        once, in order of first appearance.
        """

        if selection is None:
            return list(self.tests)

        chosen: List[TestCase] = []
        seen = set()
        for item in selection:
            test: Optional[TestCase] = None
            if isinstance(item, int):
                if 1 <= item <= len(self.tests):
                    test = self.tests[item - 1]
            else:
                test = self.test_named(str(item))
            if test is not None and test.name not in seen:
                seen.add(test.name)
                chosen.append(test)
        return chosen

    def rows_for(self, tests: Sequence[TestCase]) -> np.ndarray:
        rows = np.zeros((len(tests), len(self.elements)), dtype=bool)
        for i, t in enumerate(tests):
            idx = self.index_of(t.name)
            if idx is not None:
                rows[i] = self.matrix[idx]
        return rows
