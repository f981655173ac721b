from __future__ import annotations

from typing import List, Sequence

import numpy as np

from ..coverage.models import Element, TestCase, as_coverage_matrix, trace_from_row
from .models import Conflict


def extract_conflicts(
    observed_tests: Sequence[TestCase],
    coverage_matrix: np.ndarray,
    elements: Sequence[Element],
) -> List[Conflict]:
    """One conflict per failed observed test: the elements that test covered.

    Passing tests and failed tests with an empty trace contribute nothing, so an
    empty result means there is no fault evidence to diagnose.
    """

    matrix = as_coverage_matrix(coverage_matrix, n_elements=len(elements))
    conflicts: List[Conflict] = []
    for i, test in enumerate(observed_tests):
        if not test.failed or i >= matrix.shape[0]:
            continue
        conflict = trace_from_row(matrix[i], elements)
        if conflict:
            conflicts.append(conflict)
    return conflicts


def reduce_conflicts(conflicts: Sequence[Conflict]) -> List[Conflict]:
    """Drop empty and duplicate conflicts, and any conflict containing another.

    A set hitting the smaller conflict always hits its supersets, so the minimal
    hitting sets are unchanged. Order follows the first appearance of each kept
    conflict.
    """

    unique: List[Conflict] = []
    for conflict in conflicts:
        if conflict and conflict not in unique:
            unique.append(conflict)

    return [c for c in unique if not any(other < c for other in unique)]
