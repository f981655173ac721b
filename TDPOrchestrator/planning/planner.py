from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Mapping, Optional, Sequence

import numpy as np

from ..coverage.models import Element, ElemStats
from ..diagnosis.models import Diagnosis
from ..execution.models import AvailableTest
from .entropy import entropy, estimate_pass_probability, update_diagnoses_for_outcome
from .models import DiagnosisStatistics, PlanningDecision, TestScore

logger = logging.getLogger(__name__)


def score_test(
    test: AvailableTest,
    diagnoses: Sequence[Diagnosis],
    stats: Mapping[Element, ElemStats],
    current_entropy: float,
) -> TestScore:
    """Expected information gain of running `test`, floored at zero."""
    p_pass = estimate_pass_probability(test, diagnoses, stats)
    p_fail = 1.0 - p_pass

    if_pass = update_diagnoses_for_outcome(diagnoses, test, True, stats)
    if_fail = update_diagnoses_for_outcome(diagnoses, test, False, stats)

    expected = p_pass * entropy(if_pass) + p_fail * entropy(if_fail)
    return TestScore(
        name=test.name,
        pass_probability=p_pass,
        expected_entropy=expected,
        info_gain=max(0.0, current_entropy - expected),
    )


class EntropyTestPlanner:
    """Picks the next test by maximal expected entropy reduction.

    Candidate scoring only reads the diagnosis list and statistics, so with
    `max_workers > 1` it runs on a thread pool; results keep the input order and
    the first of equal gains wins.
    """

    def __init__(self, *, max_workers: int = 1, seed: Optional[int] = None):
        self.max_workers = max(1, int(max_workers))
        self._rng = np.random.default_rng(seed)

    def statistics(self, diagnoses: Sequence[Diagnosis], *, convergence_threshold: Optional[float] = None) -> DiagnosisStatistics:
        return DiagnosisStatistics.of(diagnoses, convergence_threshold=convergence_threshold)

    def score_all(
        self,
        available_tests: Sequence[AvailableTest],
        diagnoses: Sequence[Diagnosis],
        stats: Mapping[Element, ElemStats],
        current_entropy: float,
    ) -> List[TestScore]:
        if self.max_workers == 1 or len(available_tests) < 2:
            return [score_test(t, diagnoses, stats, current_entropy) for t in available_tests]

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(lambda t: score_test(t, diagnoses, stats, current_entropy), available_tests))

    def plan(
        self,
        available_tests: Sequence[AvailableTest],
        diagnoses: Sequence[Diagnosis],
        stats: Mapping[Element, ElemStats],
    ) -> PlanningDecision:
        if not available_tests:
            return PlanningDecision(test=None, strategy="none", reason="no available tests")

        if len(diagnoses) <= 1:
            return PlanningDecision(test=None, strategy="none", reason="diagnosis already determined")

        if not stats:
            logger.warning("No component statistics loaded; falling back to random test selection")
            pick = available_tests[int(self._rng.integers(len(available_tests)))]
            return PlanningDecision(test=pick, strategy="random", reason="no statistics")

        current = entropy(diagnoses)
        scores = self.score_all(available_tests, diagnoses, stats, current)

        best: Optional[AvailableTest] = None
        best_gain = -1.0
        for test, score in zip(available_tests, scores):
            if score.info_gain > best_gain:
                best_gain = score.info_gain
                best = test

        logger.debug(
            "Evaluated %d tests at entropy %.4f; best %s (gain %.4f)",
            len(available_tests),
            current,
            best.name if best is not None else None,
            best_gain,
        )
        return PlanningDecision(test=best, strategy="entropy", current_entropy=current, scores=scores)

    def select_best_test(
        self,
        available_tests: Sequence[AvailableTest],
        diagnoses: Sequence[Diagnosis],
        stats: Mapping[Element, ElemStats],
    ) -> Optional[AvailableTest]:
        return self.plan(available_tests, diagnoses, stats).test


def select_best_test(
    available_tests: Sequence[AvailableTest],
    diagnoses: Sequence[Diagnosis],
    stats: Mapping[Element, ElemStats],
) -> Optional[AvailableTest]:
    return EntropyTestPlanner().select_best_test(available_tests, diagnoses, stats)
