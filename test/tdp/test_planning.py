from __future__ import annotations

import math

import pytest

from TDPOrchestrator.coverage.models import ElemStats
from TDPOrchestrator.diagnosis.models import Diagnosis
from TDPOrchestrator.execution.models import AvailableTest
from TDPOrchestrator.planning import (
    DiagnosisStatistics,
    EntropyTestPlanner,
    entropy,
    estimate_pass_probability,
    outcome_likelihood,
    score_test,
    select_best_test,
    update_diagnoses_for_outcome,
)


def _d(*components, p):
    return Diagnosis(components=frozenset(components), probability=p)


def _t(name, *trace):
    return AvailableTest(name=name, estimated_trace=frozenset(trace))


def _stats(**counts):
    return {e: ElemStats(element=e, ef=ef, ep=ep) for e, (ef, ep) in counts.items()}


# A and B are each covered by one failing test only: goodness 0.01.
STATS = _stats(A=(1, 0), B=(1, 0), C=(1, 1))


def test_entropy_in_nats():
    assert entropy([_d("A", p=0.5), _d("B", p=0.5)]) == pytest.approx(math.log(2))
    assert entropy([_d("A", p=1.0)]) == 0.0
    assert entropy([]) == 0.0
    assert entropy([_d("A", p=1.0), _d("B", p=0.0)]) == 0.0


def test_statistics_report_first_most_likely_diagnosis():
    diagnoses = [_d("A", p=0.4), _d("B", p=0.4), _d("C", p=0.2)]
    stats = DiagnosisStatistics.of(diagnoses, convergence_threshold=0.95)

    assert stats.count == 3
    assert stats.most_likely.sorted_components == ("A",)
    assert stats.highest_probability == pytest.approx(0.4)
    assert not stats.is_complete


def test_statistics_completion_rules():
    assert DiagnosisStatistics.of([_d("A", p=1.0)]).is_complete
    dominated = [_d("A", p=0.96), _d("B", p=0.04)]
    assert DiagnosisStatistics.of(dominated, convergence_threshold=0.95).is_complete
    assert not DiagnosisStatistics.of(dominated, convergence_threshold=None).is_complete
    assert not DiagnosisStatistics.of([], convergence_threshold=0.95).is_complete


def test_likelihood_when_test_misses_the_diagnosis():
    test = _t("t", "C")
    d = _d("A", p=1.0)
    assert outcome_likelihood(test, d, True, STATS) == pytest.approx(0.95)
    assert outcome_likelihood(test, d, False, STATS) == pytest.approx(0.05)


def test_likelihood_is_clamped_when_test_touches_the_diagnosis():
    test = _t("t", "A")
    d = _d("A", p=1.0)
    assert outcome_likelihood(test, d, True, STATS) == pytest.approx(0.05)
    assert outcome_likelihood(test, d, False, STATS) == pytest.approx(0.95)


def test_pass_probability_is_weighted_and_bounded():
    diagnoses = [_d("A", p=0.5), _d("B", p=0.5)]
    assert estimate_pass_probability(_t("t", "A"), diagnoses, STATS) == pytest.approx(0.5)
    assert estimate_pass_probability(_t("t", "Z"), diagnoses, STATS) == pytest.approx(0.95)
    assert estimate_pass_probability(_t("t", "A", "B"), diagnoses, STATS) == pytest.approx(0.05)


def test_update_renormalizes_and_leaves_input_untouched():
    diagnoses = [_d("A", p=0.5), _d("B", p=0.5)]

    posterior = update_diagnoses_for_outcome(diagnoses, _t("t", "A"), True, STATS)

    assert [d.probability for d in diagnoses] == [0.5, 0.5]
    assert [d.sorted_components for d in posterior] == [("A",), ("B",)]
    assert posterior[0].probability == pytest.approx(0.05)
    assert posterior[1].probability == pytest.approx(0.95)
    assert sum(d.probability for d in posterior) == pytest.approx(1.0)


def test_update_prunes_unlikely_diagnoses():
    diagnoses = [_d("A", p=0.01), _d("B", p=0.99)]

    posterior = update_diagnoses_for_outcome(diagnoses, _t("t", "A"), True, STATS)

    assert [d.sorted_components for d in posterior] == [("B",)]
    assert posterior[0].probability == pytest.approx(1.0)


def test_update_falls_back_to_uniform_when_everything_is_pruned():
    diagnoses = [_d("A", p=0.01), _d("B", p=0.01)]

    posterior = update_diagnoses_for_outcome(diagnoses, _t("t", "A", "B"), True, STATS)

    assert [d.sorted_components for d in posterior] == [("A",), ("B",)]
    assert [d.probability for d in posterior] == [0.5, 0.5]


def test_info_gain_is_never_negative():
    diagnoses = [_d("A", p=0.5), _d("B", p=0.5)]
    current = entropy(diagnoses)
    for test in (_t("a", "A"), _t("ab", "A", "B"), _t("z", "Z"), _t("c", "C")):
        assert score_test(test, diagnoses, STATS, current).info_gain >= 0.0


def test_planner_prefers_the_discriminating_test():
    diagnoses = [_d("A", p=0.5), _d("B", p=0.5)]
    tests = [_t("both", "A", "B"), _t("only_a", "A"), _t("neither", "C")]

    decision = EntropyTestPlanner().plan(tests, diagnoses, STATS)

    assert decision.strategy == "entropy"
    assert decision.test.name == "only_a"
    assert decision.current_entropy == pytest.approx(math.log(2))
    assert [s.name for s in decision.scores] == ["both", "only_a", "neither"]
    assert decision.info_gain == max(s.info_gain for s in decision.scores)


def test_planner_breaks_ties_by_pool_order():
    diagnoses = [_d("A", p=0.5), _d("B", p=0.5)]
    tests = [_t("first", "A"), _t("second", "A")]
    assert select_best_test(tests, diagnoses, STATS).name == "first"


def test_planner_returns_none_without_choice_to_make():
    planner = EntropyTestPlanner()
    single = planner.plan([_t("a", "A")], [_d("A", p=1.0)], STATS)
    empty_pool = planner.plan([], [_d("A", p=0.5), _d("B", p=0.5)], STATS)

    assert single.test is None and single.strategy == "none"
    assert empty_pool.test is None and empty_pool.strategy == "none"
    assert empty_pool.info_gain is None


def test_planner_picks_randomly_without_statistics():
    diagnoses = [_d("A", p=0.5), _d("B", p=0.5)]
    tests = [_t("a", "A"), _t("b", "B"), _t("c", "C")]

    first = EntropyTestPlanner(seed=7).plan(tests, diagnoses, {})
    again = EntropyTestPlanner(seed=7).plan(tests, diagnoses, {})

    assert first.strategy == "random"
    assert first.test in tests
    assert first.test == again.test


def test_threaded_scoring_matches_sequential():
    diagnoses = [_d("A", p=0.3), _d("B", p=0.3), _d("A", "C", p=0.4)]
    tests = [_t(f"t{i}", *trace) for i, trace in enumerate([("A",), ("B",), ("C",), ("A", "B"), ("B", "C")])]

    sequential = EntropyTestPlanner(max_workers=1).plan(tests, diagnoses, STATS)
    threaded = EntropyTestPlanner(max_workers=4).plan(tests, diagnoses, STATS)

    assert threaded.test == sequential.test
    assert threaded.scores == sequential.scores
