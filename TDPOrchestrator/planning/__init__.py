"""Entropy-driven test planning."""

from .entropy import (
    PRUNE_THRESHOLD,
    entropy,
    estimate_pass_probability,
    outcome_likelihood,
    update_diagnoses_for_outcome,
)
from .models import DiagnosisStatistics, PlanningDecision, TestScore
from .planner import EntropyTestPlanner, score_test, select_best_test

__all__ = [
	"DiagnosisStatistics",
	"EntropyTestPlanner",
	"PRUNE_THRESHOLD",
	"PlanningDecision",
	"TestScore",
	"entropy",
	"estimate_pass_probability",
	"outcome_likelihood",
	"score_test",
	"select_best_test",
	"update_diagnoses_for_outcome",
]
