"""Conflict extraction, goodness estimation and hitting-set diagnosis."""

from .conflicts import extract_conflicts, reduce_conflicts
from .goodness import clamp, goodness, goodness_product, goodness_table
from .hitting_set import (
    HittingSetDiagnoser,
    compute_diagnoses,
    diagnosis_score,
    is_hitting_set,
    is_minimal_hitting_set,
    minimal_hitting_sets,
)
from .models import Conflict, Diagnosis, normalize
from .ranking import SuspiciousnessScore, ochiai, rank_elements

__all__ = [
	"Conflict",
	"Diagnosis",
	"HittingSetDiagnoser",
	"SuspiciousnessScore",
	"clamp",
	"compute_diagnoses",
	"diagnosis_score",
	"extract_conflicts",
	"goodness",
	"goodness_product",
	"goodness_table",
	"is_hitting_set",
	"is_minimal_hitting_set",
	"minimal_hitting_sets",
	"normalize",
	"ochiai",
	"rank_elements",
	"reduce_conflicts",
]
