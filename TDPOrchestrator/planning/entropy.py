"""Entropy of a diagnosis distribution and Bayesian what-if updates.

Likelihood of an outcome given a diagnosis `d` and test `t`:

- `t` touches none of `d`'s components: pass 0.95, fail 0.05
- otherwise, with `g = prod(goodness(e) for e in trace(t) & d)`:
  pass `clamp(g)`, fail `clamp(1 - g)`, both bounded to [0.05, 0.95]
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Mapping, Sequence

from ..coverage.models import Element, ElemStats
from ..diagnosis.goodness import clamp, goodness_product
from ..diagnosis.models import Diagnosis
from ..execution.models import AvailableTest

logger = logging.getLogger(__name__)

UNTOUCHED_PASS = 0.95
LIKELIHOOD_MIN = 0.05
LIKELIHOOD_MAX = 0.95
PRUNE_THRESHOLD = 0.001


def entropy(diagnoses: Iterable[Diagnosis]) -> float:
    """Shannon entropy in nats; zero-probability entries contribute nothing."""
    h = 0.0
    for d in diagnoses:
        p = d.probability
        if p > 0.0:
            h -= p * math.log(p)
    return h


def outcome_likelihood(
    test: AvailableTest,
    diagnosis: Diagnosis,
    outcome_is_pass: bool,
    stats: Mapping[Element, ElemStats],
) -> float:
    touched = test.estimated_trace & diagnosis.components
    if not touched:
        return UNTOUCHED_PASS if outcome_is_pass else 1.0 - UNTOUCHED_PASS

    g = goodness_product(touched, stats)
    value = g if outcome_is_pass else 1.0 - g
    return clamp(value, LIKELIHOOD_MIN, LIKELIHOOD_MAX)


def estimate_pass_probability(
    test: AvailableTest,
    diagnoses: Sequence[Diagnosis],
    stats: Mapping[Element, ElemStats],
) -> float:
    weighted = 0.0
    for d in diagnoses:
        weighted += d.probability * outcome_likelihood(test, d, True, stats)
    return clamp(weighted, LIKELIHOOD_MIN, LIKELIHOOD_MAX)


def update_diagnoses_for_outcome(
    diagnoses: Sequence[Diagnosis],
    test: AvailableTest,
    outcome_is_pass: bool,
    stats: Mapping[Element, ElemStats],
) -> List[Diagnosis]:
    """Posterior over `diagnoses` if `test` produced the given outcome.

    Entries at or below the pruning threshold are dropped. If nothing survives,
    the original diagnoses come back with a uniform distribution. Inputs are
    never modified.
    """

    survivors: List[Diagnosis] = []
    for d in diagnoses:
        p = d.probability * outcome_likelihood(test, d, outcome_is_pass, stats)
        if p > PRUNE_THRESHOLD:
            survivors.append(d.with_probability(p))

    total = sum(d.probability for d in survivors)
    if survivors and total > 0.0:
        return [d.with_probability(d.probability / total) for d in survivors]

    if not diagnoses:
        return []
    logger.debug(
        "All %d diagnoses pruned for %s (%s); using uniform distribution",
        len(diagnoses),
        test.name,
        "pass" if outcome_is_pass else "fail",
    )
    uniform = 1.0 / len(diagnoses)
    return [d.with_probability(uniform) for d in diagnoses]
