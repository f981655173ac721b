"""Minimal-hitting-set diagnosis with Barinel-style scoring.

Candidates are enumerated cardinality-first: every minimal hitting set of size
k is found before any of size k+1, by a depth-limited branch-and-bound that
always branches on the first conflict the partial set does not hit yet
(elements in sorted order) and prunes partial sets containing an already
accepted diagnosis.

The enumeration is an approximation on large inputs: it stops after
`max_candidates` sets (and at `max_cardinality`, when given), so only the
prefix reachable within that budget is scored. The final ranking is fully
deterministic: score descending, then cardinality ascending, then the sorted
element tuple.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple

from ..coverage.models import Element, ElemStats
from .conflicts import reduce_conflicts
from .goodness import goodness
from .models import Conflict, Diagnosis, normalize

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIAGNOSES = 20
DEFAULT_MAX_CANDIDATES = 10_000


def is_hitting_set(candidate: FrozenSet[Element], conflicts: Sequence[Conflict]) -> bool:
    return all(not candidate.isdisjoint(c) for c in conflicts if c)


def is_minimal_hitting_set(candidate: FrozenSet[Element], conflicts: Sequence[Conflict]) -> bool:
    if not is_hitting_set(candidate, conflicts):
        return False
    return all(not is_hitting_set(candidate - {e}, conflicts) for e in candidate)


def minimal_hitting_sets(
    conflicts: Sequence[Conflict],
    *,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
    max_cardinality: Optional[int] = None,
) -> List[FrozenSet[Element]]:
    """Enumerate minimal hitting sets, smallest first."""
    reduced = reduce_conflicts(conflicts)
    if not reduced:
        return []

    # No minimal hitting set is larger than the number of conflicts.
    limit = len(reduced)
    if max_cardinality is not None:
        limit = min(limit, max(1, int(max_cardinality)))
    budget = max(1, int(max_candidates))

    accepted: List[FrozenSet[Element]] = []
    for size in range(1, limit + 1):
        found: List[FrozenSet[Element]] = []
        seen: Set[FrozenSet[Element]] = set()
        _search(reduced, (), size, accepted, found, seen, budget - len(accepted))
        accepted.extend(found)
        if len(accepted) >= budget:
            logger.debug("Hitting-set enumeration stopped at %d candidates (size %d)", len(accepted), size)
            break
    return accepted


def _search(
    conflicts: Sequence[Conflict],
    chosen: Tuple[Element, ...],
    size: int,
    accepted: Sequence[FrozenSet[Element]],
    found: List[FrozenSet[Element]],
    seen: Set[FrozenSet[Element]],
    budget: int,
) -> None:
    if len(found) >= budget:
        return

    partial = frozenset(chosen)
    if any(prev <= partial for prev in accepted):
        return

    unhit = next((c for c in conflicts if partial.isdisjoint(c)), None)
    if unhit is None:
        if len(partial) == size and partial not in seen and is_minimal_hitting_set(partial, conflicts):
            seen.add(partial)
            found.append(partial)
        return

    if len(chosen) >= size:
        return

    for element in sorted(unhit):
        _search(conflicts, chosen + (element,), size, accepted, found, seen, budget)
        if len(found) >= budget:
            return


def diagnosis_score(components: FrozenSet[Element], stats: Mapping[Element, ElemStats]) -> float:
    """Un-normalized posterior weight: product of `1 - goodness` over the components."""
    score = 1.0
    for element in components:
        score *= 1.0 - goodness(element, stats)
    return score


def rank_key(diagnosis: Diagnosis) -> Tuple[float, int, Tuple[Element, ...]]:
    return (-diagnosis.probability, diagnosis.cardinality, diagnosis.sorted_components)


@dataclass(frozen=True)
class HittingSetDiagnoser:
    max_diagnoses: int = DEFAULT_MAX_DIAGNOSES
    max_candidates: int = DEFAULT_MAX_CANDIDATES
    max_cardinality: Optional[int] = None

    def compute(self, conflicts: Sequence[Conflict], element_stats: Mapping[Element, ElemStats]) -> List[Diagnosis]:
        if not conflicts:
            return []

        candidates = minimal_hitting_sets(
            conflicts,
            max_candidates=self.max_candidates,
            max_cardinality=self.max_cardinality,
        )
        scored = [Diagnosis(components=c, probability=diagnosis_score(c, element_stats)) for c in candidates]
        scored.sort(key=rank_key)

        kept = normalize(scored[: max(1, int(self.max_diagnoses))])
        logger.debug(
            "Computed %d diagnoses from %d conflicts (%d candidates)",
            len(kept),
            len(conflicts),
            len(candidates),
        )
        return kept


def compute_diagnoses(
    conflicts: Sequence[Conflict],
    element_stats: Mapping[Element, ElemStats],
    max_diagnoses: int = DEFAULT_MAX_DIAGNOSES,
) -> List[Diagnosis]:
    return HittingSetDiagnoser(max_diagnoses=max_diagnoses).compute(conflicts, element_stats)
