from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Mapping

from ..coverage.models import Element, ElemStats


@dataclass(frozen=True)
class SuspiciousnessScore:
    element: Element
    score: float


def ochiai(stats: ElemStats) -> float:
    """`ef / sqrt((ef + nf) * (ef + ep))`, 0 when either factor is empty."""
    denom = (stats.ef + stats.nf) * (stats.ef + stats.ep)
    if denom <= 0:
        return 0.0
    return stats.ef / math.sqrt(denom)


def rank_elements(stats: Mapping[Element, ElemStats]) -> List[SuspiciousnessScore]:
    """Classic single-pass spectrum ranking, most suspicious first.

    Kept alongside the TDP loop as a baseline; ties are ordered by element id.
    """

    scores = [SuspiciousnessScore(element=e, score=ochiai(s)) for e, s in stats.items()]
    scores.sort(key=lambda s: (-s.score, s.element))
    return scores
