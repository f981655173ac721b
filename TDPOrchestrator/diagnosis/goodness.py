"""Per-element goodness: how likely a test touching the element is to pass."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional

from ..coverage.models import Element, ElemStats

logger = logging.getLogger(__name__)

NEUTRAL_GOODNESS = 0.5
GOODNESS_MIN = 0.01
GOODNESS_MAX = 0.99


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(value)))


def goodness(element: Element, stats: Mapping[Element, ElemStats]) -> float:
    """`ep / (ef + ep)` bounded to [0.01, 0.99]; 0.5 when the element was never covered."""
    entry: Optional[ElemStats] = stats.get(element)
    if entry is None:
        logger.debug("No statistics for element %s; using neutral goodness", element)
        return NEUTRAL_GOODNESS

    covering = entry.ef + entry.ep
    if covering == 0:
        return NEUTRAL_GOODNESS

    return clamp(entry.ep / covering, GOODNESS_MIN, GOODNESS_MAX)


def goodness_product(elements: Iterable[Element], stats: Mapping[Element, ElemStats]) -> float:
    product = 1.0
    for element in elements:
        product *= goodness(element, stats)
    return product


def goodness_table(stats: Mapping[Element, ElemStats]) -> Dict[Element, float]:
    return {element: goodness(element, stats) for element in stats}
