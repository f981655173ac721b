from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Tuple

from ..coverage.models import Element

# At least one element of a conflict is faulty.
Conflict = FrozenSet[Element]


@dataclass(frozen=True)
class Diagnosis:
    """A set of elements hypothesized to be jointly faulty."""

    components: FrozenSet[Element]
    probability: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "components", frozenset(self.components))
        object.__setattr__(self, "probability", float(self.probability))

    @property
    def cardinality(self) -> int:
        return len(self.components)

    @property
    def sorted_components(self) -> Tuple[Element, ...]:
        return tuple(sorted(self.components))

    def with_probability(self, probability: float) -> "Diagnosis":
        return Diagnosis(components=self.components, probability=probability)

    def hits(self, conflict: Iterable[Element]) -> bool:
        return not self.components.isdisjoint(conflict)

    def to_json_dict(self) -> Dict[str, Any]:
        return {"components": list(self.sorted_components), "probability": self.probability}


def normalize(diagnoses: List[Diagnosis]) -> List[Diagnosis]:
    """Rescale probabilities to sum to 1; a zero total is returned unchanged."""
    total = sum(d.probability for d in diagnoses)
    if total <= 0.0:
        return list(diagnoses)
    return [d.with_probability(d.probability / total) for d in diagnoses]
