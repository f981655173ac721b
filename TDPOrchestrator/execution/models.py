from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, FrozenSet, List, Optional

from ..coverage.models import Element


@dataclass(frozen=True)
class AvailableTest:
    """A test that has not been observed yet, with its predicted coverage."""

    name: str
    estimated_trace: FrozenSet[Element]

    def __post_init__(self) -> None:
        object.__setattr__(self, "estimated_trace", frozenset(self.estimated_trace))

    def to_json_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "estimated_trace": sorted(self.estimated_trace)}


@dataclass(frozen=True)
class TestResult:
    __test__ = False

    name: str
    passed: bool
    actual_trace: FrozenSet[Element]

    def __post_init__(self) -> None:
        object.__setattr__(self, "actual_trace", frozenset(self.actual_trace))

    @property
    def failed(self) -> bool:
        return not self.passed

    def to_json_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "passed": bool(self.passed), "actual_trace": sorted(self.actual_trace)}


@dataclass(frozen=True)
class ExecutionResult:
    """Raw outcome of one build-tool invocation."""

    command: List[str]
    cwd: str
    exit_code: Optional[int]
    timed_out: bool
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    def to_json_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        # Build logs can be large; keep the tail only.
        payload["stdout"] = self.stdout[-4000:]
        payload["stderr"] = self.stderr[-4000:]
        return payload
