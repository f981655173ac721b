"""Test oracles: whatever turns a planned test into an observed outcome.

The orchestrator only needs `execute(AvailableTest) -> TestResult`. The
implementations here replay recorded outcomes, follow a script, or shell out to
Maven/Gradle for a single test.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from ..coverage.models import CoverageSuite, Element
from .models import AvailableTest, ExecutionResult, TestResult
from .runner import BuildTool, ExecutionError, run_command, single_test_command

logger = logging.getLogger(__name__)


class TestOracle(Protocol):
    def execute(self, test: AvailableTest) -> TestResult:
        ...


def _parse_outcome(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("p", "pass", "passed", "ok", "true"):
        return True
    if text in ("f", "fail", "failed", "error", "false"):
        return False
    raise ValueError(f"Unrecognized test outcome: {value!r}")


class ScriptedOracle:
    """Outcomes fixed in advance, keyed by test name (True means pass).

    `traces` optionally overrides the reported trace; otherwise the estimated
    trace is echoed back.
    """

    def __init__(
        self,
        outcomes: Mapping[str, Any],
        *,
        traces: Optional[Mapping[str, Iterable[Element]]] = None,
        default: Optional[bool] = None,
    ):
        self._outcomes: Dict[str, bool] = {str(k): _parse_outcome(v) for k, v in outcomes.items()}
        self._traces = {str(k): frozenset(v) for k, v in (traces or {}).items()}
        self._default = default
        self.executed: List[str] = []

    @staticmethod
    def from_json(path: str | Path, *, default: Optional[bool] = None) -> "ScriptedOracle":
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ExecutionError(f"Unable to read outcomes file {path} ({exc})") from exc
        if not isinstance(payload, dict):
            raise ExecutionError(f"Outcomes file {path} must contain a JSON object")
        return ScriptedOracle(payload, default=default)

    def execute(self, test: AvailableTest) -> TestResult:
        if test.name in self._outcomes:
            passed = self._outcomes[test.name]
        elif self._default is not None:
            passed = bool(self._default)
        else:
            raise ExecutionError(f"No scripted outcome for test {test.name!r}")
        self.executed.append(test.name)
        trace = self._traces.get(test.name, test.estimated_trace)
        return TestResult(name=test.name, passed=passed, actual_trace=trace)


class RecordedSuiteOracle:
    """Replays the outcome and trace the coverage data recorded for each test."""

    def __init__(self, suite: CoverageSuite):
        self._suite = suite

    def execute(self, test: AvailableTest) -> TestResult:
        recorded = self._suite.test_named(test.name)
        if recorded is None:
            raise ExecutionError(f"Test {test.name!r} is not part of the recorded suite")
        trace = self._suite.trace_of(test.name) or test.estimated_trace
        return TestResult(name=test.name, passed=recorded.passed, actual_trace=trace)


class CommandOracle:
    """Runs one test through the project's build tool.

    Pass means exit code 0. The build tool reports no per-test coverage here,
    so the estimated trace is used as the actual trace.
    """

    def __init__(
        self,
        project_root: str | Path,
        *,
        build_tool: BuildTool = "maven",
        timeout_seconds: int = 300,
        use_wrapper: bool = True,
    ):
        if build_tool not in ("maven", "gradle"):
            raise ValueError(f"Unsupported build tool: {build_tool}")
        self.project_root = Path(project_root)
        self.build_tool = build_tool
        self.timeout_seconds = int(timeout_seconds)
        self.use_wrapper = bool(use_wrapper)
        self.last_result: Optional[ExecutionResult] = None

    def command_for(self, test: AvailableTest) -> List[str]:
        return single_test_command(self.build_tool, self.project_root, test.name, use_wrapper=self.use_wrapper)

    def execute(self, test: AvailableTest) -> TestResult:
        command = self.command_for(test)
        logger.info("Running %s: %s", test.name, " ".join(command))
        result = run_command(command, cwd=self.project_root, timeout_seconds=self.timeout_seconds)
        self.last_result = result
        if result.timed_out:
            raise ExecutionError(f"Test {test.name!r} timed out after {self.timeout_seconds}s")
        logger.debug("%s exited with %s after %.1fs", test.name, result.exit_code, result.duration_seconds)
        return TestResult(name=test.name, passed=result.ok, actual_trace=test.estimated_trace)
