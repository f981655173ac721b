from __future__ import annotations

import json
import sys
from pathlib import Path

import numpy as np
import pytest

import TDPOrchestrator.execution.oracle as oracle_mod
import TDPOrchestrator.execution.runner as runner
from TDPOrchestrator.coverage import CoverageSuite, TestCase
from TDPOrchestrator.execution import (
    AvailableTest,
    CommandOracle,
    ExecutionError,
    ExecutionResult,
    RecordedSuiteOracle,
    ScriptedOracle,
    gradle_test_selector,
    maven_test_selector,
)

PROBE = AvailableTest(name="com.acme.CalcTest#adds", estimated_trace=frozenset({"A"}))


def test_selectors_address_single_test_method():
    assert maven_test_selector("com.acme.CalcTest#adds")[0] == "-Dtest=com.acme.CalcTest#adds"
    assert gradle_test_selector("com.acme.CalcTest#adds") == ["--tests", "com.acme.CalcTest.adds"]


def test_maven_command_requires_mvn(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(runner, "_which", lambda tool: None)
    with pytest.raises(ExecutionError):
        CommandOracle(tmp_path, build_tool="maven").command_for(PROBE)

    monkeypatch.setattr(runner, "_which", lambda tool: f"/usr/bin/{tool}")
    assert CommandOracle(tmp_path, build_tool="maven").command_for(PROBE) == [
        "/usr/bin/mvn",
        "-Dtest=com.acme.CalcTest#adds",
        "-Dsurefire.failIfNoSpecifiedTests=false",
        "test",
    ]

    (tmp_path / "mvnw").write_text("#!/bin/sh\n", encoding="utf-8")
    assert CommandOracle(tmp_path, build_tool="maven").command_for(PROBE)[0] == str(tmp_path / "mvnw")
    assert CommandOracle(tmp_path, build_tool="maven", use_wrapper=False).command_for(PROBE)[0] == "/usr/bin/mvn"


def test_gradle_command_prefers_wrapper(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(runner, "_which", lambda tool: None)
    wrapper = tmp_path / "gradlew"
    wrapper.write_text("#!/bin/sh\n", encoding="utf-8")

    command = CommandOracle(tmp_path, build_tool="gradle").command_for(PROBE)

    assert command == [str(wrapper), "cleanTest", "test", "--tests", "com.acme.CalcTest.adds"]


def test_unsupported_build_tool_is_rejected():
    with pytest.raises(ValueError):
        CommandOracle(".", build_tool="ant")


def _fake_run(exit_code, timed_out=False):
    def run(command, *, cwd, timeout_seconds):
        return ExecutionResult(
            command=list(command),
            cwd=str(cwd),
            exit_code=None if timed_out else exit_code,
            timed_out=timed_out,
            stdout="",
            stderr="",
        )
    return run


def test_command_oracle_maps_exit_code_to_outcome(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(runner, "_which", lambda tool: f"/usr/bin/{tool}")
    oracle = CommandOracle(tmp_path, build_tool="maven")

    monkeypatch.setattr(oracle_mod, "run_command", _fake_run(0))
    assert oracle.execute(PROBE).passed is True

    monkeypatch.setattr(oracle_mod, "run_command", _fake_run(1))
    result = oracle.execute(PROBE)
    assert result.failed is True
    assert result.actual_trace == PROBE.estimated_trace
    assert oracle.last_result.exit_code == 1


def test_command_oracle_timeout_raises(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(runner, "_which", lambda tool: f"/usr/bin/{tool}")
    monkeypatch.setattr(oracle_mod, "run_command", _fake_run(0, timed_out=True))
    with pytest.raises(ExecutionError, match="timed out"):
        CommandOracle(tmp_path, build_tool="maven", timeout_seconds=5).execute(PROBE)


def test_scripted_oracle_reads_outcomes_file(tmp_path: Path):
    path = tmp_path / "outcomes.json"
    path.write_text(json.dumps({PROBE.name: "FAIL", "other": "pass"}), encoding="utf-8")

    oracle = ScriptedOracle.from_json(path)
    result = oracle.execute(PROBE)

    assert result.failed
    assert result.actual_trace == frozenset({"A"})
    assert oracle.executed == [PROBE.name]


def test_scripted_oracle_rejects_unknown_tests_without_default(tmp_path: Path):
    with pytest.raises(ExecutionError):
        ScriptedOracle({}).execute(PROBE)
    assert ScriptedOracle({}, default=True).execute(PROBE).passed

    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ExecutionError):
        ScriptedOracle.from_json(bad)
    with pytest.raises(ValueError):
        ScriptedOracle({"x": "maybe"})


def test_scripted_oracle_can_override_traces():
    oracle = ScriptedOracle({PROBE.name: True}, traces={PROBE.name: ["A", "B"]})
    assert oracle.execute(PROBE).actual_trace == frozenset({"A", "B"})


def test_recorded_oracle_replays_suite():
    suite = CoverageSuite(
        elements=["A", "B"],
        tests=[TestCase(PROBE.name, True)],
        matrix=np.array([[0, 1]], dtype=bool),
    )
    oracle = RecordedSuiteOracle(suite)

    result = oracle.execute(PROBE)
    assert result.failed
    assert result.actual_trace == frozenset({"B"})

    with pytest.raises(ExecutionError):
        oracle.execute(AvailableTest("unknown", frozenset({"A"})))


def test_run_command_reports_exit_code_and_output(tmp_path: Path):
    result = runner.run_command(
        [sys.executable, "-c", "import sys; print('x' * 5000); sys.exit(3)"],
        cwd=tmp_path,
        timeout_seconds=30,
    )

    assert result.exit_code == 3
    assert not result.ok and not result.timed_out
    assert result.duration_seconds >= 0.0
    assert len(result.to_json_dict()["stdout"]) == 4000


def test_run_command_without_executable_raises(tmp_path: Path):
    with pytest.raises(ExecutionError):
        runner.run_command([str(tmp_path / "no-such-tool")], cwd=tmp_path, timeout_seconds=5)
