"""Test oracles and the Maven/Gradle execution harness."""

from .models import AvailableTest, ExecutionResult, TestResult
from .oracle import CommandOracle, RecordedSuiteOracle, ScriptedOracle, TestOracle
from .runner import (
    BuildTool,
    ExecutionError,
    gradle_test_selector,
    maven_test_selector,
    resolve_build_executable,
    run_command,
    single_test_command,
)

__all__ = [
	"AvailableTest",
	"BuildTool",
	"CommandOracle",
	"ExecutionError",
	"ExecutionResult",
	"RecordedSuiteOracle",
	"ScriptedOracle",
	"TestOracle",
	"TestResult",
	"gradle_test_selector",
	"maven_test_selector",
	"resolve_build_executable",
	"run_command",
	"single_test_command",
]
