"""Single-test execution through Maven or Gradle.

Test ids use the `pkg.Class#method` form. Maven Surefire takes that id as-is;
Gradle's `--tests` filter wants `pkg.Class.method`. A project wrapper script
(`mvnw` / `gradlew`) is preferred over a tool on PATH.
"""

from __future__ import annotations

import shutil
import subprocess
import time
from pathlib import Path
from typing import List, Literal, Optional, Union

from .models import ExecutionResult

BuildTool = Literal["maven", "gradle"]

_WRAPPERS = {"maven": "mvnw", "gradle": "gradlew"}
_EXECUTABLES = {"maven": "mvn", "gradle": "gradle"}


class ExecutionError(RuntimeError):
    pass


def _which(tool: str) -> Optional[str]:
    return shutil.which(tool)


def _as_text(stream: Union[str, bytes, None]) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream


def run_command(command: List[str], *, cwd: Path, timeout_seconds: int) -> ExecutionResult:
    """Run `command` to completion; a timeout is reported, never raised."""
    started = time.monotonic()
    try:
        proc = subprocess.run(
            command,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=max(1, int(timeout_seconds)),
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        return ExecutionResult(
            command=list(command),
            cwd=str(cwd),
            exit_code=None,
            timed_out=True,
            stdout=_as_text(exc.stdout),
            stderr=_as_text(exc.stderr),
            duration_seconds=time.monotonic() - started,
        )
    except OSError as exc:
        raise ExecutionError(f"Unable to start {command[0]!r} in {cwd} ({exc})") from exc

    return ExecutionResult(
        command=list(command),
        cwd=str(cwd),
        exit_code=int(proc.returncode),
        timed_out=False,
        stdout=_as_text(proc.stdout),
        stderr=_as_text(proc.stderr),
        duration_seconds=time.monotonic() - started,
    )


def maven_test_selector(test_name: str) -> List[str]:
    # Multi-module builds would otherwise fail in modules without the test.
    return [f"-Dtest={test_name}", "-Dsurefire.failIfNoSpecifiedTests=false"]


def gradle_test_selector(test_name: str) -> List[str]:
    return ["--tests", test_name.replace("#", ".")]


def resolve_build_executable(build_tool: BuildTool, project_root: Path, *, use_wrapper: bool = True) -> str:
    if build_tool not in _EXECUTABLES:
        raise ExecutionError(f"Unsupported build tool: {build_tool}")
    if use_wrapper:
        wrapper = Path(project_root) / _WRAPPERS[build_tool]
        if wrapper.exists():
            return str(wrapper)

    found = _which(_EXECUTABLES[build_tool])
    if not found:
        raise ExecutionError(
            f"{_EXECUTABLES[build_tool]!r} not found on PATH and no ./{_WRAPPERS[build_tool]} wrapper present"
        )
    return found


def single_test_command(
    build_tool: BuildTool,
    project_root: Path,
    test_name: str,
    *,
    use_wrapper: bool = True,
) -> List[str]:
    """Command line running exactly one test method."""
    executable = resolve_build_executable(build_tool, project_root, use_wrapper=use_wrapper)
    if build_tool == "maven":
        return [executable, *maven_test_selector(test_name), "test"]
    # cleanTest keeps Gradle from reporting an up-to-date test task without running it.
    return [executable, "cleanTest", "test", *gradle_test_selector(test_name)]
