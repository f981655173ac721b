from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple

import numpy as np

from .models import CoverageConfigError, CoverageSuite, TestCase

logger = logging.getLogger(__name__)

SPECTRA_FILE = "spectra.csv"
TESTS_FILE = "tests.csv"
MATRIX_FILE = "matrix.txt"

_FAILED_OUTCOMES = {"FAIL", "FAILED", "FAILURE", "ERROR"}
_PASSED_OUTCOMES = {"PASS", "PASSED", "SUCCESS", "OK"}


class CoverageParseError(CoverageConfigError):
    pass


def load_gzoltar(directory: str | Path) -> CoverageSuite:
    """Load a GZoltar `sfl/txt` report directory.

    Layout:
      spectra.csv  one element per line, optional `name` header
      tests.csv    `name,outcome,...` per test, optional header
      matrix.txt   one row per test: 0/1 per element, then `+` (pass) or `-` (fail)

    The outcome column of tests.csv wins; the matrix verdict is only used when a
    test line carries no recognizable outcome.
    """

    root = Path(directory)
    paths = [root / SPECTRA_FILE, root / TESTS_FILE, root / MATRIX_FILE]
    missing = [p.name for p in paths if not p.is_file()]
    if missing:
        raise CoverageParseError(f"Expected GZoltar files not found in {root.resolve()}: {missing}")

    elements = parse_spectra(paths[0])
    named_outcomes = parse_tests(paths[1])
    rows, verdicts = parse_matrix(paths[2], n_elements=len(elements))

    if len(rows) != len(named_outcomes):
        raise CoverageParseError(
            f"{MATRIX_FILE} has {len(rows)} rows but {TESTS_FILE} lists {len(named_outcomes)} tests"
        )

    tests: List[TestCase] = []
    for (name, failed), verdict in zip(named_outcomes, verdicts):
        if failed is None:
            if verdict is None:
                raise CoverageParseError(f"No outcome recorded for test {name!r}")
            failed = verdict
        tests.append(TestCase(name=name, failed=bool(failed)))

    matrix = np.array(rows, dtype=bool).reshape(len(rows), len(elements))
    suite = CoverageSuite(elements=elements, tests=tests, matrix=matrix)
    logger.info(
        "Loaded GZoltar data from %s: %d elements, %d tests (%d failed)",
        root,
        len(elements),
        len(tests),
        sum(1 for t in tests if t.failed),
    )
    return suite


def _read_lines(path: Path) -> List[str]:
    try:
        text = path.read_text(encoding="utf-8", errors="ignore")
    except OSError as exc:
        raise CoverageParseError(f"Unable to read {path} ({exc})") from exc
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_spectra(path: str | Path) -> List[str]:
    lines = _read_lines(Path(path))
    if lines and lines[0].split(",")[0].strip().lower() == "name":
        lines = lines[1:]
    if not lines:
        raise CoverageParseError(f"No elements listed in {path}")
    return lines


def parse_tests(path: str | Path) -> List[Tuple[str, "bool | None"]]:
    """Return `(name, failed)` per test; `failed` is None when the outcome is unknown."""
    lines = _read_lines(Path(path))
    if lines and lines[0].split(",")[0].strip().lower() == "name":
        lines = lines[1:]

    out: List[Tuple[str, "bool | None"]] = []
    for line in lines:
        parts = [p.strip() for p in line.split(",")]
        name = parts[0]
        if not name:
            raise CoverageParseError(f"Empty test name in {path}: {line!r}")
        failed = None
        if len(parts) > 1:
            outcome = parts[1].upper()
            if outcome in _FAILED_OUTCOMES:
                failed = True
            elif outcome in _PASSED_OUTCOMES:
                failed = False
        out.append((name, failed))
    if not out:
        raise CoverageParseError(f"No tests listed in {path}")
    return out


def parse_matrix(path: str | Path, *, n_elements: int) -> Tuple[List[List[bool]], List["bool | None"]]:
    """Return coverage rows and the per-row failed verdict (None if absent)."""
    rows: List[List[bool]] = []
    verdicts: List["bool | None"] = []
    for lineno, line in enumerate(_read_lines(Path(path)), start=1):
        tokens = line.split()
        verdict = None
        if tokens and tokens[-1] in ("+", "-"):
            verdict = tokens[-1] == "-"
            tokens = tokens[:-1]
        if len(tokens) != n_elements:
            raise CoverageParseError(
                f"{path}:{lineno}: expected {n_elements} coverage values, found {len(tokens)}"
            )
        row: List[bool] = []
        for tok in tokens:
            if tok not in ("0", "1"):
                raise CoverageParseError(f"{path}:{lineno}: invalid coverage value {tok!r}")
            row.append(tok == "1")
        rows.append(row)
        verdicts.append(verdict)
    return rows, verdicts
