from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import FrozenSet, Iterable, List, Mapping, Optional, Protocol, Sequence, Set

from ..coverage.models import CoverageSuite, Element
from ..execution.models import AvailableTest

logger = logging.getLogger(__name__)

_EXCLUDED_DIR_NAMES = {"target", "build", "out", ".gradle", ".idea", ".git"}

_PACKAGE_RE = re.compile(r"^\s*package\s+([\w\.]+)\s*;", re.MULTILINE)
# First top-level type in the file; nested classes are not addressed.
_TYPE_RE = re.compile(
    r"^\s*(?:public\s+)?(?:abstract\s+)?(?:final\s+)?class\s+(\w+)\b",
    re.MULTILINE,
)
# JUnit 4 `@Test`, JUnit 5 `@Test` / `@ParameterizedTest`, optionally qualified,
# followed by further annotations and a void method declaration.
_TEST_METHOD_RE = re.compile(
    r"@(?:org\.junit\.(?:jupiter\.api\.|jupiter\.params\.)?)?(?:Test|ParameterizedTest)\b(?:\([^)]*\))?"
    r"\s*(?:@[\w\.]+(?:\([^)]*\))?\s*)*"
    r"(?:(?:public|protected|private|static|final)\s+)*void\s+(\w+)\s*\(",
)
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"//[^\n]*")


class DiscoveryError(RuntimeError):
    pass


class TestCatalogProvider(Protocol):
    """Which tests exist, and what each is expected to cover.

    `estimated_trace` is only consulted for ids the coverage data does not
    describe; an empty trace means the test cannot be planned for.
    """

    def test_ids(self) -> List[str]:
        ...

    def estimated_trace(self, test_id: str, suite: CoverageSuite) -> FrozenSet[Element]:
        ...


class StaticCatalog:
    def __init__(self, ids: Iterable[str], *, traces: Optional[Mapping[str, Iterable[Element]]] = None):
        self._ids = [str(i) for i in ids]
        self._traces = {str(k): frozenset(v) for k, v in (traces or {}).items()}

    def test_ids(self) -> List[str]:
        return list(self._ids)

    def estimated_trace(self, test_id: str, suite: CoverageSuite) -> FrozenSet[Element]:
        return frozenset(e for e in self._traces.get(test_id, ()) if e in suite.elements)


def element_class(element: Element) -> str:
    """Top-level class of a GZoltar element id, `pkg$Cls$Inner#m(..):12` -> `pkg.Cls`."""
    owner = element.split("#", 1)[0]
    parts = owner.split("$")
    if len(parts) == 1:
        return owner
    return f"{parts[0]}.{parts[1]}" if parts[0] else parts[1]


def class_under_test(test_id: str) -> Optional[str]:
    """`pkg.FooTest#m` -> `pkg.Foo` by the usual JUnit naming conventions."""
    fqn = test_id.split("#", 1)[0]
    pkg, _, simple = fqn.rpartition(".")
    for suffix in ("Tests", "Test", "IT"):
        if simple.endswith(suffix) and len(simple) > len(suffix):
            simple = simple[: -len(suffix)]
            break
    else:
        if simple.startswith("Test") and len(simple) > 4:
            simple = simple[4:]
        else:
            return None
    return f"{pkg}.{simple}" if pkg else simple


class JUnitSourceCatalog:
    """Lists `pkg.Class#method` ids for JUnit test methods found in Java sources.

    A test missing from the coverage data is expected to cover every element of
    its class under test (`FooTest` -> `Foo`, same package).
    """

    def __init__(self, test_root: str | Path):
        self.test_root = Path(test_root)

    def estimated_trace(self, test_id: str, suite: CoverageSuite) -> FrozenSet[Element]:
        target = class_under_test(test_id)
        if target is None:
            return frozenset()
        return frozenset(e for e in suite.elements if element_class(e) == target)

    @staticmethod
    def for_project(project_root: str | Path) -> "JUnitSourceCatalog":
        return JUnitSourceCatalog(Path(project_root) / "src" / "test" / "java")

    def test_ids(self) -> List[str]:
        if not self.test_root.is_dir():
            raise DiscoveryError(f"Test source root not found: {self.test_root}")

        found: Set[str] = set()
        for path in _iter_java_files(self.test_root):
            found.update(junit_ids_in_source(path))
        return sorted(found)


def _iter_java_files(root: Path) -> Iterable[Path]:
    for path in sorted(root.rglob("*.java")):
        if any(part in _EXCLUDED_DIR_NAMES for part in path.relative_to(root).parts):
            continue
        yield path


def junit_ids_in_source(path: Path) -> List[str]:
    try:
        text = path.read_text(encoding="utf-8", errors="ignore")
    except OSError as exc:
        logger.warning("Skipping unreadable test source %s (%s)", path, exc)
        return []

    text = _LINE_COMMENT_RE.sub("", _BLOCK_COMMENT_RE.sub("", text))
    pkg_match = _PACKAGE_RE.search(text)
    type_match = _TYPE_RE.search(text)
    class_name = type_match.group(1) if type_match else path.stem
    fqn = f"{pkg_match.group(1)}.{class_name}" if pkg_match else class_name

    return [f"{fqn}#{m.group(1)}" for m in _TEST_METHOD_RE.finditer(text)]


def build_available_tests(suite: CoverageSuite, observed_names: Iterable[str]) -> List[AvailableTest]:
    """Every suite test not yet observed that has a non-empty trace, in suite order."""
    observed = set(observed_names)
    pool: List[AvailableTest] = []
    for test in suite.tests:
        if test.name in observed:
            continue
        trace = suite.trace_of(test.name)
        if trace:
            pool.append(AvailableTest(name=test.name, estimated_trace=trace))
    return pool


def catalog_tests(catalog: TestCatalogProvider, suite: CoverageSuite) -> List[AvailableTest]:
    """Catalog tests with a plannable trace, in catalog order.

    Recorded coverage wins over the catalog's estimate. Ids with neither are
    dropped.
    """

    out: List[AvailableTest] = []
    seen: Set[str] = set()
    dropped = 0
    for test_id in catalog.test_ids():
        if test_id in seen:
            continue
        seen.add(test_id)
        trace = suite.trace_of(test_id) or catalog.estimated_trace(test_id, suite)
        if not trace:
            dropped += 1
            continue
        out.append(AvailableTest(name=test_id, estimated_trace=trace))
    if dropped:
        logger.info("Ignored %d catalog tests without a known or estimated trace", dropped)
    return out


def extend_pool(
    pool: Sequence[AvailableTest],
    candidates: Iterable[AvailableTest],
    *,
    observed_names: Optional[Iterable[str]] = None,
) -> List[AvailableTest]:
    """Append candidates that are neither pooled nor observed yet."""
    out = list(pool)
    known = {t.name for t in pool} | set(observed_names or [])
    for test in candidates:
        if test.name in known or not test.estimated_trace:
            continue
        known.add(test.name)
        out.append(test)
    added = len(out) - len(pool)
    if added:
        logger.info("Catalog added %d tests to the planning pool", added)
    return out
