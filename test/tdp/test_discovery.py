from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from TDPOrchestrator.core import initial_state
from TDPOrchestrator.coverage import CoverageSuite, TestCase
from TDPOrchestrator.discovery import (
    DiscoveryError,
    JUnitSourceCatalog,
    StaticCatalog,
    build_available_tests,
    catalog_tests,
    class_under_test,
    element_class,
    extend_pool,
)


CALC_TEST = """package com.acme;

import org.junit.jupiter.api.Test;
import org.junit.jupiter.params.ParameterizedTest;
import org.junit.jupiter.params.provider.ValueSource;

public class CalcTest {
    @Test
    void adds() {}

    // @Test void commented() {}

    /*
    @Test
    public void disabledBlock() {}
    */

    @ParameterizedTest
    @ValueSource(ints = {1, 2})
    public void squares(int x) {}

    @org.junit.Test(timeout = 100)
    public void legacyStyle() {}

    private void helper() {}
}
"""


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_junit_catalog_lists_test_methods(tmp_path: Path):
    _write(tmp_path / "src/test/java/com/acme/CalcTest.java", CALC_TEST)
    _write(tmp_path / "src/test/java/target/Generated.java", "class Generated { @Test void gen() {} }")

    ids = JUnitSourceCatalog.for_project(tmp_path).test_ids()

    assert ids == [
        "com.acme.CalcTest#adds",
        "com.acme.CalcTest#legacyStyle",
        "com.acme.CalcTest#squares",
    ]


def test_junit_catalog_without_package_uses_class_name(tmp_path: Path):
    _write(tmp_path / "PlainTest.java", "public class PlainTest {\n  @Test\n  public void works() {}\n}\n")
    assert JUnitSourceCatalog(tmp_path).test_ids() == ["PlainTest#works"]


def test_missing_test_root_raises(tmp_path: Path):
    with pytest.raises(DiscoveryError):
        JUnitSourceCatalog(tmp_path / "nope").test_ids()


def _suite():
    return CoverageSuite(
        elements=["A", "B"],
        tests=[TestCase("f", True), TestCase("p", False), TestCase("untraced", False)],
        matrix=np.array([[1, 1], [0, 1], [0, 0]], dtype=bool),
    )


def test_available_pool_skips_observed_and_untraced_tests():
    pool = build_available_tests(_suite(), ["f"])
    assert [(t.name, t.estimated_trace) for t in pool] == [("p", frozenset({"B"}))]


def test_catalog_tests_prefer_recorded_coverage_over_estimates():
    suite = _suite()
    catalog = StaticCatalog(
        ["p", "untraced", "com.acme.NewTest#x", "com.acme.OtherTest#y", "p"],
        traces={"p": ["A"], "com.acme.NewTest#x": ["A", "Gone"]},
    )

    tests = catalog_tests(catalog, suite)

    assert [(t.name, t.estimated_trace) for t in tests] == [
        ("p", frozenset({"B"})),
        ("com.acme.NewTest#x", frozenset({"A"})),
    ]


def test_extend_pool_skips_pooled_observed_and_empty_traces():
    suite = _suite()
    pool = build_available_tests(suite, ["f"])
    candidates = catalog_tests(StaticCatalog(["f", "p", "new"], traces={"f": ["A"], "new": ["A"]}), suite)

    extended = extend_pool(pool, candidates, observed_names=["f"])

    assert [t.name for t in extended] == ["p", "new"]
    assert [t.name for t in pool] == ["p"]


def test_initial_state_grows_pool_from_catalog():
    suite = _suite()
    catalog = StaticCatalog(["f", "com.acme.NewTest#x"], traces={"com.acme.NewTest#x": ["A"]})

    plain = initial_state(suite, ["f"])
    grown = initial_state(suite, ["f"], catalog=catalog)

    assert [t.name for t in plain.available] == ["p"]
    assert [t.name for t in grown.available] == ["p", "com.acme.NewTest#x"]
    assert grown.available[1].estimated_trace == frozenset({"A"})
    assert grown.observed_names == ["f"]


@pytest.mark.parametrize(
    "test_id, expected",
    [
        ("com.acme.CalcTest#adds", "com.acme.Calc"),
        ("com.acme.CalcTests#adds", "com.acme.Calc"),
        ("com.acme.CalcIT#adds", "com.acme.Calc"),
        ("com.acme.TestCalc#adds", "com.acme.Calc"),
        ("PlainTest#works", "Plain"),
        ("com.acme.Helper#run", None),
        ("com.acme.Test#run", None),
    ],
)
def test_class_under_test(test_id, expected):
    assert class_under_test(test_id) == expected


def test_element_class_reads_gzoltar_ids():
    assert element_class("com.acme$Calc#add(int,int):12") == "com.acme.Calc"
    assert element_class("com.acme$Calc$Inner#run():3") == "com.acme.Calc"
    assert element_class("$Plain#run():1") == "Plain"
    assert element_class("A") == "A"


def test_junit_catalog_estimates_trace_from_class_under_test(tmp_path: Path):
    _write(tmp_path / "com/acme/CalcTest.java", CALC_TEST)
    suite = CoverageSuite(
        elements=["com.acme$Calc#add(int,int):12", "com.acme$Calc$Cache#get():4", "com.acme$Parser#parse():7"],
        tests=[TestCase("com.acme.CalcTest#adds", True), TestCase("com.acme.ParserTest#parses", False)],
        matrix=np.array([[1, 0, 0], [0, 0, 1]], dtype=bool),
    )
    catalog = JUnitSourceCatalog(tmp_path)

    state = initial_state(suite, ["com.acme.CalcTest#adds"], catalog=catalog)

    assert [t.name for t in state.available] == [
        "com.acme.ParserTest#parses",
        "com.acme.CalcTest#legacyStyle",
        "com.acme.CalcTest#squares",
    ]
    assert state.available[1].estimated_trace == frozenset(
        {"com.acme$Calc#add(int,int):12", "com.acme$Calc$Cache#get():4"}
    )
