"""Coverage model: elements, test outcomes, coverage matrix and spectrum counters."""

from .gzoltar import CoverageParseError, load_gzoltar, parse_matrix, parse_spectra, parse_tests
from .models import (
    CoverageConfigError,
    CoverageSuite,
    Element,
    ElemStats,
    TestCase,
    as_coverage_matrix,
    build_element_stats,
    trace_from_row,
)

__all__ = [
	"CoverageConfigError",
	"CoverageParseError",
	"CoverageSuite",
	"Element",
	"ElemStats",
	"TestCase",
	"as_coverage_matrix",
	"build_element_stats",
	"load_gzoltar",
	"parse_matrix",
	"parse_spectra",
	"parse_tests",
	"trace_from_row",
]
