"""Test catalogs: which tests exist and which of them can be planned for."""

from .catalog import (
    DiscoveryError,
    JUnitSourceCatalog,
    StaticCatalog,
    TestCatalogProvider,
    build_available_tests,
    catalog_tests,
    class_under_test,
    element_class,
    extend_pool,
    junit_ids_in_source,
)

__all__ = [
	"DiscoveryError",
	"JUnitSourceCatalog",
	"StaticCatalog",
	"TestCatalogProvider",
	"build_available_tests",
	"catalog_tests",
	"class_under_test",
	"element_class",
	"extend_pool",
	"junit_ids_in_source",
]
