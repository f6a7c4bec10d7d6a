"""Catalog factory.

Provides get_catalog() / set_catalog() to swap implementations. The default
catalog is loaded from ``SMARTBASKET_CATALOG_PATH`` when set, otherwise it is
empty and every identifier is treated as unknown.
"""

import structlog

from tracking.catalog.memory_adapter import InMemoryCatalog
from tracking.catalog.port import Catalog, CatalogEntry
from tracking.config import get_settings

logger = structlog.get_logger(__name__)

_current_catalog: Catalog | None = None


def get_catalog() -> Catalog:
    """Return the current catalog, building the default one on first use."""
    global _current_catalog
    if _current_catalog is None:
        path = get_settings().catalog_path
        if path:
            _current_catalog = InMemoryCatalog.from_json_file(path)
            logger.info("Catalog loaded", path=path, entries=len(_current_catalog))
        else:
            logger.warning("No catalog configured, all identifiers will be ignored")
            _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: Catalog) -> None:
    """Override the active catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default catalog."""
    global _current_catalog
    _current_catalog = None


__all__ = ["Catalog", "CatalogEntry", "InMemoryCatalog", "get_catalog", "set_catalog", "reset_catalog"]
