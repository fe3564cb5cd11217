"""
Ctxdex: tiered search over the 1C:Enterprise platform API catalog.

The ``ctxdex`` package resolves natural-language queries such as
"Таблица значений количество" to exact catalog entries (global methods,
global properties, and types with their members and constructors).

Quick start (programmatic API)::

    from ctxdex import Ctxdex

    client = Ctxdex(catalog_path="./export/json")
    for hit in client.search("таблица значений"):
        print(hit.signature)

Quick start (CLI)::

    ctxdex --catalog ./export/json search "таблица значений"
    ctxdex --catalog ./export/json member ТаблицаЗначений Количество

Configuration override::

    from ctxdex import Ctxdex, CtxdexConfig

    config = CtxdexConfig(catalog_path="./export/json", fuzzy_fallback=True)
    client = Ctxdex(config=config)
"""

__version__ = "1.0.0"

# Primary public API: the Ctxdex facade
from ctxdex.client import Ctxdex

# Configuration
from ctxdex.core.config import CtxdexConfig

# Core data types that callers interact with
from ctxdex.core.catalog import (
    ElementKind,
    JsonCatalogSource,
    MethodElement,
    Parameter,
    PropertyElement,
    Signature,
    StaticCatalogSource,
    TypeElement,
)
from ctxdex.core.search import LookupResult, LookupStatus, SearchResult

# Exception hierarchy
from ctxdex.exceptions import (
    CatalogError,
    ConfigError,
    CtxdexError,
    EmptyQueryError,
    ExportError,
    IndexUnavailableError,
)


def health(config: CtxdexConfig | None = None) -> dict:
    """
    Return a small status dict for agents or REST health checks (no index build).

    When *config* is None, uses :meth:`CtxdexConfig.from_env()` for the snapshot.
    """
    cfg = config or CtxdexConfig.from_env()
    return {
        "version": __version__,
        "catalog_path": cfg.catalog_path,
        "fuzzy_fallback": cfg.fuzzy_fallback,
    }


__all__ = [
    "__version__",
    # Facade
    "Ctxdex",
    # Config
    "CtxdexConfig",
    # Data types
    "ElementKind",
    "MethodElement",
    "PropertyElement",
    "TypeElement",
    "Signature",
    "Parameter",
    "JsonCatalogSource",
    "StaticCatalogSource",
    "SearchResult",
    "LookupResult",
    "LookupStatus",
    # Exceptions
    "CtxdexError",
    "ConfigError",
    "EmptyQueryError",
    "CatalogError",
    "IndexUnavailableError",
    "ExportError",
    # Status
    "health",
]
