"""
Ctxdex Core: configuration, catalog model, index, search, and export.

Re-exports the primary classes for convenience::

    from ctxdex.core import CatalogIndex, CatalogSearchEngine, JsonCatalogSource
"""

from ctxdex.core.catalog import (
    CatalogSource,
    JsonCatalogSource,
    StaticCatalogSource,
    element_signature,
)
from ctxdex.core.config import CtxdexConfig, KindAliases
from ctxdex.core.index import CatalogIndex, IndexSnapshot, IndexState, build_index
from ctxdex.core.search import (
    CatalogSearchEngine,
    MarkdownPresenter,
    ResultFormatter,
    fusion_variants,
    normalize_kind,
    normalize_query,
)

__all__ = [
    "CtxdexConfig",
    "KindAliases",
    "CatalogSource",
    "JsonCatalogSource",
    "StaticCatalogSource",
    "element_signature",
    "CatalogIndex",
    "IndexSnapshot",
    "IndexState",
    "build_index",
    "CatalogSearchEngine",
    "MarkdownPresenter",
    "ResultFormatter",
    "fusion_variants",
    "normalize_kind",
    "normalize_query",
]
