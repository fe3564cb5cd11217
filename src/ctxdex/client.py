"""
Ctxdex Client Facade

Single entry point for programmatic use of Ctxdex.  Wraps the catalog
index, search, exact lookups, and export behind an instance-based API
with optional async support.

Usage::

    from ctxdex import Ctxdex

    # From environment variables (CTXDEX_CATALOG_PATH, ...)
    client = Ctxdex()

    # With an explicit catalog directory
    client = Ctxdex(catalog_path="./export/json")

    # Search
    for hit in client.search("Таблица значений количество"):
        print(hit.tier, hit.signature)

    # Exact lookups return LookupResult, never raise on "not found"
    result = client.get_member("ТаблицаЗначений", "Количество")
    if result.found:
        print(result.element.description)

    # Async variants (for FastAPI / async agents)
    hits = await client.asearch("НайтиПоСсылке")
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List

from ctxdex.core.catalog import CatalogSource, JsonCatalogSource, StaticCatalogSource
from ctxdex.core.config import CtxdexConfig
from ctxdex.core.index import CatalogIndex
from ctxdex.core.search import CatalogSearchEngine, LookupResult, SearchResult

logger = logging.getLogger(__name__)


class Ctxdex:
    """
    High-level Ctxdex client.

    Each instance carries its own :class:`CtxdexConfig`, catalog source,
    and index, and never touches global state.

    Args:
        config: Explicit configuration object.  When *None*, a config
            is built from environment variables plus keyword overrides.
        source: Catalog source to index.  Defaults to a
            :class:`JsonCatalogSource` over ``config.catalog_path``, or an
            empty catalog when no path is configured.
        validate_on_init: If True, call :meth:`CtxdexConfig.validate` in
            __init__ so bad limits surface immediately.
        show_progress: Show tqdm bars while the index is built.
        **kwargs: Forwarded to :class:`CtxdexConfig` when *config* is
            ``None`` (e.g. ``catalog_path="./export"``).
    """

    def __init__(
        self,
        config: CtxdexConfig | None = None,
        *,
        source: CatalogSource | None = None,
        validate_on_init: bool = False,
        show_progress: bool = False,
        **kwargs,
    ):
        if config is not None:
            self._config = config
        elif kwargs:
            # Build a config from env, then overlay keyword overrides
            base = CtxdexConfig.from_env()
            merged = {
                f.name: kwargs.get(f.name, getattr(base, f.name))
                for f in base.__dataclass_fields__.values()
            }
            self._config = CtxdexConfig(**merged)
        else:
            self._config = CtxdexConfig.from_env()

        if validate_on_init:
            self._config.validate()

        self._index = CatalogIndex(
            source if source is not None else self._default_source(),
            strict=self._config.strict_index,
            show_progress=show_progress,
        )
        self._engine = CatalogSearchEngine(self._index, config=self._config)

    # ── Configuration ─────────────────────────────────────────────

    @property
    def config(self) -> CtxdexConfig:
        """The active configuration for this client."""
        return self._config

    @property
    def engine(self) -> CatalogSearchEngine:
        return self._engine

    def set_catalog_path(self, path: str | Path) -> None:
        """Switch to the JSON catalog at *path*; the index rebuilds on next use."""
        self._config.catalog_path = str(path)
        self._index.set_source(JsonCatalogSource(self._config.get_catalog_dir()))
        logger.info("Catalog path set to %s", self._config.catalog_path)

    # ── Index lifecycle ───────────────────────────────────────────

    def reload(self, *, eager: bool = False) -> None:
        """Force the index to rebuild on next access (or now with ``eager=True``)."""
        self._index.reload(eager=eager)

    def is_loaded(self) -> bool:
        """True once the index is built from a catalog that loaded without error."""
        return self._index.is_loaded()

    # ── Search & lookups ──────────────────────────────────────────

    def search(self, query: str, *, kind: str | None = None,
               limit: int | None = None) -> List[SearchResult]:
        """
        Search the catalog for *query*.

        Args:
            query: Free text; a blank query raises :class:`EmptyQueryError`.
            kind: ``method`` / ``property`` / ``type`` or an alias such as
                ``функция`` or ``реквизит``.
            limit: Maximum hits (default 10, capped at 50).

        Returns:
            Ranked list of :class:`SearchResult`.
        """
        return self._engine.search(query, kind=kind, limit=limit)

    def info(self, name: str, *, kind: str | None = None) -> LookupResult:
        """Exact lookup by name; tries method, property, type when *kind* is unset."""
        return self._engine.find_exact(name, kind)

    def get_member(self, type_name: str, member_name: str) -> LookupResult:
        """Resolve a method or property of a type.  Distinguishes missing type from missing member."""
        return self._engine.find_member(type_name, member_name)

    def get_constructors(self, type_name: str) -> LookupResult:
        return self._engine.get_constructors(type_name)

    def get_members(self, type_name: str) -> LookupResult:
        return self._engine.get_members(type_name)

    # ── Statistics ────────────────────────────────────────────────

    def stats(self) -> Dict[str, object]:
        """
        Return index statistics, building the index if needed.

        Returns:
            Dict with ``methods``, ``properties`` and ``types`` counts,
            the index ``state``, and ``error`` when the last build failed.
        """
        snapshot = self._index.ensure_ready()
        result: Dict[str, object] = dict(snapshot.counts())
        result["state"] = self._index.state.value
        result["catalog_path"] = self._config.catalog_path
        result["build_seconds"] = round(snapshot.build_seconds, 4)
        if snapshot.failed:
            result["error"] = snapshot.error
        return result

    # ── Export ────────────────────────────────────────────────────

    def export(self, output_dir: str | Path, fmt: str = "json", *,
               show_progress: bool = False):
        """Write the configured catalog to *output_dir* as JSON, Markdown, or XML."""
        from ctxdex.core.export import export_catalog

        return export_catalog(self._index.source, output_dir, fmt,
                              show_progress=show_progress)

    # ── Async variants ────────────────────────────────────────────
    # These use asyncio.to_thread() to run sync operations off the
    # event loop and raise the same exceptions as the sync methods.

    async def asearch(self, query: str, *, kind: str | None = None,
                      limit: int | None = None) -> List[SearchResult]:
        """Async variant of :meth:`search`."""
        return await asyncio.to_thread(self.search, query, kind=kind, limit=limit)

    async def ainfo(self, name: str, *, kind: str | None = None) -> LookupResult:
        """Async variant of :meth:`info`."""
        return await asyncio.to_thread(self.info, name, kind=kind)

    async def aget_member(self, type_name: str, member_name: str) -> LookupResult:
        return await asyncio.to_thread(self.get_member, type_name, member_name)

    async def astats(self) -> Dict[str, object]:
        return await asyncio.to_thread(self.stats)

    # ── Health (for agents / status endpoints) ─────────────────────

    def health(self) -> Dict[str, object]:
        """
        Return a small status dict for agents or REST health checks.

        Does not build the index.
        """
        from ctxdex import __version__

        return {
            "version": __version__,
            "catalog_path": self._config.catalog_path,
            "index_state": self._index.state.value,
            "loaded": self._index.is_loaded(),
        }

    # ── Internal helpers ──────────────────────────────────────────

    def _default_source(self) -> CatalogSource:
        catalog_dir = self._config.get_catalog_dir()
        if catalog_dir is None:
            logger.warning("No catalog path configured (CTXDEX_CATALOG_PATH); index will be empty")
            return StaticCatalogSource()
        return JsonCatalogSource(catalog_dir)
