"""
Ctxdex Index

Builds the three case-insensitive name→element maps from a catalog
source and guards them with an explicit lifecycle::

    EMPTY ──ensure_ready()──▶ BUILDING ──▶ READY
      ▲                                      │
      └──────────────reload()────────────────┘

The maps live in an immutable :class:`IndexSnapshot` that is swapped in
wholesale, so readers never need a lock once the index is READY.
Builds and reloads are serialized by one mutex with a double-check of
the state, so at most one build is in flight.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional

from tqdm import tqdm

from ctxdex.core.catalog import CatalogSource, MethodElement, PropertyElement, TypeElement
from ctxdex.exceptions import IndexUnavailableError

logger = logging.getLogger(__name__)


class IndexState(str, Enum):
    EMPTY = "empty"
    BUILDING = "building"
    READY = "ready"


@dataclass(frozen=True)
class IndexSnapshot:
    """
    One fully-built generation of the index.

    Keys are lower-cased element names; values keep their original
    display name.  On duplicate keys the last element read wins.
    """
    methods: Dict[str, MethodElement] = field(default_factory=dict)
    properties: Dict[str, PropertyElement] = field(default_factory=dict)
    types: Dict[str, TypeElement] = field(default_factory=dict)
    error: Optional[str] = None
    """Message of the catalog failure that produced an empty snapshot, if any."""
    build_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        return self.error is not None

    def counts(self) -> Dict[str, int]:
        return {
            "methods": len(self.methods),
            "properties": len(self.properties),
            "types": len(self.types),
        }


def _keyed(elements: Iterable, desc: str, show_progress: bool) -> Dict[str, object]:
    mapping: Dict[str, object] = {}
    for element in tqdm(elements, desc=desc, unit="el", disable=not show_progress):
        key = element.name.lower()
        if key in mapping:
            logger.debug("Duplicate %s name '%s', keeping the later entry", desc, element.name)
        mapping[key] = element
    return mapping


def build_index(source: CatalogSource, show_progress: bool = False) -> IndexSnapshot:
    """
    Drain *source* once and key every element by its lower-cased name.

    A failure anywhere in the source is logged and yields an empty
    snapshot carrying the error message, so searches degrade to clean
    "not found" answers instead of crashing.
    """
    t0 = time.perf_counter()
    try:
        methods = _keyed(source.methods(), "methods", show_progress)
        properties = _keyed(source.properties(), "properties", show_progress)
        types = _keyed(source.types(), "types", show_progress)
    except Exception as e:
        logger.exception("Catalog source failed, serving an empty index")
        return IndexSnapshot(error=str(e) or e.__class__.__name__,
                             build_seconds=time.perf_counter() - t0)

    snapshot = IndexSnapshot(
        methods=methods,
        properties=properties,
        types=types,
        build_seconds=time.perf_counter() - t0,
    )
    c = snapshot.counts()
    logger.info(
        f"Index built in {snapshot.build_seconds:.3f}s: "
        f"{c['methods']:,} methods, {c['properties']:,} properties, {c['types']:,} types"
    )
    return snapshot


class CatalogIndex:
    """
    Lazily-built, thread-safe index over a :class:`CatalogSource`.

    ``ensure_ready()`` and ``reload()`` are the only mutators.  All
    lookups go through the snapshot returned by ``ensure_ready()``.

    Args:
        source: Catalog to index.  May be replaced with :meth:`set_source`.
        strict: If True, ``ensure_ready()`` raises
            :class:`IndexUnavailableError` when the build failed instead
            of returning the empty snapshot.
        show_progress: Show tqdm bars while draining the source.
    """

    def __init__(self, source: CatalogSource, *, strict: bool = False,
                 show_progress: bool = False):
        self._source = source
        self._strict = strict
        self._show_progress = show_progress
        self._lock = threading.Lock()
        self._state = IndexState.EMPTY
        self._snapshot = IndexSnapshot()
        self._generation = 0

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def source(self) -> CatalogSource:
        return self._source

    @property
    def generation(self) -> int:
        """Number of completed builds; bumps on every rebuild."""
        return self._generation

    def is_loaded(self) -> bool:
        return self._state is IndexState.READY and not self._snapshot.failed

    def ensure_ready(self) -> IndexSnapshot:
        """Build the index on first use and return the current snapshot."""
        if self._state is IndexState.READY:
            return self._checked(self._snapshot)

        with self._lock:
            # Another thread may have finished the build while we waited.
            if self._state is not IndexState.READY:
                self._state = IndexState.BUILDING
                logger.info("Building catalog index...")
                try:
                    self._snapshot = build_index(self._source, self._show_progress)
                    self._generation += 1
                finally:
                    self._state = IndexState.READY
            snapshot = self._snapshot
        return self._checked(snapshot)

    def reload(self, *, eager: bool = False) -> None:
        """
        Drop the current snapshot so the next access rebuilds it.

        With ``eager=True`` the rebuild happens immediately.  Reads that
        already hold the previous snapshot keep using it.
        """
        with self._lock:
            logger.info("Catalog index reload requested")
            self._state = IndexState.EMPTY
        if eager:
            self.ensure_ready()

    def set_source(self, source: CatalogSource) -> None:
        """Point the index at another catalog and reset it to EMPTY."""
        with self._lock:
            self._source = source
            self._state = IndexState.EMPTY
            self._snapshot = IndexSnapshot()

    def _checked(self, snapshot: IndexSnapshot) -> IndexSnapshot:
        if self._strict and snapshot.failed:
            raise IndexUnavailableError(f"Catalog index unavailable: {snapshot.error}")
        return snapshot
