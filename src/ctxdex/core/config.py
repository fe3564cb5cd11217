"""
Ctxdex Configuration Module

Centralized configuration for catalog loading, search limits, and the
kind-alias table used by the query normalizer.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

# =============================================================================
# Instance-Based Configuration
# =============================================================================

@dataclass
class CtxdexConfig:
    """
    Instance-based configuration for Ctxdex.

    Each ``CtxdexConfig`` instance is self-contained and can be passed
    through the call stack, so tests and embedding applications can run
    several catalogs side by side.

    Create from environment variables::

        config = CtxdexConfig.from_env()

    Or with explicit values::

        config = CtxdexConfig(catalog_path="./export/json", default_limit=20)
    """

    # ── Catalog ───────────────────────────────────────────────────
    catalog_path: Optional[str] = None
    strict_index: bool = False
    """If True, a failed build raises IndexUnavailableError instead of serving an empty index."""

    # ── Search ────────────────────────────────────────────────────
    default_limit: int = 10
    max_limit: int = 50
    all_words_threshold: int = 5  # Unordered all-words pass runs below this many candidates
    max_fusion_prefix: int = 4

    # ── Fuzzy fallback (edit distance) ────────────────────────────
    fuzzy_fallback: bool = False
    fuzzy_cutoff: float = 0.75

    # ── Logging ───────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ── Factory ───────────────────────────────────────────────────

    @classmethod
    def from_env(cls) -> "CtxdexConfig":
        """Build a config snapshot from current environment variables.

        Reads :envvar:`CTXDEX_FUZZY` and :envvar:`CTXDEX_STRICT_INDEX`
        (1/true/yes/on) as boolean switches.
        """
        def _flag(name: str) -> bool:
            return os.getenv(name, "").lower() in ("1", "true", "yes", "on")

        return cls(
            catalog_path=os.getenv("CTXDEX_CATALOG_PATH") or None,
            strict_index=_flag("CTXDEX_STRICT_INDEX"),
            default_limit=int(os.getenv("CTXDEX_DEFAULT_LIMIT", "10")),
            max_limit=int(os.getenv("CTXDEX_MAX_LIMIT", "50")),
            fuzzy_fallback=_flag("CTXDEX_FUZZY"),
            fuzzy_cutoff=float(os.getenv("CTXDEX_FUZZY_CUTOFF", "0.75")),
            log_level=os.getenv("CTXDEX_LOG_LEVEL", "INFO").upper(),
        )

    # ── Validation & Accessors ────────────────────────────────────

    def validate(self) -> bool:
        """
        Check limits, cutoff, and log level for sane values.

        Raises :class:`~ctxdex.exceptions.ConfigError` on failure.
        """
        from ctxdex.exceptions import ConfigError

        if self.default_limit <= 0:
            raise ConfigError(f"default_limit must be positive, got {self.default_limit}")
        if self.max_limit < self.default_limit:
            raise ConfigError(
                f"max_limit ({self.max_limit}) must not be smaller than "
                f"default_limit ({self.default_limit})"
            )
        if self.max_fusion_prefix < 2:
            raise ConfigError("max_fusion_prefix must be at least 2")
        if not 0.0 < self.fuzzy_cutoff <= 1.0:
            raise ConfigError(f"fuzzy_cutoff must be in (0, 1], got {self.fuzzy_cutoff}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(
                f"Unknown log level '{self.log_level}'.\n"
                "  Set via: export CTXDEX_LOG_LEVEL=DEBUG"
            )
        return True

    def get_catalog_dir(self) -> Path | None:
        """Return the catalog directory as a resolved path, or None if unset."""
        if not self.catalog_path:
            return None
        return Path(self.catalog_path).expanduser().resolve()

    def effective_limit(self, limit: int | None) -> int:
        """Clamp a requested result count: absent or non-positive → default, capped at max."""
        if limit is None or limit <= 0:
            limit = self.default_limit
        return min(limit, self.max_limit)


# =============================================================================
# Kind alias table
# =============================================================================

class KindAliases:
    """
    Closed translation table from natural-language kind words to the
    canonical kind tags ``method``, ``property`` and ``type``.
    """

    METHOD = "method"
    PROPERTY = "property"
    TYPE = "type"

    CANONICAL = (METHOD, PROPERTY, TYPE)

    ALIASES: Dict[str, str] = {
        # type
        "type": TYPE,
        "object": TYPE,
        "class": TYPE,
        "datatype": TYPE,
        "объект": TYPE,
        "класс": TYPE,
        "тип": TYPE,
        "структура": TYPE,
        "данные": TYPE,
        # method
        "method": METHOD,
        "метод": METHOD,
        "функция": METHOD,
        "процедура": METHOD,
        # property
        "property": PROPERTY,
        "свойство": PROPERTY,
        "реквизит": PROPERTY,
        "поле": PROPERTY,
        "атрибут": PROPERTY,
    }
