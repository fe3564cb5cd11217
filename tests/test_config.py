"""
Tests for ctxdex.core.config: CtxdexConfig and KindAliases.
"""

import pytest

from ctxdex.core.config import CtxdexConfig, KindAliases
from ctxdex.exceptions import ConfigError


# =============================================================================
# KindAliases tests
# =============================================================================

class TestKindAliases:
    """Verify the closed kind-alias table."""

    @pytest.mark.parametrize("word", ["object", "class", "datatype", "объект", "класс",
                                      "тип", "структура", "данные"])
    def test_type_synonyms(self, word):
        assert KindAliases.ALIASES[word] == "type"

    @pytest.mark.parametrize("word", ["метод", "функция", "процедура"])
    def test_method_synonyms(self, word):
        assert KindAliases.ALIASES[word] == "method"

    @pytest.mark.parametrize("word", ["свойство", "реквизит", "поле", "атрибут"])
    def test_property_synonyms(self, word):
        assert KindAliases.ALIASES[word] == "property"

    def test_canonical_names_map_to_themselves(self):
        for kind in KindAliases.CANONICAL:
            assert KindAliases.ALIASES[kind] == kind


# =============================================================================
# CtxdexConfig tests
# =============================================================================

class TestCtxdexConfig:
    """Defaults, env loading, validation, and limit clamping."""

    def test_defaults(self):
        cfg = CtxdexConfig()
        assert cfg.catalog_path is None
        assert cfg.default_limit == 10
        assert cfg.max_limit == 50
        assert cfg.all_words_threshold == 5
        assert cfg.max_fusion_prefix == 4
        assert cfg.fuzzy_fallback is False
        assert cfg.validate() is True

    def test_from_env_reads_variables(self, monkeypatch):
        monkeypatch.setenv("CTXDEX_CATALOG_PATH", "/data/catalog")
        monkeypatch.setenv("CTXDEX_FUZZY", "yes")
        monkeypatch.setenv("CTXDEX_STRICT_INDEX", "1")
        monkeypatch.setenv("CTXDEX_LOG_LEVEL", "debug")
        cfg = CtxdexConfig.from_env()
        assert cfg.catalog_path == "/data/catalog"
        assert cfg.fuzzy_fallback is True
        assert cfg.strict_index is True
        assert cfg.log_level == "DEBUG"

    def test_from_env_without_variables(self, monkeypatch):
        for name in ("CTXDEX_CATALOG_PATH", "CTXDEX_FUZZY", "CTXDEX_STRICT_INDEX"):
            monkeypatch.delenv(name, raising=False)
        cfg = CtxdexConfig.from_env()
        assert cfg.catalog_path is None
        assert cfg.fuzzy_fallback is False
        assert cfg.strict_index is False

    @pytest.mark.parametrize("requested, expected", [
        (None, 10), (0, 10), (-3, 10), (1, 1), (25, 25), (50, 50), (1000, 50),
    ])
    def test_effective_limit(self, requested, expected):
        assert CtxdexConfig().effective_limit(requested) == expected

    def test_validate_rejects_non_positive_default(self):
        with pytest.raises(ConfigError, match="default_limit"):
            CtxdexConfig(default_limit=0).validate()

    def test_validate_rejects_max_below_default(self):
        with pytest.raises(ConfigError, match="max_limit"):
            CtxdexConfig(default_limit=20, max_limit=5).validate()

    def test_validate_rejects_bad_cutoff(self):
        with pytest.raises(ConfigError, match="fuzzy_cutoff"):
            CtxdexConfig(fuzzy_cutoff=1.5).validate()

    def test_validate_rejects_unknown_log_level(self):
        with pytest.raises(ConfigError, match="Unknown log level"):
            CtxdexConfig(log_level="LOUD").validate()

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            CtxdexConfig(max_fusion_prefix=1).validate()

    def test_get_catalog_dir(self, tmp_path):
        assert CtxdexConfig().get_catalog_dir() is None
        assert CtxdexConfig(catalog_path=str(tmp_path)).get_catalog_dir() == tmp_path.resolve()
