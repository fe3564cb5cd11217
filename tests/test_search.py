"""
Tests for ctxdex.core.search: normalization, the matching tiers, ranking,
and exact lookups.
"""

import pytest

from ctxdex.core.catalog import (
    ElementKind, MethodElement, PropertyElement, StaticCatalogSource, TypeElement,
)
from ctxdex.core.config import CtxdexConfig
from ctxdex.core.index import CatalogIndex
from ctxdex.core.search import (
    CatalogSearchEngine,
    LookupStatus,
    MatchCandidate,
    count_contained,
    fusion_variants,
    normalize_kind,
    normalize_query,
)
from ctxdex.exceptions import EmptyQueryError


def _engine(source, **overrides) -> CatalogSearchEngine:
    return CatalogSearchEngine(CatalogIndex(source), config=CtxdexConfig(**overrides))


def _names(results):
    return [r.name for r in results]


# =============================================================================
# Query normalization
# =============================================================================

class TestNormalization:

    def test_normalize_query_trims_and_lowercases(self):
        assert normalize_query("  Таблица Значений ") == "таблица значений"
        assert normalize_query(None) == ""

    @pytest.mark.parametrize("raw, expected", [
        ("функция", "method"),
        ("Процедура", "method"),
        (" РЕКВИЗИТ ", "property"),
        ("объект", "type"),
        ("class", "type"),
        ("property", "property"),
        ("widget", "widget"),
        ("", None),
        (None, None),
    ])
    def test_normalize_kind(self, raw, expected):
        assert normalize_kind(raw) == expected


class TestFusionVariants:
    """Fused-identifier generation for compound type names."""

    def test_two_words(self):
        assert fusion_variants(["таблица", "значений"]) == [
            "таблицазначений", "ТаблицаЗначений", "таблицаЗначений",
        ]

    def test_prefixes_are_added_for_long_queries(self):
        variants = fusion_variants(["таблица", "значений", "количество"])
        assert variants[:3] == [
            "таблицазначенийколичество",
            "ТаблицаЗначенийКоличество",
            "таблицаЗначенийКоличество",
        ]
        assert "ТаблицаЗначений" in variants
        assert len(variants) == len(set(variants))

    def test_prefix_length_is_bounded(self):
        words = ["а", "б", "в", "г", "д", "е"]
        variants = fusion_variants(words, max_prefix=4)
        assert "абвгд" not in variants
        assert "абвг" in variants
        assert "абвгде" in variants

    def test_single_word_and_empty(self):
        assert fusion_variants(["массив"]) == ["массив", "Массив"]
        assert fusion_variants([]) == []

    def test_count_contained(self):
        assert count_contained(["таблица", "значений", "количество"], "ТаблицаЗначений") == 2


# =============================================================================
# Matching tiers
# =============================================================================

class TestTiers:
    """Each tier fires under its own precondition."""

    def test_compound_type_is_tier_one(self, engine):
        results = engine.search("Таблица значений")
        assert results[0].name == "ТаблицаЗначений"
        assert results[0].tier == 1
        assert results[0].words_matched == 2

    def test_compound_tier_skipped_for_other_kinds(self, engine):
        results = engine.search("Таблица значений", kind="method")
        assert "ТаблицаЗначений" not in _names(results)

    def test_compound_tier_honours_type_alias(self, engine):
        results = engine.search("Таблица значений", kind="объект")
        assert _names(results) == ["ТаблицаЗначений"]

    def test_type_then_member_is_tier_two(self, engine):
        results = engine.search("Таблица значений количество")
        by_name = {r.name: r for r in results}
        assert by_name["Количество"].tier == 2
        assert by_name["Количество"].kind is ElementKind.METHOD
        # Compound type from the two-word prefix still ranks first
        assert results[0].name == "ТаблицаЗначений"
        assert results[0].tier == 1

    def test_type_member_matches_prefix_and_properties(self, engine):
        results = engine.search("таблицазначений кол")
        assert _names(results) == ["Количество", "Колонки"]
        assert all(r.tier == 2 and r.rank == 1 for r in results)

    def test_type_member_all_words_phrase(self):
        type_ = TypeElement(
            name="Запрос",
            methods=(MethodElement(name="ВыполнитьПакетСПромежуточнымиДанными"),),
        )
        engine = _engine(StaticCatalogSource(types=[type_]))
        results = engine.search("запрос данными выполнить")
        assert results[0].name == "ВыполнитьПакетСПромежуточнымиДанными"
        assert results[0].tier == 2

    def test_substring_single_word(self, engine):
        results = engine.search("найти")
        assert _names(results) == ["Найти", "НайтиПоСсылке"]
        assert all(r.tier == 3 for r in results)

    def test_substring_scans_type_members_only_without_kind(self, engine):
        assert "Строки" in _names(engine.search("строки"))
        assert "Строки" not in _names(engine.search("строки", kind="property"))

    def test_substring_local_order_exact_prefix_then_alpha(self):
        source = StaticCatalogSource(methods=[
            MethodElement(name="ЗаписатьДанные"),
            MethodElement(name="Записать"),
            MethodElement(name="ПередЗаписать"),
            MethodElement(name="ЗаписатьБыстро"),
        ])
        results = _engine(source).search("записать")
        assert _names(results) == ["Записать", "ЗаписатьБыстро", "ЗаписатьДанные", "ПередЗаписать"]

    def test_all_words_tier_scenario(self, engine):
        results = engine.search("Запрос выборка")
        assert _names(results) == ["ВыборкаИзРезультатаЗапроса"]
        assert results[0].tier == 4
        assert results[0].words_matched == 2

    def test_all_words_tier_runs_below_threshold(self):
        engine = _engine(self._register_source(member_count=1))
        snapshot = engine.index.ensure_ready()
        candidates = engine.collect_candidates(snapshot, "регистр запись", None)
        assert {c.tier for c in candidates} == {2, 4}
        assert "ЗаписьРегистра" in {c.element.name for c in candidates if c.tier == 4}

    def test_all_words_tier_skipped_at_threshold(self):
        engine = _engine(self._register_source(member_count=5))
        snapshot = engine.index.ensure_ready()
        candidates = engine.collect_candidates(snapshot, "регистр запись", None)
        assert {c.tier for c in candidates} == {2}

    @staticmethod
    def _register_source(member_count: int) -> StaticCatalogSource:
        register = TypeElement(name="Регистр", methods=tuple(
            MethodElement(name=f"ЗаписьНабора{i}") for i in range(member_count)
        ))
        return StaticCatalogSource(
            methods=[MethodElement(name="ЗаписьРегистра")],
            types=[register],
        )

    def test_unknown_kind_only_allows_type_member_tier(self, engine):
        assert engine.search("найти", kind="widget") == []
        results = engine.search("таблица значений количество", kind="widget")
        assert _names(results) == ["Количество"]


# =============================================================================
# Ranking and de-duplication
# =============================================================================

class TestRanking:
    """Deterministic merge order."""

    def test_element_matched_by_two_tiers_appears_once_at_better_tier(self, value_table):
        engine = _engine(StaticCatalogSource(types=[value_table]))
        results = engine.search("таблица значений")
        assert _names(results).count("ТаблицаЗначений") == 1
        assert results[0].tier == 1

    def test_merge_keeps_lowest_tier(self):
        element = MethodElement(name="Количество")
        merged = CatalogSearchEngine.merge([
            MatchCandidate(element, 3, 0, "q"),
            MatchCandidate(element, 2, 0, "q"),
            MatchCandidate(element, 4, 2, "q"),
        ])
        assert len(merged) == 1
        assert merged[0].tier == 2

    def test_merge_keeps_first_on_full_tie(self):
        first = MethodElement(name="Количество", description="method")
        second = PropertyElement(name="количество", description="property")
        merged = CatalogSearchEngine.merge([
            MatchCandidate(first, 3, 0, "q"),
            MatchCandidate(second, 3, 0, "q"),
        ])
        assert merged[0].element is first

    def test_merge_orders_by_tier_words_rank_name(self):
        a = MatchCandidate(TypeElement(name="Бета"), 1, 1, "q")
        b = MatchCandidate(TypeElement(name="Альфа"), 1, 2, "q")
        c = MatchCandidate(MethodElement(name="альфа2"), 3, 0, "q", rank=1)
        d = MatchCandidate(MethodElement(name="Яблоко"), 3, 0, "q", rank=0)
        e = MatchCandidate(MethodElement(name="Ааа"), 4, 2, "q")
        merged = CatalogSearchEngine.merge([e, c, a, d, b])
        assert [m.element.name for m in merged] == ["Альфа", "Бета", "Яблоко", "альфа2", "Ааа"]

    def test_type_member_rank_beats_alphabetical_order(self):
        array = TypeElement(name="Массив", methods=(
            MethodElement(name="АвтоЗаписать"),
            MethodElement(name="ЗаписатьВсе"),
            MethodElement(name="Записать"),
        ))
        results = _engine(StaticCatalogSource(types=[array])).search("массив записать")
        assert _names(results) == ["Записать", "ЗаписатьВсе", "АвтоЗаписать"]
        assert {r.tier for r in results} == {2}

    @pytest.mark.parametrize("name", ["НайтиПоСсылке", "ТекущаяДата", "Количество",
                                      "ТаблицаЗначений", "Колонки", "Следующий"])
    def test_exact_single_word_ranks_first(self, engine, name):
        assert engine.search(name.lower())[0].name == name

    def test_identical_searches_are_identical(self, engine):
        first = engine.search("таблица значений количество")
        second = engine.search("таблица значений количество")
        assert [(r.name, r.tier) for r in first] == [(r.name, r.tier) for r in second]

    def test_compound_and_member_outrank_all_words(self, engine):
        results = engine.search("Таблица значений количество")
        tiers = [r.tier for r in results]
        assert tiers == sorted(tiers)


# =============================================================================
# Limits and errors
# =============================================================================

class TestLimits:

    @pytest.fixture
    def big_engine(self):
        methods = [MethodElement(name=f"Метод{i:03d}") for i in range(120)]
        return _engine(StaticCatalogSource(methods=methods))

    def test_limit_is_capped_at_fifty(self, big_engine):
        assert len(big_engine.search("метод", limit=1000)) == 50

    @pytest.mark.parametrize("limit", [None, 0, -5])
    def test_default_limit_is_ten(self, big_engine, limit):
        assert len(big_engine.search("метод", limit=limit)) == 10

    def test_explicit_limit(self, big_engine):
        assert len(big_engine.search("метод", limit=3)) == 3

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_empty_query_raises(self, engine, query):
        with pytest.raises(EmptyQueryError, match="Запрос не может быть пустым"):
            engine.search(query)

    def test_empty_index_returns_nothing(self):
        assert _engine(StaticCatalogSource()).search("что-нибудь") == []


# =============================================================================
# Fuzzy fallback
# =============================================================================

class TestFuzzyFallback:

    def test_disabled_by_default(self, sample_source):
        assert _engine(sample_source).search("найтипоссылк3") == []

    def test_enabled_finds_close_names(self, sample_source):
        results = _engine(sample_source, fuzzy_fallback=True).search("найтипоссылк3")
        assert results[0].name == "НайтиПоСсылке"
        assert results[0].tier == 5

    def test_not_used_when_other_tiers_match(self, sample_source):
        results = _engine(sample_source, fuzzy_fallback=True).search("найти")
        assert all(r.tier == 3 for r in results)


# =============================================================================
# Exact lookups
# =============================================================================

class TestExactLookups:

    def test_find_exact_method(self, engine):
        result = engine.find_exact("НайтиПоСсылке", "method")
        assert result.found
        assert result.element.kind is ElementKind.METHOD

    def test_find_exact_respects_kind(self, engine):
        result = engine.find_exact("НайтиПоСсылке", "property")
        assert result.status is LookupStatus.NOT_FOUND

    def test_find_exact_without_kind_is_case_insensitive(self, engine):
        assert engine.find_exact("таблицазначений").element.name == "ТаблицаЗначений"
        assert engine.find_exact("ТЕКУЩАЯДАТА").kind == "property"

    def test_find_exact_prefers_method_over_property(self):
        source = StaticCatalogSource(
            methods=[MethodElement(name="Дата")],
            properties=[PropertyElement(name="Дата")],
        )
        assert _engine(source).find_exact("дата").element.kind is ElementKind.METHOD

    def test_find_exact_accepts_alias_kind(self, engine):
        assert engine.find_exact("НайтиПоСсылке", "функция").found

    def test_find_exact_empty_name(self, engine):
        with pytest.raises(EmptyQueryError):
            engine.find_exact("  ")

    def test_find_member_method_and_property(self, engine):
        assert engine.find_member("ТаблицаЗначений", "количество").element.kind is ElementKind.METHOD
        assert engine.find_member("таблицазначений", "Колонки").element.kind is ElementKind.PROPERTY

    def test_find_member_type_not_found(self, engine):
        result = engine.find_member("СправочникСсылка", "Код")
        assert result.status is LookupStatus.TYPE_NOT_FOUND

    def test_find_member_only_looks_at_declared_members(self):
        source = StaticCatalogSource(types=[
            TypeElement(name="СправочникСсылка"),
            TypeElement(name="СправочникОбъект", properties=(PropertyElement(name="Код"),)),
        ])
        result = _engine(source).find_member("СправочникСсылка", "Код")
        assert result.status is LookupStatus.MEMBER_NOT_FOUND
        assert result.type_name == "СправочникСсылка"

    def test_get_constructors(self, engine):
        result = engine.get_constructors("ТаблицаЗначений")
        assert result.found
        assert result.constructors[0].name == "По умолчанию"

    def test_get_constructors_outcomes(self, engine):
        assert engine.get_constructors("Нет").status is LookupStatus.TYPE_NOT_FOUND
        assert engine.get_constructors("ВыборкаИзРезультатаЗапроса").status is LookupStatus.NO_CONSTRUCTORS

    def test_get_members(self, engine):
        result = engine.get_members("ТаблицаЗначений")
        assert result.found
        assert len(result.element.methods) == 3
        assert engine.get_members("Нет").status is LookupStatus.TYPE_NOT_FOUND
