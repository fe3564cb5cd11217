"""
Ctxdex Search Engine

Resolves free-text queries against the catalog index.

Production-ready with:
- Query normalization with kind aliases (``функция`` → ``method``)
- Four matching tiers plus an optional edit-distance fallback
- Deterministic de-duplication and ranking
- Exact lookups for elements, type members, and constructors
- Markdown, console, JSON and compact output formats
"""

import json
import logging
import time
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ctxdex.core.catalog import (
    Element, ElementKind, Member, Signature, TypeElement,
    constructor_signature, element_signature,
)
from ctxdex.core.config import CtxdexConfig, KindAliases
from ctxdex.core.index import CatalogIndex, IndexSnapshot
from ctxdex.exceptions import EmptyQueryError

logger = logging.getLogger(__name__)

# Tier numbers, best first
TIER_COMPOUND = 1
TIER_TYPE_MEMBER = 2
TIER_SUBSTRING = 3
TIER_ALL_WORDS = 4
TIER_FUZZY = 5

# Local ranks inside a tier
RANK_EXACT = 0
RANK_PREFIX = 1
RANK_CONTAINS = 2
RANK_ALL_WORDS = 3


# =============================================================================
# Query normalization
# =============================================================================

def normalize_query(raw: str | None) -> str:
    """Trim and lower-case a query.  Blank input normalizes to ``""``."""
    return (raw or "").strip().lower()


def normalize_kind(raw: str | None) -> Optional[str]:
    """
    Map a kind word to ``method`` / ``property`` / ``type``.

    Blank or ``None`` means "any kind" and returns ``None``.  Words
    outside the alias table are returned lower-cased and unchanged, so
    they simply match nothing in the kind-filtered tiers.
    """
    if raw is None or not raw.strip():
        return None
    kind = raw.strip().lower()
    return KindAliases.ALIASES.get(kind, kind)


def require_text(value: str | None, message: str) -> str:
    """Return *value* stripped, or raise :class:`EmptyQueryError` with *message*."""
    text = (value or "").strip()
    if not text:
        raise EmptyQueryError(message)
    return text


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def _fuse(words: List[str]) -> Tuple[str, str, str]:
    """Return (lowercase, CamelCase, lowerCamelCase) concatenations of *words*."""
    lower = "".join(w.lower() for w in words)
    camel = "".join(_capitalize(w) for w in words)
    lower_camel = words[0].lower() + "".join(_capitalize(w) for w in words[1:])
    return lower, camel, lower_camel


def fusion_variants(words: List[str], max_prefix: int = 4) -> List[str]:
    """
    Generate fused-identifier candidates for a word list.

    ``["таблица", "значений"]`` yields ``таблицазначений``,
    ``ТаблицаЗначений`` and ``таблицаЗначений``; the same three forms are
    added for every leading slice of 2..min(max_prefix, len(words))
    words, so trailing noise words in long queries do not prevent a hit.
    Order is stable and duplicates are removed.
    """
    if not words:
        return []
    variants: List[str] = list(_fuse(words))
    for length in range(2, min(max_prefix, len(words)) + 1):
        variants.extend(_fuse(words[:length]))
    return list(dict.fromkeys(variants))


def count_contained(words: List[str], name: str) -> int:
    """Count how many *words* occur as substrings of *name* (case-insensitive)."""
    lowered = name.lower()
    return sum(1 for w in words if w.lower() in lowered)


# =============================================================================
# Result models
# =============================================================================

_TIER_RELEVANCE = {
    TIER_COMPOUND: 100,
    TIER_TYPE_MEMBER: 90,
    TIER_ALL_WORDS: 60,
    TIER_FUZZY: 40,
}


@dataclass
class MatchCandidate:
    """One hit from one tier.  Lives only for the duration of a search call."""
    element: Element
    tier: int
    words_matched: int
    query: str
    rank: int = RANK_EXACT

    @property
    def key(self) -> str:
        return self.element.name.lower()

    def sort_key(self) -> Tuple[int, int, int, str]:
        return (self.tier, -self.words_matched, self.rank, self.key)


@dataclass
class SearchResult:
    """A ranked search hit returned to callers."""
    element: Element
    tier: int
    words_matched: int = 0
    rank: int = RANK_EXACT

    @property
    def name(self) -> str:
        return self.element.name

    @property
    def kind(self) -> ElementKind:
        return self.element.kind

    @property
    def signature(self) -> str:
        return element_signature(self.element)

    @property
    def relevance(self) -> int:
        """Display score in percent, derived from tier and local rank."""
        if self.tier == TIER_SUBSTRING:
            return 80 if self.rank == RANK_EXACT else 70
        return _TIER_RELEVANCE.get(self.tier, 0)

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict for API/agent pipelines."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "signature": self.signature,
            "description": self.element.description,
            "tier": self.tier,
            "words_matched": self.words_matched,
            "relevance": self.relevance,
        }


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    TYPE_NOT_FOUND = "type_not_found"
    MEMBER_NOT_FOUND = "member_not_found"
    NO_CONSTRUCTORS = "no_constructors"


@dataclass
class LookupResult:
    """
    Outcome of an exact lookup.

    ``element`` is set when :attr:`status` is ``FOUND``.  For
    constructor lookups ``constructors`` holds the signatures and
    ``element`` the owning type.
    """
    status: LookupStatus
    name: str = ""
    kind: Optional[str] = None
    type_name: Optional[str] = None
    element: Optional[Element] = None
    constructors: Tuple[Signature, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


# =============================================================================
# Search Engine
# =============================================================================

class CatalogSearchEngine:
    """
    Multi-tier search over a :class:`CatalogIndex`.

    Up to four independent tiers run for every query and their hits are
    merged before one ranking pass:

    1. **Compound type**: words fused into a type name
       (``таблица значений`` → ``ТаблицаЗначений``)
    2. **Type + member**: a fused type name followed by a member phrase
       (``таблица значений количество`` → ``ТаблицаЗначений.Количество``)
    3. **Substring**: the whole query contained in an element name
    4. **All words**: every query word contained in a name, any order;
       runs only when tiers 1-3 found fewer than
       ``config.all_words_threshold`` candidates

    When ``config.fuzzy_fallback`` is on and nothing matched, a fifth
    tier ranks names by :class:`difflib.SequenceMatcher` ratio.

    Matching never mutates shared state, so concurrent searches on a
    READY index need no locking.
    """

    def __init__(self, index: CatalogIndex, config: CtxdexConfig | None = None):
        self._config = config or CtxdexConfig.from_env()
        self.index = index
        self._last_elapsed_seconds: float = 0.0

    @property
    def last_search_elapsed_seconds(self) -> float:
        """Elapsed time (seconds) of the last :meth:`search`, matching and ranking only."""
        return self._last_elapsed_seconds

    # ── Public API ────────────────────────────────────────────────

    def search(self, query: str, kind: str | None = None,
               limit: int | None = None) -> List[SearchResult]:
        """
        Rank catalog elements against *query*.

        Args:
            query: Free text, e.g. ``"Таблица значений количество"``.
            kind: Optional filter; aliases such as ``"функция"`` are accepted.
            limit: Maximum hits.  ``None`` or non-positive uses
                ``config.default_limit``; capped at ``config.max_limit``.

        Raises:
            EmptyQueryError: If *query* is blank.
            IndexUnavailableError: If the index failed to build in strict mode.
        """
        require_text(query, "Запрос не может быть пустым")
        snapshot = self.index.ensure_ready()

        t0 = time.perf_counter()
        candidates = self.collect_candidates(snapshot, normalize_query(query), normalize_kind(kind))
        ranked = self.merge(candidates)[: self._config.effective_limit(limit)]
        self._last_elapsed_seconds = time.perf_counter() - t0

        logger.debug(
            f"Search '{query}': {len(candidates)} candidates, "
            f"{len(ranked)} returned in {self._last_elapsed_seconds:.4f}s"
        )
        return [
            SearchResult(element=c.element, tier=c.tier,
                         words_matched=c.words_matched, rank=c.rank)
            for c in ranked
        ]

    def collect_candidates(self, snapshot: IndexSnapshot, query: str,
                           kind: str | None) -> List[MatchCandidate]:
        """Run every applicable tier and return the raw, un-merged candidates."""
        words = query.split()
        candidates: List[MatchCandidate] = []

        # ── Tier 1: compound type names ──────────────────────────
        if len(words) >= 2 and kind in (None, KindAliases.TYPE):
            tier1 = self._compound_types(snapshot, words, query)
            logger.debug("Tier 1 (compound types): %d for '%s'", len(tier1), query)
            candidates.extend(tier1)

        # ── Tier 2: type followed by member phrase ───────────────
        if len(words) >= 2:
            tier2 = self._type_members(snapshot, words, query)
            logger.debug("Tier 2 (type + member): %d for '%s'", len(tier2), query)
            candidates.extend(tier2)

        # ── Tier 3: substring of the whole query ─────────────────
        tier3 = self._substring(snapshot, query, kind)
        logger.debug("Tier 3 (substring): %d for '%s'", len(tier3), query)
        candidates.extend(tier3)

        # ── Tier 4: all words, any order ─────────────────────────
        if len(words) >= 2 and len(candidates) < self._config.all_words_threshold:
            tier4 = self._all_words(snapshot, words, query, kind)
            logger.debug("Tier 4 (all words): %d for '%s'", len(tier4), query)
            candidates.extend(tier4)

        # ── Tier 5: edit-distance fallback (opt-in) ──────────────
        if not candidates and self._config.fuzzy_fallback:
            tier5 = self._fuzzy(snapshot, query, kind)
            logger.debug("Tier 5 (fuzzy): %d for '%s'", len(tier5), query)
            candidates.extend(tier5)

        return candidates

    @staticmethod
    def merge(candidates: List[MatchCandidate]) -> List[MatchCandidate]:
        """
        Collapse candidates sharing a lower-cased name and sort them.

        For each name the candidate with the smallest sort key survives
        (lowest tier, then most words matched, then best local rank);
        on a full tie the first one seen is kept.  The final order is
        tier ascending, words matched descending, local rank ascending,
        then name ascending (case-insensitive).
        """
        best: Dict[str, MatchCandidate] = {}
        for c in candidates:
            current = best.get(c.key)
            if current is None or c.sort_key() < current.sort_key():
                best[c.key] = c
        return sorted(best.values(), key=MatchCandidate.sort_key)

    # ── Exact lookups ─────────────────────────────────────────────

    def find_exact(self, name: str, kind: str | None = None) -> LookupResult:
        """
        Look up *name* exactly (case-insensitive).

        Without a kind, methods are tried first, then properties, then
        types; the first hit wins.
        """
        require_text(name, "Имя элемента не может быть пустым")
        snapshot = self.index.ensure_ready()
        key = normalize_query(name)
        canonical = normalize_kind(kind)

        maps = {
            KindAliases.METHOD: snapshot.methods,
            KindAliases.PROPERTY: snapshot.properties,
            KindAliases.TYPE: snapshot.types,
        }
        order = KindAliases.CANONICAL if canonical is None else (canonical,)
        for k in order:
            element = maps.get(k, {}).get(key)
            if element is not None:
                return LookupResult(LookupStatus.FOUND, name=name, kind=k, element=element)
        return LookupResult(LookupStatus.NOT_FOUND, name=name, kind=canonical)

    def find_member(self, type_name: str, member_name: str) -> LookupResult:
        """Resolve ``type_name.member_name``: methods first, then properties."""
        require_text(type_name, "Имя типа и имя члена не могут быть пустыми")
        require_text(member_name, "Имя типа и имя члена не могут быть пустыми")
        type_ = self.index.ensure_ready().types.get(normalize_query(type_name))
        if type_ is None:
            return LookupResult(LookupStatus.TYPE_NOT_FOUND, name=member_name, type_name=type_name)

        key = normalize_query(member_name)
        for member in type_.members():
            if member.name.lower() == key:
                return LookupResult(LookupStatus.FOUND, name=member_name,
                                    type_name=type_.name, element=member)
        return LookupResult(LookupStatus.MEMBER_NOT_FOUND, name=member_name, type_name=type_.name)

    def get_constructors(self, type_name: str) -> LookupResult:
        require_text(type_name, "Имя типа не может быть пустым")
        type_ = self.index.ensure_ready().types.get(normalize_query(type_name))
        if type_ is None:
            return LookupResult(LookupStatus.TYPE_NOT_FOUND, name=type_name, type_name=type_name)
        if not type_.constructors:
            return LookupResult(LookupStatus.NO_CONSTRUCTORS, name=type_name,
                                type_name=type_.name, element=type_)
        return LookupResult(LookupStatus.FOUND, name=type_name, type_name=type_.name,
                            element=type_, constructors=type_.constructors)

    def get_members(self, type_name: str) -> LookupResult:
        require_text(type_name, "Имя типа не может быть пустым")
        type_ = self.index.ensure_ready().types.get(normalize_query(type_name))
        if type_ is None:
            return LookupResult(LookupStatus.TYPE_NOT_FOUND, name=type_name, type_name=type_name)
        return LookupResult(LookupStatus.FOUND, name=type_name, type_name=type_.name,
                            element=type_, constructors=type_.constructors)

    # ── Tiers ─────────────────────────────────────────────────────

    def _compound_types(self, snapshot: IndexSnapshot, words: List[str],
                        query: str) -> List[MatchCandidate]:
        results: List[MatchCandidate] = []
        for variant in fusion_variants(words, self._config.max_fusion_prefix):
            type_ = snapshot.types.get(variant.lower())
            if type_ is not None:
                results.append(MatchCandidate(
                    type_, TIER_COMPOUND, count_contained(words, type_.name), query,
                ))
        return results

    def _type_members(self, snapshot: IndexSnapshot, words: List[str],
                      query: str) -> List[MatchCandidate]:
        results: List[MatchCandidate] = []
        for split in range(1, len(words)):
            member_phrase = " ".join(words[split:])
            for variant in fusion_variants(words[:split], self._config.max_fusion_prefix):
                type_ = snapshot.types.get(variant.lower())
                if type_ is None:
                    continue
                for member, rank in self._match_members(type_, member_phrase):
                    results.append(MatchCandidate(member, TIER_TYPE_MEMBER, 0, query, rank))
        return results

    @staticmethod
    def _match_members(type_: TypeElement, phrase: str) -> Iterator[Tuple[Member, int]]:
        """Yield (member, rank) for members of *type_* matching *phrase*, methods first."""
        phrase_words = phrase.split()
        for member in type_.members():
            name = member.name.lower()
            if name == phrase:
                yield member, RANK_EXACT
            elif name.startswith(phrase):
                yield member, RANK_PREFIX
            elif phrase in name:
                yield member, RANK_CONTAINS
            elif len(phrase_words) >= 2 and all(w in name for w in phrase_words):
                yield member, RANK_ALL_WORDS

    @staticmethod
    def _scope(snapshot: IndexSnapshot, kind: str | None) -> Iterator[Element]:
        """Elements eligible for kind-filtered tiers; type members only when kind is unset."""
        if kind in (None, KindAliases.METHOD):
            yield from snapshot.methods.values()
        if kind in (None, KindAliases.PROPERTY):
            yield from snapshot.properties.values()
        if kind in (None, KindAliases.TYPE):
            yield from snapshot.types.values()
        if kind is None:
            for type_ in snapshot.types.values():
                yield from type_.members()

    def _substring(self, snapshot: IndexSnapshot, query: str,
                   kind: str | None) -> List[MatchCandidate]:
        results: List[MatchCandidate] = []
        for element in self._scope(snapshot, kind):
            name = element.name.lower()
            if query not in name:
                continue
            if name == query:
                rank = RANK_EXACT
            elif name.startswith(query):
                rank = RANK_PREFIX
            else:
                rank = RANK_CONTAINS
            results.append(MatchCandidate(element, TIER_SUBSTRING, 0, query, rank))
        results.sort(key=lambda c: (c.rank, c.key))
        return results

    def _all_words(self, snapshot: IndexSnapshot, words: List[str], query: str,
                   kind: str | None) -> List[MatchCandidate]:
        return [
            MatchCandidate(element, TIER_ALL_WORDS, len(words), query)
            for element in self._scope(snapshot, kind)
            if count_contained(words, element.name) == len(words)
        ]

    def _fuzzy(self, snapshot: IndexSnapshot, query: str,
               kind: str | None) -> List[MatchCandidate]:
        results: List[MatchCandidate] = []
        for element in self._scope(snapshot, kind):
            ratio = SequenceMatcher(None, query, element.name.lower()).ratio()
            if ratio >= self._config.fuzzy_cutoff:
                # Better ratio → smaller rank
                results.append(MatchCandidate(
                    element, TIER_FUZZY, 0, query, int(round((1.0 - ratio) * 1000)),
                ))
        return results


# =============================================================================
# Markdown presentation (MCP tool output)
# =============================================================================

_ICONS = {
    ElementKind.METHOD: "🔧",
    ElementKind.PROPERTY: "📋",
    ElementKind.TYPE: "📦",
}
_DESCRIPTIONS = {
    ElementKind.METHOD: "Глобальный метод",
    ElementKind.PROPERTY: "Глобальное свойство",
    ElementKind.TYPE: "Тип данных",
}
_BADGES = {
    ElementKind.METHOD: "Методы",
    ElementKind.PROPERTY: "Свойства",
    ElementKind.TYPE: "Типы",
}


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


class MarkdownPresenter:
    """Render search hits and lookup outcomes as Russian Markdown for agents."""

    # ── Search ────────────────────────────────────────────────────

    @staticmethod
    def format_search(query: str, results: List[SearchResult]) -> str:
        """
        Adaptive layout: one hit in detail, up to five as compact blocks,
        more than five as a table of the top five plus the best hit in detail.
        """
        if not results:
            return (
                f"❌ **Ничего не найдено по запросу:** `{query}`\n\n"
                "💡 **Попробуйте:**\n"
                "- Проверить правописание\n"
                "- Использовать более короткий запрос\n"
                "- Попробовать синонимы"
            )

        out = [f"# 🔎 Результаты поиска: \"{query}\" ({len(results)} найдено)\n\n"]
        if len(results) == 1:
            out.append(MarkdownPresenter._single(results[0]))
        elif len(results) <= 5:
            blocks = [MarkdownPresenter._compact(r, i == 0) for i, r in enumerate(results)]
            out.append("\n---\n\n".join(blocks))
        else:
            out.append("## Топ результаты\n\n")
            out.append("| Название | Тип | Сигнатура | Релевантность |\n")
            out.append("|----------|-----|-----------|---------------|\n")
            for r in results[:5]:
                out.append(
                    f"| **{r.name}** | {_ICONS[r.kind]} | "
                    f"`{_truncate(r.signature, 40)}` | {r.relevance}% |\n"
                )
            out.append(f"\n*... и еще {len(results) - 5} результатов*\n")
            out.append("\n---\n\n## ⭐ Наиболее релевантный результат\n\n")
            out.append(MarkdownPresenter._single(results[0]))
        return "".join(out)

    @staticmethod
    def _single(r: SearchResult) -> str:
        text = (
            f"## {_ICONS[r.kind]} {r.name}\n"
            f"```bsl\n{r.signature}\n```\n"
            f"*{_DESCRIPTIONS[r.kind]}* • **Релевантность: {r.relevance}%**\n\n"
        )
        if r.element.description:
            text += r.element.description + "\n"
        return text

    @staticmethod
    def _compact(r: SearchResult, is_first: bool) -> str:
        prefix = "## ⭐ " if is_first else "## "
        note = "" if is_first else " • *Менее релевантно*"
        text = (
            f"{prefix}{r.name}\n"
            f"```bsl\n{r.signature}\n```\n"
            f"*{_DESCRIPTIONS[r.kind]}* • **{_BADGES[r.kind]}**{note}\n"
        )
        if r.element.description:
            text += "\n" + _truncate(r.element.description, 100) + "\n"
        return text

    # ── Lookups ───────────────────────────────────────────────────

    @staticmethod
    def format_lookup(result: LookupResult) -> str:
        """Detail view for ``info`` / ``get_member`` outcomes, or the matching error text."""
        if result.status is LookupStatus.TYPE_NOT_FOUND:
            return f"❌ **Тип не найден:** {result.type_name}"
        if result.status is LookupStatus.MEMBER_NOT_FOUND:
            return f"❌ **Член не найден:** {result.name} в типе {result.type_name}"
        if not result.found:
            return f"❌ **Не найдено:** {result.name} типа {result.kind or 'любого'}"
        return MarkdownPresenter.format_element(result.element)

    @staticmethod
    def format_element(element: Element) -> str:
        out = [
            f"# {_ICONS[element.kind]} {element.name}\n\n",
            "## Сигнатура\n```bsl\n",
            element_signature(element),
            "\n```\n\n",
        ]
        if element.kind is ElementKind.METHOD:
            for sig in element.signatures:
                if not sig.params:
                    continue
                title = f"## Параметры ({sig.name})\n" if sig.name else "## Параметры\n"
                out.append(title)
                for p in sig.params:
                    out.append(
                        f"- **{p.name}** *({p.type or 'Произвольный'})* - "
                        f"{p.description or 'Описание отсутствует'}\n"
                    )
                out.append("\n")
            if element.return_type:
                out.append(f"## Возвращаемое значение\n**{element.return_type}**\n\n")
        elif element.kind is ElementKind.PROPERTY:
            out.append("## Информация о свойстве\n")
            out.append(f"- **Тип:** {element.type or 'Произвольный'}\n")
            out.append(f"- **Только чтение:** {'Да' if element.readonly else 'Нет'}\n\n")
        elif element.kind is ElementKind.TYPE:
            out.append("## Информация о типе\n")
            out.append(f"- **Методов:** {len(element.methods)}\n")
            out.append(f"- **Свойств:** {len(element.properties)}\n")
            out.append(f"- **Конструкторов:** {len(element.constructors)}\n\n")
        if element.description:
            out.append(f"## Описание\n{element.description}\n\n")
        return "".join(out)

    @staticmethod
    def format_constructors(result: LookupResult) -> str:
        if result.status is LookupStatus.TYPE_NOT_FOUND:
            return f"❌ **Тип не найден:** {result.type_name}"
        if result.status is LookupStatus.NO_CONSTRUCTORS:
            return f"❌ **Конструкторы не найдены** для типа {result.type_name}"

        out = [f"# 🔨 Конструкторы типа {result.type_name}\n\n"]
        for i, ctor in enumerate(result.constructors, 1):
            out.append(f"## {i}. {ctor.name or 'Конструктор'}\n")
            out.append(f"```bsl\n{constructor_signature(result.type_name, ctor)}\n```\n")
            if ctor.description:
                out.append(ctor.description + "\n")
            if ctor.params:
                out.append("\n**Параметры:**\n")
                for p in ctor.params:
                    required = "" if p.required else " *(необязательный)*"
                    out.append(f"- `{p.name}: {p.type or 'Произвольный'}`{required}")
                    out.append(f" - {p.description}\n" if p.description else "\n")
            out.append("\n")
        return "".join(out)

    @staticmethod
    def format_members(result: LookupResult) -> str:
        if not result.found:
            return f"❌ **Тип не найден:** {result.type_name}"

        type_ = result.element
        out = [f"# 📦 Члены типа {type_.name}\n\n"]
        if type_.description:
            out.append(type_.description + "\n\n")
        if type_.methods:
            out.append(f"## 🔧 Методы ({len(type_.methods)})\n\n")
            for m in type_.methods:
                desc = f" - {_truncate(m.description, 100)}" if m.description else ""
                out.append(f"- `{element_signature(m)}`{desc}\n")
            out.append("\n")
        if type_.properties:
            out.append(f"## 📋 Свойства ({len(type_.properties)})\n\n")
            for p in type_.properties:
                ro = " *(только чтение)*" if p.readonly else ""
                desc = f" - {_truncate(p.description, 100)}" if p.description else ""
                out.append(f"- `{element_signature(p)}`{ro}{desc}\n")
            out.append("\n")
        if type_.constructors:
            out.append(f"## 🔨 Конструкторы ({len(type_.constructors)})\n\n")
            for c in type_.constructors:
                out.append(f"- `{constructor_signature(type_.name, c)}`\n")
            out.append("\n")
        if not (type_.methods or type_.properties or type_.constructors):
            out.append("*Тип не содержит методов и свойств*\n")
        return "".join(out)


# =============================================================================
# Result Formatting (CLI)
# =============================================================================

class ResultFormatter:
    """Format search results for terminal and pipeline output."""

    @staticmethod
    def format_console(results: List[SearchResult], elapsed_time: float | None = None) -> str:
        if not results:
            return "\n  No results found.\n"

        import shutil
        width = min(shutil.get_terminal_size().columns, 78)
        thin = "─" * width

        header = f"  CTXDEX — {len(results)} result{'s' if len(results) != 1 else ''}"
        if elapsed_time is not None:
            header += f" in {elapsed_time:.4f} seconds"

        out: List[str] = [f"\n{thin}", header, thin]
        for idx, r in enumerate(results, 1):
            out.append("")
            out.append(f"  #{idx}  {r.name}  {_ICONS[r.kind]} {r.kind.value}")
            out.append(f"  {'─' * (width - 2)}")
            out.append(f"    Signature : {r.signature}")
            out.append(f"    Tier      : {r.tier}  (relevance {r.relevance}%)")
            if r.element.description:
                out.append(f"    About     : {_truncate(r.element.description, width - 16)}")
        out.append(f"\n{thin}")
        return "\n".join(out)

    @staticmethod
    def _sanitize_for_json(s: str) -> str:
        """Strip control characters that break strict JSON parsers."""
        if not s:
            return s
        return "".join(c for c in s if (ord(c) >= 32 and ord(c) != 127) or c in "\n\r\t")

    @staticmethod
    def format_json(results: List[SearchResult]) -> str:
        payload: List[Dict[str, Any]] = []
        for r in results:
            obj = r.to_dict()
            obj["description"] = ResultFormatter._sanitize_for_json(obj["description"])
            payload.append(obj)
        return json.dumps(payload, indent=2, ensure_ascii=False, allow_nan=False)

    @staticmethod
    def format_compact(results: List[SearchResult]) -> str:
        """One line per hit: ``kind  signature  [tier N]``."""
        if not results:
            return "No results found."
        return "\n".join(
            f"{r.kind.value:<8} {r.signature}  [tier {r.tier}]" for r in results
        )
