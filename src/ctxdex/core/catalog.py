"""
Ctxdex Catalog Model

Immutable data model for platform API elements (global methods, global
properties, and types with their own members) plus the catalog sources
that feed the index builder.

Elements carry a ``kind`` tag so callers dispatch on
:class:`ElementKind` instead of testing classes at runtime.  Every
element round-trips through the exported JSON layout (``name``,
``name_en``, ``description``, ``signature``, ``return``, ...) via
``to_dict()`` / ``from_dict()``.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Protocol, Tuple, Union

from ctxdex.exceptions import CatalogError

logger = logging.getLogger(__name__)

# File names shared by the JSON catalog source and the exporters
METHODS_FILE = "global-methods"
PROPERTIES_FILE = "global-properties"
TYPES_FILE = "types"


# =============================================================================
# Data Models
# =============================================================================

class ElementKind(str, Enum):
    """Coarse category of a catalog element."""
    METHOD = "method"
    PROPERTY = "property"
    TYPE = "type"


def _element_name(data: dict) -> str:
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError(f"element name must be a non-empty string, got {name!r}")
    return name


@dataclass(frozen=True)
class Parameter:
    """One parameter of a method or constructor signature."""
    name: str
    description: str = ""
    type: Optional[str] = None
    required: bool = False

    def to_dict(self) -> dict:
        obj: Dict[str, Any] = {"required": self.required, "name": self.name}
        if self.description:
            obj["description"] = self.description
        if self.type:
            obj["type"] = self.type
        return obj

    @classmethod
    def from_dict(cls, data: dict) -> "Parameter":
        return cls(
            name=str(data.get("name") or ""),
            description=data.get("description") or "",
            type=data.get("type") or None,
            required=bool(data.get("required", False)),
        )


@dataclass(frozen=True)
class Signature:
    """A call variant of a method, or a constructor of a type."""
    name: str = ""
    description: str = ""
    params: Tuple[Parameter, ...] = ()

    def to_dict(self) -> dict:
        obj: Dict[str, Any] = {}
        if self.name:
            obj["name"] = self.name
        if self.description:
            obj["description"] = self.description
        obj["params"] = [p.to_dict() for p in self.params]
        return obj

    @classmethod
    def from_dict(cls, data: dict) -> "Signature":
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            params=tuple(Parameter.from_dict(p) for p in data.get("params") or ()),
        )


@dataclass(frozen=True)
class MethodElement:
    """A global method or a method of a type."""
    name: str
    alias: Optional[str] = None
    description: str = ""
    signatures: Tuple[Signature, ...] = ()
    return_type: Optional[str] = None
    kind: ElementKind = field(default=ElementKind.METHOD, init=False)

    def to_dict(self) -> dict:
        obj: Dict[str, Any] = {"name": self.name}
        if self.alias:
            obj["name_en"] = self.alias
        if self.description:
            obj["description"] = self.description
        obj["signature"] = [s.to_dict() for s in self.signatures]
        if self.return_type:
            obj["return"] = self.return_type
        return obj

    @classmethod
    def from_dict(cls, data: dict) -> "MethodElement":
        return cls(
            name=_element_name(data),
            alias=data.get("name_en") or None,
            description=data.get("description") or "",
            signatures=tuple(Signature.from_dict(s) for s in data.get("signature") or ()),
            return_type=data.get("return") or None,
        )


@dataclass(frozen=True)
class PropertyElement:
    """A global property or a property of a type."""
    name: str
    alias: Optional[str] = None
    description: str = ""
    readonly: bool = False
    type: Optional[str] = None
    kind: ElementKind = field(default=ElementKind.PROPERTY, init=False)

    def to_dict(self) -> dict:
        obj: Dict[str, Any] = {"name": self.name}
        if self.alias:
            obj["name_en"] = self.alias
        if self.description:
            obj["description"] = self.description
        obj["readonly"] = self.readonly
        if self.type:
            obj["type"] = self.type
        return obj

    @classmethod
    def from_dict(cls, data: dict) -> "PropertyElement":
        return cls(
            name=_element_name(data),
            alias=data.get("name_en") or None,
            description=data.get("description") or "",
            readonly=bool(data.get("readonly", False)),
            type=data.get("type") or None,
        )


@dataclass(frozen=True)
class TypeElement:
    """A platform type.  Owns its members by value; members hold no back-reference."""
    name: str
    description: str = ""
    methods: Tuple[MethodElement, ...] = ()
    properties: Tuple[PropertyElement, ...] = ()
    constructors: Tuple[Signature, ...] = ()
    kind: ElementKind = field(default=ElementKind.TYPE, init=False)

    def members(self) -> Iterator[Union[MethodElement, PropertyElement]]:
        """Yield methods first, then properties."""
        yield from self.methods
        yield from self.properties

    def to_dict(self) -> dict:
        obj: Dict[str, Any] = {"name": self.name}
        if self.description:
            obj["description"] = self.description
        obj["methods"] = [m.to_dict() for m in self.methods]
        obj["properties"] = [p.to_dict() for p in self.properties]
        obj["constructors"] = [c.to_dict() for c in self.constructors]
        return obj

    @classmethod
    def from_dict(cls, data: dict) -> "TypeElement":
        return cls(
            name=_element_name(data),
            description=data.get("description") or "",
            methods=tuple(MethodElement.from_dict(m) for m in data.get("methods") or ()),
            properties=tuple(PropertyElement.from_dict(p) for p in data.get("properties") or ()),
            constructors=tuple(Signature.from_dict(c) for c in data.get("constructors") or ()),
        )


Element = Union[MethodElement, PropertyElement, TypeElement]
Member = Union[MethodElement, PropertyElement]


# =============================================================================
# Element accessors
# =============================================================================

def _format_params(params: Iterable[Parameter]) -> str:
    parts = []
    for p in params:
        label = p.name if p.required else f"{p.name}?"
        parts.append(f"{label}: {p.type}" if p.type else label)
    return ", ".join(parts)


def _method_signature(method: MethodElement) -> str:
    params = method.signatures[0].params if method.signatures else ()
    text = f"{method.name}({_format_params(params)})"
    return f"{text}: {method.return_type}" if method.return_type else text


def _property_signature(prop: PropertyElement) -> str:
    return f"{prop.name}: {prop.type}" if prop.type else prop.name


def _type_signature(type_: TypeElement) -> str:
    return type_.name


_SIGNATURE_RENDERERS: Dict[ElementKind, Callable[[Any], str]] = {
    ElementKind.METHOD: _method_signature,
    ElementKind.PROPERTY: _property_signature,
    ElementKind.TYPE: _type_signature,
}


def element_signature(element: Element) -> str:
    """One-line signature: ``Имя(п1: Тип, п2?: Тип): Возврат``, ``Имя: Тип`` or ``Имя``."""
    return _SIGNATURE_RENDERERS[element.kind](element)


def constructor_signature(type_name: str, constructor: Signature) -> str:
    """Render a constructor as ``Новый Тип(п1: Тип, ...)``."""
    return f"Новый {type_name}({_format_params(constructor.params)})"


# =============================================================================
# Catalog sources
# =============================================================================

class CatalogSource(Protocol):
    """
    Narrow extraction interface consumed by the index builder.

    Each call returns a fresh iterable that may be drained once; no
    ordering is guaranteed.
    """

    def methods(self) -> Iterable[MethodElement]: ...

    def properties(self) -> Iterable[PropertyElement]: ...

    def types(self) -> Iterable[TypeElement]: ...


class StaticCatalogSource:
    """In-memory catalog, mainly for tests and embedding."""

    def __init__(
        self,
        methods: Iterable[MethodElement] = (),
        properties: Iterable[PropertyElement] = (),
        types: Iterable[TypeElement] = (),
    ):
        self._methods = list(methods)
        self._properties = list(properties)
        self._types = list(types)

    def methods(self) -> Iterator[MethodElement]:
        return iter(self._methods)

    def properties(self) -> Iterator[PropertyElement]:
        return iter(self._properties)

    def types(self) -> Iterator[TypeElement]:
        return iter(self._types)


class JsonCatalogSource:
    """
    Catalog read from a directory of exported JSON files.

    Expects ``global-methods.json``, ``global-properties.json`` and
    ``types.json`` (the layout written by ``ctxdex export --format json``).
    A missing file is treated as an empty section; a missing directory
    or unparsable JSON raises :class:`CatalogError`.  Entries without a
    string name, or with malformed nested members, are skipped with a
    warning.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def methods(self) -> Iterator[MethodElement]:
        return self._read(METHODS_FILE, MethodElement.from_dict)

    def properties(self) -> Iterator[PropertyElement]:
        return self._read(PROPERTIES_FILE, PropertyElement.from_dict)

    def types(self) -> Iterator[TypeElement]:
        return self._read(TYPES_FILE, TypeElement.from_dict)

    def _load(self, stem: str) -> List[Any]:
        if not self.directory.is_dir():
            raise CatalogError(f"Catalog directory not found: {self.directory}")
        path = self.directory / f"{stem}.json"
        if not path.exists():
            logger.warning("Catalog file %s is missing, section treated as empty", path)
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Cannot read catalog file {path}: {e}") from e
        if not isinstance(data, list):
            raise CatalogError(f"Catalog file {path} must contain a JSON array")
        return data

    def _read(self, stem: str, factory: Callable[[dict], Any]) -> Iterator[Any]:
        for entry in self._load(stem):
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str) \
                    or not entry["name"]:
                logger.warning(f"Skipping malformed entry in {stem}.json: {entry!r:.80}")
                continue
            # Nested members, signatures and parameters are checked by from_dict
            try:
                element = factory(entry)
            except (TypeError, AttributeError, KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed entry '{entry['name']}' in {stem}.json: {e}")
                continue
            yield element
