"""
Ctxdex Catalog Export

Dump a catalog source to ``global-methods.*``, ``global-properties.*``
and ``types.*`` in JSON, Markdown, or XML.  JSON output uses the same
layout :class:`~ctxdex.core.catalog.JsonCatalogSource` reads, so an
export can be served straight back as a catalog.
"""

import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, TextIO

from tqdm import tqdm

from ctxdex.core.catalog import (
    METHODS_FILE, PROPERTIES_FILE, TYPES_FILE,
    CatalogSource, MethodElement, Parameter, PropertyElement, Signature, TypeElement,
)
from ctxdex.exceptions import ExportError

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 40


@dataclass
class ExportResult:
    """Counts and file paths written by :func:`export_catalog`."""
    format: str
    output_dir: str
    methods: int = 0
    properties: int = 0
    types: int = 0
    files: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict for API/agent pipelines."""
        return asdict(self)


# =============================================================================
# JSON
# =============================================================================

def _write_json(out: TextIO, elements: Iterable) -> int:
    data = [e.to_dict() for e in elements]
    json.dump(data, out, ensure_ascii=False, indent=2)
    return len(data)


# =============================================================================
# Markdown (TITLE / DESCRIPTION snippets)
# =============================================================================

def _md_params(params: Iterable[Parameter]) -> str:
    return ", ".join(f"{p.name}:{p.type or 'any'}" for p in params)


def _md_signature_line(method: MethodElement, sig: Signature) -> str:
    ret = f":{method.return_type}" if method.return_type else ""
    return f"{method.name}({_md_params(sig.params)}){ret}"


def _md_param_lines(params: Iterable[Parameter], indent: str) -> List[str]:
    params = list(params)
    if not params:
        return [f"{indent}Parameters: (None)"]
    lines = [f"{indent}Parameters:"]
    for p in params:
        status = "required" if p.required else "optional"
        desc = f" - {p.description}" if p.description else ""
        lines.append(f"{indent}  - {p.name}: {p.type or 'any'} ({status}){desc}")
    return lines


def _md_signatures(method: MethodElement, indent: str) -> List[str]:
    if not method.signatures:
        ret = f":{method.return_type}" if method.return_type else ""
        return [
            f"{indent}{method.name}(){ret}",
            f"{indent}  (No specific parameter details provided for this general signature)",
        ]
    lines: List[str] = []
    for sig in method.signatures:
        lines.append(f"{indent}---")
        lines.append(f"{indent}{_md_signature_line(method, sig)}")
        if sig.description:
            lines.append(f"{indent}  Description: {sig.description}")
        lines.extend(_md_param_lines(sig.params, indent + "  "))
    return lines


def _md_snippet(title: str, description: str) -> List[str]:
    lines = [f"TITLE: {title}"]
    if description:
        lines.append(f"DESCRIPTION: {description}")
    return lines


def _md_method(method: MethodElement) -> List[str]:
    lines = _md_snippet(f"Global Method: {method.name}", method.description)
    lines += [f"Name: {method.name}", "", "Signatures:"]
    lines += _md_signatures(method, "  ")
    return lines


def _md_property(prop: PropertyElement) -> List[str]:
    lines = _md_snippet(f"Global Property: {prop.name}", prop.description)
    lines += [f"Name: {prop.name}", f"Readonly: {str(prop.readonly).lower()}"]
    if prop.type:
        lines.append(f"Type: {prop.type}")
    return lines


def _md_type(type_: TypeElement) -> List[str]:
    lines = _md_snippet(f"Type: {type_.name}", type_.description)
    lines += [f"Name: {type_.name}", "", "Properties:"]
    if type_.properties:
        for p in type_.properties:
            name = f"{p.name} ({p.alias})" if p.alias else p.name
            access = "readonly" if p.readonly else "readwrite"
            desc = f" - {p.description}" if p.description else ""
            lines.append(f"  - {name}: {p.type or 'any'} ({access}){desc}")
    else:
        lines.append("  (No properties)")
    lines += ["", "Methods:"]
    if type_.methods:
        for m in type_.methods:
            lines += ["  ---", f"  Method: {m.name}"]
            if m.description:
                lines.append(f"    Description: {m.description}")
            lines.append("    Signatures:")
            lines += _md_signatures(m, "      ")
    else:
        lines.append("  (No methods)")
    return lines


def _markdown_writer(render: Callable[[object], List[str]]) -> Callable[[TextIO, Iterable], int]:
    def write(out: TextIO, elements: Iterable) -> int:
        count = 0
        for element in elements:
            if count:
                out.write(f"\n{SEPARATOR}\n\n")
            out.write("\n".join(render(element)) + "\n")
            count += 1
        return count
    return write


# =============================================================================
# XML
# =============================================================================

def _xml_params(parent: ET.Element, params: Iterable[Parameter]) -> None:
    for p in params:
        attrs = {"name": p.name, "required": str(p.required).lower()}
        if p.type:
            attrs["type"] = p.type
        node = ET.SubElement(parent, "parameter", attrs)
        if p.description:
            node.text = p.description


def _xml_signatures(parent: ET.Element, tag: str, signatures: Iterable[Signature]) -> None:
    for sig in signatures:
        node = ET.SubElement(parent, tag, {"name": sig.name} if sig.name else {})
        if sig.description:
            ET.SubElement(node, "description").text = sig.description
        _xml_params(ET.SubElement(node, "parameters"), sig.params)


def _xml_method(parent: ET.Element, method: MethodElement) -> None:
    attrs = {"name": method.name}
    if method.alias:
        attrs["name_en"] = method.alias
    if method.return_type:
        attrs["return"] = method.return_type
    node = ET.SubElement(parent, "method", attrs)
    if method.description:
        ET.SubElement(node, "description").text = method.description
    _xml_signatures(ET.SubElement(node, "signatures"), "signature", method.signatures)


def _xml_property(parent: ET.Element, prop: PropertyElement) -> None:
    attrs = {"name": prop.name, "readonly": str(prop.readonly).lower()}
    if prop.alias:
        attrs["name_en"] = prop.alias
    if prop.type:
        attrs["type"] = prop.type
    node = ET.SubElement(parent, "property", attrs)
    if prop.description:
        ET.SubElement(node, "description").text = prop.description


def _xml_type(parent: ET.Element, type_: TypeElement) -> None:
    node = ET.SubElement(parent, "type", {"name": type_.name})
    if type_.description:
        ET.SubElement(node, "description").text = type_.description
    methods = ET.SubElement(node, "methods")
    for m in type_.methods:
        _xml_method(methods, m)
    properties = ET.SubElement(node, "properties")
    for p in type_.properties:
        _xml_property(properties, p)
    _xml_signatures(ET.SubElement(node, "constructors"), "constructor", type_.constructors)


def _xml_writer(root_tag: str, add: Callable[[ET.Element, object], None]) -> Callable[[TextIO, Iterable], int]:
    def write(out: TextIO, elements: Iterable) -> int:
        root = ET.Element(root_tag)
        count = 0
        for element in elements:
            add(root, element)
            count += 1
        ET.indent(root)
        out.write('<?xml version="1.0" encoding="UTF-8"?>\n')
        out.write(ET.tostring(root, encoding="unicode"))
        out.write("\n")
        return count
    return write


# =============================================================================
# Public API
# =============================================================================

# format → (extension, methods writer, properties writer, types writer)
_FORMATS: Dict[str, tuple] = {
    "json": ("json", _write_json, _write_json, _write_json),
    "markdown": (
        "md",
        _markdown_writer(_md_method),
        _markdown_writer(_md_property),
        _markdown_writer(_md_type),
    ),
    "xml": (
        "xml",
        _xml_writer("methods", _xml_method),
        _xml_writer("properties", _xml_property),
        _xml_writer("types", _xml_type),
    ),
}

EXPORT_FORMATS = tuple(_FORMATS)


def export_catalog(source: CatalogSource, output_dir: str | Path, fmt: str = "json",
                   show_progress: bool = False) -> ExportResult:
    """
    Write every section of *source* into *output_dir* in format *fmt*.

    Raises:
        ExportError: Unknown *fmt*, or the directory or files cannot be written.
        CatalogError: The source itself cannot be read.
    """
    fmt = (fmt or "").lower()
    if fmt not in _FORMATS:
        raise ExportError(
            f"Unknown export format '{fmt}'. Supported: {', '.join(EXPORT_FORMATS)}."
        )
    ext, write_methods, write_properties, write_types = _FORMATS[fmt]
    out_dir = Path(output_dir)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportError(f"Cannot create output directory {out_dir}: {e}") from e

    result = ExportResult(format=fmt, output_dir=str(out_dir.resolve()))
    sections = (
        (METHODS_FILE, "methods", source.methods, write_methods),
        (PROPERTIES_FILE, "properties", source.properties, write_properties),
        (TYPES_FILE, "types", source.types, write_types),
    )
    for stem, label, elements, write in sections:
        path = out_dir / f"{stem}.{ext}"
        logger.info(f"Exporting {label} to: {path}")
        # Drained before the file is opened: the source may read this very file
        items = list(tqdm(elements(), desc=label, unit="el", disable=not show_progress))
        try:
            with open(path, "w", encoding="utf-8") as f:
                count = write(f, items)
        except OSError as e:
            raise ExportError(f"Cannot write {path}: {e}") from e
        setattr(result, label, count)
        result.files.append(str(path))
    return result
