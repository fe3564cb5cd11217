"""
Ctxdex Exception Hierarchy

Structured exceptions for clear error handling across CLI, API, and MCP
consumers.  Each exception type maps to a specific failure mode so that
callers can handle errors precisely without parsing message strings.

"Not found" outcomes of exact lookups are deliberately *not* exceptions:
they come back as :class:`~ctxdex.core.search.LookupResult` values.

Usage::

    from ctxdex.exceptions import CtxdexError, EmptyQueryError

    try:
        hits = client.search(user_input)
    except EmptyQueryError:
        print("Type something to search for.")
    except CtxdexError as exc:
        print(f"Ctxdex error: {exc}")
"""


class CtxdexError(Exception):
    """Base exception for all Ctxdex errors."""


class ConfigError(CtxdexError, ValueError):
    """Configuration is invalid or incomplete (e.g. negative limit).

    Inherits from ``ValueError`` so code catching ``ValueError`` from
    ``CtxdexConfig.validate()`` keeps working.
    """


class EmptyQueryError(CtxdexError, ValueError):
    """A search query or element name is blank."""


class CatalogError(CtxdexError):
    """The catalog source could not be read (missing files, bad JSON)."""


class IndexUnavailableError(CtxdexError):
    """The index could not be built and strict mode forbids degrading."""


class ExportError(CtxdexError):
    """Catalog export failed (unknown format or unwritable destination)."""
