"""
Ctxdex CLI

Command-line interface for searching and exporting the platform API catalog.

Usage::

    ctxdex --catalog ./export search "таблица значений"   # Tiered search
    ctxdex info НайтиПоСсылке -k method                   # Exact lookup
    ctxdex member ТаблицаЗначений Количество              # Type member
    ctxdex constructors ТаблицаЗначений                   # Constructors
    ctxdex members ТаблицаЗначений                        # All members
    ctxdex stats                                          # Index statistics
    ctxdex export ./out --format markdown                 # Dump the catalog
    ctxdex mcp                                            # Start the MCP server
"""

import logging

import click

from ctxdex.client import Ctxdex
from ctxdex.core.config import CtxdexConfig
from ctxdex.core.export import EXPORT_FORMATS
from ctxdex.core.search import MarkdownPresenter, ResultFormatter
from ctxdex.exceptions import CtxdexError


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------

def _configure_logging(config: CtxdexConfig, verbose: bool) -> None:
    """Set up logging for the CLI session."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.log_format)


def _client(ctx: click.Context, verbose: bool = False, show_progress: bool = False) -> Ctxdex:
    """Build a client from the group options; exits with status 1 on bad config."""
    config = CtxdexConfig.from_env()
    if ctx.obj.get("catalog"):
        config.catalog_path = ctx.obj["catalog"]
    _configure_logging(config, verbose)
    try:
        config.validate()
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    return Ctxdex(config=config, show_progress=show_progress)


def _fail(exc: Exception) -> None:
    click.echo(f"Error: {exc}", err=True)
    raise SystemExit(1)


# ---------------------------------------------------------------------------
# Top-level group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="ctxdex")
@click.option(
    "--catalog",
    type=click.Path(file_okay=False),
    default=None,
    envvar="CTXDEX_CATALOG_PATH",
    help="Directory with global-methods.json, global-properties.json and types.json.",
)
@click.pass_context
def cli(ctx: click.Context, catalog: str | None):
    """Ctxdex: search the 1C:Enterprise platform API catalog."""
    ctx.ensure_object(dict)
    ctx.obj["catalog"] = catalog


# ---------------------------------------------------------------------------
# ctxdex search
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("query")
@click.option("-k", "--kind", default=None,
              help="Element kind: method, property, type (or an alias like 'функция').")
@click.option("-n", "--limit", type=int, default=None,
              help="Maximum number of results (default 10, max 50).")
@click.option("-f", "--format", "fmt",
              type=click.Choice(["console", "json", "compact", "markdown"]),
              default="console", help="Output format.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def search(ctx: click.Context, query: str, kind: str | None, limit: int | None,
           fmt: str, verbose: bool):
    """Search the catalog with a free-text QUERY."""
    client = _client(ctx, verbose)
    try:
        results = client.search(query, kind=kind, limit=limit)
    except CtxdexError as exc:
        _fail(exc)

    if fmt == "json":
        click.echo(ResultFormatter.format_json(results))
    elif fmt == "compact":
        click.echo(ResultFormatter.format_compact(results))
    elif fmt == "markdown":
        click.echo(MarkdownPresenter.format_search(query, results))
    else:
        click.echo(ResultFormatter.format_console(
            results, elapsed_time=client.engine.last_search_elapsed_seconds,
        ))


# ---------------------------------------------------------------------------
# Exact lookups
# ---------------------------------------------------------------------------

def _echo_lookup(text: str, found: bool) -> None:
    click.echo(text, err=not found)
    if not found:
        raise SystemExit(1)


@cli.command()
@click.argument("name")
@click.option("-k", "--kind", default=None, help="Restrict to method, property or type.")
@click.pass_context
def info(ctx: click.Context, name: str, kind: str | None):
    """Show details of the element called NAME."""
    try:
        result = _client(ctx).info(name, kind=kind)
    except CtxdexError as exc:
        _fail(exc)
    _echo_lookup(MarkdownPresenter.format_lookup(result), result.found)


@cli.command()
@click.argument("type_name")
@click.argument("member_name")
@click.pass_context
def member(ctx: click.Context, type_name: str, member_name: str):
    """Show method or property MEMBER_NAME of type TYPE_NAME."""
    try:
        result = _client(ctx).get_member(type_name, member_name)
    except CtxdexError as exc:
        _fail(exc)
    _echo_lookup(MarkdownPresenter.format_lookup(result), result.found)


@cli.command()
@click.argument("type_name")
@click.pass_context
def constructors(ctx: click.Context, type_name: str):
    """List the constructors of TYPE_NAME."""
    try:
        result = _client(ctx).get_constructors(type_name)
    except CtxdexError as exc:
        _fail(exc)
    _echo_lookup(MarkdownPresenter.format_constructors(result), result.found)


@cli.command()
@click.argument("type_name")
@click.pass_context
def members(ctx: click.Context, type_name: str):
    """List all methods, properties and constructors of TYPE_NAME."""
    try:
        result = _client(ctx).get_members(type_name)
    except CtxdexError as exc:
        _fail(exc)
    _echo_lookup(MarkdownPresenter.format_members(result), result.found)


# ---------------------------------------------------------------------------
# ctxdex stats
# ---------------------------------------------------------------------------

@cli.command()
@click.pass_context
def stats(ctx: click.Context):
    """Show catalog index statistics."""
    try:
        s = _client(ctx).stats()
    except CtxdexError as exc:
        _fail(exc)

    click.echo("─" * 50)
    click.echo("  CTXDEX — Catalog Statistics")
    click.echo("─" * 50)
    click.echo(f"  Catalog    : {s['catalog_path'] or '(not configured)'}")
    click.echo(f"  State      : {s['state']}")
    click.echo()
    click.echo(f"  Methods    {s['methods']:>8,}")
    click.echo(f"  Properties {s['properties']:>8,}")
    click.echo(f"  Types      {s['types']:>8,}")
    if "error" in s:
        click.echo(f"\n  Load error : {s['error']}")
    click.echo("─" * 50)


# ---------------------------------------------------------------------------
# ctxdex export
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("output", type=click.Path(file_okay=False))
@click.option("--format", "fmt", type=click.Choice(EXPORT_FORMATS),
              default="json", help="Output format (default: json).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def export(ctx: click.Context, output: str, fmt: str, verbose: bool):
    """Export the catalog into the OUTPUT directory."""
    client = _client(ctx, verbose, show_progress=True)
    try:
        result = client.export(output, fmt, show_progress=True)
    except CtxdexError as exc:
        _fail(exc)
    click.echo(
        f"Exported {result.methods:,} methods, {result.properties:,} properties, "
        f"{result.types:,} types to {result.output_dir}"
    )


# ---------------------------------------------------------------------------
# ctxdex mcp
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--transport", type=click.Choice(["stdio", "sse", "streamable-http"]),
              default="stdio", help="MCP transport (default: stdio).")
@click.option("-v", "--verbose", is_flag=True)
@click.pass_context
def mcp(ctx: click.Context, transport: str, verbose: bool):
    """Start the Ctxdex MCP server for AI agents."""
    config = CtxdexConfig.from_env()
    if ctx.obj.get("catalog"):
        config.catalog_path = ctx.obj["catalog"]
    _configure_logging(config, verbose)
    try:
        from ctxdex.mcp.server import create_server, run_with_server_card  # noqa: E402
    except ImportError:
        click.echo(
            "Error: MCP dependencies not installed.\n"
            "Install with:  pip install 'ctxdex[mcp]'",
            err=True,
        )
        raise SystemExit(1)

    server = create_server(config)
    run_with_server_card(server, transport=transport)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
