"""
Ctxdex MCP Server

Exposes catalog search and exact lookups as tools that AI agents
(Claude, Cursor, Windsurf) can invoke natively via the Model Context
Protocol.  Tool output is Russian Markdown ready to paste into answers.

Also exposes a **resource** with catalog statistics and **prompt
templates** for common lookup workflows.

Start with::

    ctxdex mcp                              # stdio transport (default for Cursor)
    ctxdex mcp --transport streamable-http  # HTTP (Streamable) for remote clients
    ctxdex mcp --transport sse              # SSE transport (legacy)

Or programmatically::

    from ctxdex.mcp.server import create_server
    server = create_server()
    server.run()
"""

from __future__ import annotations

import json
import logging
import os
from typing import Annotated, Any

# FastMCP uses pydantic for validation, so Field is available with the mcp extra
from pydantic import Field  # type: ignore[import-untyped]

from ctxdex.client import Ctxdex
from ctxdex.core.config import CtxdexConfig
from ctxdex.core.search import MarkdownPresenter
from ctxdex.exceptions import CtxdexError

logger = logging.getLogger(__name__)

SERVER_NAME = "Ctxdex"


def create_server(config: CtxdexConfig | None = None, client: Ctxdex | None = None):
    """
    Build and return a configured FastMCP server instance.

    All tool invocations share one :class:`Ctxdex` client and therefore
    one lazily-built index.

    Args:
        config: Instance-based configuration.  Defaults to
            ``CtxdexConfig.from_env()`` so the server respects the same
            environment variables as the CLI.
        client: Pre-built client (tests inject one over a static catalog).

    Raises ``ImportError`` if ``fastmcp`` is not installed (install
    via ``pip install 'ctxdex[mcp]'``).
    """
    from fastmcp import FastMCP  # type: ignore[import-untyped]

    ctx = client or Ctxdex(config=config or CtxdexConfig.from_env())

    mcp = FastMCP(SERVER_NAME)

    # ==================================================================
    # Tool: search
    # ==================================================================

    @mcp.tool()
    def search(
        query: Annotated[
            str,
            Field(default="", description="Поисковый запрос. Используйте конкретные термины 1С: методы ('НайтиПоСсылке'), типы ('ТаблицаЗначений'), свойства ('Колонки'). Допускаются фразы из нескольких слов: 'Таблица значений количество'.")
        ] = "",
        type: Annotated[
            str | None,
            Field(default=None, description="Тип искомого элемента: 'method', 'property', 'type' (или синонимы 'функция', 'реквизит', 'объект'); если не указан, ищутся все типы.")
        ] = None,
        limit: Annotated[
            int | None,
            Field(default=None, description="Максимальное количество результатов (по умолчанию 10, максимум 50).")
        ] = None,
    ) -> str:
        """Поиск по API платформы 1С:Предприятие.

        Понимает составные имена типов ('таблица значений' → ТаблицаЗначений)
        и обращения к членам типа ('таблица значений количество').

        Returns:
            Markdown со списком найденных элементов.
        """
        try:
            results = ctx.search(query, kind=type, limit=limit)
        except CtxdexError as e:
            return f"❌ **Ошибка:** {e}"
        return MarkdownPresenter.format_search(query, results)

    # ==================================================================
    # Tool: info
    # ==================================================================

    @mcp.tool()
    def info(
        name: Annotated[
            str,
            Field(description="Точное имя элемента API в 1С. Примеры: 'НайтиПоСсылке', 'СправочникСсылка', 'Ссылка'.")
        ],
        type: Annotated[
            str | None,
            Field(default=None, description="Уточнение типа элемента: 'method', 'property', 'type'; если не указан, определяется автоматически.")
        ] = None,
    ) -> str:
        """Детальная информация об элементе API платформы 1С по точному имени."""
        try:
            result = ctx.info(name, kind=type)
        except CtxdexError as e:
            return f"❌ **Ошибка:** {e}"
        return MarkdownPresenter.format_lookup(result)

    # ==================================================================
    # Tool: get_member
    # ==================================================================

    @mcp.tool()
    def get_member(
        type_name: Annotated[
            str,
            Field(description="Имя типа 1С. Примеры: 'СправочникСсылка', 'ДокументОбъект', 'ТаблицаЗначений'.")
        ],
        member_name: Annotated[
            str,
            Field(description="Имя метода или свойства типа. Примеры: 'НайтиПоКоду', 'Записать', 'Количество'.")
        ],
    ) -> str:
        """Информация о методе или свойстве конкретного типа 1С."""
        try:
            result = ctx.get_member(type_name, member_name)
        except CtxdexError as e:
            return f"❌ **Ошибка:** {e}"
        return MarkdownPresenter.format_lookup(result)

    # ==================================================================
    # Tool: get_constructors
    # ==================================================================

    @mcp.tool()
    def get_constructors(
        type_name: Annotated[
            str,
            Field(description="Имя типа 1С. Примеры: 'Массив', 'Структура', 'ТаблицаЗначений', 'Запрос'.")
        ],
    ) -> str:
        """Список конструкторов типа 1С: способы создания объектов через Новый."""
        try:
            result = ctx.get_constructors(type_name)
        except CtxdexError as e:
            return f"❌ **Ошибка:** {e}"
        return MarkdownPresenter.format_constructors(result)

    # ==================================================================
    # Tool: get_members
    # ==================================================================

    @mcp.tool()
    def get_members(
        type_name: Annotated[
            str,
            Field(description="Имя типа 1С для полного списка методов и свойств. Примеры: 'Строка', 'ТаблицаЗначений', 'Запрос'.")
        ],
    ) -> str:
        """Полный список методов, свойств и конструкторов типа 1С."""
        try:
            result = ctx.get_members(type_name)
        except CtxdexError as e:
            return f"❌ **Ошибка:** {e}"
        return MarkdownPresenter.format_members(result)

    # ==================================================================
    # Tool: health (readiness check)
    # ==================================================================

    @mcp.tool()
    def health() -> str:
        """Check that the Ctxdex MCP server is running and responsive.

        Returns:
            JSON with status, version, and index state.
        """
        return json.dumps({"status": "ok", **ctx.health()}, ensure_ascii=False)

    # ==================================================================
    # Resource: catalog statistics
    # ==================================================================

    @mcp.resource("ctxdex://catalog/stats")
    def catalog_stats() -> str:
        """Return element counts of the loaded catalog (builds the index on first read)."""
        return json.dumps(ctx.stats(), indent=2, ensure_ascii=False)

    # ==================================================================
    # Prompt templates
    # ==================================================================

    @mcp.prompt()
    def explain_type(type_name: str) -> str:
        """Pre-built prompt: explain a platform type with its members."""
        return (
            f"Call get_members for '{type_name}', then get_constructors for it. "
            "Summarize what the type is for, how to create it, and its most "
            "commonly used methods and properties with short 1C code examples."
        )

    @mcp.prompt()
    def when_to_use_ctxdex() -> str:
        """Guidance prompt: explains when and how AI agents should use Ctxdex tools."""
        return (
            "**When to use Ctxdex tools:**\n"
            "1. You are unsure of the exact name of a 1C platform method, property or type - use search\n"
            "2. You know the exact name and need the signature - use info\n"
            "3. You need a member of a specific type - use get_member\n"
            "4. You need to create an object with Новый - use get_constructors\n"
            "\n"
            "**Workflow:**\n"
            "1. search('таблица значений количество') - find candidates\n"
            "2. info / get_member on the best hit - read parameters and return type\n"
            "3. Write the code using the exact names returned\n"
        )

    # ==================================================================
    # HTTP route: server card (served by every HTTP transport)
    # ==================================================================

    @mcp.custom_route(SERVER_CARD_PATH, methods=["GET"])
    async def server_card(request: Any) -> Any:
        from starlette.responses import JSONResponse

        return JSONResponse(SERVER_CARD)

    return mcp


# Server card JSON for registry scanning of HTTP deployments
SERVER_CARD = {
    "serverInfo": {"name": SERVER_NAME, "version": "1.0.0"},
    "authentication": {"required": False, "schemes": []},
    "tools": [
        {"name": "search", "description": "Tiered search over the 1C platform API catalog.", "inputSchema": {"type": "object", "properties": {"query": {"type": "string"}, "type": {"type": "string"}, "limit": {"type": "integer"}}}},
        {"name": "info", "description": "Exact lookup of a method, property or type.", "inputSchema": {"type": "object", "properties": {"name": {"type": "string"}, "type": {"type": "string"}}, "required": ["name"]}},
        {"name": "get_member", "description": "Method or property of a type.", "inputSchema": {"type": "object", "properties": {"type_name": {"type": "string"}, "member_name": {"type": "string"}}, "required": ["type_name", "member_name"]}},
        {"name": "get_constructors", "description": "Constructors of a type.", "inputSchema": {"type": "object", "properties": {"type_name": {"type": "string"}}, "required": ["type_name"]}},
        {"name": "get_members", "description": "All methods, properties and constructors of a type.", "inputSchema": {"type": "object", "properties": {"type_name": {"type": "string"}}, "required": ["type_name"]}},
        {"name": "health", "description": "Server readiness check.", "inputSchema": {"type": "object", "properties": {}}},
    ],
    "resources": [
        {"uri": "ctxdex://catalog/stats", "description": "Catalog element counts"},
    ],
    "prompts": [
        {"name": "explain_type", "description": "Explain a platform type with its members"},
        {"name": "when_to_use_ctxdex", "description": "Guidance on when and how AI agents should use Ctxdex tools"},
    ],
}

SERVER_CARD_PATH = "/.well-known/mcp/server-card.json"


def add_server_card_route(app_obj: Any) -> bool:
    """Append the server-card route to a Starlette app once; returns True if added."""
    from starlette.responses import JSONResponse
    from starlette.routing import Route

    async def serve_server_card(request: Any) -> JSONResponse:
        return JSONResponse(SERVER_CARD)

    if not (hasattr(app_obj, "routes") and isinstance(app_obj.routes, list)):
        return False
    if any(getattr(route, "path", None) == SERVER_CARD_PATH for route in app_obj.routes):
        return False
    app_obj.routes.append(Route(SERVER_CARD_PATH, serve_server_card, methods=["GET"]))
    logger.info("Added server-card route: %s", SERVER_CARD_PATH)
    return True


def add_cors_for_mcp(app_obj: Any) -> None:
    """Add CORS middleware so browser-based gateways can read Mcp-Session-Id."""
    if not hasattr(app_obj, "add_middleware"):
        return
    from starlette.middleware.cors import CORSMiddleware

    app_obj.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Mcp-Session-Id", "mcp-session-id"],
        expose_headers=["Mcp-Session-Id", "mcp-session-id"],
    )
    logger.info("Added CORS middleware (expose Mcp-Session-Id for remote gateways)")


def run_with_server_card(mcp_server: Any, transport: str = "stdio", **kwargs: Any) -> None:
    """
    Run the MCP server, adding the server-card route for HTTP transports.

    For streamable-http or SSE, ``uvicorn.run`` and
    ``uvicorn.Server.__init__`` are patched for the duration of the call
    so the app FastMCP hands to uvicorn gets the extra route and CORS
    middleware, whichever of the two entry points it uses.  Stdio runs
    unchanged.
    """
    if transport not in ("streamable-http", "http", "sse"):
        mcp_server.run(transport=transport, **kwargs)
        return

    import uvicorn
    import uvicorn.server

    original_uvicorn_run = uvicorn.run
    original_server_init = uvicorn.server.Server.__init__

    def patched_uvicorn_run(app_obj: Any, *args: Any, **uvicorn_kwargs: Any) -> None:
        logger.debug(f"uvicorn.run called - app type: {type(app_obj)}")
        add_server_card_route(app_obj)
        add_cors_for_mcp(app_obj)
        return original_uvicorn_run(app_obj, *args, **uvicorn_kwargs)

    def patched_server_init(self: Any, config: Any, *args: Any, **init_kwargs: Any) -> None:
        original_server_init(self, config, *args, **init_kwargs)
        app_obj = getattr(config, "app", None)
        logger.debug(f"uvicorn.Server.__init__ - app type: {type(app_obj)}")
        add_server_card_route(app_obj)
        add_cors_for_mcp(app_obj)

    uvicorn.run = patched_uvicorn_run
    uvicorn.server.Server.__init__ = patched_server_init
    try:
        host = kwargs.pop("host", "0.0.0.0")
        port = kwargs.pop("port", None)
        if port is None:
            port = int(os.environ.get("PORT", "8000"))
        mcp_server.run(transport=transport, host=host, port=port, **kwargs)
    finally:
        uvicorn.run = original_uvicorn_run
        uvicorn.server.Server.__init__ = original_server_init
