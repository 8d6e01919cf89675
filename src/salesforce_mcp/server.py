"""Salesforce Accounts MCP Server implementation.

Binds the request router to the MCP low-level server over stdio. stdout is
the protocol channel; diagnostics go to stderr through structlog.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import sys
from typing import Any

import structlog
from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_REQUEST, ErrorData

from salesforce_mcp import __version__
from salesforce_mcp._logging import configure_logging
from salesforce_mcp.cache import AccountCache
from salesforce_mcp.config import Settings, get_settings
from salesforce_mcp.errors import GatewayError, ProtocolError
from salesforce_mcp.fetcher import AccountFetcher
from salesforce_mcp.router import RequestRouter

logger = structlog.get_logger(__name__)

SERVER_NAME = "salesforce-server"


def to_mcp_error(error: GatewayError) -> McpError:
    """Translate a gateway error into an MCP error payload."""
    code = INVALID_REQUEST if isinstance(error, ProtocolError) else INTERNAL_ERROR
    return McpError(
        ErrorData(code=code, message=error.message, data={"kind": error.code})
    )


def to_tool_error(error: GatewayError) -> types.CallToolResult:
    """Build the ``isError`` tool result for a failed tool call."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=f"[{error.code}] {error.message}")],
        structuredContent={"kind": error.code},
        isError=True,
    )


def create_router(settings: Settings) -> RequestRouter:
    return RequestRouter(AccountFetcher(AccountCache(), settings))


def build_server(router: RequestRouter) -> Server:
    """Create an MCP server whose handlers delegate to ``router``."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_resources()
    async def list_resources():
        try:
            return await router.list_resources()
        except GatewayError as e:
            raise to_mcp_error(e) from e

    @server.read_resource()
    async def read_resource(uri: Any):
        try:
            return await router.read_resource(uri)
        except GatewayError as e:
            raise to_mcp_error(e) from e

    @server.list_tools()
    async def list_tools():
        try:
            return await router.list_tools()
        except GatewayError as e:
            raise to_mcp_error(e) from e

    # Registered directly: the decorator form reduces a raised error to its
    # text and drops the kind.
    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        try:
            content = await router.call_tool(req.params.name, req.params.arguments or {})
        except GatewayError as e:
            return types.ServerResult(to_tool_error(e))
        return types.ServerResult(types.CallToolResult(content=content, isError=False))

    server.request_handlers[types.CallToolRequest] = call_tool
    return server


def _install_signal_handlers() -> None:
    """Cancel the serving task on SIGTERM (SIGINT is handled by asyncio.run)."""
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    if task is None:
        return
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGTERM, task.cancel)


async def run_server(settings: Settings | None = None) -> None:
    """Run the MCP server until the transport closes or the task is cancelled."""
    settings = settings or get_settings()
    router = create_router(settings)
    server = build_server(router)

    _install_signal_handlers()
    logger.info(
        "server_starting",
        version=__version__,
        org_alias=settings.org_alias,
        cli_path=settings.cli_path,
    )
    if settings.org_alias is None:
        logger.warning("org_alias_missing", hint="set SF_ORG_ALIAS")

    try:
        async with stdio_server() as (read_stream, write_stream):
            router.open()
            logger.info("server_connected")
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
                raise_exceptions=False,
            )
    finally:
        router.close()
        logger.info("server_stopped")


def main():
    """Main entry point."""
    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level)

    try:
        asyncio.run(run_server(settings))
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("server_interrupted")
    except Exception as e:
        logger.exception("server_error")
        print(f"Server error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
