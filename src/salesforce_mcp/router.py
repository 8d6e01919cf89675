"""Request router.

Dispatches the four MCP operations to the account fetcher and cache. Errors
leave the router as typed GatewayErrors; translation to MCP error payloads
happens in the server module.
"""

from __future__ import annotations

from typing import Any

import structlog
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.types import Resource, TextContent, Tool

from salesforce_mcp.definitions import (
    ACCOUNTS_MIME_TYPE,
    REFRESH_ACCOUNTS_TOOL,
    get_resource_definitions,
    get_tool_definitions,
    is_accounts_resource,
)
from salesforce_mcp.errors import (
    ConfigurationError,
    FetchError,
    InternalError,
    RouterClosed,
    RouterNotReady,
    UnknownResource,
    UnknownTool,
)
from salesforce_mcp.fetcher import AccountFetcher
from salesforce_mcp.types import FetchOutcome, RouterState

logger = structlog.get_logger(__name__)


class RequestRouter:
    """Serves resource and tool requests from the account cache."""

    def __init__(self, fetcher: AccountFetcher) -> None:
        self._fetcher = fetcher
        self._state = RouterState.UNINITIALIZED

    @property
    def state(self) -> RouterState:
        return self._state

    @property
    def fetcher(self) -> AccountFetcher:
        return self._fetcher

    def open(self) -> None:
        """Mark the transport as bound."""
        if self._state is RouterState.CLOSED:
            raise RouterClosed()
        if self._state is RouterState.UNINITIALIZED:
            self._state = RouterState.READY
            logger.debug("router_ready")

    def close(self) -> None:
        if self._state is not RouterState.CLOSED:
            self._state = RouterState.CLOSED
            logger.debug("router_closed")

    def _enter(self) -> None:
        if self._state is RouterState.UNINITIALIZED:
            raise RouterNotReady()
        if self._state is RouterState.CLOSED:
            raise RouterClosed()
        self._state = RouterState.SERVING

    async def _refresh(self, operation: str) -> FetchOutcome:
        try:
            return await self._fetcher.fetch_accounts()
        except (ConfigurationError, FetchError) as e:
            # Raw CLI output was already logged by the fetcher; only the
            # error kind and message go back to the caller.
            logger.error("operation_failed", operation=operation, code=e.code, error=e.message)
            raise InternalError(
                f"Failed to fetch accounts from Salesforce: {e.message}",
                details={"cause": e.code},
            ) from e

    async def list_resources(self) -> list[Resource]:
        self._enter()
        return get_resource_definitions()

    async def read_resource(self, uri: Any) -> list[ReadResourceContents]:
        self._enter()
        if not is_accounts_resource(uri):
            raise UnknownResource(str(uri))

        await self._refresh("read_resource")
        return [
            ReadResourceContents(
                content=self._fetcher.cache.to_json(),
                mime_type=ACCOUNTS_MIME_TYPE,
            )
        ]

    async def list_tools(self) -> list[Tool]:
        self._enter()
        return get_tool_definitions()

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        self._enter()
        if name != REFRESH_ACCOUNTS_TOOL:
            raise UnknownTool(name)

        outcome = await self._refresh("call_tool")
        return [
            TextContent(
                type="text",
                text=f"Successfully refreshed {len(outcome.snapshot)} accounts",
            )
        ]
