"""Salesforce Accounts MCP server.

Exposes Salesforce accounts to MCP clients as a resource and a refresh tool,
backed by the Salesforce CLI (`sf`).
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from salesforce_mcp.cache import AccountCache
from salesforce_mcp.config import Settings, get_settings
from salesforce_mcp.errors import (
    ConfigurationError,
    FetchError,
    GatewayError,
    InternalError,
    InvalidLimit,
    InvalidOrgAlias,
    InvocationError,
    InvocationFailed,
    InvocationTimeout,
    MalformedResponse,
    MissingOrgAlias,
    NonZeroExit,
    ProtocolError,
    RouterClosed,
    RouterNotReady,
    SpawnFailure,
    UnknownResource,
    UnknownTool,
)
from salesforce_mcp.fetcher import AccountFetcher
from salesforce_mcp.invoker import run_command
from salesforce_mcp.router import RequestRouter
from salesforce_mcp.types import (
    AccountRecord,
    AccountSnapshot,
    CommandResult,
    FetchOutcome,
    RouterState,
)

__all__ = [
    # Components
    "AccountCache",
    "AccountFetcher",
    "RequestRouter",
    "run_command",
    # Config
    "Settings",
    "get_settings",
    # Types
    "AccountRecord",
    "AccountSnapshot",
    "CommandResult",
    "FetchOutcome",
    "RouterState",
    # Errors
    "GatewayError",
    "ConfigurationError",
    "MissingOrgAlias",
    "InvalidOrgAlias",
    "InvalidLimit",
    "InvocationError",
    "InvocationTimeout",
    "NonZeroExit",
    "SpawnFailure",
    "FetchError",
    "InvocationFailed",
    "MalformedResponse",
    "ProtocolError",
    "UnknownResource",
    "UnknownTool",
    "RouterNotReady",
    "RouterClosed",
    "InternalError",
]

try:
    __version__ = _pkg_version("salesforce-accounts-mcp")
except PackageNotFoundError:
    __version__ = "unknown"
