"""Salesforce MCP error types.

Error codes are stable strings for programmatic handling. Every error that
crosses the operation boundary carries a ``code`` and a human-readable
``message``; raw CLI output is kept on the exception for diagnostics only and
is never part of ``message``.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base error for all Salesforce MCP exceptions."""

    code: str = "internal_error"
    message: str = "An internal error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(GatewayError):
    """Required configuration is missing or invalid."""

    code = "configuration_error"
    message = "Invalid configuration"


class MissingOrgAlias(ConfigurationError):
    """No Salesforce org alias configured."""

    code = "missing_org_alias"
    message = "SF_ORG_ALIAS is not set; configure the target org alias"


class InvalidOrgAlias(ConfigurationError):
    """Org alias contains characters that are not allowed on the command line."""

    code = "invalid_org_alias"
    message = "Invalid org alias"


class InvalidLimit(ConfigurationError):
    """Record limit is not a positive integer within range."""

    code = "invalid_limit"
    message = "Invalid record limit"


# ---------------------------------------------------------------------------
# External process invocation
# ---------------------------------------------------------------------------


class InvocationError(GatewayError):
    """The external command could not complete successfully."""

    code = "invocation_error"
    message = "External command failed"


class InvocationTimeout(InvocationError):
    """The external command exceeded its timeout and was killed."""

    code = "timeout"
    message = "External command timed out"

    def __init__(self, timeout: float, message: str | None = None) -> None:
        self.timeout = timeout
        super().__init__(
            message or f"External command timed out after {timeout}s",
            details={"timeout": timeout},
        )


class NonZeroExit(InvocationError):
    """The external command exited with a non-zero status."""

    code = "non_zero_exit"
    message = "External command exited with a non-zero status"

    def __init__(self, exit_code: int, stderr: str = "", stdout: str = "") -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(
            f"External command exited with status {exit_code}",
            details={"exit_code": exit_code},
        )


class SpawnFailure(InvocationError):
    """The external command could not be started."""

    code = "spawn_failure"
    message = "External command could not be started"

    def __init__(self, cause: BaseException, message: str | None = None) -> None:
        self.cause = cause
        super().__init__(
            message or f"External command could not be started: {cause}",
        )


# ---------------------------------------------------------------------------
# Account fetching
# ---------------------------------------------------------------------------


class FetchError(GatewayError):
    """Fetching accounts from Salesforce failed."""

    code = "fetch_error"
    message = "Failed to fetch accounts from Salesforce"


class InvocationFailed(FetchError):
    """The Salesforce CLI invocation failed."""

    code = "invocation_failed"
    message = "Salesforce CLI invocation failed"

    def __init__(self, cause: InvocationError) -> None:
        self.cause = cause
        super().__init__(
            f"Salesforce CLI invocation failed: [{cause.code}] {cause.message}",
            details={"cause": cause.code},
        )


class MalformedResponse(FetchError):
    """The Salesforce CLI output is not JSON or lacks result.records."""

    code = "malformed_response"
    message = "Unexpected response format from Salesforce CLI"

    def __init__(self, raw: str, message: str | None = None) -> None:
        self.raw = raw
        super().__init__(message)


# ---------------------------------------------------------------------------
# Protocol (caller mistakes)
# ---------------------------------------------------------------------------


class ProtocolError(GatewayError):
    """The caller asked for something the server does not provide."""

    code = "protocol_error"
    message = "Invalid request"


class UnknownResource(ProtocolError):
    code = "unknown_resource"
    message = "Unknown resource"

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Unknown resource: {uri}", details={"uri": uri})


class UnknownTool(ProtocolError):
    code = "unknown_tool"
    message = "Unknown tool"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}", details={"name": name})


class RouterNotReady(ProtocolError):
    code = "not_ready"
    message = "Server is not ready to serve requests"


class RouterClosed(ProtocolError):
    code = "closed"
    message = "Server is shutting down"


class InternalError(GatewayError):
    """An operation failed inside the server; details are in the log."""

    code = "internal_error"
    message = "An internal error occurred"
