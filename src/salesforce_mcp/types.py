"""Type definitions for the Salesforce MCP server."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict


class AccountRecord(BaseModel):
    """One Salesforce Account row from a snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str | None = None
    industry: str | None = None


# Ordered, immutable; owned by AccountCache
AccountSnapshot = tuple[AccountRecord, ...]


@dataclass(frozen=True)
class CommandResult:
    """Captured output of one external command run."""

    argv: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int


@dataclass(frozen=True)
class FetchOutcome:
    """Result of a successful fetch.

    ``snapshot`` is what was installed into the cache; ``dropped`` counts
    records rejected during parsing (missing or duplicate Id).
    """

    snapshot: AccountSnapshot
    dropped: int = 0
    total_size: int | None = None


class RouterState(str, Enum):
    """Request router lifecycle state."""

    UNINITIALIZED = "uninitialized"  # Transport not bound yet
    READY = "ready"  # Transport bound, no request served yet
    SERVING = "serving"  # Steady state
    CLOSED = "closed"  # Terminal
