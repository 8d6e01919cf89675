"""Account fetching through the Salesforce CLI.

Builds the ``sf data query`` argument vector, runs it, parses the JSON
envelope into AccountRecords and installs the result into the cache.

Single-flight policy: fetches are serialized by an asyncio.Lock, so at most
one ``sf`` process is in flight. A caller that arrives while another fetch is
running waits for the lock and then runs its own fetch; it never receives a
snapshot older than its request.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import structlog

from salesforce_mcp._logging import truncate_text
from salesforce_mcp.cache import AccountCache
from salesforce_mcp.config import MAX_RECORD_LIMIT, Settings
from salesforce_mcp.errors import (
    InvalidLimit,
    InvalidOrgAlias,
    InvocationError,
    InvocationFailed,
    MalformedResponse,
    MissingOrgAlias,
    NonZeroExit,
)
from salesforce_mcp.invoker import run_command
from salesforce_mcp.types import AccountRecord, CommandResult, FetchOutcome

logger = structlog.get_logger(__name__)

ACCOUNT_QUERY = "SELECT Id, Name, Type, Industry FROM Account LIMIT {limit}"

# Org alias or username. Must not start with '-' so it can't be read as a flag.
_ORG_ALIAS_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.@+-]{0,254}$")

CommandRunner = Callable[..., Awaitable[CommandResult]]


def _validate_org_alias(org_alias: str | None) -> str:
    if org_alias is None or not org_alias.strip():
        raise MissingOrgAlias()
    if not _ORG_ALIAS_RE.match(org_alias):
        raise InvalidOrgAlias(
            "invalid org alias: must be 1-255 characters of letters, digits, "
            "'_', '.', '@', '+', '-' and must not start with a symbol"
        )
    return org_alias


def _validate_limit(limit: Any) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidLimit("record limit must be an integer")
    if limit < 1 or limit > MAX_RECORD_LIMIT:
        raise InvalidLimit(f"record limit must be between 1 and {MAX_RECORD_LIMIT}")
    return limit


def build_query_command(
    org_alias: str,
    limit: int,
    *,
    cli_path: str = "sf",
    api_version: str | None = None,
) -> list[str]:
    """Build the argument vector for an account query."""
    argv = [
        cli_path,
        "data",
        "query",
        "--target-org",
        org_alias,
        "--query",
        ACCOUNT_QUERY.format(limit=limit),
        "--json",
    ]
    if api_version:
        argv.extend(["--api-version", api_version])
    return argv


def _parse_record(entry: Any) -> AccountRecord | None:
    if not isinstance(entry, dict):
        return None
    record_id = entry.get("Id")
    if not isinstance(record_id, str) or not record_id:
        return None

    def _optional(key: str) -> str | None:
        value = entry.get(key)
        return value if isinstance(value, str) else None

    return AccountRecord(
        id=record_id,
        name=_optional("Name") or "",
        type=_optional("Type"),
        industry=_optional("Industry"),
    )


def parse_query_output(stdout: str) -> FetchOutcome:
    """Parse `sf data query --json` output into an account snapshot.

    Entries without an Id (and repeated Ids) are dropped and counted.

    Raises:
        MalformedResponse: stdout is not JSON or lacks result.records
    """
    try:
        payload = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise MalformedResponse(stdout, f"Salesforce CLI output is not valid JSON: {e.msg}") from e

    result = payload.get("result") if isinstance(payload, dict) else None
    records = result.get("records") if isinstance(result, dict) else None
    if not isinstance(records, list):
        raise MalformedResponse(stdout)

    accounts: list[AccountRecord] = []
    seen: set[str] = set()
    dropped = 0
    for entry in records:
        record = _parse_record(entry)
        if record is None or record.id in seen:
            dropped += 1
            continue
        seen.add(record.id)
        accounts.append(record)

    total_size = result.get("totalSize")
    if isinstance(total_size, bool) or not isinstance(total_size, int):
        total_size = None

    return FetchOutcome(snapshot=tuple(accounts), dropped=dropped, total_size=total_size)


def _describe_cli_error(error: NonZeroExit) -> str:
    """Extract the message from sf's JSON error envelope, if any."""
    try:
        payload = json.loads(error.stdout)
    except (json.JSONDecodeError, TypeError):
        return truncate_text(error.stderr.strip())
    if isinstance(payload, dict):
        name = payload.get("name") or "Error"
        message = payload.get("message") or ""
        return f"{name}: {message}"
    return truncate_text(error.stderr.strip())


class AccountFetcher:
    """Fetches accounts with the Salesforce CLI and installs them into the cache."""

    def __init__(
        self,
        cache: AccountCache,
        settings: Settings,
        *,
        runner: CommandRunner = run_command,
    ) -> None:
        self._cache = cache
        self._settings = settings
        self._runner = runner
        self._lock = asyncio.Lock()

    @property
    def cache(self) -> AccountCache:
        return self._cache

    async def fetch_accounts(
        self,
        org_alias: str | None = None,
        limit: int | None = None,
    ) -> FetchOutcome:
        """Query accounts and replace the cache snapshot.

        Args:
            org_alias: Target org; defaults to settings.org_alias
            limit: Maximum records; defaults to settings.record_limit

        Returns:
            FetchOutcome whose snapshot is now the cache contents

        Raises:
            ConfigurationError: Missing/invalid org alias or limit
            InvocationFailed: The sf process failed, timed out or didn't start
            MalformedResponse: The sf output could not be parsed

        The cache is left unchanged whenever an error is raised.
        """
        org_alias = _validate_org_alias(
            org_alias if org_alias is not None else self._settings.org_alias
        )
        limit = _validate_limit(limit if limit is not None else self._settings.record_limit)
        argv = build_query_command(
            org_alias,
            limit,
            cli_path=self._settings.cli_path,
            api_version=self._settings.api_version,
        )

        async with self._lock:
            return await self._fetch_locked(argv, org_alias=org_alias, limit=limit)

    async def _fetch_locked(
        self, argv: Sequence[str], *, org_alias: str, limit: int
    ) -> FetchOutcome:
        logger.info("fetch_started", org_alias=org_alias, limit=limit)

        try:
            result = await self._runner(argv, timeout=self._settings.command_timeout)
        except NonZeroExit as e:
            logger.warning(
                "fetch_failed",
                org_alias=org_alias,
                reason=e.code,
                exit_code=e.exit_code,
                cli_error=_describe_cli_error(e),
            )
            raise InvocationFailed(e) from e
        except InvocationError as e:
            logger.warning("fetch_failed", org_alias=org_alias, reason=e.code, error=e.message)
            raise InvocationFailed(e) from e

        if result.stderr.strip():
            logger.warning("cli_stderr", stderr=truncate_text(result.stderr.strip()))

        try:
            outcome = parse_query_output(result.stdout)
        except MalformedResponse as e:
            logger.warning(
                "fetch_failed",
                org_alias=org_alias,
                reason=e.code,
                error=e.message,
                raw=truncate_text(e.raw),
            )
            raise

        snapshot = self._cache.replace(outcome.snapshot)
        if outcome.dropped:
            logger.warning("records_dropped", dropped=outcome.dropped)
        logger.info(
            "fetch_completed",
            org_alias=org_alias,
            count=len(snapshot),
            total_size=outcome.total_size,
            duration_ms=result.duration_ms,
            updated_at=self._cache.updated_at.isoformat(),
        )
        return outcome
