"""External command runner.

Runs one process per call from an argument vector via
``asyncio.create_subprocess_exec`` (no shell), captures stdout/stderr and
enforces a timeout. The process is killed and reaped on timeout and on task
cancellation, so no child outlives the call.
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Sequence

import structlog

from salesforce_mcp.errors import InvocationTimeout, NonZeroExit, SpawnFailure
from salesforce_mcp.types import CommandResult

logger = structlog.get_logger(__name__)


async def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        process.kill()
        await process.wait()
    except ProcessLookupError:
        pass


async def run_command(
    argv: Sequence[str],
    *,
    timeout: float,
    cwd: str | None = None,
) -> CommandResult:
    """Execute a command and return its captured output.

    Args:
        argv: Argument vector; argv[0] is the executable
        timeout: Timeout in seconds
        cwd: Working directory (defaults to the current one)

    Returns:
        CommandResult for a zero exit status

    Raises:
        InvocationTimeout: The process ran longer than ``timeout``
        NonZeroExit: The process exited with a non-zero status
        SpawnFailure: The process could not be started
    """
    argv = tuple(argv)
    if not argv:
        raise ValueError("argv must not be empty")
    program = os.path.basename(argv[0])

    started = time.perf_counter()
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except FileNotFoundError as e:
        raise SpawnFailure(e, f"{program} not found. Is it installed and on PATH?") from e
    except OSError as e:
        raise SpawnFailure(e) from e

    logger.debug("command_started", program=program, pid=process.pid)

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill(process)
        logger.warning("command_timeout", program=program, timeout=timeout)
        raise InvocationTimeout(timeout) from None
    except asyncio.CancelledError:
        await _kill(process)
        logger.info("command_cancelled", program=program)
        raise

    duration_ms = int((time.perf_counter() - started) * 1000)
    exit_code = process.returncode or 0
    stdout_text = stdout.decode("utf-8", errors="replace")
    stderr_text = stderr.decode("utf-8", errors="replace")

    logger.debug(
        "command_finished",
        program=program,
        exit_code=exit_code,
        duration_ms=duration_ms,
    )

    if exit_code != 0:
        raise NonZeroExit(exit_code, stderr=stderr_text, stdout=stdout_text)

    return CommandResult(
        argv=argv,
        exit_code=exit_code,
        stdout=stdout_text,
        stderr=stderr_text,
        duration_ms=duration_ms,
    )
