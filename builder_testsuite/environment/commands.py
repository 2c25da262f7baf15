"""Running external commands without blocking the event loop."""

import asyncio
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from builder_testsuite.exceptions import CommandError


@dataclass(frozen=True, kw_only=True)
class CommandOutput:
    """Captured output of a finished command."""

    stdout: str
    stderr: str


async def run_command(
    *args: str,
    log: logging.Logger,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandOutput:
    """Run a command to completion and capture its output.

    Extra ``env`` entries are layered on top of the current environment.
    If the calling task is cancelled the child process is killed before the
    cancellation propagates.

    Raises:
        CommandError: If the command exits with a non-zero status.

    """
    log.debug("Running %s", " ".join(args))
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env={**os.environ, **env} if env else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    output = CommandOutput(
        stdout=stdout.decode(errors="replace"), stderr=stderr.decode(errors="replace")
    )
    if process.returncode != 0:
        raise CommandError(args, process.returncode or -1, output.stderr.strip())

    return output
