from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

# Reported when the child process could not be started at all.
SPAWN_FAILURE_EXIT_CODE = 127


class ProcessError(Exception):
    def __init__(self, command: list[str], exit_code: int, stderr: str) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"command failed ({exit_code}): {' '.join(command)}\n{stderr}")


async def run(
    command: str,
    args: Sequence[str] = (),
    cwd: Path | str | None = None,
) -> str:
    """Run ``command`` with ``args`` in ``cwd`` and return its stripped stdout.

    Output is collected in full, never streamed. A non-zero exit status, or a
    process that cannot be spawned, raises :class:`ProcessError` carrying the
    exit code and captured stderr.
    """
    cmd = [command, *args]
    logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd or ".")
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ProcessError(cmd, SPAWN_FAILURE_EXIT_CODE, str(e)) from e

    stdout, stderr = await proc.communicate()
    if proc.returncode != 0:
        raise ProcessError(cmd, proc.returncode, stderr.decode(errors="replace").strip())
    return stdout.decode(errors="replace").strip()
