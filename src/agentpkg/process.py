"""Subprocess boundary for external tools (git, npm, uv, go, docker/podman).

Commands run without a shell. Cancelling the awaiting task kills the child
and re-raises the cancellation.
"""

import asyncio
import logging
import os

from .exceptions import SubprocessError

logger = logging.getLogger(__name__)


async def run(*args: str, env: dict[str, str] | None = None, cwd: str | None = None) -> str:
    """Run a command and return its decoded stdout.

    Args:
        args: Program and arguments
        env: Extra environment variables merged over os.environ
        cwd: Working directory

    Returns:
        Captured standard output

    Raises:
        SubprocessError: If the program is missing or exits non-zero
    """
    full_env = None
    if env:
        full_env = os.environ.copy()
        full_env.update(env)

    logger.debug(f"Running: {' '.join(args)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=full_env,
        )
    except OSError as e:
        raise SubprocessError(list(args), None, str(e)) from e

    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    if process.returncode != 0:
        raise SubprocessError(list(args), process.returncode, _decode(stderr).strip())

    return _decode(stdout)


async def succeeds(*args: str, env: dict[str, str] | None = None) -> bool:
    """Run a command only for its exit status."""
    try:
        await run(*args, env=env)
    except SubprocessError:
        return False
    return True


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")
