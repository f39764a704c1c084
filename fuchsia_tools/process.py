"""Process spawning shared by the tool wrappers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Sequence

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    exit_code: int | None
    stdout: str
    stderr: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.exit_code == 0


class ProcessManager:
    """Starts child processes on the running event loop.

    Wrappers receive an instance instead of calling asyncio directly so tests
    can substitute a fake.
    """

    async def start(self, command: Sequence[str]) -> asyncio.subprocess.Process:
        """Spawn a long-running process with stdout and stderr piped."""
        logger.debug("Starting process", command=" ".join(command))
        return await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

    async def stream(self, command: Sequence[str]) -> asyncio.subprocess.Process:
        """Spawn a long-running process whose stderr is folded into stdout.

        Only stdout needs reading, so a chatty stderr cannot fill its pipe
        and stall the child.
        """
        logger.debug("Starting streaming process", command=" ".join(command))
        return await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )

    async def run(self, command: Sequence[str], timeout: float | None = None) -> CommandResult:
        """Run a command to completion and capture its output."""
        logger.debug("Running command", command=" ".join(command))
        try:
            proc = await self.start(command)
        except OSError as exc:
            logger.error("Command failed to start", command=" ".join(command), error=str(exc))
            return CommandResult(exit_code=None, stdout="", stderr="", error=f"{type(exc).__name__}: {exc}")

        try:
            out_b, err_b = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()
            logger.error("Command timed out", command=" ".join(command), timeout=timeout)
            return CommandResult(exit_code=proc.returncode, stdout="", stderr="", error="timeout")
        except BaseException:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            raise

        return CommandResult(
            exit_code=proc.returncode,
            stdout=(out_b or b"").decode("utf-8", errors="replace"),
            stderr=(err_b or b"").decode("utf-8", errors="replace"),
        )
