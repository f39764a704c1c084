"""Streaming of device system logs over SSH.

``stream_logs`` runs ``log_listener`` on the device through the ``ssh``
binary and hands back a :class:`LogStream`, an async iterator over the lines
the remote command prints. Cancelling the stream kills the ssh process.

Example Usage:
    stream = stream_logs(device_id, ssh_config, process_manager=ProcessManager())
    async with stream:
        async for line in stream:
            print(line)
"""

from __future__ import annotations

import asyncio
import codecs
import os
import re
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import structlog

from .process import ProcessManager

LOG_LISTENER_COMMAND = "log_listener --clock Local"

_CHUNK_SIZE = 64 * 1024
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
MAX_BUFFERED_LINES = 1000


class LineDecoder:
    """Incremental UTF-8 decoder splitting text on ``\\n``, ``\\r\\n`` and ``\\r``.

    Multi-byte characters and ``\\r\\n`` pairs may straddle chunk boundaries.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, data: bytes) -> list[str]:
        text = self._pending + self._decoder.decode(data)
        lines = []
        start = 0
        for match in _LINE_BREAK.finditer(text):
            if match.group() == "\r" and match.end() == len(text):
                # may be the first half of \r\n
                break
            lines.append(text[start:match.start()])
            start = match.end()
        self._pending = text[start:]
        return lines

    def flush(self) -> list[str]:
        text = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if not text:
            return []
        if text.endswith("\r"):
            text = text[:-1]
        return [text]


class LogStream:
    """Async iterator over the output lines of one child process.

    The process is spawned in a background task as soon as the stream is
    created. Lines are buffered in the order the process writes them, up to
    ``max_buffered_lines``; past that the child's output is left in the pipe
    until the consumer catches up. The stream ends when the process exits or
    when the consumer cancels it. Cancelling kills the process at most once.

    A consumer unsubscribes by leaving ``async with stream:`` or by awaiting
    :meth:`aclose`. Breaking out of ``async for`` or cancelling the consuming
    task alone leaves the child running.
    """

    def __init__(
        self,
        spawn: Optional[Callable[[], Awaitable[Any]]] = None,
        *,
        logger=None,
        max_buffered_lines: int = MAX_BUFFERED_LINES,
    ) -> None:
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_buffered_lines)
        self._readable = asyncio.Event()
        self._process = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self._cancelled = False
        self._killed = False
        if spawn is None:
            self._finish()
        else:
            self._task = asyncio.get_running_loop().create_task(self._pump(spawn))

    @classmethod
    def empty(cls) -> "LogStream":
        """A stream that is already finished."""
        return cls()

    @property
    def closed(self) -> bool:
        """True once no more lines will be produced."""
        return self._closed

    @property
    def cancelled(self) -> bool:
        """True once the consumer has cancelled the stream."""
        return self._cancelled

    @property
    def process(self):
        """The attached child process, if the spawn has completed."""
        return self._process

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def __aiter__(self) -> "LogStream":
        return self

    async def __anext__(self) -> str:
        while not self._cancelled:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._closed:
                break
            self._readable.clear()
            await self._readable.wait()
        raise StopAsyncIteration

    async def __aenter__(self) -> "LogStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def cancel(self) -> None:
        """Stop the stream and kill the child process if it is still running.

        Buffered lines are dropped. The background task keeps running until
        the killed process has been reaped; await :meth:`wait_closed` for it.
        """
        if self._cancelled:
            return
        self._cancelled = True
        if self._process is not None:
            self._kill(self._process)
        # A pending spawn is left to finish; _pump kills the process it yields.
        self._discard()
        self._finish()

    async def aclose(self) -> None:
        """Cancel the stream and wait until the child process has been reaped."""
        self.cancel()
        await self.wait_closed()

    async def wait_closed(self) -> None:
        """Wait until the background task has finished."""
        if self._task is None:
            return
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise

    async def _pump(self, spawn: Callable[[], Awaitable[Any]]) -> None:
        try:
            process = await spawn()
        except Exception as exc:
            self._logger.debug("Failed to start log stream", error=f"{type(exc).__name__}: {exc}")
            self._finish()
            return

        # No await between the check and the attach.
        if self._cancelled:
            self._kill(process)
            await process.wait()
            return
        self._process = process

        try:
            try:
                await self._read_lines(process)
            except Exception as exc:
                self._logger.debug("Log stream interrupted", error=f"{type(exc).__name__}: {exc}")
                self._kill(process)
            await process.wait()
            self._logger.debug("Log stream process exited", returncode=process.returncode)
        except asyncio.CancelledError:
            self._kill(process)
            raise
        finally:
            self._finish()

    async def _read_lines(self, process) -> None:
        decoder = LineDecoder()
        while True:
            chunk = await process.stdout.read(_CHUNK_SIZE)
            if not chunk:
                break
            for line in decoder.feed(chunk):
                await self._put(line)
        for line in decoder.flush():
            await self._put(line)

    async def _put(self, line: str) -> None:
        if self._cancelled:
            return
        await self._queue.put(line)
        if self._cancelled:
            # woken by cancel() emptying a full buffer
            self._discard()
        else:
            self._readable.set()

    def _discard(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()

    def _kill(self, process) -> None:
        if self._killed or process.returncode is not None:
            return
        self._killed = True
        try:
            process.kill()
        except ProcessLookupError:
            pass

    def _finish(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._readable.set()


def ssh_log_command(
    device_id: str,
    ssh_config: Path,
    ssh_binary: str = "ssh",
    remote_command: str = LOG_LISTENER_COMMAND,
) -> list[str]:
    """Command line reading the system log of ``device_id`` over ssh."""
    return [
        ssh_binary,
        "-F",
        str(Path(ssh_config).absolute()),
        device_id,
        remote_command,
    ]


def stream_logs(
    device_id: str,
    ssh_config: Optional[Path],
    *,
    process_manager: ProcessManager,
    logger=None,
    file_exists: Callable[[Path], bool] = os.path.isfile,
    ssh_binary: str = "ssh",
    remote_command: str = LOG_LISTENER_COMMAND,
) -> LogStream:
    """Stream the system logs of the device ``device_id``.

    Never raises: a missing ssh config or a failure while setting up the
    stream gives back an empty, finished stream.
    """
    log = logger if logger is not None else structlog.get_logger(__name__)
    try:
        if ssh_config is None or not file_exists(ssh_config):
            log.error("Cannot read device logs: No ssh config.")
            log.error("Have you set FUCHSIA_SSH_CONFIG or FUCHSIA_BUILD_DIR?")
            return LogStream.empty()

        command = ssh_log_command(device_id, ssh_config, ssh_binary, remote_command)
        log.info("Streaming device logs", device=device_id)
        return LogStream(lambda: process_manager.stream(command), logger=log)
    except Exception as exc:
        log.debug("Failed to stream device logs", error=f"{type(exc).__name__}: {exc}")
    return LogStream.empty()
