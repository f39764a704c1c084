from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from fuchsia_tools.process import CommandResult


class FakeProcess:
    """Stands in for ``asyncio.subprocess.Process``. Create inside a running loop."""

    def __init__(self) -> None:
        self.stdout = asyncio.StreamReader()
        self.returncode: int | None = None
        self.kill_calls = 0
        self._exited = asyncio.Event()

    def write(self, data: bytes) -> None:
        self.stdout.feed_data(data)

    def exit(self, code: int = 0) -> None:
        if self.returncode is None:
            self.returncode = code
        self.stdout.feed_eof()
        self._exited.set()

    def kill(self) -> None:
        self.kill_calls += 1
        self.exit(-9)

    async def wait(self) -> int | None:
        await self._exited.wait()
        return self.returncode


class FakeProcessManager:
    def __init__(self) -> None:
        self.results: list[CommandResult] = []
        self.ran: list[list[str]] = []
        self.started: list[list[str]] = []
        self.process = None
        self.start_error: Exception | None = None
        self.spawn_gate: asyncio.Event | None = None

    async def start(self, command: Sequence[str]):
        self.started.append(list(command))
        if self.spawn_gate is not None:
            await self.spawn_gate.wait()
        if self.start_error is not None:
            raise self.start_error
        return self.process

    async def stream(self, command: Sequence[str]):
        return await self.start(command)

    async def run(self, command: Sequence[str], timeout: float | None = None) -> CommandResult:
        self.ran.append(list(command))
        return self.results.pop(0)


@pytest.fixture
def process_manager() -> FakeProcessManager:
    return FakeProcessManager()


@pytest.fixture
def fake_process_factory():
    return FakeProcess


@pytest.fixture
def ssh_config(tmp_path):
    path = tmp_path / "ssh-keys" / "ssh_config"
    path.parent.mkdir(parents=True)
    path.write_text("Host *\n  User fuchsia\n", encoding="utf-8")
    return path
