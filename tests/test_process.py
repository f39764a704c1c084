from __future__ import annotations

import sys

import pytest

from fuchsia_tools.process import CommandResult, ProcessManager


def test_command_result_ok() -> None:
    assert CommandResult(exit_code=0, stdout="", stderr="").ok
    assert not CommandResult(exit_code=1, stdout="", stderr="").ok
    assert not CommandResult(exit_code=None, stdout="", stderr="", error="timeout").ok


@pytest.mark.asyncio
async def test_run_captures_output() -> None:
    script = "import sys; print('192.168.42.56 paper-pulp-bush-angel'); print('warn', file=sys.stderr)"
    result = await ProcessManager().run([sys.executable, "-c", script], timeout=30)

    assert result.ok
    assert result.stdout.strip() == "192.168.42.56 paper-pulp-bush-angel"
    assert result.stderr.strip() == "warn"


@pytest.mark.asyncio
async def test_run_reports_exit_code() -> None:
    result = await ProcessManager().run([sys.executable, "-c", "raise SystemExit(3)"], timeout=30)

    assert result.exit_code == 3
    assert result.error is None
    assert not result.ok


@pytest.mark.asyncio
async def test_run_missing_binary() -> None:
    result = await ProcessManager().run(["/nonexistent/dev_finder", "list", "-full"])

    assert result.exit_code is None
    assert result.error is not None
    assert result.error.startswith("FileNotFoundError")


@pytest.mark.asyncio
async def test_run_timeout_kills_process() -> None:
    result = await ProcessManager().run([sys.executable, "-c", "import time; time.sleep(60)"], timeout=0.5)

    assert result.error == "timeout"
    assert result.exit_code is not None
    assert not result.ok
