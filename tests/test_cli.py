from __future__ import annotations

from pathlib import Path

import pytest

from fuchsia_tools import cli
from fuchsia_tools.artifacts import FuchsiaArtifacts
from fuchsia_tools.config import FuchsiaToolsConfig
from fuchsia_tools.process import CommandResult
from fuchsia_tools.sdk import FuchsiaSdk


@pytest.fixture
def sdk(monkeypatch: pytest.MonkeyPatch, process_manager) -> FuchsiaSdk:
    instance = FuchsiaSdk(
        FuchsiaArtifacts(dev_finder=Path("/cache/fuchsia/tools/dev_finder")),
        FuchsiaToolsConfig(artifact_cache_dir="/cache"),
        process_manager=process_manager,
        file_exists=lambda path: True,
    )
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    monkeypatch.setattr(cli, "get_config", lambda: FuchsiaToolsConfig(artifact_cache_dir="/cache"))
    monkeypatch.setattr(cli.FuchsiaSdk, "from_environment", classmethod(lambda cls, config=None, **kw: instance))
    return instance


def test_no_arguments_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 0
    assert "fuchsia-tools syslogs" in capsys.readouterr().out


def test_unknown_command(sdk: FuchsiaSdk, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["reboot"]) == 1
    assert "Unknown command: reboot" in capsys.readouterr().out


def test_artifacts_command(sdk: FuchsiaSdk, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["artifacts"]) == 0
    out = capsys.readouterr().out
    assert "dev_finder: /cache/fuchsia/tools/dev_finder" in out
    assert "pm:         -" in out


def test_devices_command(sdk: FuchsiaSdk, process_manager, capsys: pytest.CaptureFixture[str]) -> None:
    process_manager.results.append(
        CommandResult(exit_code=0, stdout="192.168.42.56 paper-pulp-bush-angel\n", stderr="")
    )

    assert cli.main(["devices"]) == 0
    assert capsys.readouterr().out.strip().splitlines()[-1] == "192.168.42.56 paper-pulp-bush-angel"


def test_devices_command_without_devices(sdk: FuchsiaSdk, process_manager, capsys: pytest.CaptureFixture[str]) -> None:
    process_manager.results.append(CommandResult(exit_code=0, stdout="", stderr=""))

    assert cli.main(["devices"]) == 1
    assert "No Fuchsia devices found" in capsys.readouterr().out


def test_resolve_requires_name(sdk: FuchsiaSdk) -> None:
    assert cli.main(["resolve"]) == 1


def test_syslogs_without_ssh_config_exits_cleanly(sdk: FuchsiaSdk, process_manager) -> None:
    assert cli.main(["syslogs", "192.168.42.56", "paper-pulp-bush-angel"]) == 0
    assert process_manager.started == []
