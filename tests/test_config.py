from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from fuchsia_tools.config import FuchsiaToolsConfig, load_config

ENV_VARS = ["LOG_LEVEL", "FUCHSIA_ARTIFACT_CACHE", "FUCHSIA_SSH_BINARY", "DEV_FINDER_TIMEOUT", "FUCHSIA_TOOLS_CONFIG"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    config = load_config(str(tmp_path / "missing.yaml"))

    assert config.log_level == "INFO"
    assert config.ssh_binary == "ssh"
    assert config.log_listener_command == "log_listener --clock Local"
    assert config.dev_finder_timeout == 30
    assert config.kernel_compiler is None
    assert config.artifact_cache_dir.endswith("artifacts")


def test_yaml_file_is_loaded(tmp_path: Path) -> None:
    path = tmp_path / "fuchsia_tools.yaml"
    path.write_text(
        "artifact_cache_dir: /opt/flutter/bin/cache/artifacts\n"
        "pm_timeout: 60\n"
        "kernel_compiler: /engine/kernel_compiler.snapshot\n",
        encoding="utf-8",
    )

    config = load_config(str(path))

    assert config.artifact_cache_dir == "/opt/flutter/bin/cache/artifacts"
    assert config.pm_timeout == 60
    assert config.kernel_compiler == "/engine/kernel_compiler.snapshot"


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "fuchsia_tools.yaml"
    path.write_text("artifact_cache_dir: /from/file\ndev_finder_timeout: 10\n", encoding="utf-8")
    monkeypatch.setenv("FUCHSIA_ARTIFACT_CACHE", "/from/env")
    monkeypatch.setenv("DEV_FINDER_TIMEOUT", "5")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = load_config(str(path))

    assert config.artifact_cache_dir == "/from/env"
    assert config.dev_finder_timeout == 5
    assert config.log_level == "DEBUG"


def test_config_path_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "custom.yaml"
    path.write_text("ssh_binary: /usr/bin/ssh\n", encoding="utf-8")
    monkeypatch.setenv("FUCHSIA_TOOLS_CONFIG", str(path))

    assert load_config().ssh_binary == "/usr/bin/ssh"


def test_invalid_value_is_rejected() -> None:
    with pytest.raises(ValidationError):
        FuchsiaToolsConfig(dev_finder_timeout="soon")
