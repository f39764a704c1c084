"""Lookup of the Fuchsia tool binaries and SSH configuration on disk."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional

import structlog

from .config import FuchsiaToolsConfig, get_config

logger = structlog.get_logger(__name__)

FUCHSIA_BUILD_DIR = "FUCHSIA_BUILD_DIR"
FUCHSIA_SSH_CONFIG = "FUCHSIA_SSH_CONFIG"


def is_supported_platform(platform: str) -> bool:
    return platform.startswith("linux") or platform == "darwin"


def artifact_directory(cache_dir: str | os.PathLike, name: str) -> Path:
    """Directory holding the cached artifacts for ``name``."""
    return Path(cache_dir) / name


@dataclass(frozen=True)
class FuchsiaArtifacts:
    """Fuchsia-specific artifacts used to interact with a device.

    Every field is either a file that existed when the bundle was built or
    ``None``.
    """

    ssh_config: Optional[Path] = None
    dev_finder: Optional[Path] = None
    pm: Optional[Path] = None

    @classmethod
    def find(
        cls,
        config: FuchsiaToolsConfig | None = None,
        *,
        platform: Optional[str] = None,
        environ: Mapping[str, str] = os.environ,
        file_exists: Callable[[Path], bool] = os.path.isfile,
    ) -> "FuchsiaArtifacts":
        """Locate the artifacts using the cached Fuchsia tools.

        Tools are looked up under ``<artifact_cache_dir>/fuchsia/tools``.
        The ssh configuration comes from FUCHSIA_BUILD_DIR first, then
        FUCHSIA_SSH_CONFIG.
        """
        if platform is None:
            platform = sys.platform
        if not is_supported_platform(platform):
            logger.debug("Unsupported platform, skipping artifact lookup", platform=platform)
            return cls()

        if config is None:
            config = get_config()

        # FUCHSIA_BUILD_DIR wins even when its ssh config is missing.
        ssh_config: Optional[Path] = None
        if FUCHSIA_BUILD_DIR in environ:
            ssh_config = Path(environ[FUCHSIA_BUILD_DIR]) / "ssh-keys" / "ssh_config"
        elif FUCHSIA_SSH_CONFIG in environ:
            ssh_config = Path(environ[FUCHSIA_SSH_CONFIG])

        if ssh_config is not None and not file_exists(ssh_config):
            logger.debug("ssh config not found", path=str(ssh_config))
            ssh_config = None

        tools = artifact_directory(config.artifact_cache_dir, "fuchsia") / "tools"
        dev_finder = tools / "dev_finder"
        pm = tools / "pm"

        artifacts = cls(
            ssh_config=ssh_config,
            dev_finder=dev_finder if file_exists(dev_finder) else None,
            pm=pm if file_exists(pm) else None,
        )
        logger.debug(
            "Resolved Fuchsia artifacts",
            ssh_config=str(artifacts.ssh_config) if artifacts.ssh_config else None,
            dev_finder=str(artifacts.dev_finder) if artifacts.dev_finder else None,
            pm=str(artifacts.pm) if artifacts.pm else None,
        )
        return artifacts
