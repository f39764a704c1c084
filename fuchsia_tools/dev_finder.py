"""Wrapper around the ``dev_finder`` device discovery tool."""

from __future__ import annotations

import structlog

from .artifacts import FuchsiaArtifacts
from .process import ProcessManager


class FuchsiaDevFinder:
    """Finds Fuchsia devices attached to the network.

    Example output:
        $ dev_finder list -full
        > 192.168.42.56 paper-pulp-bush-angel
    """

    def __init__(
        self,
        artifacts: FuchsiaArtifacts,
        process_manager: ProcessManager,
        timeout: float | None = None,
        logger=None,
    ):
        self.artifacts = artifacts
        self.process_manager = process_manager
        self.timeout = timeout
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    async def list(self) -> list[str] | None:
        """List the attached devices, one ``<ip> <name>`` entry per device.

        Returns None when dev_finder is missing or fails, and an empty list
        when it ran but reported no devices.
        """
        if self.artifacts.dev_finder is None:
            self._logger.error("Fuchsia dev_finder tool not found")
            return None

        command = [str(self.artifacts.dev_finder), "list", "-full"]
        result = await self.process_manager.run(command, timeout=self.timeout)
        if not result.ok:
            self._logger.error("dev_finder failed", stderr=result.stderr.strip(), error=result.error)
            return None

        devices = [line.strip() for line in result.stdout.split('\n') if line.strip()]
        self._logger.info("Found devices", count=len(devices))
        return devices

    async def resolve(self, device_name: str) -> str | None:
        """Return the address of the device named ``device_name``."""
        if self.artifacts.dev_finder is None:
            self._logger.error("Fuchsia dev_finder tool not found")
            return None

        command = [
            str(self.artifacts.dev_finder),
            "resolve",
            "-local",
            "-device-limit",
            "1",
            device_name,
        ]
        result = await self.process_manager.run(command, timeout=self.timeout)
        if not result.ok:
            self._logger.error("dev_finder failed", stderr=result.stderr.strip(), error=result.error)
            return None

        address = result.stdout.strip()
        return address or None
