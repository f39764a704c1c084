"""The Fuchsia SDK shell commands.

This workflow assumes development within the Fuchsia source tree, with the
tools cached under the artifact cache directory.

Example Usage:
    sdk = FuchsiaSdk.from_environment()
    device = await sdk.list_devices()
    if device:
        async with sdk.syslogs(device) as logs:
            async for line in logs:
                print(line)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

import structlog

from .artifacts import FuchsiaArtifacts
from .config import FuchsiaToolsConfig, get_config
from .dev_finder import FuchsiaDevFinder
from .kernel_compiler import FuchsiaKernelCompiler
from .pm import FuchsiaPM
from .process import ProcessManager
from .syslog import LogStream, stream_logs


class FuchsiaSdk:
    """Registry of the Fuchsia tool wrappers.

    Each wrapper is built on first access and reused afterwards.
    """

    def __init__(
        self,
        artifacts: FuchsiaArtifacts,
        config: Optional[FuchsiaToolsConfig] = None,
        *,
        process_manager: Optional[ProcessManager] = None,
        logger=None,
        file_exists: Callable[[Path], bool] = os.path.isfile,
    ):
        self.artifacts = artifacts
        self.config = config if config is not None else get_config()
        self.process_manager = process_manager if process_manager is not None else ProcessManager()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._file_exists = file_exists
        self._pm: Optional[FuchsiaPM] = None
        self._dev_finder: Optional[FuchsiaDevFinder] = None
        self._kernel_compiler: Optional[FuchsiaKernelCompiler] = None

    @classmethod
    def from_environment(cls, config: Optional[FuchsiaToolsConfig] = None, **kwargs) -> "FuchsiaSdk":
        """Build an SDK whose artifacts are looked up on this host."""
        if config is None:
            config = get_config()
        return cls(FuchsiaArtifacts.find(config), config, **kwargs)

    @property
    def pm(self) -> FuchsiaPM:
        """Interface to the 'pm' tool."""
        if self._pm is None:
            self._pm = FuchsiaPM(
                self.artifacts,
                self.process_manager,
                timeout=self.config.pm_timeout,
                logger=self._logger,
            )
        return self._pm

    @property
    def dev_finder(self) -> FuchsiaDevFinder:
        """Interface to the 'dev_finder' tool."""
        if self._dev_finder is None:
            self._dev_finder = FuchsiaDevFinder(
                self.artifacts,
                self.process_manager,
                timeout=self.config.dev_finder_timeout,
                logger=self._logger,
            )
        return self._dev_finder

    @property
    def kernel_compiler(self) -> FuchsiaKernelCompiler:
        """Interface to the kernel compiler."""
        if self._kernel_compiler is None:
            self._kernel_compiler = FuchsiaKernelCompiler(
                self.process_manager,
                kernel_compiler=self.config.kernel_compiler,
                platform_dill=self.config.platform_dill,
                dart_binary=self.config.dart_binary,
                file_exists=self._file_exists,
                logger=self._logger,
            )
        return self._kernel_compiler

    async def list_devices(self) -> Optional[str]:
        """Return the first attached device, or None if there is none.

        Example output:
            $ dev_finder list -full
            > 192.168.42.56 paper-pulp-bush-angel
        """
        dev_finder = self.artifacts.dev_finder
        if dev_finder is None or not self._file_exists(dev_finder):
            return None
        devices = await self.dev_finder.list()
        if devices is None:
            return None
        return devices[0] if devices else None

    def syslogs(self, device_id: str) -> LogStream:
        """Return the system logs of the device ``device_id``.

        Must be called with an event loop running. The stream ends when the
        ssh process exits; cancel it to kill the process early.
        """
        return stream_logs(
            device_id,
            self.artifacts.ssh_config,
            process_manager=self.process_manager,
            logger=self._logger,
            file_exists=self._file_exists,
            ssh_binary=self.config.ssh_binary,
            remote_command=self.config.log_listener_command,
        )
