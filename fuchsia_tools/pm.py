"""Wrapper around the ``pm`` Fuchsia package manager tool."""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from .artifacts import FuchsiaArtifacts
from .process import ProcessManager


class FuchsiaPM:
    """Runs ``pm`` commands.

    Every command returns True when pm exits with status 0. When pm is not
    installed the command is not run and False is returned.
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

    async def init(self, build_path: str, app_name: str) -> bool:
        """Initialize the package metadata for ``app_name`` under ``build_path``."""
        return await self._call(["-o", build_path, "-n", app_name, "init"])

    async def genkey(self, build_path: str, out_key_path: str) -> bool:
        """Generate a signing key at ``out_key_path``."""
        return await self._call(["-o", build_path, "-k", out_key_path, "genkey"])

    async def build(self, build_path: str, key_path: str, manifest_path: str) -> bool:
        """Build the package described by ``manifest_path``."""
        return await self._call(["-o", build_path, "-k", key_path, "-m", manifest_path, "build"])

    async def archive(self, build_path: str, key_path: str, manifest_path: str) -> bool:
        """Produce a ``.far`` archive of the package."""
        return await self._call(["-o", build_path, "-k", key_path, "-m", manifest_path, "archive"])

    async def newrepo(self, repo_path: str) -> bool:
        """Create a package repository at ``repo_path``."""
        return await self._call(["newrepo", "-repo", repo_path])

    async def serve(self, repo_path: str, host: str, port: int) -> Optional[asyncio.subprocess.Process]:
        """Start serving ``repo_path``; the caller owns the returned process."""
        if self.artifacts.pm is None:
            self._logger.error("Cannot find the pm tool")
            return None
        command = [str(self.artifacts.pm), "serve", "-repo", repo_path, "-l", f"{host}:{port}"]
        try:
            return await self.process_manager.start(command)
        except OSError as exc:
            self._logger.error("pm serve failed to start", error=str(exc))
            return None

    async def publish(self, repo_path: str, package_path: str) -> bool:
        """Publish the archive at ``package_path`` into ``repo_path``."""
        return await self._call(["publish", "-a", "-r", repo_path, "-f", package_path])

    async def _call(self, args: list[str]) -> bool:
        if self.artifacts.pm is None:
            self._logger.error("Cannot find the pm tool")
            return False
        result = await self.process_manager.run([str(self.artifacts.pm), *args], timeout=self.timeout)
        if not result.ok:
            self._logger.error(
                "pm command failed",
                args=" ".join(args),
                exit_code=result.exit_code,
                stderr=result.stderr.strip(),
                error=result.error,
            )
        return result.ok


class FuchsiaPackageServer:
    """A package repository served by ``pm serve``.

    Example Usage:
        server = FuchsiaPackageServer(repo, "dev", host, 8083, sdk.pm)
        if await server.start():
            await server.add_package(far_path)
            ...
            server.stop()
    """

    def __init__(self, repo_path: str, name: str, host: str, port: int, pm: FuchsiaPM):
        self.repo_path = repo_path
        self.name = name
        self.host = host
        self.port = port
        self.pm = pm
        self._process: Optional[asyncio.subprocess.Process] = None
        self._logger = structlog.get_logger(__name__).bind(server=name)

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> bool:
        """Create the repository and start serving it."""
        if self._process is not None:
            self._logger.warning("Package server already started")
            return False
        if not await self.pm.newrepo(self.repo_path):
            return False
        self._process = await self.pm.serve(self.repo_path, self.host, self.port)
        if self._process is None:
            return False
        self._logger.info("Package server started", url=self.url)
        return True

    async def add_package(self, package_path: str) -> bool:
        """Publish a package archive to the running server."""
        if self._process is None:
            self._logger.error("Package server is not running")
            return False
        return await self.pm.publish(self.repo_path, package_path)

    def stop(self) -> None:
        """Kill the ``pm serve`` process."""
        process, self._process = self._process, None
        if process is None or process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            pass
        self._logger.info("Package server stopped")

    def __str__(self) -> str:
        return f"FuchsiaPackageServer at {self.url}"
