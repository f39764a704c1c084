"""Wrapper around the Fuchsia kernel compiler."""

from __future__ import annotations

import enum
import os
from pathlib import Path
from typing import Callable, Iterable, Optional

import structlog

from .process import ProcessManager

MULTI_ROOT_SCHEME = "main-root"


class BuildMode(str, enum.Enum):
    debug = "debug"
    profile = "profile"
    release = "release"
    jit_release = "jit_release"

    @property
    def uses_aot(self) -> bool:
        return self in (BuildMode.profile, BuildMode.release)

    @property
    def is_release(self) -> bool:
        return self in (BuildMode.release, BuildMode.jit_release)


def build_mode_flags(mode: BuildMode, manifest_path: str, dart_defines: Iterable[str] = ()) -> list[str]:
    """Compiler flags that depend on the build mode."""
    flags: list[str] = []
    if mode.uses_aot:
        flags += ["--aot", "--tfa"]
    else:
        flags += ["--no-link-platform", "--split-output-by-packages", "--manifest", manifest_path]
    flags.append("--embed-sources" if mode is BuildMode.debug else "--no-embed-sources")
    if mode is BuildMode.profile:
        flags.append("-Ddart.vm.profile=true")
    if mode.is_release:
        flags.append("-Ddart.vm.release=true")
    flags.append(f"-Ddart.developer.causal_async_stacks={'true' if mode is BuildMode.debug else 'false'}")
    if mode is BuildMode.jit_release:
        # bytecode only, no AST
        flags += ["--gen-bytecode", "--drop-ast"]
    flags += [f"-D{define}" for define in dart_defines]
    return flags


class FuchsiaKernelCompiler:
    """Compiles a Dart entry point into a Fuchsia kernel file (``<app>.dil``)."""

    def __init__(
        self,
        process_manager: ProcessManager,
        kernel_compiler: Optional[str],
        platform_dill: Optional[str],
        dart_binary: str = "dart",
        file_exists: Callable[[Path], bool] = os.path.isfile,
        logger=None,
    ):
        self.process_manager = process_manager
        self.kernel_compiler = kernel_compiler
        self.platform_dill = platform_dill
        self.dart_binary = dart_binary
        self._file_exists = file_exists
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    def command(
        self,
        project_dir: str,
        target: str,
        app_name: str,
        out_dir: str,
        mode: BuildMode = BuildMode.debug,
        packages_file: Optional[str] = None,
        dart_defines: Iterable[str] = (),
    ) -> list[str]:
        """Full command line for compiling ``target`` inside ``project_dir``."""
        if packages_file is None:
            packages_file = os.path.join(project_dir, ".packages")
        relative_packages = os.path.relpath(packages_file, project_dir)
        manifest_path = os.path.join(out_dir, f"{app_name}.dilpmanifest")
        return [
            self.dart_binary,
            str(self.kernel_compiler),
            "--target", "flutter_runner",
            "--platform", str(self.platform_dill),
            "--filesystem-scheme", MULTI_ROOT_SCHEME,
            "--filesystem-root", project_dir,
            "--packages", f"{MULTI_ROOT_SCHEME}:///{relative_packages}",
            "--output", os.path.join(out_dir, f"{app_name}.dil"),
            "--component-name", app_name,
            *build_mode_flags(mode, manifest_path, dart_defines),
            f"{MULTI_ROOT_SCHEME}:///{target}",
        ]

    async def build(
        self,
        project_dir: str,
        target: str,
        app_name: str,
        out_dir: str,
        mode: BuildMode = BuildMode.debug,
        packages_file: Optional[str] = None,
        dart_defines: Iterable[str] = (),
        timeout: float | None = None,
    ) -> bool:
        """Run the kernel compiler. Returns True on success."""
        if not self.kernel_compiler or not self._file_exists(Path(self.kernel_compiler)):
            self._logger.error("Fuchsia kernel compiler not found", path=self.kernel_compiler)
            return False
        if not self.platform_dill or not self._file_exists(Path(self.platform_dill)):
            self._logger.error("Fuchsia platform file not found", path=self.platform_dill)
            return False

        command = self.command(project_dir, target, app_name, out_dir, mode, packages_file, dart_defines)
        self._logger.info("Building Fuchsia application", app=app_name, mode=mode.value)
        result = await self.process_manager.run(command, timeout=timeout)
        if result.stdout.strip():
            self._logger.debug("Kernel compiler output", output=result.stdout.strip())
        if not result.ok:
            self._logger.error(
                "Build process failed",
                exit_code=result.exit_code,
                stderr=result.stderr.strip(),
                error=result.error,
            )
        return result.ok
