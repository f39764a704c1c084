"""Fuchsia device tools.

Locates the Fuchsia developer tools on disk, discovers attached devices with
``dev_finder`` and streams device logs over ssh.
"""

from .artifacts import FuchsiaArtifacts
from .config import FuchsiaToolsConfig, load_config
from .dev_finder import FuchsiaDevFinder
from .kernel_compiler import BuildMode, FuchsiaKernelCompiler
from .pm import FuchsiaPackageServer, FuchsiaPM
from .process import CommandResult, ProcessManager
from .sdk import FuchsiaSdk
from .syslog import LineDecoder, LogStream, stream_logs

__all__ = [
    "BuildMode",
    "CommandResult",
    "FuchsiaArtifacts",
    "FuchsiaDevFinder",
    "FuchsiaKernelCompiler",
    "FuchsiaPM",
    "FuchsiaPackageServer",
    "FuchsiaSdk",
    "FuchsiaToolsConfig",
    "LineDecoder",
    "LogStream",
    "ProcessManager",
    "load_config",
    "stream_logs",
]
