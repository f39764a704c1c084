"""Configuration management for the Fuchsia tools."""

import os
from pathlib import Path
from typing import Optional
import yaml
from pydantic import BaseModel, Field


def _default_artifact_cache() -> str:
    return str(Path.home() / ".cache" / "fuchsia_tools" / "artifacts")


class FuchsiaToolsConfig(BaseModel):
    """Main configuration for the Fuchsia tools."""

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Artifact lookup
    artifact_cache_dir: str = Field(
        default_factory=_default_artifact_cache,
        description="Root of the artifact cache; tools live under <dir>/fuchsia/tools",
    )

    # Device logs
    ssh_binary: str = Field(default="ssh", description="SSH client used to reach devices")
    log_listener_command: str = Field(
        default="log_listener --clock Local",
        description="Remote command producing device logs",
    )

    # Tool invocation
    dev_finder_timeout: int = Field(default=30, description="dev_finder timeout in seconds")
    pm_timeout: int = Field(default=300, description="pm timeout in seconds")

    # Kernel compiler
    dart_binary: str = Field(default="dart", description="Dart VM running the kernel compiler")
    kernel_compiler: Optional[str] = Field(default=None, description="Path to the kernel compiler snapshot")
    platform_dill: Optional[str] = Field(default=None, description="Path to the platform kernel file")


def load_config(config_path: Optional[str] = None) -> FuchsiaToolsConfig:
    """Load configuration from file or environment variables."""
    if config_path is None:
        config_path = os.getenv("FUCHSIA_TOOLS_CONFIG", "config/fuchsia_tools.yaml")

    config_data = {}

    # Load from file if exists
    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

    # Override with environment variables
    env_overrides = {
        "log_level": os.getenv("LOG_LEVEL"),
        "artifact_cache_dir": os.getenv("FUCHSIA_ARTIFACT_CACHE"),
        "ssh_binary": os.getenv("FUCHSIA_SSH_BINARY"),
        "dev_finder_timeout": os.getenv("DEV_FINDER_TIMEOUT"),
    }

    for key, value in env_overrides.items():
        if value is not None:
            if key in ["dev_finder_timeout"]:
                value = int(value)
            config_data[key] = value

    return FuchsiaToolsConfig(**config_data)


def get_config() -> FuchsiaToolsConfig:
    """Get the global configuration instance."""
    return load_config()
