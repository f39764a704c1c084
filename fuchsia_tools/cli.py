#!/usr/bin/env python3
"""CLI tool for Fuchsia device access.

Usage:
    fuchsia-tools artifacts             # Show the resolved tool paths
    fuchsia-tools devices               # Show the first attached device
    fuchsia-tools resolve <name>        # Resolve a device name to an address
    fuchsia-tools syslogs [device]      # Stream device logs (Ctrl-C to stop)

Also available as ``python -m fuchsia_tools.cli``.
"""

import asyncio
import logging
import sys
from typing import Optional

import structlog

from .config import get_config
from .sdk import FuchsiaSdk


def configure_logging(log_level: str) -> None:
    """Configure structured logging for command-line use."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level.upper(), logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def print_help():
    """Print help message."""
    print(__doc__)


async def show_devices(sdk: FuchsiaSdk) -> int:
    device = await sdk.list_devices()
    if device is None:
        print("❌ No Fuchsia devices found")
        return 1
    print(device)
    return 0


async def resolve_device(sdk: FuchsiaSdk, name: str) -> int:
    address = await sdk.dev_finder.resolve(name)
    if address is None:
        print(f"❌ Could not resolve device '{name}'")
        return 1
    print(address)
    return 0


async def follow_syslogs(sdk: FuchsiaSdk, device: Optional[str]) -> int:
    if device is None:
        device = await sdk.list_devices()
        if device is None:
            print("❌ No Fuchsia devices found")
            return 1
    async with sdk.syslogs(device) as logs:
        async for line in logs:
            print(line, flush=True)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print_help()
        return 0

    command = args[0].lower()
    config = get_config()
    configure_logging(config.log_level)

    if command in ("help", "--help", "-h"):
        print_help()
        return 0

    sdk = FuchsiaSdk.from_environment(config)

    if command == "artifacts":
        artifacts = sdk.artifacts
        print(f"ssh config: {artifacts.ssh_config or '-'}")
        print(f"dev_finder: {artifacts.dev_finder or '-'}")
        print(f"pm:         {artifacts.pm or '-'}")
        return 0

    if command == "devices":
        return asyncio.run(show_devices(sdk))

    if command == "resolve":
        if len(args) < 2:
            print("❌ Please specify a device name")
            print("Usage: fuchsia-tools resolve <name>")
            return 1
        return asyncio.run(resolve_device(sdk, args[1]))

    if command == "syslogs":
        device = " ".join(args[1:]) or None
        try:
            return asyncio.run(follow_syslogs(sdk, device))
        except KeyboardInterrupt:
            return 0

    print(f"❌ Unknown command: {command}")
    print("Available commands: artifacts, devices, resolve, syslogs")
    print("Use 'help' for detailed usage information")
    return 1


if __name__ == "__main__":
    sys.exit(main())
