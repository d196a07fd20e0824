"""Command-line interface for winrmkrb.

Runs a single command on a remote host or toggles its configured
network adapter.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="winrmkrb",
        description="WinRM remote shell client with Kerberos authentication",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/winrmkrb.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--host", type=str, default=None,
        help="Target host, overrides the configured one",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run a command in a remote shell")
    run_parser.add_argument("remote_command", help="Command line to execute")
    run_parser.add_argument(
        "arguments", nargs=argparse.REMAINDER,
        help="Arguments passed to the command",
    )

    adapter_parser = subparsers.add_parser("adapter", help="Enable or disable a network adapter")
    adapter_parser.add_argument("action", choices=["enable", "disable"])
    adapter_parser.add_argument(
        "--name", type=str, default=None,
        help="Adapter name, overrides network_adapter from the config",
    )

    return parser.parse_args(argv)


def _client_config(settings, args):
    from winrmkrb.config.settings import ClientConfig

    if settings.winrm is None:
        if not args.host:
            raise SystemExit("No WinRM host configured; pass --host or set winrm.host")
        return ClientConfig(host=args.host)
    if args.host:
        return settings.winrm.model_copy(update={"host": args.host})
    return settings.winrm


async def _run(settings, config, args) -> int:
    """Run one command and print its output."""
    from winrmkrb.client import WinRMClient

    client = WinRMClient(
        config,
        poll_interval=settings.run.poll_interval,
        max_polls=settings.run.max_polls,
    )
    async with client:
        result = await client.run_command(args.remote_command, arguments=args.arguments or None)

    if result.stdout:
        print(result.stdout)
    if result.stderr:
        print(result.stderr, file=sys.stderr)
    return result.exit_code if result.exit_code is not None else 0


async def _adapter(settings, config, args) -> int:
    """Enable or disable the configured network adapter."""
    from winrmkrb.client import WinRMClient
    from winrmkrb.windows import NetworkAdapterManager

    client = WinRMClient(
        config,
        poll_interval=settings.run.poll_interval,
        max_polls=settings.run.max_polls,
    )
    async with client:
        manager = NetworkAdapterManager(client, args.name or settings.network_adapter)
        if args.action == "disable":
            await manager.disable_network_adapter()
        else:
            await manager.enable_network_adapter()

    print(f"Network adapter {manager.adapter_name!r} {args.action}d")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the winrmkrb CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from winrmkrb.config.settings import load_settings
    from winrmkrb.domain.errors import WinRMError
    from winrmkrb.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)
    config = _client_config(settings, args)

    try:
        if args.command == "run":
            logger.info("Running remote command: %s", args.remote_command)
            exit_code = asyncio.run(_run(settings, config, args))
        else:
            logger.info("Setting network adapter state: %s", args.action)
            exit_code = asyncio.run(_adapter(settings, config, args))
    except (WinRMError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
