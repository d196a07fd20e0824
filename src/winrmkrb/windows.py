"""Remote Windows administration helpers built on the shell client."""

from __future__ import annotations

import logging

from winrmkrb.client import WinRMClient
from winrmkrb.domain.errors import WinRMError
from winrmkrb.domain.models import CommandResult

logger = logging.getLogger(__name__)


def quote_powershell(value: str) -> str:
    """Quote ``value`` as a single-quoted PowerShell string literal."""
    return "'" + value.replace("'", "''") + "'"


class RemoteCommandError(WinRMError):
    """Raised when a remote command exits with a non-zero code."""

    def __init__(self, message: str, result: CommandResult) -> None:
        super().__init__(message)
        self.result = result


class NetworkAdapterManager:
    """Toggles a named network adapter on the remote host."""

    def __init__(self, client: WinRMClient, adapter_name: str | None) -> None:
        if not adapter_name:
            raise ValueError(f"No network adapter configured for host {client.config.host!r}")
        self._client = client
        self._adapter_name = adapter_name

    @property
    def adapter_name(self) -> str:
        return self._adapter_name

    async def disable_network_adapter(self) -> CommandResult:
        return await self._run_cmdlet("Disable-NetAdapter")

    async def enable_network_adapter(self) -> CommandResult:
        return await self._run_cmdlet("Enable-NetAdapter")

    async def _run_cmdlet(self, cmdlet: str) -> CommandResult:
        script = f"{cmdlet} -Name {quote_powershell(self._adapter_name)} -Confirm:$false"
        result = await self._client.run_command(
            "powershell.exe", arguments=["-NoProfile", "-NonInteractive", "-Command", script]
        )
        if not result.succeeded:
            raise RemoteCommandError(
                f"{cmdlet} failed for adapter {self._adapter_name!r} "
                f"(exit code {result.exit_code}): {result.stderr}",
                result=result,
            )
        logger.info("%s succeeded for adapter %r", cmdlet, self._adapter_name)
        return result
