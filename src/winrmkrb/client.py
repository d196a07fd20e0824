"""WinRM shell client.

Sequences the shell operations (create, command, receive, delete) and
holds the only piece of session state: whether a shell is open and its
identifier. Each operation is a single request/response exchange; the
client never polls in the background.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from winrmkrb.auth.base import Negotiator
from winrmkrb.config.settings import ClientConfig
from winrmkrb.domain.errors import (
    PreconditionError,
    RequestTimeoutError,
    TransportError,
    WinRMError,
)
from winrmkrb.domain.models import (
    CommandOutput,
    CommandResult,
    ShellClosed,
    ShellOpen,
    ShellState,
    SoapResponse,
)
from winrmkrb.soap import envelope, parser
from winrmkrb.transport.http import WinRMTransport

logger = logging.getLogger(__name__)


class WinRMClient:
    """Owns one remote cmd shell on one Windows host.

    Not safe for concurrent use: callers must serialize operations on a
    client instance.

    Example usage::

        async with WinRMClient(ClientConfig(host="winhost.example.test")) as client:
            await client.create_shell()
            command_id = await client.execute_command("ipconfig /all")
            output = await client.receive_output(command_id)
    """

    def __init__(
        self,
        config: ClientConfig,
        negotiator: Negotiator | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        poll_interval: float = 1.0,
        max_polls: int = 600,
    ) -> None:
        if negotiator is None:
            from winrmkrb.auth.kerberos import KerberosNegotiator
            negotiator = KerberosNegotiator.from_spn(config.spn, protocol=config.auth_protocol)
        self._config = config
        self._transport = WinRMTransport(config, negotiator, transport=http_transport)
        self._session: ShellClosed | ShellOpen = ShellClosed()
        self._poll_interval = poll_interval
        self._max_polls = max_polls

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def session(self) -> ShellClosed | ShellOpen:
        return self._session

    @property
    def state(self) -> ShellState:
        return ShellState(self._session.state)

    @property
    def shell_id(self) -> str | None:
        return self._session.shell_id if isinstance(self._session, ShellOpen) else None

    async def connect(self) -> None:
        await self._transport.connect()

    async def close(self) -> None:
        """Close the HTTP client. An open shell is left on the server."""
        await self._transport.disconnect()

    async def create_shell(self) -> str:
        """Open a shell, or return the current one if already open."""
        if isinstance(self._session, ShellOpen):
            return self._session.shell_id

        response = await self._send(envelope.build_create_shell(self._config.endpoint_url))
        shell_id = parser.parse_shell_id(response)
        self._session = ShellOpen(shell_id=shell_id)
        logger.info("Created shell %s on %s", shell_id, self._config.host)
        return shell_id

    async def execute_command(self, command: str, arguments: list[str] | None = None) -> str:
        """Start ``command`` in the open shell and return its command id."""
        shell_id = self._require_open("execute a command")
        body = envelope.build_execute_command(
            self._config.endpoint_url, shell_id, command, arguments=arguments
        )
        response = await self._send(body)
        command_id = parser.parse_command_id(response)
        logger.debug("Started command %s in shell %s", command_id, shell_id)
        return command_id

    async def receive(self, command_id: str) -> CommandOutput:
        """Fetch pending output and state of ``command_id``.

        A server-side operation timeout is reported as an empty result
        that is not done.
        """
        response = await self._receive(command_id)
        if response is None:
            return CommandOutput()
        return parser.parse_receive(response)

    async def receive_output(self, command_id: str) -> str:
        """Fetch pending output of ``command_id`` as trimmed text.

        An empty string means nothing was available yet, including when
        the server hit its operation timeout; receive again.
        """
        response = await self._receive(command_id)
        if response is None:
            return ""
        return parser.parse_receive_output(response)

    async def signal_terminate(self, command_id: str) -> None:
        """Ask the server to terminate ``command_id`` and release its resources."""
        shell_id = self._require_open("signal a command")
        await self._send(envelope.build_signal(self._config.endpoint_url, shell_id, command_id))
        logger.debug("Terminated command %s in shell %s", command_id, shell_id)

    async def delete_shell(self) -> None:
        """Delete the open shell. Does nothing when no shell is open."""
        if not isinstance(self._session, ShellOpen):
            return
        shell_id = self._session.shell_id
        await self._send(envelope.build_delete_shell(self._config.endpoint_url, shell_id))
        self._session = ShellClosed()
        logger.info("Deleted shell %s on %s", shell_id, self._config.host)

    def reset(self) -> None:
        """Forget the current shell without contacting the server."""
        if isinstance(self._session, ShellOpen):
            logger.info("Discarding shell %s", self._session.shell_id)
        self._session = ShellClosed()

    async def run_command(self, command: str, arguments: list[str] | None = None) -> CommandResult:
        """Run ``command`` to completion and collect all of its output.

        Opens a shell if needed and leaves it open afterwards.

        Raises:
            RequestTimeoutError: The command did not finish within
                ``max_polls`` receive requests.
        """
        await self.create_shell()
        command_id = await self.execute_command(command, arguments=arguments)

        stdout = bytearray()
        stderr = bytearray()
        exit_code = None
        for _ in range(self._max_polls):
            output = await self.receive(command_id)
            stdout.extend(output.stdout)
            stderr.extend(output.stderr)
            if output.done:
                exit_code = output.exit_code
                break
            if not output.stdout and not output.stderr:
                await asyncio.sleep(self._poll_interval)
        else:
            raise RequestTimeoutError(
                f"Command did not finish after {self._max_polls} receive requests"
            )

        await self.signal_terminate(command_id)
        return CommandResult(
            command=command,
            stdout=stdout.decode("utf-8", errors="replace").rstrip(),
            stderr=stderr.decode("utf-8", errors="replace").rstrip(),
            exit_code=exit_code,
        )

    async def __aenter__(self) -> WinRMClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Delete any open shell and close the HTTP client.

        When the block raised, a failed delete is logged instead of
        replacing the original exception.
        """
        try:
            await self.delete_shell()
        except WinRMError as e:
            if exc_type is None:
                raise
            logger.warning("Failed to delete shell %s during cleanup: %s", self.shell_id, e)
        finally:
            await self.close()

    def _require_open(self, operation: str) -> str:
        if not isinstance(self._session, ShellOpen):
            raise PreconditionError(f"Cannot {operation}: no shell is open")
        return self._session.shell_id

    async def _receive(self, command_id: str) -> SoapResponse | None:
        """Send a Receive request; None when the server timed out with no output."""
        shell_id = self._require_open("receive output")
        body = envelope.build_receive(self._config.endpoint_url, shell_id, command_id)
        try:
            return await self._send(body)
        except TransportError as e:
            if e.fault_code == parser.OPERATION_TIMEOUT_FAULT:
                logger.debug("No output for command %s within operation timeout", command_id)
                return None
            raise

    async def _send(self, body: str) -> SoapResponse:
        await self._transport.connect()
        return await self._transport.send(body)
