"""Shared test fixtures for the winrmkrb test suite.

Provides a fake negotiator, canned WinRM response bodies and helpers to
script the HTTP exchanges seen by the transport.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx
import pytest

from winrmkrb.auth.base import Negotiator
from winrmkrb.config.settings import ClientConfig


# ---------------------------------------------------------------------------
# Response Bodies
# ---------------------------------------------------------------------------


ENVELOPE_OPEN = (
    '<s:Envelope xmlns:s="http://www.w3.org/2003/05/soap-envelope"'
    ' xmlns:a="http://schemas.xmlsoap.org/ws/2004/08/addressing"'
    ' xmlns:w="http://schemas.dmtf.org/wbem/wsman/1/wsman.xsd"'
    ' xmlns:rsp="http://schemas.microsoft.com/wbem/wsman/1/windows/shell">'
    "<s:Header><a:Action>response</a:Action></s:Header>"
)


def create_shell_response(shell_id: str = "11111111-2222-3333-4444-555555555555") -> str:
    return (
        f"{ENVELOPE_OPEN}<s:Body>"
        "<rsp:Shell>"
        f"<rsp:ShellId>{shell_id}</rsp:ShellId>"
        "<rsp:InputStreams>stdin</rsp:InputStreams>"
        "<rsp:OutputStreams>stdout stderr</rsp:OutputStreams>"
        "</rsp:Shell>"
        "</s:Body></s:Envelope>"
    )


def command_response(command_id: str = "AAAAAAAA-BBBB-CCCC-DDDD-EEEEEEEEEEEE") -> str:
    return (
        f"{ENVELOPE_OPEN}<s:Body>"
        f"<rsp:CommandResponse><rsp:CommandId>{command_id}</rsp:CommandId></rsp:CommandResponse>"
        "</s:Body></s:Envelope>"
    )


def receive_response(
    streams: list[tuple[str, str]],
    done: bool = False,
    exit_code: int | None = None,
    command_id: str = "AAAAAAAA-BBBB-CCCC-DDDD-EEEEEEEEEEEE",
) -> str:
    """Receive response with (stream name, base64 payload) pairs."""
    stream_xml = "".join(
        f'<rsp:Stream Name="{name}" CommandId="{command_id}">{payload}</rsp:Stream>'
        for name, payload in streams
    )
    state = "Done" if done else "Running"
    exit_xml = f"<rsp:ExitCode>{exit_code}</rsp:ExitCode>" if exit_code is not None else ""
    return (
        f"{ENVELOPE_OPEN}<s:Body><rsp:ReceiveResponse>{stream_xml}"
        f'<rsp:CommandState CommandId="{command_id}"'
        f' State="http://schemas.microsoft.com/wbem/wsman/1/windows/shell/CommandState/{state}">'
        f"{exit_xml}</rsp:CommandState>"
        "</rsp:ReceiveResponse></s:Body></s:Envelope>"
    )


def empty_response() -> str:
    return f"{ENVELOPE_OPEN}<s:Body/></s:Envelope>"


def fault_response(code: str, message: str) -> str:
    return (
        f"{ENVELOPE_OPEN}<s:Body><s:Fault>"
        "<s:Code><s:Value>s:Receiver</s:Value></s:Code>"
        f'<s:Reason><s:Text xml:lang="en-US">{message}</s:Text></s:Reason>'
        "<s:Detail>"
        '<f:WSManFault xmlns:f="http://schemas.microsoft.com/wbem/wsman/1/wsmanfault"'
        f' Code="{code}" Machine="winhost"><f:Message>{message}</f:Message></f:WSManFault>'
        "</s:Detail></s:Fault></s:Body></s:Envelope>"
    )


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeNegotiator(Negotiator):
    """Negotiator that records the challenges it was given."""

    def __init__(self) -> None:
        self.initial_calls = 0
        self.challenges: list[str] = []

    @property
    def total_steps(self) -> int:
        return self.initial_calls + len(self.challenges)

    def initial_step(self) -> str:
        self.initial_calls += 1
        return "aW5pdGlhbA=="

    def step(self, challenge: str) -> str:
        self.challenges.append(challenge)
        return f"c3RlcA{len(self.challenges)}"


class ScriptedServer:
    """Replays queued HTTP responses and records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Callable[[httpx.Request], httpx.Response]] = []

    def queue(self, status_code: int = 200, text: str = "", headers: dict | None = None) -> None:
        self._responses.append(httpx.Response(status_code, text=text, headers=headers))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request #{len(self.requests)}")
        return self._responses.pop(0)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(host="winhost.example.test", timeout_ms=5000)


@pytest.fixture
def negotiator() -> FakeNegotiator:
    return FakeNegotiator()


@pytest.fixture
def server() -> ScriptedServer:
    return ScriptedServer()


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handlers and level that setup_logging() attached during a test."""
    logger = logging.getLogger("winrmkrb")
    level, handlers = logger.level, list(logger.handlers)
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.setLevel(level)
    logger.handlers = handlers
