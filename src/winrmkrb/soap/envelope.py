"""WS-Management SOAP envelope builders for the cmd shell resource.

Each builder is a pure function returning a complete SOAP 1.2 envelope.
Every envelope gets a fresh ``MessageID`` and a fixed 60 second
``OperationTimeout``.
"""

from __future__ import annotations

import uuid
from xml.sax.saxutils import escape, quoteattr

from winrmkrb.domain.models import NAMESPACES

SHELL_RESOURCE_URI = "http://schemas.microsoft.com/wbem/wsman/1/windows/shell/cmd"
ANONYMOUS_ADDRESS = "http://schemas.xmlsoap.org/ws/2004/08/addressing/role/anonymous"
OPERATION_TIMEOUT = "PT60S"
MAX_ENVELOPE_SIZE = 153600


class Action:
    """WS-Addressing action URIs used by the shell operations."""

    CREATE = "http://schemas.xmlsoap.org/ws/2004/09/transfer/Create"
    DELETE = "http://schemas.xmlsoap.org/ws/2004/09/transfer/Delete"
    COMMAND = "http://schemas.microsoft.com/wbem/wsman/1/windows/shell/Command"
    RECEIVE = "http://schemas.microsoft.com/wbem/wsman/1/windows/shell/Receive"
    SIGNAL = "http://schemas.microsoft.com/wbem/wsman/1/windows/shell/Signal"


SIGNAL_TERMINATE = "http://schemas.microsoft.com/wbem/wsman/1/windows/shell/signal/terminate"

# Text and attribute values may contain either quote character
_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(text: str) -> str:
    """Escape ``& < > " '`` so ``text`` can be embedded in element content."""
    return escape(text, _ENTITIES)


def new_message_id() -> str:
    return f"uuid:{str(uuid.uuid4()).upper()}"


def build_create_shell(to: str) -> str:
    """Envelope asking the server to create a cmd shell."""
    options = _option_set({"WINRS_NOPROFILE": "FALSE", "WINRS_CODEPAGE": "65001"})
    body = (
        "<rsp:Shell>"
        "<rsp:InputStreams>stdin</rsp:InputStreams>"
        "<rsp:OutputStreams>stdout stderr</rsp:OutputStreams>"
        "</rsp:Shell>"
    )
    return _envelope(to, Action.CREATE, body, extra_headers=options)


def build_execute_command(
    to: str,
    shell_id: str,
    command: str,
    arguments: list[str] | None = None,
) -> str:
    """Envelope running ``command`` inside the shell ``shell_id``."""
    options = _option_set({"WINRS_CONSOLEMODE_STDIN": "TRUE", "WINRS_SKIP_CMD_SHELL": "FALSE"})
    args_xml = "".join(
        f"<rsp:Arguments>{escape_xml(arg)}</rsp:Arguments>" for arg in arguments or []
    )
    body = (
        "<rsp:CommandLine>"
        f"<rsp:Command>{escape_xml(command)}</rsp:Command>"
        f"{args_xml}"
        "</rsp:CommandLine>"
    )
    return _envelope(to, Action.COMMAND, body, shell_id=shell_id, extra_headers=options)


def build_receive(to: str, shell_id: str, command_id: str) -> str:
    """Envelope requesting pending stdout/stderr of ``command_id``."""
    body = (
        "<rsp:Receive>"
        f"<rsp:DesiredStream CommandId={quoteattr(command_id)}>stdout stderr</rsp:DesiredStream>"
        "</rsp:Receive>"
    )
    return _envelope(to, Action.RECEIVE, body, shell_id=shell_id)


def build_signal(to: str, shell_id: str, command_id: str, code: str = SIGNAL_TERMINATE) -> str:
    """Envelope sending a signal (terminate by default) to ``command_id``."""
    body = (
        f"<rsp:Signal CommandId={quoteattr(command_id)}>"
        f"<rsp:Code>{escape_xml(code)}</rsp:Code>"
        "</rsp:Signal>"
    )
    return _envelope(to, Action.SIGNAL, body, shell_id=shell_id)


def build_delete_shell(to: str, shell_id: str) -> str:
    """Envelope deleting the shell. The body is empty."""
    return _envelope(to, Action.DELETE, "", shell_id=shell_id)


def _option_set(options: dict[str, str]) -> str:
    entries = "".join(
        f"<wsman:Option Name={quoteattr(name)}>{escape_xml(value)}</wsman:Option>"
        for name, value in options.items()
    )
    return f"<wsman:OptionSet>{entries}</wsman:OptionSet>"


def _envelope(
    to: str,
    action: str,
    body: str,
    shell_id: str | None = None,
    extra_headers: str = "",
) -> str:
    selector = ""
    if shell_id is not None:
        selector = (
            "<wsman:SelectorSet>"
            f"<wsman:Selector Name=\"ShellId\">{escape_xml(shell_id)}</wsman:Selector>"
            "</wsman:SelectorSet>"
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<s:Envelope xmlns:s="{NAMESPACES["s"]}"'
        f' xmlns:wsa="{NAMESPACES["wsa"]}"'
        f' xmlns:wsman="{NAMESPACES["wsman"]}"'
        f' xmlns:rsp="{NAMESPACES["rsp"]}">'
        "<s:Header>"
        f"<wsa:To>{escape_xml(to)}</wsa:To>"
        f'<wsman:ResourceURI s:mustUnderstand="true">{SHELL_RESOURCE_URI}</wsman:ResourceURI>'
        "<wsa:ReplyTo>"
        f'<wsa:Address s:mustUnderstand="true">{ANONYMOUS_ADDRESS}</wsa:Address>'
        "</wsa:ReplyTo>"
        f'<wsa:Action s:mustUnderstand="true">{action}</wsa:Action>'
        f'<wsman:MaxEnvelopeSize s:mustUnderstand="true">{MAX_ENVELOPE_SIZE}</wsman:MaxEnvelopeSize>'
        f"<wsa:MessageID>{new_message_id()}</wsa:MessageID>"
        '<wsman:Locale xml:lang="en-US" s:mustUnderstand="false"/>'
        f"{selector}"
        f"{extra_headers}"
        f"<wsman:OperationTimeout>{OPERATION_TIMEOUT}</wsman:OperationTimeout>"
        "</s:Header>"
        f"<s:Body>{body}</s:Body>"
        "</s:Envelope>"
    )
