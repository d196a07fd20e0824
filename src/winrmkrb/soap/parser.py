"""Parsing of WinRM SOAP responses.

``find_*`` functions return None when a value is absent, since absence
is an ordinary outcome for some responses. ``parse_*`` functions are
for values that must be present and raise ``ProtocolError`` otherwise.
Malformed XML always raises ``ParseError``.
"""

from __future__ import annotations

import base64
import binascii
import logging
import xml.etree.ElementTree as ET

from winrmkrb.domain.errors import ParseError, ProtocolError
from winrmkrb.domain.models import NAMESPACES, CommandOutput, SoapResponse

logger = logging.getLogger(__name__)

COMMAND_STATE_DONE = "http://schemas.microsoft.com/wbem/wsman/1/windows/shell/CommandState/Done"

# WSManFault code the server returns when Receive had nothing to report
# within OperationTimeout.
OPERATION_TIMEOUT_FAULT = "2150858793"


def parse_soap(text: str | bytes) -> SoapResponse:
    """Parse a response body into a ``SoapResponse``."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseError(f"Malformed XML in response: {e}") from e
    raw = text.decode("utf-8", errors="replace") if isinstance(text, bytes) else text
    return SoapResponse(root, raw=raw)


def find_shell_id(response: SoapResponse) -> str | None:
    """Shell identifier from a Create response.

    Servers put it in ``rsp:Shell/rsp:ShellId``; some only return the
    ``ShellId`` selector of the created resource.
    """
    shell_id = response.find_text("ShellId")
    if shell_id:
        return shell_id
    for selector in response.findall("Selector", "wsman"):
        if selector.get("Name") == "ShellId" and selector.text and selector.text.strip():
            return selector.text.strip()
    return None


def parse_shell_id(response: SoapResponse) -> str:
    shell_id = find_shell_id(response)
    if shell_id is None:
        raise ProtocolError("shellId not found")
    return shell_id


def find_command_id(response: SoapResponse) -> str | None:
    """Command identifier from a Command response."""
    return response.find_text("CommandId")


def parse_command_id(response: SoapResponse) -> str:
    command_id = find_command_id(response)
    if command_id is None:
        raise ProtocolError("commandId not found")
    return command_id


def parse_receive(response: SoapResponse) -> CommandOutput:
    """Split a Receive response into stdout, stderr and command state."""
    stdout = bytearray()
    stderr = bytearray()
    for stream in response.findall("Stream"):
        data = _decode_stream(stream)
        if stream.get("Name") == "stderr":
            stderr.extend(data)
        else:
            stdout.extend(data)

    done = False
    exit_code = None
    state = response.find("CommandState")
    if state is not None:
        done = state.get("State") == COMMAND_STATE_DONE
        code = state.find(f"{{{NAMESPACES['rsp']}}}ExitCode")
        if code is not None and code.text and code.text.strip():
            try:
                exit_code = int(code.text.strip())
            except ValueError as e:
                raise ProtocolError(f"Invalid exit code {code.text!r}") from e

    return CommandOutput(stdout=bytes(stdout), stderr=bytes(stderr), done=done, exit_code=exit_code)


def parse_receive_output(response: SoapResponse) -> str:
    """All stream contents in document order as text, trailing whitespace trimmed.

    An empty string means no output was available yet.
    """
    data = b"".join(_decode_stream(stream) for stream in response.findall("Stream"))
    return data.decode("utf-8", errors="replace").rstrip()


def find_fault(response: SoapResponse) -> tuple[str | None, str | None]:
    """WSManFault code and message, or (None, None) if this is not a fault."""
    if response.find("Fault", "s") is None:
        return None, None

    code = None
    message = None
    wsman_fault = response.find("WSManFault", "wsmanfault")
    if wsman_fault is not None:
        code = wsman_fault.get("Code")
        message_element = wsman_fault.find(f"{{{NAMESPACES['wsmanfault']}}}Message")
        if message_element is not None:
            message = "".join(message_element.itertext()).strip() or None
    if message is None:
        message = response.find_text("Text", "s")
    return code, message


def _decode_stream(stream: ET.Element) -> bytes:
    if not stream.text:
        return b""
    try:
        return base64.b64decode(stream.text.strip())
    except (binascii.Error, ValueError) as e:
        raise ProtocolError(f"Stream {stream.get('Name')!r} is not valid base64") from e
