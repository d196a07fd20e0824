"""Core domain models for winrmkrb.

These models represent the data flowing through the client: the shell
session state, parsed SOAP responses and the output collected from
remote commands.
"""

from __future__ import annotations

import enum
import xml.etree.ElementTree as ET
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Namespaces
# ---------------------------------------------------------------------------


NAMESPACES = {
    "s": "http://www.w3.org/2003/05/soap-envelope",
    "wsa": "http://schemas.xmlsoap.org/ws/2004/08/addressing",
    "wsman": "http://schemas.dmtf.org/wbem/wsman/1/wsman.xsd",
    "wsmanfault": "http://schemas.microsoft.com/wbem/wsman/1/wsmanfault",
    "rsp": "http://schemas.microsoft.com/wbem/wsman/1/windows/shell",
    "xml": "http://www.w3.org/XML/1998/namespace",
}


# ---------------------------------------------------------------------------
# Shell Session State (tagged union)
# ---------------------------------------------------------------------------


class ShellState(str, enum.Enum):
    """Lifecycle state of the client's remote shell."""

    UNOPENED = "unopened"
    OPEN = "open"


class ShellClosed(BaseModel):
    """No shell exists on the server for this client."""

    model_config = ConfigDict(frozen=True)

    state: Literal["unopened"] = "unopened"


class ShellOpen(BaseModel):
    """A shell has been created and is identified by ``shell_id``."""

    model_config = ConfigDict(frozen=True)

    state: Literal["open"] = "open"
    shell_id: str = Field(min_length=1, description="Server-assigned shell identifier")


ShellSession = Annotated[
    Union[ShellClosed, ShellOpen],
    Field(discriminator="state"),
]


# ---------------------------------------------------------------------------
# SOAP Response
# ---------------------------------------------------------------------------


class SoapResponse:
    """A parsed SOAP envelope.

    Lookups match elements by namespace URI and local name, so the
    prefixes a server chooses for its namespaces do not matter.
    """

    def __init__(self, root: ET.Element, raw: str = "") -> None:
        self._root = root
        self._raw = raw

    @property
    def root(self) -> ET.Element:
        return self._root

    @property
    def raw(self) -> str:
        return self._raw

    def find(self, local_name: str, namespace: str = "rsp") -> ET.Element | None:
        """First element anywhere in the document with the given name."""
        return self._root.find(f".//{{{NAMESPACES[namespace]}}}{local_name}")

    def findall(self, local_name: str, namespace: str = "rsp") -> list[ET.Element]:
        """All matching elements in document order."""
        return self._root.findall(f".//{{{NAMESPACES[namespace]}}}{local_name}")

    def find_text(self, local_name: str, namespace: str = "rsp") -> str | None:
        """Stripped text of the first matching element, None if absent or empty."""
        element = self.find(local_name, namespace)
        if element is None or element.text is None:
            return None
        text = element.text.strip()
        return text or None


# ---------------------------------------------------------------------------
# Command Output Models
# ---------------------------------------------------------------------------


class CommandOutput(BaseModel):
    """Output collected by a single Receive request.

    Empty streams with ``done`` False mean the command is still running
    and the caller should receive again.
    """

    model_config = ConfigDict(frozen=True)

    stdout: bytes = Field(default=b"")
    stderr: bytes = Field(default=b"")
    done: bool = Field(default=False, description="Whether the command has finished")
    exit_code: int | None = Field(default=None)


class CommandResult(BaseModel):
    """Aggregated result of running a command to completion."""

    model_config = ConfigDict(frozen=True)

    command: str
    stdout: str = Field(default="")
    stderr: str = Field(default="")
    exit_code: int | None = Field(default=None)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
