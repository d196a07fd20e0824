"""Domain models and errors for winrmkrb.

This package contains the core data structures and the exception
hierarchy used throughout the client.
"""

from winrmkrb.domain.errors import (
    AuthenticationError,
    ParseError,
    PreconditionError,
    ProtocolError,
    RequestTimeoutError,
    TransportError,
    WinRMError,
)
from winrmkrb.domain.models import (
    CommandOutput,
    CommandResult,
    ShellClosed,
    ShellOpen,
    ShellSession,
    ShellState,
    SoapResponse,
)

__all__ = [
    "AuthenticationError",
    "CommandOutput",
    "CommandResult",
    "ParseError",
    "PreconditionError",
    "ProtocolError",
    "RequestTimeoutError",
    "ShellClosed",
    "ShellOpen",
    "ShellSession",
    "ShellState",
    "SoapResponse",
    "TransportError",
    "WinRMError",
]
