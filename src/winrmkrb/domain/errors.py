"""Exception hierarchy for the WinRM client.

Every failure surfaces to the caller as one of these types. None of them
are retried inside the client except for the Negotiate challenge loop.
"""

from __future__ import annotations


class WinRMError(Exception):
    """Base class for all client errors."""


class PreconditionError(WinRMError):
    """Raised when an operation is invoked in the wrong shell state.

    No network request is issued before this is raised.
    """


class AuthenticationError(WinRMError):
    """Raised when the Kerberos/Negotiate handshake cannot complete."""

    def __init__(self, message: str, rounds: int = 0) -> None:
        super().__init__(message)
        self.rounds = rounds


class TransportError(WinRMError):
    """Raised on a non-2xx, non-401 response or a connection failure."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        fault_code: str | None = None,
        fault_reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.fault_code = fault_code
        self.fault_reason = fault_reason


class RequestTimeoutError(WinRMError, TimeoutError):
    """Raised when a request exceeds the configured timeout."""


class ParseError(WinRMError):
    """Raised when a response body is not well-formed XML."""


class ProtocolError(WinRMError):
    """Raised when a response does not have the expected WinRM shape."""
