"""Abstract base class for HTTP Negotiate token producers.

The transport only needs two operations from an authenticator: the
opening token for a request and the follow-up token for each server
challenge. Keeping that behind an interface lets the transport be
exercised without a Kerberos library or KDC.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Negotiator(ABC):
    """Produces base64 tokens for the ``Authorization: Negotiate`` header.

    Example usage::

        negotiator = KerberosNegotiator(spn="HTTP/winhost.example.test")
        token = negotiator.initial_step()
        # ... 401 with "WWW-Authenticate: Negotiate <challenge>"
        token = negotiator.step(challenge)
    """

    @abstractmethod
    def initial_step(self) -> str:
        """Start a fresh security context and return its first token.

        Raises:
            AuthenticationError: If the context cannot be established.
        """
        ...

    @abstractmethod
    def step(self, challenge: str) -> str:
        """Consume a base64 server challenge and return the next token.

        Args:
            challenge: The challenge with the ``Negotiate `` prefix removed.

        Raises:
            AuthenticationError: If the challenge is rejected or the
                context has not been started.
        """
        ...
