"""Kerberos negotiator backed by pyspnego.

pyspnego wraps GSSAPI on POSIX and SSPI on Windows, so the same code
obtains service tickets from whatever credential cache the platform
provides.
"""

from __future__ import annotations

import base64
import binascii
import logging

import spnego
from spnego.exceptions import SpnegoError

from winrmkrb.auth.base import Negotiator
from winrmkrb.domain.errors import AuthenticationError

logger = logging.getLogger(__name__)


class KerberosNegotiator(Negotiator):
    """Negotiates with the ticket cache of the current user.

    Credentials are never handled here; a valid ticket-granting ticket
    must already exist (``kinit`` or a domain logon).
    """

    def __init__(
        self,
        service: str = "HTTP",
        hostname: str = "unspecified",
        protocol: str = "kerberos",
    ) -> None:
        self._service = service
        self._hostname = hostname
        self._protocol = protocol
        self._context: spnego.ContextProxy | None = None

    @classmethod
    def from_spn(cls, spn: str, protocol: str = "kerberos") -> KerberosNegotiator:
        """Build a negotiator from an SPN such as ``HTTP/host@REALM``."""
        service, _, rest = spn.partition("/")
        hostname, _, _ = rest.partition("@")
        if not service or not hostname:
            raise AuthenticationError(f"Invalid service principal name: {spn!r}")
        return cls(service=service, hostname=hostname, protocol=protocol)

    @property
    def target(self) -> str:
        return f"{self._service}/{self._hostname}"

    def initial_step(self) -> str:
        try:
            self._context = spnego.client(
                hostname=self._hostname,
                service=self._service,
                protocol=self._protocol,
            )
            token = self._context.step()
        except SpnegoError as e:
            self._context = None
            raise AuthenticationError(
                f"Failed to start security context for {self.target}: {e}"
            ) from e
        logger.debug("Created %s context for %s", self._protocol, self.target)
        return base64.b64encode(token or b"").decode("ascii")

    def step(self, challenge: str) -> str:
        if self._context is None:
            raise AuthenticationError("Security context has not been started")
        try:
            in_token = base64.b64decode(challenge, validate=True)
        except (binascii.Error, ValueError) as e:
            raise AuthenticationError(f"Server challenge is not valid base64: {e}") from e
        try:
            token = self._context.step(in_token)
        except SpnegoError as e:
            raise AuthenticationError(
                f"Security context step failed for {self.target}: {e}"
            ) from e
        return base64.b64encode(token or b"").decode("ascii")
