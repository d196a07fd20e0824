"""HTTP transport with the Negotiate challenge-response loop.

Posts SOAP envelopes to the WinRM endpoint and authenticates each one
with ``Authorization: Negotiate <token>``. A ``401`` carrying a
``WWW-Authenticate: Negotiate <challenge>`` header feeds the challenge
back into the negotiator and the same body is posted again.
"""

from __future__ import annotations

import asyncio
import logging
import re

import httpx

from winrmkrb.auth.base import Negotiator
from winrmkrb.config.settings import ClientConfig
from winrmkrb.domain.errors import (
    AuthenticationError,
    ParseError,
    RequestTimeoutError,
    TransportError,
)
from winrmkrb.domain.models import SoapResponse
from winrmkrb.soap.parser import find_fault, parse_soap

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/soap+xml;charset=UTF-8"

NEGOTIATE_CHALLENGE_PATTERN = re.compile(r"Negotiate\s+([A-Za-z0-9+/]+=*)", re.I)


def extract_challenge(response: httpx.Response) -> str | None:
    """Base64 challenge from the Negotiate ``WWW-Authenticate`` header, if any."""
    header = ", ".join(response.headers.get_list("WWW-Authenticate"))
    match = NEGOTIATE_CHALLENGE_PATTERN.search(header)
    return match.group(1) if match else None


class WinRMTransport:
    """Sends SOAP bodies to one WinRM endpoint.

    The whole exchange for a request, including every negotiation round,
    is bounded by ``config.timeout_ms``.
    """

    def __init__(
        self,
        config: ClientConfig,
        negotiator: Negotiator,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._negotiator = negotiator
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the HTTP client. Safe to call when already connected."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout_seconds,
            verify=self._config.verify_ssl if self._config.use_ssl else True,
            transport=self._transport,
        )
        logger.debug("HTTP client ready for %s", self._config.endpoint_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP client closed")

    async def send(self, body: str) -> SoapResponse:
        """Post ``body`` and return the parsed 2xx response.

        Raises:
            AuthenticationError: The handshake failed or ran out of rounds.
            TransportError: Any other non-2xx status or a connection failure.
            RequestTimeoutError: The exchange exceeded the configured timeout.
            ParseError: The 2xx body is not well-formed XML.
        """
        if self._client is None:
            raise TransportError("Not connected to endpoint")
        try:
            return await asyncio.wait_for(
                self._exchange(body), timeout=self._config.timeout_seconds
            )
        except RequestTimeoutError:
            raise
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(
                f"Request to {self._config.endpoint_url} timed out after {self._config.timeout_ms} ms"
            ) from e

    async def _exchange(self, body: str) -> SoapResponse:
        token = self._negotiator.initial_step()
        rounds = 0
        while True:
            response = await self._post(body, token)
            status = response.status_code
            logger.debug("POST %s -> %d (round %d)", self._config.endpoint_url, status, rounds)

            if 200 <= status < 300:
                return parse_soap(response.content)

            if status == 401:
                challenge = extract_challenge(response)
                if challenge is None:
                    raise AuthenticationError(
                        "Server rejected authentication without a Negotiate challenge",
                        rounds=rounds,
                    )
                rounds += 1
                if rounds > self._config.max_negotiation_rounds:
                    raise AuthenticationError(
                        f"Negotiation did not complete within "
                        f"{self._config.max_negotiation_rounds} rounds",
                        rounds=rounds - 1,
                    )
                token = self._negotiator.step(challenge)
                continue

            raise self._status_error(response)

    async def _post(self, body: str, token: str) -> httpx.Response:
        if self._client is None:
            raise TransportError("Not connected to endpoint")
        headers = {
            "Authorization": f"Negotiate {token}",
            "Content-Type": CONTENT_TYPE,
        }
        try:
            return await self._client.post(
                self._config.endpoint_url,
                content=body.encode("utf-8"),
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Request to {self._config.endpoint_url} timed out: {e}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"HTTP request to {self._config.endpoint_url} failed: {e}"
            ) from e

    def _status_error(self, response: httpx.Response) -> TransportError:
        fault_code = fault_reason = None
        if response.content:
            try:
                fault_code, fault_reason = find_fault(parse_soap(response.content))
            except ParseError:
                logger.debug("Error body from %s is not XML", self._config.endpoint_url)

        message = f"Bad HTTP response from {self._config.endpoint_url}: {response.status_code}"
        if fault_reason:
            message = f"{message} ({fault_reason})"
        return TransportError(
            message,
            status_code=response.status_code,
            fault_code=fault_code,
            fault_reason=fault_reason,
        )
