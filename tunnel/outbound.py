"""
Outbound relay — performs the real HTTP call for a transmit.

Failures never propagate: a request that cannot be built or sent,
or whose response cannot be read, yields ``OutboundResult(0, b"")``.
"""

import logging
from dataclasses import dataclass
from typing import Mapping

import httpx

logger = logging.getLogger("HTTPTunnel.Outbound")

FORWARDED_FOR_HEADER = "X-Forwarded-For"
CONNECTING_IP_HEADER = "CF-Connecting-IP"


@dataclass(frozen=True)
class OutboundResult:
    status: int
    body:   bytes


NO_RESPONSE = OutboundResult(0, b"")


def forwarded_for(inbound_headers: Mapping[str, str]) -> str:
    """Join the connecting IP and the upstream proxy chain, trimming stray commas."""
    chain = (
        (inbound_headers.get(CONNECTING_IP_HEADER) or "") + "," +
        (inbound_headers.get(FORWARDED_FOR_HEADER) or "")
    )
    return chain.strip(",")


class OutboundRelay:
    """
    Thin wrapper around an ``httpx.Client``.

    Redirects are followed and the body is returned decoded, since
    only the body travels back to the client.  No retries; timeouts
    are the client defaults.
    """

    def __init__(self, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(
            transport=transport,
            follow_redirects=True,
        )

    def close(self):
        self._client.close()

    def request(self, url: str, method: str,
                headers: list[tuple[str, str]],
                body: bytes,
                inbound_headers: Mapping[str, str]) -> OutboundResult:
        try:
            request = self._client.build_request(
                method or "GET", url, content=body,
            )
            # httpx upper-cases methods; the destination sees the one sent
            request.method = method or "GET"
            # decrypted headers replace same-named defaults
            for name, value in headers:
                request.headers[name] = value
            request.headers[FORWARDED_FOR_HEADER] = forwarded_for(
                inbound_headers
            )
            response = self._client.send(request)
        except (httpx.HTTPError, httpx.InvalidURL,
                httpx.StreamError, ValueError) as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            return NO_RESPONSE

        logger.debug("%s %s → %d (%d bytes)",
                     method, url, response.status_code,
                     len(response.content))
        return OutboundResult(response.status_code, response.content)
