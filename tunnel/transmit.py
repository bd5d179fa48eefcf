"""
Transmit — one proxied HTTP request/response cycle for an
established session.

Only an unknown session gets an explicit answer (401).  Everything
else that goes wrong before the outbound call is a silent drop, so
tampering, malformed input and forbidden hosts look the same from
outside.
"""

import binascii
import logging
from typing import Callable, Iterable, Mapping
from urllib.parse import urlsplit

from core.crypto_engine import (
    AuthenticationError, Mode, decrypt, encrypt, MIN_CIPHERTEXT_LEN,
)
from tunnel.outbound      import OutboundRelay
from tunnel.reply         import Reply
from tunnel.session_store import SessionStore
from utils.wire           import (
    HEADER_SESSION_HEADERS, HEADER_SESSION_ID,
    b64decode, parse_descriptor,
)

logger = logging.getLogger("HTTPTunnel.Transmit")

UNAUTHORIZED = Reply(status=401)


def url_host(url: str) -> str:
    """Host component of *url* (with port, without userinfo)."""
    return urlsplit(url).netloc.rpartition("@")[2]


class TransmitHandler:

    def __init__(self, store: SessionStore,
                 whitelisted_hosts: Iterable[str],
                 outbound: OutboundRelay):
        self.store             = store
        self.whitelisted_hosts = frozenset(whitelisted_hosts)
        self.outbound          = outbound

    def handle(self, headers: Mapping[str, str],
               read_body: Callable[[], bytes]) -> Reply | None:
        session_id = headers.get(HEADER_SESSION_ID) or ""

        # Counts as activity even if the rest of the request is junk.
        session = self.store.touch(session_id)
        if session is None:
            logger.debug("Transmit for unknown session %r", session_id)
            return UNAUTHORIZED
        key = session.key

        try:
            sealed = b64decode(headers.get(HEADER_SESSION_HEADERS))
        except (binascii.Error, ValueError):
            return self._drop(session_id, "bad base64")

        if len(sealed) < MIN_CIPHERTEXT_LEN:
            return self._drop(session_id, "descriptor too short")

        try:
            text = decrypt(key, sealed, Mode.OPTIMIZE_DECRYPTION).decode("utf-8")
        except AuthenticationError:
            return self._drop(session_id, "descriptor not authentic")
        except UnicodeDecodeError:
            return self._drop(session_id, "descriptor not UTF-8")

        descriptor = parse_descriptor(text)
        if descriptor is None:
            return self._drop(session_id, "descriptor has too few lines")

        try:
            host = url_host(descriptor.url)
        except ValueError:
            return self._drop(session_id, "unparsable URL")

        if host not in self.whitelisted_hosts:
            return self._drop(session_id, f"host {host!r} not whitelisted")

        try:
            payload = decrypt(key, read_body(), Mode.OPTIMIZE_DECRYPTION)
        except AuthenticationError:
            return self._drop(session_id, "body not authentic")
        except OSError as exc:
            return self._drop(session_id, f"body unreadable ({exc})")

        result = self.outbound.request(
            descriptor.url, descriptor.method, descriptor.headers,
            payload, headers,
        )
        logger.info("Session %s: %s %s → %d",
                    session_id, descriptor.method, host, result.status)

        try:
            body = encrypt(key, result.body, Mode.OPTIMIZE_ENCRYPTION)
        except ValueError:
            body = b""
        return Reply(status=result.status, body=body)

    @staticmethod
    def _drop(session_id: str, reason: str) -> None:
        logger.debug("Transmit for %s dropped: %s", session_id, reason)
        return None
