"""
Session handshake.

The client picks a session id and a random session key, seals the
key under the relay's master key and sends both as headers.  The
relay unwraps the key, registers the session and answers with an
empty payload sealed under the session key — proof that both sides
now share it.

Every failure is a silent drop: no body, no state change, and no way
for the caller to tell a wrong master key from a malformed request.
"""

import binascii
import logging
from typing import Mapping

from core.crypto_engine import (
    AuthenticationError, Mode, decrypt, encrypt,
    KEY_LEN, MIN_CIPHERTEXT_LEN,
)
from tunnel.reply         import Reply
from tunnel.session_store import SessionStore
from utils.wire           import (
    HEADER_SESSION_ID, HEADER_SESSION_KEY, b64decode,
)

logger = logging.getLogger("HTTPTunnel.Handshake")

MIN_HANDSHAKE_LEN = MIN_CIPHERTEXT_LEN + KEY_LEN


class HandshakeHandler:

    def __init__(self, store: SessionStore, master_key: bytes):
        if len(master_key) != KEY_LEN:
            raise ValueError("Invalid key length.")
        self.store       = store
        self._master_key = bytes(master_key)

    def handle(self, headers: Mapping[str, str]) -> Reply | None:
        session_id = headers.get(HEADER_SESSION_ID) or ""

        try:
            sealed = b64decode(headers.get(HEADER_SESSION_KEY))
        except (binascii.Error, ValueError):
            logger.debug("Handshake %r dropped: bad base64", session_id)
            return None

        if len(sealed) < MIN_HANDSHAKE_LEN:
            logger.debug("Handshake %r dropped: %d bytes is too short",
                         session_id, len(sealed))
            return None

        try:
            session_key = decrypt(self._master_key, sealed,
                                  Mode.OPTIMIZE_DECRYPTION)
        except AuthenticationError:
            logger.debug("Handshake %r dropped: not authentic", session_id)
            return None

        if len(session_key) < KEY_LEN:
            logger.debug("Handshake %r dropped: session key too short",
                         session_id)
            return None

        # A replayed handshake for a live id keeps the original key, but
        # the acknowledgement is still sealed under the key just unwrapped.
        self.store.create_if_absent(session_id, session_key)

        try:
            ack = encrypt(session_key, b"", Mode.OPTIMIZE_ENCRYPTION)
        except ValueError:
            return None
        return Reply(body=ack)
