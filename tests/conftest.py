import base64
import os

import httpx
import pytest

from core.crypto_engine   import encrypt, KEY_LEN
from tunnel.outbound      import OutboundRelay
from tunnel.session_store import SessionStore
from utils.wire           import (
    HEADER_SESSION_HEADERS, HEADER_SESSION_ID, HEADER_SESSION_KEY,
    encode_descriptor,
)


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class Destination:
    """httpx.MockTransport handler that records every request."""

    def __init__(self, status: int = 200, body: bytes = b"hello from destination"):
        self.status   = status
        self.body     = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return httpx.Response(self.status, content=self.body)


@pytest.fixture
def master_key():
    return os.urandom(KEY_LEN)


@pytest.fixture
def session_key():
    return os.urandom(KEY_LEN)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore(max_age=60, clock=clock)


@pytest.fixture
def destination():
    return Destination()


@pytest.fixture
def outbound(destination):
    relay = OutboundRelay(transport=httpx.MockTransport(destination))
    yield relay
    relay.close()


@pytest.fixture
def handshake_headers():
    """Builds handshake headers that seal a session key under a master key."""

    def build(master_key: bytes, session_key: bytes,
              session_id: str = "s1") -> dict:
        sealed = encrypt(master_key, session_key)
        return {
            HEADER_SESSION_ID:  session_id,
            HEADER_SESSION_KEY: base64.b64encode(sealed).decode(),
        }

    return build


@pytest.fixture
def transmit_headers():
    """Builds transmit headers with the descriptor sealed under a session key."""

    def build(session_key: bytes, url: str, method: str = "GET",
              headers=None, session_id: str = "s1") -> dict:
        sealed = encrypt(session_key, encode_descriptor(url, method, headers))
        return {
            HEADER_SESSION_ID:      session_id,
            HEADER_SESSION_HEADERS: base64.b64encode(sealed).decode(),
        }

    return build
