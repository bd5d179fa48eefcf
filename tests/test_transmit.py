import base64
import os

import httpx
import pytest

from core.crypto_engine import decrypt, encrypt, KEY_LEN
from tunnel.outbound    import OutboundRelay
from tunnel.transmit    import TransmitHandler, url_host
from utils.wire         import HEADER_SESSION_HEADERS, HEADER_SESSION_ID

ALLOWED = "allowed.example"


@pytest.fixture
def session(store, session_key):
    return store.create_if_absent("s1", session_key)


@pytest.fixture
def handler(store, outbound):
    return TransmitHandler(store, {ALLOWED, "ported.example:8080"}, outbound)


def body_reader(data: bytes):
    return lambda: data


def test_unknown_session_is_unauthorized(handler, session_key, transmit_headers):
    headers = transmit_headers(session_key, f"http://{ALLOWED}/", session_id="nope")
    reply   = handler.handle(headers, body_reader(encrypt(session_key, b"")))
    assert reply.status == 401
    assert reply.body == b""


def test_relays_request_and_encrypts_response(handler, session, session_key, destination, transmit_headers):
    headers = transmit_headers(
        session_key, f"http://{ALLOWED}/path?q=1", "POST",
        [("Content-Type", "text/plain"), ("X-Custom", "a: b")],
    )
    headers["CF-Connecting-IP"] = "203.0.113.7"
    headers["X-Forwarded-For"]  = "198.51.100.1"

    reply = handler.handle(headers, body_reader(encrypt(session_key, b"payload")))

    assert reply.status == 200
    assert decrypt(session_key, reply.body) == b"hello from destination"

    [sent] = destination.requests
    assert sent.method == "POST"
    assert str(sent.url) == f"http://{ALLOWED}/path?q=1"
    assert sent.content == b"payload"
    assert sent.headers["Content-Type"] == "text/plain"
    assert sent.headers["X-Custom"] == "a: b"
    assert sent.headers["X-Forwarded-For"] == "203.0.113.7,198.51.100.1"


def test_destination_status_is_passed_through(handler, session, session_key, destination, transmit_headers):
    destination.status = 418
    reply = handler.handle(
        transmit_headers(session_key, f"http://{ALLOWED}/"),
        body_reader(encrypt(session_key, b"")),
    )
    assert reply.status == 418


def test_decrypted_headers_override_defaults(handler, session, session_key, destination, transmit_headers):
    handler.handle(
        transmit_headers(session_key, f"http://{ALLOWED}/", "GET",
                         [("User-Agent", "tunnel-test")]),
        body_reader(encrypt(session_key, b"")),
    )
    assert destination.requests[0].headers["User-Agent"] == "tunnel-test"


def test_method_is_sent_verbatim(handler, session, session_key, destination, transmit_headers):
    reply = handler.handle(
        transmit_headers(session_key, f"http://{ALLOWED}/", "patch"),
        body_reader(encrypt(session_key, b"")),
    )
    assert reply.status == 200
    assert destination.requests[0].method == "patch"


def test_port_is_part_of_whitelisted_host(handler, session, session_key, destination, transmit_headers):
    ok = handler.handle(
        transmit_headers(session_key, "http://ported.example:8080/"),
        body_reader(encrypt(session_key, b"")),
    )
    dropped = handler.handle(
        transmit_headers(session_key, "http://ported.example/"),
        body_reader(encrypt(session_key, b"")),
    )
    assert ok.status == 200
    assert dropped is None
    assert len(destination.requests) == 1


def test_non_whitelisted_host_is_dropped(handler, session, session_key, destination, transmit_headers):
    reply = handler.handle(
        transmit_headers(session_key, "http://evil.example/"),
        body_reader(encrypt(session_key, b"")),
    )
    assert reply is None
    assert destination.requests == []


def test_host_match_is_case_sensitive(handler, session, session_key, destination, transmit_headers):
    reply = handler.handle(
        transmit_headers(session_key, "http://ALLOWED.example/"),
        body_reader(encrypt(session_key, b"")),
    )
    assert reply is None


def test_garbage_descriptor_is_dropped_but_refreshes_session(
        handler, session, store, clock, destination):
    clock.advance(50)
    headers = {HEADER_SESSION_ID: "s1", HEADER_SESSION_HEADERS: "!!garbage!!"}

    assert handler.handle(headers, body_reader(b"")) is None
    assert store.get("s1").last_activity == clock.now
    assert destination.requests == []


def test_short_descriptor_is_dropped(handler, session):
    headers = {
        HEADER_SESSION_ID:      "s1",
        HEADER_SESSION_HEADERS: base64.b64encode(b"short").decode(),
    }
    assert handler.handle(headers, body_reader(b"")) is None


def test_descriptor_under_wrong_key_is_dropped(handler, session, session_key, transmit_headers):
    headers = transmit_headers(os.urandom(KEY_LEN), f"http://{ALLOWED}/")
    assert handler.handle(headers, body_reader(encrypt(session_key, b""))) is None


def test_single_line_descriptor_is_dropped(handler, session, session_key):
    sealed  = encrypt(session_key, f"http://{ALLOWED}/".encode())
    headers = {
        HEADER_SESSION_ID:      "s1",
        HEADER_SESSION_HEADERS: base64.b64encode(sealed).decode(),
    }
    assert handler.handle(headers, body_reader(encrypt(session_key, b""))) is None


def test_unparsable_url_is_dropped(handler, session, session_key, destination, transmit_headers):
    reply = handler.handle(
        transmit_headers(session_key, "http://[::1/"),
        body_reader(encrypt(session_key, b"")),
    )
    assert reply is None
    assert destination.requests == []


def test_unauthentic_body_is_dropped(handler, session, session_key, destination, transmit_headers):
    reply = handler.handle(
        transmit_headers(session_key, f"http://{ALLOWED}/"),
        body_reader(os.urandom(64)),
    )
    assert reply is None
    assert destination.requests == []


def test_unreadable_body_is_dropped(handler, session, session_key, transmit_headers):
    def broken():
        raise ConnectionResetError("peer went away")

    reply = handler.handle(
        transmit_headers(session_key, f"http://{ALLOWED}/"), broken,
    )
    assert reply is None


def test_unreachable_destination_returns_status_zero(store, session, session_key, transmit_headers):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    relay   = OutboundRelay(transport=httpx.MockTransport(refuse))
    handler = TransmitHandler(store, {ALLOWED}, relay)
    try:
        reply = handler.handle(
            transmit_headers(session_key, f"http://{ALLOWED}/"),
            body_reader(encrypt(session_key, b"")),
        )
    finally:
        relay.close()

    assert reply.status == 0
    assert decrypt(session_key, reply.body) == b""


@pytest.mark.parametrize("url, host", [
    ("http://example.com/a", "example.com"),
    ("https://example.com:8443/", "example.com:8443"),
    ("http://user:pw@example.com/", "example.com"),
    ("not a url", ""),
])
def test_url_host(url, host):
    assert url_host(url) == host
