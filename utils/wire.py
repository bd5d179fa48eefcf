"""
Header names and payload codecs for the HTTPTunnel wire protocol.

Handshake request:
    HT-Session-ID      plaintext session identifier
    HT-Session-Key     base64( encrypt(master_key, session_key) )

Transmit request:
    HT-Session-ID      plaintext session identifier
    HT-Session-Headers base64( encrypt(session_key, descriptor) )
    body               encrypt(session_key, payload)

Descriptor (newline separated):
    line 0   absolute target URL
    line 1   HTTP method
    line 2.. "Header-Name: value"
"""

import base64
from dataclasses import dataclass, field


HEADER_SESSION_ID      = "HT-Session-ID"
HEADER_SESSION_KEY     = "HT-Session-Key"
HEADER_SESSION_HEADERS = "HT-Session-Headers"

HEADER_SEPARATOR = ": "


@dataclass
class RequestDescriptor:
    url:     str
    method:  str
    headers: list[tuple[str, str]] = field(default_factory=list)


def b64decode(value: str | None) -> bytes:
    """Strict standard base64.  Raises binascii.Error on bad input."""
    return base64.b64decode(value or "", validate=True)


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def encode_descriptor(url: str, method: str,
                      headers: list[tuple[str, str]] | None = None) -> bytes:
    lines = [url, method]
    lines.extend(f"{name}{HEADER_SEPARATOR}{value}"
                 for name, value in (headers or []))
    return ("\n".join(lines) + "\n").encode("utf-8")


def parse_descriptor(text: str) -> RequestDescriptor | None:
    """
    Split a decrypted descriptor.  Returns None when fewer than two
    lines are present.  Header lines without ": " are skipped; the
    first ": " separates name from value.
    """
    lines = text.split("\n")
    if len(lines) < 2:
        return None

    headers = []
    for line in lines[2:]:
        name, sep, value = line.partition(HEADER_SEPARATOR)
        if sep:
            headers.append((name, value))
    return RequestDescriptor(url=lines[0], method=lines[1], headers=headers)
