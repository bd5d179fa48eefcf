"""
HTTPTunnel relay — HTTP front end for the handshake and transmit
endpoints.

Each inbound request is handled in its own daemon thread
(``ThreadingHTTPServer``); the session sweeper runs in one more.
A handler that returns ``None`` gets nothing written back and the
connection is closed.
"""

import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Iterable

import httpx

from config.settings      import Settings
from tunnel.handshake     import HandshakeHandler
from tunnel.outbound      import OutboundRelay
from tunnel.reply         import Reply
from tunnel.session_store import SessionStore
from tunnel.transmit      import TransmitHandler

logger = logging.getLogger("HTTPTunnel.Relay")

# Written in place of the outbound "no response" status 0.
BAD_GATEWAY = 502

NO_BODY_STATUSES = frozenset({204, 304})


class RelayServer:
    """
    Parameters
    ----------
    whitelisted_hosts : iterable of str
        Destination hosts (``host`` or ``host:port``) transmits may reach.
    master_key : bytes
        KEY_LEN-byte secret that unwraps client session keys.
    max_session_age : float
        Idle seconds after which a session is swept.
    host, port : str, int
        Listening address; port 0 picks a free one.
    transport : httpx.BaseTransport | None
        Overrides the outbound transport (tests).
    """

    def __init__(
        self,
        whitelisted_hosts: Iterable[str],
        master_key: bytes,
        max_session_age: float,
        host: str = Settings.RELAY_HOST,
        port: int = Settings.DEFAULT_PORT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.host = host
        self.port = port

        self.store     = SessionStore(max_age=max_session_age)
        self.outbound  = OutboundRelay(transport=transport)
        self.handshake = HandshakeHandler(self.store, master_key)
        self.transmit  = TransmitHandler(
            self.store, whitelisted_hosts, self.outbound
        )

        self._httpd: ThreadingHTTPServer | None = None
        self._serve_thread: threading.Thread | None = None

    # ── lifecycle ────────────────────────────────────────────────
    def bind(self):
        if self._httpd is not None:
            return
        self._httpd = ThreadingHTTPServer(
            (self.host, self.port), _make_handler(self)
        )
        self._httpd.daemon_threads = True
        self.store.start()
        host, port = self.address
        logger.info(
            "Relay listening on %s:%d (%d whitelisted hosts)",
            host, port, len(self.transmit.whitelisted_hosts),
        )

    def start(self):
        """Bind and serve in a background thread."""
        if self._serve_thread is not None:
            logger.warning("Relay already running")
            return
        self.bind()
        self._serve_thread = threading.Thread(
            target=self._httpd.serve_forever, daemon=True,
            name="RelayServe",
        )
        self._serve_thread.start()

    def serve_forever(self):
        """Bind and serve on the calling thread until stop()."""
        self.bind()
        self._httpd.serve_forever()

    def stop(self):
        """Shut everything down gracefully."""
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None
        if self._serve_thread is not None:
            self._serve_thread.join()
            self._serve_thread = None
        self.store.stop()
        self.outbound.close()
        logger.info("Relay stopped")

    @property
    def address(self) -> tuple[str, int]:
        if self._httpd is None:
            return self.host, self.port
        host, port = self._httpd.server_address[:2]
        return host, port

    @property
    def url(self) -> str:
        host, port = self.address
        return f"http://{host}:{port}"

    # ── dispatch ─────────────────────────────────────────────────
    def dispatch(self, path: str, request: "_RelayRequestHandler") -> Reply | None:
        path = path.split("?", 1)[0]
        if path == Settings.HANDSHAKE_PATH:
            return self.handshake.handle(request.headers)
        if path == Settings.TRANSMIT_PATH:
            return self.transmit.handle(request.headers, request.read_body)
        return Reply(status=404)


class _RelayRequestHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"
    server_version   = "HTTPTunnel"
    relay: RelayServer

    def do_POST(self):
        self._body_read = False
        # chunked bodies are not read; the connection cannot be reused
        if "Transfer-Encoding" in self.headers:
            self.close_connection = True
        reply = self.relay.dispatch(self.path, self)
        # drain so keep-alive stays aligned and a drop closes with FIN, not RST
        if not self._body_read:
            self._discard_body()
        if reply is None:
            self.close_connection = True
            return
        self._write(reply)

    do_GET = do_POST
    do_PUT = do_POST

    def read_body(self) -> bytes:
        self._body_read = True
        raw = self.headers.get("Content-Length") or "0"
        try:
            length = int(raw)
        except ValueError:
            raise OSError(f"Bad Content-Length {raw!r}") from None
        if length < 0 or length > Settings.MAX_BODY_SIZE:
            raise OSError(f"Content-Length {length} out of range")
        return self.rfile.read(length) if length else b""

    def _discard_body(self):
        try:
            self.read_body()
        except OSError:
            self.close_connection = True

    def _write(self, reply: Reply):
        status = 200 if reply.status is None else reply.status
        if not 100 <= status <= 599:
            status = BAD_GATEWAY
        body = reply.body
        if status < 200 or status in NO_BODY_STATUSES:
            body = b""
        self.send_response(status)
        self.send_header("Content-Type", "application/octet-stream")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def _make_handler(relay: RelayServer) -> type[_RelayRequestHandler]:
    return type(
        "RelayRequestHandler", (_RelayRequestHandler,), {"relay": relay}
    )
