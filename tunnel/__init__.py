"""
HTTPTunnel relay layer.
"""

from .session_store import Session, SessionStore
from .handshake     import HandshakeHandler
from .transmit      import TransmitHandler
from .outbound      import OutboundRelay, OutboundResult
from .reply         import Reply
from .relay_server  import RelayServer
from .client        import TransmitClient, TransmitError

__all__ = [
    "Session",
    "SessionStore",
    "HandshakeHandler",
    "TransmitHandler",
    "OutboundRelay",
    "OutboundResult",
    "Reply",
    "RelayServer",
    "TransmitClient",
    "TransmitError",
]
