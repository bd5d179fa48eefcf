from dataclasses import dataclass


@dataclass(frozen=True)
class Reply:
    """What a handler wants written back.  ``status=None`` keeps the default."""
    status: int | None = None
    body:   bytes      = b""
