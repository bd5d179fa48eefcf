from .random_gen import SecureRandom
from .rwlock     import ReadWriteLock
from .wire       import (
    RequestDescriptor, encode_descriptor, parse_descriptor,
    HEADER_SESSION_ID, HEADER_SESSION_KEY, HEADER_SESSION_HEADERS,
)

__all__ = ["SecureRandom", "ReadWriteLock", "RequestDescriptor",
           "encode_descriptor", "parse_descriptor",
           "HEADER_SESSION_ID", "HEADER_SESSION_KEY",
           "HEADER_SESSION_HEADERS"]
