"""
IPFS client error classes.

Provides a small taxonomy of errors that can occur while talking to the
daemon's HTTP RPC interface. Every public call raises one of these, chained
to the underlying httpx / pydantic / multiformats exception where there is one.
"""
from __future__ import annotations

from typing import Optional


class IpfsError(Exception):
    """Base class for all client errors."""
    pass


class TransportError(IpfsError):
    """
    The request never produced a usable HTTP response.

    Raised when:
    - the daemon cannot be reached (connection refused, DNS)
    - a connect/read/write timeout expires
    - the connection drops in the middle of a response
    """
    pass


class RemoteError(IpfsError):
    """
    The daemon explicitly rejected the request.

    Carries the daemon's ``Message``, ``Code`` and ``Type`` fields verbatim.
    """

    def __init__(self, message: str, code: int, error_type: str):
        super().__init__(message)
        self.message = message
        self.code = code
        self.error_type = error_type

    def __str__(self) -> str:
        return f"{self.message} (code={self.code}, type={self.error_type})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteError):
            return NotImplemented
        return (self.message, self.code, self.error_type) == (other.message, other.code, other.error_type)

    __hash__ = Exception.__hash__


class DecodeError(IpfsError):
    """
    A response did not match any expected shape.

    Usually means a contract mismatch or daemon version skew.
    """

    def __init__(self, message: str, body: Optional[bytes] = None):
        super().__init__(message)
        self.body = body


class MalformedIdentifier(IpfsError, ValueError):
    """A string that should encode a CID, peer id or multibase payload does not."""

    def __init__(self, message: str, text: Optional[str] = None):
        super().__init__(message)
        self.text = text


__all__ = [
    "IpfsError",
    "TransportError",
    "RemoteError",
    "DecodeError",
    "MalformedIdentifier",
]
