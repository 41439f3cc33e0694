"""
Response envelope decoder.

The daemon's responses are untagged: a body is either the success shape of
the endpoint or a ``{"Message", "Code", "Type"}`` error object. Every RPC
response goes through the same three steps:

1. decode as the expected type and return it;
2. otherwise decode as a daemon error and raise ``RemoteError``;
3. otherwise raise ``DecodeError`` chained to the step-1 failure.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import DecodeError, RemoteError
from .responses import DaemonError

__all__ = ["decode_envelope", "decode_response", "parse_daemon_error", "classify_error_body"]

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

# pydantic.ValidationError, json.JSONDecodeError and UnicodeDecodeError are ValueErrors
_PARSE_ERRORS = (ValueError, TypeError, DecodeError)

_PREVIEW_BYTES = 200


def parse_daemon_error(raw: bytes) -> Optional[RemoteError]:
    """Return the ``RemoteError`` encoded in ``raw``, or None if it is not a daemon error."""
    try:
        error = DaemonError.model_validate_json(raw)
    except ValidationError:
        return None
    return RemoteError(error.message, error.code, error.error_type)


def decode_envelope(raw: bytes, parse: Callable[[bytes], T]) -> T:
    """
    Decode ``raw`` with ``parse``, falling back to the daemon error shape.

    Args:
        raw: Fully buffered response body
        parse: Decoder for the success shape

    Returns:
        Whatever ``parse`` returns

    Raises:
        RemoteError: If ``parse`` fails and the body is a daemon error
        DecodeError: If the body matches neither shape
    """
    try:
        return parse(raw)
    except _PARSE_ERRORS as e:
        parse_error = e

    remote = parse_daemon_error(raw)
    if remote is not None:
        raise remote

    logger.debug(f"Undecodable response body: {raw[:_PREVIEW_BYTES]!r}")
    raise DecodeError(f"Unexpected response shape: {parse_error}", body=raw) from parse_error


def decode_response(raw: bytes, model: Type[M]) -> M:
    """Decode ``raw`` as the pydantic ``model`` using the envelope strategy."""
    return decode_envelope(raw, model.model_validate_json)


def classify_error_body(raw: bytes, status_code: int) -> None:
    """
    Raise the error carried by a failed (non-2xx) response.

    Raises:
        RemoteError: If the body is a daemon error
        DecodeError: Otherwise
    """
    remote = parse_daemon_error(raw)
    if remote is not None:
        raise remote
    raise DecodeError(
        f"HTTP {status_code} with unexpected body: {raw[:_PREVIEW_BYTES]!r}",
        body=raw,
    )
