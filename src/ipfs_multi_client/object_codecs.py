"""
Object codecs for dag put/get bodies.

An object codec turns a caller's object into request bytes and a response
body back into an object. Failures surface as ``DecodeError``.
"""
from __future__ import annotations

import json
from typing import Any, Generic, Protocol, Type, TypeVar, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from .errors import DecodeError

__all__ = ["ObjectCodec", "JsonCodec", "ModelCodec"]

T = TypeVar("T")


@runtime_checkable
class ObjectCodec(Protocol):
    """Protocol for structured-object serialization."""

    def serialize(self, obj: Any) -> bytes:
        """Serialize ``obj`` to request bytes."""
        ...

    def deserialize(self, data: bytes) -> Any:
        """Deserialize a response body."""
        ...


class JsonCodec:
    """Plain JSON for dicts, lists and scalars."""

    def serialize(self, obj: Any) -> bytes:
        try:
            return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Object is not JSON serializable: {e}") from e

    def deserialize(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except ValueError as e:
            raise DecodeError(f"Invalid JSON: {e}", body=data) from e


class ModelCodec(Generic[T]):
    """
    JSON codec bound to a target type.

    Works with pydantic models, dataclasses, TypedDicts and anything else a
    ``pydantic.TypeAdapter`` accepts.
    """

    def __init__(self, target: Type[T]):
        self.target = target
        self._adapter = TypeAdapter(target)

    def serialize(self, obj: T) -> bytes:
        try:
            return self._adapter.dump_json(obj, by_alias=True)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Cannot serialize {type(obj).__name__}: {e}") from e

    def deserialize(self, data: bytes) -> T:
        try:
            return self._adapter.validate_json(data)
        except ValidationError as e:
            raise DecodeError(f"Body does not match {self.target!r}: {e}", body=data) from e
