"""Tests for dag object codecs."""
from __future__ import annotations

from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from ipfs_multi_client.errors import DecodeError
from ipfs_multi_client.object_codecs import JsonCodec, ModelCodec, ObjectCodec


class Node(BaseModel):
    name: str
    size: int


@dataclass
class Point:
    x: int
    y: int


class TestJsonCodec:
    """JsonCodec"""

    def test_compact_output(self):
        assert JsonCodec().serialize({"a": [1, 2]}) == b'{"a":[1,2]}'

    def test_non_ascii_kept(self):
        assert JsonCodec().serialize("héllo") == '"héllo"'.encode("utf-8")

    def test_deserialize(self):
        assert JsonCodec().deserialize(b'{"a": 1}') == {"a": 1}

    def test_unserializable(self):
        with pytest.raises(DecodeError, match="not JSON serializable"):
            JsonCodec().serialize({"a": object()})

    def test_invalid_body(self):
        with pytest.raises(DecodeError) as exc_info:
            JsonCodec().deserialize(b"{oops")
        assert exc_info.value.body == b"{oops"


class TestModelCodec:
    """ModelCodec"""

    def test_model(self):
        codec = ModelCodec(Node)
        data = codec.serialize(Node(name="a", size=3))
        assert codec.deserialize(data) == Node(name="a", size=3)

    def test_dataclass(self):
        codec = ModelCodec(Point)
        assert codec.deserialize(b'{"x": 1, "y": 2}') == Point(1, 2)

    def test_mismatch(self):
        with pytest.raises(DecodeError, match="does not match"):
            ModelCodec(Node).deserialize(b'{"name": "a"}')


def test_codecs_satisfy_protocol():
    assert isinstance(JsonCodec(), ObjectCodec)
    assert isinstance(ModelCodec(Node), ObjectCodec)
