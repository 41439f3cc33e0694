"""
Tests for the identifier codec.

Covers CID strings, bare base58 peer ids and multibase payloads, and checks
that the two identifier entry points stay distinct.
"""
from __future__ import annotations

from unittest.mock import Mock

import pytest
from multiformats import CID, multibase

from ipfs_multi_client import identifiers
from ipfs_multi_client.errors import MalformedIdentifier
from ipfs_multi_client.identifiers import (
    PEER_CODEC,
    decode_multibase_bytes,
    decode_peer_identity,
    decode_self_describing,
    encode_multibase_bytes,
    encode_peer_identity,
    path_to_cid,
)
from tests.helpers.ids import CIDV0, DAG_CID, PEER_ID, RSA_PEER_ID, SELF_KEY


class TestSelfDescribing:
    """decode_self_describing()"""

    @pytest.mark.parametrize("text", [DAG_CID, SELF_KEY, CIDV0])
    def test_round_trip_keeps_base(self, text):
        """Encoding a decoded CID in its original base gives the same string."""
        assert str(decode_self_describing(text)) == text

    def test_cidv1_fields(self):
        cid = decode_self_describing(DAG_CID)
        assert cid.version == 1
        assert cid.codec.name == "dag-cbor"

    def test_cidv0_is_accepted(self):
        assert decode_self_describing(CIDV0).version == 0

    @pytest.mark.parametrize("text", ["", "bafy", "not a cid"])
    def test_invalid_raises(self, text):
        with pytest.raises(MalformedIdentifier):
            decode_self_describing(text)

    def test_malformed_identifier_is_value_error(self):
        """Callers catching ValueError still see identifier failures."""
        with pytest.raises(ValueError):
            decode_self_describing("")


class TestPeerIdentity:
    """decode_peer_identity() / encode_peer_identity()"""

    @pytest.mark.parametrize("text", [PEER_ID, RSA_PEER_ID])
    def test_version_and_codec(self, text):
        cid = decode_peer_identity(text)
        assert cid.version == 1
        assert cid.codec.code == PEER_CODEC

    def test_deterministic(self):
        assert decode_peer_identity(PEER_ID) == decode_peer_identity(PEER_ID)

    @pytest.mark.parametrize("text", [PEER_ID, RSA_PEER_ID])
    def test_round_trip(self, text):
        assert encode_peer_identity(decode_peer_identity(text)) == text

    def test_multihash_is_preserved(self):
        """The CID wraps exactly the multihash bytes the base58 text encodes."""
        raw = multibase.decode("z" + RSA_PEER_ID)
        assert bytes(decode_peer_identity(RSA_PEER_ID).digest) == raw

    def test_matches_explicit_construction(self):
        raw = multibase.decode("z" + PEER_ID)
        assert decode_peer_identity(PEER_ID) == CID("base32", 1, PEER_CODEC, raw)

    def test_invalid_base58_raises(self):
        # 0, O, I and l are not in the base58-btc alphabet
        with pytest.raises(MalformedIdentifier):
            decode_peer_identity("0OIl")

    def test_truncated_multihash_raises(self):
        # sha2-256 header declaring 32 bytes followed by only 3
        text = multibase.encode(b"\x12\x20\x01\x02\x03", "base58btc")[1:]
        with pytest.raises(MalformedIdentifier):
            decode_peer_identity(text)

    def test_cid_string_is_not_a_peer_id(self):
        """A multibase CID must not be accepted by the peer id entry point."""
        with pytest.raises(MalformedIdentifier):
            decode_peer_identity(DAG_CID)

    def test_empty_raises(self):
        with pytest.raises(MalformedIdentifier):
            decode_peer_identity("")


    def test_programming_errors_propagate(self, monkeypatch):
        """Only codec failures become MalformedIdentifier."""
        broken = Mock()
        broken.decode.side_effect = AttributeError("broken decoder")
        monkeypatch.setattr(identifiers, "multibase", broken)

        with pytest.raises(AttributeError, match="broken decoder"):
            decode_peer_identity(PEER_ID)

class TestMultibaseBytes:
    """decode_multibase_bytes() / encode_multibase_bytes()"""

    def test_encode_uses_base64url(self):
        encoded = encode_multibase_bytes(b"Hello World!")
        assert encoded == "uSGVsbG8gV29ybGQh"

    def test_encode_is_deterministic(self):
        assert encode_multibase_bytes(b"\xfb\xff") == encode_multibase_bytes(b"\xfb\xff")

    @pytest.mark.parametrize("data", [b"\x00", b"Hello World!", bytes(range(256))])
    def test_round_trip(self, data):
        assert decode_multibase_bytes(encode_multibase_bytes(data)) == data

    @pytest.mark.parametrize("base", ["base32", "base58btc", "base64", "base16"])
    def test_decode_accepts_any_base(self, base):
        assert decode_multibase_bytes(multibase.encode(b"payload", base)) == b"payload"

    def test_empty_raises(self):
        with pytest.raises(MalformedIdentifier):
            decode_multibase_bytes("")


class TestPathToCid:
    """path_to_cid()"""

    @pytest.mark.parametrize("path", [
        f"/ipfs/{DAG_CID}",
        f"/ipns/{DAG_CID}",
        f"/ipfs/{DAG_CID}/some/file",
        DAG_CID,
    ])
    def test_strips_namespace_and_subpath(self, path):
        assert path_to_cid(path) == decode_self_describing(DAG_CID)

    def test_invalid_path_raises(self):
        with pytest.raises(MalformedIdentifier):
            path_to_cid("/ipfs/")
