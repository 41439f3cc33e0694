"""
Identifier codec.

Bridges the three identifier encodings the daemon puts on the wire and the
single in-memory type (``multiformats.CID``) used everywhere else:

- self-describing CID strings (multibase prefixed, or legacy CIDv0 ``Qm...``)
- bare base58-btc peer identities (a multihash with no multibase/codec prefix)
- multibase strings carrying raw payload bytes (pubsub topics and data)

Peer identities and CIDs are deliberately decoded through separate entry
points; a peer id is not a valid self-describing CID and guessing between the
two would mis-decode one or the other.
"""
from __future__ import annotations

from multiformats import CID, multibase, multihash

from .errors import MalformedIdentifier

__all__ = [
    "PEER_CID_VERSION",
    "PEER_CODEC",
    "PAYLOAD_BASE",
    "decode_self_describing",
    "decode_peer_identity",
    "encode_peer_identity",
    "decode_multibase_bytes",
    "encode_multibase_bytes",
    "path_to_cid",
]

# Peer identities are normalized to CIDv1 with this codec tag
PEER_CID_VERSION = 1
PEER_CODEC = 0x70

# Base used for every payload we put on the wire
PAYLOAD_BASE = "base64url"

_BASE58BTC_PREFIX = "z"
_PATH_NAMESPACES = ("/ipfs/", "/ipns/")

# multiformats raises Multi*KeyError/Multi*ValueError, the base encoders under
# it raise binascii.Error (a ValueError), and argument validation raises TypeError
_CODEC_ERRORS = (ValueError, KeyError, TypeError)


def decode_self_describing(text: str) -> CID:
    """
    Parse a CID string such as ``bafy...`` or ``Qm...``.

    Raises:
        MalformedIdentifier: If the multibase prefix, version, codec or multihash is invalid
    """
    if not isinstance(text, str) or not text:
        raise MalformedIdentifier(f"Empty or non-string CID: {text!r}", text=None)
    try:
        return CID.decode(text)
    except _CODEC_ERRORS as e:
        raise MalformedIdentifier(f"Invalid CID {text!r}: {e}", text=text) from e


def decode_peer_identity(text: str) -> CID:
    """
    Decode a bare base58-btc peer identity into a CIDv1.

    The decoded bytes must be a well-framed multihash; the result always has
    version 1 and codec ``PEER_CODEC`` so that peer ids compare equal to the
    CIDs produced elsewhere in the client.

    Raises:
        MalformedIdentifier: On invalid base58 or malformed multihash framing
    """
    if not isinstance(text, str) or not text:
        raise MalformedIdentifier(f"Empty or non-string peer id: {text!r}", text=None)
    try:
        digest = multibase.decode(_BASE58BTC_PREFIX + text)
        # Validates code, declared length and actual digest length
        multihash.unwrap(digest)
        return CID("base32", PEER_CID_VERSION, PEER_CODEC, digest)
    except _CODEC_ERRORS as e:
        raise MalformedIdentifier(f"Invalid peer id {text!r}: {e}", text=text) from e


def encode_peer_identity(cid: CID) -> str:
    """Return the bare base58-btc form of ``cid``'s multihash."""
    encoded = multibase.encode(bytes(cid.digest), "base58btc")
    return encoded[len(_BASE58BTC_PREFIX):]


def decode_multibase_bytes(text: str) -> bytes:
    """
    Decode a multibase string of any supported base into raw bytes.

    Raises:
        MalformedIdentifier: If the prefix is unknown or the body is invalid for that base
    """
    if not isinstance(text, str) or not text:
        raise MalformedIdentifier(f"Empty or non-string multibase payload: {text!r}", text=None)
    try:
        return bytes(multibase.decode(text))
    except _CODEC_ERRORS as e:
        raise MalformedIdentifier(f"Invalid multibase payload {text!r}: {e}", text=text) from e


def encode_multibase_bytes(data: bytes) -> str:
    """Encode ``data`` as URL-safe base64 multibase (``u`` prefix)."""
    return multibase.encode(bytes(data), PAYLOAD_BASE)


def path_to_cid(path: str) -> CID:
    """
    Decode the CID at the root of a daemon path.

    Accepts ``/ipfs/<cid>``, ``/ipns/<cid>`` or a bare CID string; any
    trailing sub-path after the CID is ignored.
    """
    text = path
    for namespace in _PATH_NAMESPACES:
        if text.startswith(namespace):
            text = text[len(namespace):]
            break
    return decode_self_describing(text.split("/", 1)[0])
