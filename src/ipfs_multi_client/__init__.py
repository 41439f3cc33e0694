"""
IPFS multi client.

Typed client for the IPFS daemon's HTTP RPC API: content add/cat, pins,
dag put/get, IPNS keys and names, peer identity and pubsub, with a uniform
decode-or-error strategy for every response.
"""
from .client import IpfsService
from .errors import DecodeError, IpfsError, MalformedIdentifier, RemoteError, TransportError
from .identifiers import (
    decode_multibase_bytes,
    decode_peer_identity,
    decode_self_describing,
    encode_multibase_bytes,
    encode_peer_identity,
)
from .object_codecs import JsonCodec, ModelCodec, ObjectCodec
from .responses import KeyList, NamePublishResponse, PinAddResponse, PinRmResponse, SubscriptionMessage
from .settings import DEFAULT_URI, Settings, create_settings_from_env
from .subscription import CancellationToken, Subscription, SubscriptionState, subscribe

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_URI",
    "IpfsService",
    "Settings",
    "create_settings_from_env",
    "IpfsError",
    "TransportError",
    "RemoteError",
    "DecodeError",
    "MalformedIdentifier",
    "decode_self_describing",
    "decode_peer_identity",
    "encode_peer_identity",
    "decode_multibase_bytes",
    "encode_multibase_bytes",
    "ObjectCodec",
    "JsonCodec",
    "ModelCodec",
    "KeyList",
    "NamePublishResponse",
    "PinAddResponse",
    "PinRmResponse",
    "SubscriptionMessage",
    "CancellationToken",
    "Subscription",
    "SubscriptionState",
    "subscribe",
]
