"""
Wire models for daemon responses.

These Pydantic models mirror the JSON shapes returned by the daemon's RPC API.
Field aliases match the daemon's capitalized names exactly; unknown fields are
ignored so newer daemons that add fields keep decoding.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from multiformats import CID
from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "WireModel",
    "DaemonError",
    "AddResponse",
    "CidLink",
    "DagPutResponse",
    "NamePublishResponse",
    "NameResolveResponse",
    "KeyPair",
    "KeyListResponse",
    "KeyList",
    "IdResponse",
    "PinAddResponse",
    "PinRmResponse",
    "PubsubSubResponse",
    "SubscriptionMessage",
]


class WireModel(BaseModel):
    """Base for daemon response shapes."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class DaemonError(WireModel):
    """Structured error body the daemon returns when it rejects a call."""
    message: str = Field(..., alias="Message")
    code: int = Field(..., alias="Code")
    error_type: str = Field(..., alias="Type")


class AddResponse(WireModel):
    hash: str = Field(..., alias="Hash")


class CidLink(WireModel):
    """The ``{"/": "<cid>"}`` link object used by dag endpoints."""
    cid_string: str = Field(..., alias="/")


class DagPutResponse(WireModel):
    cid: CidLink = Field(..., alias="Cid")


class NamePublishResponse(WireModel):
    """Confirmation of an IPNS publish; both fields are display strings."""
    name: str = Field(..., alias="Name", description="IPNS name")
    value: str = Field(..., alias="Value", description="Published path")


class NameResolveResponse(WireModel):
    path: str = Field(..., alias="Path")


class KeyPair(WireModel):
    id: str = Field(..., alias="Id")
    name: str = Field(..., alias="Name")


class KeyListResponse(WireModel):
    keys: List[KeyPair] = Field(..., alias="Keys")


# Key name -> identifier
KeyList = Dict[str, CID]


class IdResponse(WireModel):
    id: str = Field(..., alias="ID")


class PinAddResponse(WireModel):
    """Identifiers affected by a pin add, as raw strings."""
    pins: List[str] = Field(..., alias="Pins")
    progress: Optional[Union[int, str]] = Field(default=None, alias="Progress")


class PinRmResponse(WireModel):
    pins: List[str] = Field(..., alias="Pins")


class PubsubSubResponse(WireModel):
    """One NDJSON line of a pubsub subscription."""
    sender: str = Field(..., alias="from")
    data: str


@dataclass(frozen=True)
class SubscriptionMessage:
    """
    A decoded pubsub message.

    sender: Publishing peer, normalized to a CIDv1
    payload: Raw message bytes
    """
    sender: CID
    payload: bytes
