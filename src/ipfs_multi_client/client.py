"""
IPFS RPC client.

One method per daemon capability. Each method builds a ``POST`` against the
configured API base URL, sends it through httpx and decodes the buffered body
through the response envelope decoder, then converts wire strings into CIDs.

The client holds only immutable settings and a thread-safe ``httpx.Client``,
so one instance can be shared freely across threads.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, Tuple, Type, TypeVar, Union

import httpx
from multiformats import CID
from pydantic import BaseModel

from .envelope import classify_error_body, decode_envelope, decode_response
from .errors import MalformedIdentifier, TransportError
from .identifiers import (
    decode_peer_identity,
    decode_self_describing,
    encode_multibase_bytes,
    path_to_cid,
)
from .object_codecs import JsonCodec, ObjectCodec
from .responses import (
    AddResponse,
    DagPutResponse,
    IdResponse,
    KeyList,
    KeyListResponse,
    NamePublishResponse,
    NameResolveResponse,
    PinAddResponse,
    PinRmResponse,
)
from .retry import call_with_retry
from .settings import Settings
from .streams import ByteSource, as_upload, is_replayable
from .subscription import CancellationToken, Subscription, subscribe

__all__ = ["IpfsService", "CidLike", "IPNS_LIFETIME"]

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Anything that renders to a CID string
CidLike = Union[CID, str]

Params = Sequence[Tuple[str, str]]

# 6 months
IPNS_LIFETIME = "4320h"

USER_AGENT = "ipfs-multi-client/0.1.0"


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _topic_arg(topic: Union[str, bytes]) -> str:
    if isinstance(topic, str):
        topic = topic.encode("utf-8")
    return encode_multibase_bytes(topic)


class IpfsService:
    """
    HTTP client for the daemon's RPC API (``/api/v0``).

    Every call raises one of ``TransportError``, ``RemoteError``,
    ``DecodeError`` or ``MalformedIdentifier`` on failure. Nothing is retried
    unless ``settings.http_retry`` is positive.
    """

    def __init__(self, settings: Optional[Settings] = None, *,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize the client.

        Args:
            settings: Client configuration (defaults to the local daemon)
            transport: Custom httpx transport (mocking, proxies, unix sockets)
        """
        self.settings = settings or Settings()
        self.client = httpx.Client(
            base_url=self.settings.api_url,
            timeout=httpx.Timeout(self.settings.http_timeout_s),
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    @classmethod
    def from_url(cls, api_url: str, **kwargs: Any) -> IpfsService:
        """Create a client for ``api_url`` with default settings otherwise."""
        return cls(Settings(api_url=api_url), **kwargs)

    # -- content ---------------------------------------------------------

    def add(self, source: ByteSource) -> CID:
        """
        Store bytes and return their CIDv1.

        ``source`` may be a buffer, a binary file object or an iterable of
        chunks; iterables are streamed, never collected. Content is not pinned.
        """
        upload = as_upload(source)
        result = self._call(
            "add",
            AddResponse,
            params=[("pin", "false"), ("cid-version", "1")],
            files={"path": ("path", upload)},
            replayable=is_replayable(upload),
        )
        return decode_self_describing(result.hash)

    def cat(self, cid: CidLike, path: Optional[str] = None) -> bytes:
        """Download the content at ``cid``, optionally below a sub-path."""
        response = self._send("cat", params=[("arg", str(cid) + (path or ""))])
        self._check_status(response)
        return response.content

    def pin_add(self, cid: CidLike, recursive: bool = True) -> PinAddResponse:
        """Pin ``cid``; ``recursive`` also pins everything it links to."""
        return self._call(
            "pin/add",
            PinAddResponse,
            params=[("arg", str(cid)), ("recursive", _flag(recursive))],
        )

    def pin_rm(self, cid: CidLike, recursive: bool = True) -> PinRmResponse:
        """Unpin ``cid``."""
        return self._call(
            "pin/rm",
            PinRmResponse,
            params=[("arg", str(cid)), ("recursive", _flag(recursive))],
        )

    # -- dag -------------------------------------------------------------

    def dag_put(self, node: Any, codec: Optional[ObjectCodec] = None) -> CID:
        """
        Serialize then add a dag node. Returns its CID.

        The node is sent as dag-json and stored as dag-cbor.
        """
        codec = codec or JsonCodec()
        data = codec.serialize(node)
        result = self._call(
            "dag/put",
            DagPutResponse,
            params=[("store-codec", "dag-cbor"), ("input-codec", "dag-json")],
            files={"object data": ("object data", data)},
        )
        return decode_self_describing(result.cid.cid_string)

    def dag_get(self, cid: CidLike, path: Optional[str] = None,
                codec: Optional[ObjectCodec] = None) -> Any:
        """
        Fetch a dag node, optionally below a sub-path, and deserialize it.

        Without a codec the node comes back as plain JSON values; pass
        ``ModelCodec(MyModel)`` to get a typed object.
        """
        codec = codec or JsonCodec()
        response = self._send(
            "dag/get",
            params=[("arg", str(cid) + (path or "")), ("output-codec", "dag-json")],
        )
        self._check_status(response)
        return decode_envelope(response.content, codec.deserialize)

    # -- naming ----------------------------------------------------------

    def key_list(self) -> KeyList:
        """
        Return all IPNS keys on this node, by name.

        Keys whose id does not parse as a CID are left out.
        """
        result = self._call(
            "key/list",
            KeyListResponse,
            params=[("l", "true"), ("ipns-base", "base32")],
        )
        keys: KeyList = {}
        for pair in result.keys:
            try:
                keys[pair.name] = decode_self_describing(pair.id)
            except MalformedIdentifier as e:
                logger.debug(f"Dropping key {pair.name!r} with unparseable id: {e}")
        return keys

    def name_publish(self, cid: CidLike, key: str = "self") -> NamePublishResponse:
        """Publish a new IPNS record pointing at ``cid`` under ``key``."""
        return self._call(
            "name/publish",
            NamePublishResponse,
            params=[
                ("arg", str(cid)),
                ("lifetime", IPNS_LIFETIME),
                ("key", key),
                ("ipns-base", "base32"),
            ],
        )

    def name_resolve(self, ipns: CidLike) -> CID:
        """Resolve an IPNS name to the CID it currently points at."""
        result = self._call("name/resolve", NameResolveResponse, params=[("arg", str(ipns))])
        return path_to_cid(result.path)

    def peer_id(self) -> CID:
        """Return this node's peer id as a CIDv1."""
        result = self._call("id", IdResponse)
        return decode_peer_identity(result.id)

    # -- pubsub ----------------------------------------------------------

    def pubsub_pub(self, topic: Union[str, bytes], data: bytes) -> None:
        """Send ``data`` on ``topic``."""
        response = self._send(
            "pubsub/pub",
            params=[("arg", _topic_arg(topic))],
            files={"data": ("data", bytes(data))},
        )
        self._check_status(response)

    def pubsub_sub_response(self, topic: Union[str, bytes]) -> httpx.Response:
        """
        Open a subscription on ``topic`` and return the live response.

        The caller owns the response; feed it to ``subscribe()`` or close it.
        Only connecting is subject to the timeout; reads wait indefinitely.
        """
        request = self.client.build_request(
            "POST",
            "pubsub/sub",
            params=[("arg", _topic_arg(topic))],
            timeout=httpx.Timeout(self.settings.http_timeout_s, read=None),
        )
        logger.debug(f"POST pubsub/sub (streaming) topic={topic!r}")
        try:
            response = self.client.send(request, stream=True)
        except httpx.RequestError as e:
            raise TransportError(f"Request to pubsub/sub failed: {e}") from e

        if not response.is_success:
            try:
                body = response.read()
            except httpx.HTTPError as e:
                raise TransportError(f"Reading pubsub/sub error body failed: {e}") from e
            finally:
                response.close()
            classify_error_body(body, response.status_code)
        return response

    def pubsub_sub(self, topic: Union[str, bytes],
                   token: Optional[CancellationToken] = None) -> Subscription:
        """Subscribe to ``topic``; see ``Subscription`` for item semantics."""
        return subscribe(self.pubsub_sub_response(topic), token)

    # -- plumbing --------------------------------------------------------

    def _call(self, path: str, model: Type[M], params: Optional[Params] = None,
              files: Optional[dict] = None, replayable: bool = True) -> M:
        """Send a request and decode its body as ``model``."""
        response = self._send(path, params=params, files=files, replayable=replayable)
        self._check_status(response)
        return decode_response(response.content, model)

    def _send(self, path: str, params: Optional[Params] = None,
              files: Optional[dict] = None, replayable: bool = True) -> httpx.Response:
        """
        POST ``path`` and return the fully buffered response.

        httpx errors become ``TransportError``. Non-2xx statuses are returned
        as-is; the caller decides how to read the body.
        """
        def attempt() -> httpx.Response:
            logger.debug(f"POST {path} params={list(params or [])}")
            try:
                return self.client.post(path, params=params, files=files)
            except httpx.RequestError as e:
                raise TransportError(f"Request to {path} failed: {e}") from e

        retries = self.settings.http_retry if replayable else 0
        return call_with_retry(attempt, retries)

    @staticmethod
    def _check_status(response: httpx.Response) -> None:
        if not response.is_success:
            logger.debug(f"Daemon returned HTTP {response.status_code} for {response.request.url}")
            classify_error_body(response.content, response.status_code)

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
