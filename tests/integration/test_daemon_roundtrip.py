"""
Round trips against a live daemon.

Skipped unless IPFS_INTEGRATION=1. The daemon must run with pubsub enabled
(``ipfs daemon --enable-pubsub-experiment``); its RPC URL is read from
IPFS_INTEGRATION_API_URL and defaults to the local one.
"""
from __future__ import annotations

import os
import threading
import time
import uuid

import pytest

from ipfs_multi_client import DEFAULT_URI, IpfsService, RemoteError, Settings, SubscriptionMessage
from ipfs_multi_client.identifiers import PEER_CODEC

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(os.getenv("IPFS_INTEGRATION") != "1", reason="set IPFS_INTEGRATION=1 to run"),
]

API_URL = os.getenv("IPFS_INTEGRATION_API_URL", DEFAULT_URI)


@pytest.fixture
def live():
    with IpfsService(Settings(api_url=API_URL)) as service:
        yield service


def test_peer_id(live):
    cid = live.peer_id()
    assert cid.version == 1
    assert cid.codec.code == PEER_CODEC


def test_dag_roundtrip(live):
    node = {"data": "hello", "n": 42}
    cid = live.dag_put(node)
    assert live.dag_get(cid) == node
    assert live.dag_get(cid, "/data") == "hello"


def test_add_cat_and_pins(live):
    content = f"hello {uuid.uuid4()}".encode()
    cid = live.add(content)
    assert live.cat(cid) == content

    pinned = live.pin_add(cid)
    assert str(cid) in pinned.pins
    unpinned = live.pin_rm(cid)
    assert str(cid) in unpinned.pins

    with pytest.raises(RemoteError):
        live.pin_rm(cid)


def test_key_list_has_self(live):
    assert "self" in live.key_list()


def test_name_publish(live):
    cid = live.dag_put({"published": str(uuid.uuid4())})
    record = live.name_publish(cid)
    assert record.value == f"/ipfs/{cid}"
    assert live.name_resolve(record.name) == cid


def test_pubsub_roundtrip(live):
    topic = f"test-{uuid.uuid4()}"
    payload = b"Hello World!"
    received = []

    subscription = live.pubsub_sub(topic)

    def consume():
        for item in subscription:
            if isinstance(item, SubscriptionMessage):
                received.append(item)
                return

    consumer = threading.Thread(target=consume, daemon=True)
    consumer.start()
    try:
        # The daemon only delivers messages published after it registered the subscriber
        deadline = time.monotonic() + 30
        while not received and time.monotonic() < deadline:
            live.pubsub_pub(topic, payload)
            consumer.join(timeout=1)
    finally:
        subscription.cancel()
        consumer.join(timeout=5)

    assert received, "no message received within 30s"
    assert received[0].payload == payload
    assert received[0].sender == live.peer_id()
