"""
Pubsub subscription stream decoder.

Turns the long-lived chunked response of ``pubsub/sub`` into a lazy,
cancellable sequence of decoded messages. The body is NDJSON: each complete
line is decoded on its own and handed to the caller immediately.

Per-line policy:

- ``{"from", "data"}`` line: yields a ``SubscriptionMessage``
- daemon error line: yields a ``RemoteError`` and ends the subscription
- anything else: yields a ``DecodeError`` (or ``MalformedIdentifier``) for
  that line only and keeps going

A malformed line is noise on a healthy stream; a structured error is the
daemon telling us the subscription is over.
"""
from __future__ import annotations

import logging
import socket
import threading
from enum import Enum
from typing import Callable, Iterator, List, Optional, Union

import httpx

from .envelope import decode_response
from .errors import DecodeError, IpfsError, MalformedIdentifier, RemoteError, TransportError
from .identifiers import decode_multibase_bytes, decode_peer_identity
from .responses import PubsubSubResponse, SubscriptionMessage

__all__ = [
    "CancellationToken",
    "Subscription",
    "SubscriptionItem",
    "SubscriptionState",
    "decode_line",
    "subscribe",
]

logger = logging.getLogger(__name__)

# What one poll of a subscription produces
SubscriptionItem = Union[SubscriptionMessage, IpfsError]


class SubscriptionState(str, Enum):
    """Lifecycle of a subscription."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    ENDED = "ended"


class CancellationToken:
    """
    Thread-safe, one-shot cancellation signal.

    ``cancel()`` may be called from any thread, any number of times.
    Callbacks registered before cancellation run once, on the cancelling
    thread; callbacks registered afterwards run immediately. A callback that
    raises is logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._run(callback)

    def add_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        self._run(callback)

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or ``timeout`` expires; returns ``cancelled``."""
        return self._event.wait(timeout)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.warning(f"Cancellation callback {callback!r} failed: {e}")


def decode_line(line: bytes) -> SubscriptionMessage:
    """
    Decode one NDJSON line of a subscription.

    Raises:
        RemoteError: If the line is a daemon error
        DecodeError: If the line is neither a message nor a daemon error
        MalformedIdentifier: If the sender or payload encoding is invalid
    """
    response = decode_response(line, PubsubSubResponse)
    return SubscriptionMessage(
        sender=decode_peer_identity(response.sender),
        payload=decode_multibase_bytes(response.data),
    )


def _interrupt(response: httpx.Response) -> None:
    """
    Unblock a reader stuck waiting on ``response`` and release the connection.

    Closing the response alone does not wake a thread blocked in ``recv`` on
    every platform, so the underlying socket is shut down first when the
    transport exposes it.
    """
    network_stream = response.extensions.get("network_stream")
    sock = network_stream.get_extra_info("socket") if network_stream is not None else None
    if sock is not None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Already closed by the peer
            logger.debug(f"Socket shutdown on cancel failed: {e}")
    response.close()


class Subscription:
    """
    One live pubsub subscription.

    Iterating yields ``SubscriptionMessage`` items and ``IpfsError`` instances
    for lines that failed to decode. Iteration stops when the connection
    closes, after a terminal ``RemoteError``/``TransportError`` item, or when
    the subscription is cancelled. It is not restartable: a new subscription
    has to be opened on the daemon.

    Cancelling the token cancels the subscription. ``cancel()`` and leaving a
    ``with`` block only cancel this subscription; a token passed in by the
    caller is never cancelled on its behalf.
    """

    def __init__(self, response: httpx.Response, token: Optional[CancellationToken] = None):
        self._response = response
        self._owns_token = token is None
        self.token = token or CancellationToken()
        self._cancelled = threading.Event()
        self._state = SubscriptionState.ACTIVE
        self._items = self._read_lines()
        self.token.add_callback(self._on_cancel)

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Cancel this subscription; safe to call from any thread."""
        if self._owns_token:
            self.token.cancel()
        else:
            self._on_cancel()

    def _on_cancel(self) -> None:
        self._cancelled.set()
        _interrupt(self._response)

    def __iter__(self) -> Subscription:
        return self

    def __next__(self) -> SubscriptionItem:
        if self._state is not SubscriptionState.ACTIVE:
            raise StopIteration
        if self.cancelled:
            self._stop(SubscriptionState.CANCELLED)
            raise StopIteration

        try:
            item = next(self._items)
        except StopIteration:
            self._stop(SubscriptionState.CANCELLED if self.cancelled else SubscriptionState.ENDED)
            raise

        # Nothing is delivered once cancel() has been observed
        if self.cancelled:
            self._stop(SubscriptionState.CANCELLED)
            raise StopIteration

        if isinstance(item, (RemoteError, TransportError)):
            self._stop(SubscriptionState.ENDED)
        return item

    def messages(self) -> Iterator[SubscriptionMessage]:
        """
        Iterate successfully decoded messages only.

        Per-line decode failures are logged and skipped; terminal errors are raised.
        """
        for item in self:
            if isinstance(item, SubscriptionMessage):
                yield item
            elif isinstance(item, (RemoteError, TransportError)):
                raise item
            else:
                logger.warning(f"Skipping undecodable subscription line: {item}")

    def close(self) -> None:
        """Release the connection; must be called from the consuming thread."""
        if self._state is SubscriptionState.ACTIVE:
            self._stop(SubscriptionState.CANCELLED if self.cancelled else SubscriptionState.ENDED)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._state is SubscriptionState.ACTIVE:
            self.cancel()
        self.close()

    def _stop(self, state: SubscriptionState) -> None:
        self._state = state
        self.token.remove_callback(self._on_cancel)
        self._items.close()
        self._response.close()
        logger.info(f"Subscription {state.value}")

    def _read_lines(self) -> Iterator[SubscriptionItem]:
        buffer = bytearray()
        # Leading bytes of buffer already searched for a newline
        scanned = 0
        try:
            for chunk in self._response.iter_bytes():
                if self.cancelled:
                    return
                buffer += chunk
                start = 0
                while True:
                    end = buffer.find(b"\n", max(start, scanned))
                    if end < 0:
                        break
                    line = bytes(buffer[start:end]).strip()
                    start = end + 1
                    if line:
                        yield self._decode(line)
                if start:
                    del buffer[:start]
                scanned = len(buffer)
        except (httpx.HTTPError, httpx.StreamError) as e:
            if self.cancelled:
                return
            yield TransportError(f"Subscription stream failed: {e}")
            return

        # A final unterminated line is still a line
        line = bytes(buffer).strip()
        if line and not self.cancelled:
            yield self._decode(line)

    @staticmethod
    def _decode(line: bytes) -> SubscriptionItem:
        try:
            return decode_line(line)
        except RemoteError as e:
            logger.info(f"Daemon ended subscription: {e}")
            return e
        except (DecodeError, MalformedIdentifier) as e:
            logger.debug(f"Undecodable subscription line {line[:200]!r}: {e}")
            return e


def subscribe(response: httpx.Response, token: Optional[CancellationToken] = None) -> Subscription:
    """
    Decode an open ``pubsub/sub`` response as a subscription.

    Args:
        response: Streaming response from ``IpfsService.pubsub_sub_response``
        token: Cancellation token shared with other threads (created if omitted)
    """
    return Subscription(response, token)
