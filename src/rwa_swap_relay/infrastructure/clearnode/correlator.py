"""Request/response correlation over a single node connection.

Every outbound request carries a numeric id in ``req[0]``; the node echoes it
in ``res[0]``. Waiters are keyed by that id, so responses may arrive in any
order. Frames tagged with a background method (balance and asset pushes) are
not replies and never resolve a waiter.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Iterable
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from rwa_swap_relay.domain.errors import NodeConnectionError, ProtocolError, RequestTimeoutError
from rwa_swap_relay.domain.ports import NodeConnection, NodeConnector
from rwa_swap_relay.domain.session_types import ConnectionState
from rwa_swap_relay.infrastructure.clearnode.rpc import (
    RPCResponse,
    decode_frame,
    encode_frame,
    now_ms,
    parse_response,
    request_id_of,
    response_method,
    with_request_id,
)
from rwa_swap_relay.infrastructure.clearnode.transport import connect_websocket

DEFAULT_BACKGROUND_METHODS = frozenset({"bu", "assets", "cu"})
_DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
_DEFAULT_REQUEST_TIMEOUT_SECONDS = 20.0

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PendingRequest:
    """One in-flight request awaiting its response."""

    request_id: int
    method: str
    created_at: float
    future: asyncio.Future[RPCResponse]


class RequestCorrelator:
    """Turns one duplex node connection into awaitable request/response calls."""

    def __init__(
        self,
        url: str,
        connector: NodeConnector | None = None,
        connect_timeout_seconds: float = _DEFAULT_CONNECT_TIMEOUT_SECONDS,
        request_timeout_seconds: float = _DEFAULT_REQUEST_TIMEOUT_SECONDS,
        background_methods: Iterable[str] = DEFAULT_BACKGROUND_METHODS,
    ) -> None:
        self._url = url
        self._connector = connector or connect_websocket
        self._connect_timeout_seconds = connect_timeout_seconds
        self._request_timeout_seconds = request_timeout_seconds
        self._background_methods = frozenset(background_methods)
        self._connection: NodeConnection | None = None
        self._state = ConnectionState.DISCONNECTED
        self._pending: dict[int, PendingRequest] = {}
        self._request_ids = itertools.count(now_ms())
        self._connect_task: asyncio.Task[None] | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._disconnect_listeners: list[Callable[[], None]] = []

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def pending_count(self) -> int:
        """Number of requests still awaiting a response."""

        return len(self._pending)

    def add_disconnect_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback invoked whenever the connection goes away."""

        self._disconnect_listeners.append(listener)

    def next_request_id(self) -> int:
        """Return a fresh id; strictly increasing for this correlator."""

        return next(self._request_ids)

    async def connect(self) -> None:
        """Open the connection unless already open; concurrent callers share one attempt."""

        if self._state is ConnectionState.OPEN:
            return
        task = self._connect_task
        if task is None or task.done():
            task = asyncio.create_task(self._open(), name="clearnode-connect")
            self._connect_task = task
        await asyncio.shield(task)

    async def send_and_await(
        self,
        frame: dict[str, Any],
        timeout: float | None = None,
    ) -> RPCResponse:
        """Send one request frame and wait for the response carrying the same id."""

        connection = self._connection
        if connection is None or self._state is not ConnectionState.OPEN:
            raise NodeConnectionError(f"Not connected to {self._url}.")

        request_id = request_id_of(frame)
        if request_id is None:
            request_id = self.next_request_id()
            frame = with_request_id(frame, request_id)
        if request_id in self._pending:
            raise ProtocolError(f"Request id {request_id} is already awaiting a response.")

        method = str(frame["req"][1])
        budget = self._request_timeout_seconds if timeout is None else timeout
        loop = asyncio.get_running_loop()
        pending = PendingRequest(
            request_id=request_id,
            method=method,
            created_at=loop.time(),
            future=loop.create_future(),
        )
        self._pending[request_id] = pending
        try:
            await connection.send(encode_frame(frame))
            return await asyncio.wait_for(pending.future, timeout=budget)
        except TimeoutError as exc:
            raise RequestTimeoutError(
                f"Timed out after {budget}s waiting for {method} response id={request_id}."
            ) from exc
        finally:
            if self._pending.get(request_id) is pending:
                del self._pending[request_id]

    async def close(self) -> None:
        """Close the connection and fail every pending request."""

        connection = self._connection
        self._connection = None

        connect_task = self._connect_task
        if connect_task is not None and not connect_task.done():
            connect_task.cancel()
            with suppress(asyncio.CancelledError):
                await connect_task

        reader = self._reader_task
        self._reader_task = None
        if reader is not None and not reader.done():
            reader.cancel()
            with suppress(asyncio.CancelledError):
                await reader

        self._state = ConnectionState.CLOSED
        if connection is not None:
            with suppress(NodeConnectionError, OSError):
                await connection.close()
            logger.info("Closed node connection to %s.", self._url)
            self._notify_disconnect()
        self._fail_pending(NodeConnectionError(f"Connection to {self._url} was closed."))

    async def _open(self) -> None:
        self._state = ConnectionState.CONNECTING
        try:
            connection = await asyncio.wait_for(
                self._connector(self._url, self._connect_timeout_seconds),
                timeout=self._connect_timeout_seconds,
            )
        except (NodeConnectionError, OSError, TimeoutError) as exc:
            self._state = ConnectionState.DISCONNECTED
            raise NodeConnectionError(f"Could not connect to {self._url}: {exc}") from exc
        except asyncio.CancelledError:
            self._state = ConnectionState.DISCONNECTED
            raise

        self._connection = connection
        self._state = ConnectionState.OPEN
        self._reader_task = asyncio.create_task(
            self._read_loop(connection),
            name="clearnode-reader",
        )
        logger.info("Connected to node at %s.", self._url)

    async def _read_loop(self, connection: NodeConnection) -> None:
        try:
            while True:
                raw = await connection.recv()
                self._handle_frame(raw)
        except (NodeConnectionError, OSError) as exc:
            logger.warning("Node connection to %s dropped: %s", self._url, exc)
            if self._connection is connection:
                self._connection = None
                self._state = ConnectionState.DISCONNECTED
                self._fail_pending(
                    NodeConnectionError(f"Connection to {self._url} dropped: {exc}")
                )
                self._notify_disconnect()

    def _handle_frame(self, raw: str | bytes) -> None:
        try:
            frame = decode_frame(raw)
        except ProtocolError as exc:
            logger.warning("Dropping undecodable frame from %s: %s", self._url, exc)
            return

        method = response_method(frame)
        if method in self._background_methods:
            logger.debug("Ignoring background %s frame.", method)
            return

        try:
            response = parse_response(frame)
        except ProtocolError as exc:
            logger.warning("Dropping malformed frame from %s: %s", self._url, exc)
            return

        pending = self._pending.pop(response.request_id, None)
        if pending is None:
            logger.warning(
                "Dropping unmatched %s frame with id %s.",
                response.method,
                response.request_id,
            )
            return
        if not pending.future.done():
            pending.future.set_result(response)

    def _fail_pending(self, error: Exception) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for entry in pending:
            if not entry.future.done():
                entry.future.set_exception(error)

    def _notify_disconnect(self) -> None:
        for listener in self._disconnect_listeners:
            listener()


__all__ = ["DEFAULT_BACKGROUND_METHODS", "PendingRequest", "RequestCorrelator"]
