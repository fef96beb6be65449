"""WebSocket transport to the ClearNode."""

from __future__ import annotations

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from rwa_swap_relay.domain.errors import NodeConnectionError


class WebSocketNodeConnection:
    """Adapts a websockets client connection to the node connection port."""

    def __init__(self, websocket: ClientConnection) -> None:
        self._websocket = websocket

    async def send(self, message: str) -> None:
        try:
            await self._websocket.send(message)
        except ConnectionClosed as exc:
            raise NodeConnectionError(f"Send failed, connection closed: {exc}") from exc

    async def recv(self) -> str | bytes:
        try:
            return await self._websocket.recv()
        except ConnectionClosed as exc:
            raise NodeConnectionError(f"Connection closed: {exc}") from exc

    async def close(self) -> None:
        await self._websocket.close()


async def connect_websocket(url: str, timeout_seconds: float) -> WebSocketNodeConnection:
    """Open a WebSocket to `url` within `timeout_seconds`."""

    try:
        websocket = await connect(url, open_timeout=timeout_seconds)
    except (OSError, TimeoutError, WebSocketException) as exc:
        raise NodeConnectionError(f"Could not open {url}: {exc}") from exc
    return WebSocketNodeConnection(websocket)


__all__ = ["WebSocketNodeConnection", "connect_websocket"]
