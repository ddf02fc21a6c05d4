from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI
from websockets.sync.client import ClientConnection, connect

from app.core.exceptions import TransportError

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str | bytes], None]
CloseHandler = Callable[[], None]


class Transport(Protocol):
    def send(self, message: str) -> None: ...

    def close(self) -> None: ...


TransportFactory = Callable[[MessageHandler, CloseHandler], Transport]


class WebSocketTransport:
    """Blocking websocket connection with a daemon thread delivering inbound frames."""

    def __init__(
        self,
        url: str,
        on_message: MessageHandler,
        on_close: CloseHandler,
        *,
        open_timeout: float = 10.0,
    ) -> None:
        self.url = url
        self._on_message = on_message
        self._on_close = on_close
        try:
            self._connection: ClientConnection = connect(url, open_timeout=open_timeout)
        except (OSError, TimeoutError, InvalidHandshake, InvalidURI) as exc:
            raise TransportError(f"Could not connect to {url}: {exc}") from exc
        self._reader = threading.Thread(target=self._read_loop, name="timetable-sync-reader", daemon=True)
        self._reader.start()

    def _read_loop(self) -> None:
        try:
            for message in self._connection:
                self._on_message(message)
        except ConnectionClosed as exc:
            logger.info("WebSocket disconnected: %s", exc)
        except Exception:
            logger.exception("Sync reader stopped on an unexpected error")
            self._connection.close()
        finally:
            self._on_close()

    def send(self, message: str) -> None:
        try:
            self._connection.send(message)
        except ConnectionClosed as exc:
            raise TransportError(f"Connection to {self.url} is closed") from exc

    def close(self) -> None:
        self._connection.close()


def websocket_transport(url: str, *, open_timeout: float = 10.0) -> TransportFactory:
    def factory(on_message: MessageHandler, on_close: CloseHandler) -> Transport:
        return WebSocketTransport(url, on_message, on_close, open_timeout=open_timeout)

    return factory
