"""Base class for exchange kline streams over WebSocket."""

import asyncio
import json
import random
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import websockets
from loguru import logger

Callback = Callable[[Dict[str, Any]], Awaitable[None]]


class WebSocketManager(ABC):
    """Connection lifecycle, frame dispatch and reconnection for one stream.

    Subclasses decide how a stream is selected (``on_connect``), how raw frames
    are decoded (``decode_message``) and what a decoded message turns into
    (``on_message``, which usually calls ``emit``).
    """

    def __init__(
        self,
        url: str,
        ping_interval: Optional[int] = 20,
        ping_timeout: Optional[int] = 10,
        max_reconnect_delay: int = 60,
        max_reconnect_attempts: Optional[int] = None,
    ):
        """Initialize the stream.

        Args:
            url: WebSocket URL
            ping_interval: Protocol ping interval in seconds (None disables pings)
            ping_timeout: Protocol ping timeout in seconds
            max_reconnect_delay: Upper bound of the backoff delay in seconds
            max_reconnect_attempts: Give up after this many failed attempts (None retries forever)
        """
        self.url = url
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.max_reconnect_delay = max_reconnect_delay
        self.max_reconnect_attempts = max_reconnect_attempts
        self.ws: Optional[Any] = None
        self.connected = False
        self.running = False
        self.callbacks: Dict[str, List[Callback]] = defaultdict(list)
        self.frames_received = 0
        self.reconnects = 0
        self._delay = 1.0

    async def connect(self) -> None:
        """Open the socket and run the subclass handshake."""
        try:
            self.ws = await websockets.connect(
                self.url,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
            )
        except Exception as e:
            self.connected = False
            logger.error(f"Could not connect to {self.url}: {e}")
            raise

        self.connected = True
        self._delay = 1.0
        logger.info(f"Connected to {self.url}")
        await self.on_connect()

    async def disconnect(self) -> None:
        """Stop the receive loop and close the socket."""
        self.running = False
        if self.ws is None:
            return
        await self.ws.close()
        self.connected = False
        logger.info(f"Disconnected from {self.url}")

    def _next_delay(self) -> float:
        """Current backoff delay with up to 10% jitter; doubles the base."""
        delay = self._delay + random.uniform(0, self._delay * 0.1)
        self._delay = min(self._delay * 2, self.max_reconnect_delay)
        return delay

    async def reconnect_with_backoff(self) -> None:
        """Reconnect until connected, stopped or out of attempts.

        Raises:
            ConnectionError: When ``max_reconnect_attempts`` is exhausted
        """
        attempts = 0
        while self.running and not self.connected:
            try:
                await self.connect()
                self.reconnects += 1
            except Exception:
                attempts += 1
                if self.max_reconnect_attempts is not None and attempts >= self.max_reconnect_attempts:
                    raise ConnectionError(f"Giving up on {self.url} after {attempts} attempts") from None
                delay = self._next_delay()
                logger.warning(f"Reconnect attempt {attempts} failed, retrying in {delay:.1f}s")
                await asyncio.sleep(delay)

    async def send(self, message: Union[Dict[str, Any], str]) -> None:
        """Send a dict as JSON, or a string as a raw text frame."""
        if self.ws is None or not self.connected:
            raise ConnectionError("WebSocket not connected")

        payload = message if isinstance(message, str) else json.dumps(message)
        await self.ws.send(payload)
        logger.debug(f"Sent: {payload}")

    async def decode_message(self, message: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        """Turn a raw frame into a dict; None means the frame needs no dispatch."""
        return json.loads(message)

    async def handle_frame(self, message: Union[str, bytes]) -> None:
        """Decode and dispatch one frame. Bad frames are logged and dropped."""
        self.frames_received += 1
        try:
            data = await self.decode_message(message)
        except (ValueError, OSError) as e:
            logger.error(f"Undecodable frame from {self.url}: {e}")
            return

        if data is None:
            return
        try:
            await self.on_message(data)
        except Exception as e:
            logger.error(f"Error handling message from {self.url}: {e}")

    async def _consume(self) -> None:
        async for message in self.ws:
            await self.handle_frame(message)
            if not self.running:
                return

    async def receive_loop(self) -> None:
        """Dispatch frames until ``disconnect`` is called, reconnecting as needed."""
        self.running = True
        while self.running:
            if not self.connected:
                await self.reconnect_with_backoff()
                continue

            try:
                await self._consume()
            except websockets.ConnectionClosed as e:
                logger.warning(f"Connection to {self.url} closed ({e}), reconnecting")
            except Exception as e:
                logger.error(f"Receive loop error on {self.url}: {e}")
                await asyncio.sleep(1)
            else:
                if self.running:
                    logger.warning(f"Stream {self.url} ended, reconnecting")

            if self.running:
                self.connected = False

    def register_callback(self, event_type: str, callback: Callback) -> None:
        """Add an async callback for an event type; several may be registered."""
        self.callbacks[event_type].append(callback)
        logger.debug(f"Registered {event_type} callback ({len(self.callbacks[event_type])} total)")

    async def emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        """Await every callback registered for the event type."""
        callbacks = self.callbacks.get(event_type)
        if not callbacks:
            logger.debug(f"No {event_type} callback, dropping: {payload}")
            return
        for callback in callbacks:
            await callback(payload)

    @abstractmethod
    async def on_connect(self) -> None:
        """Select or subscribe to the stream after the socket opens."""

    @abstractmethod
    async def on_message(self, data: Dict[str, Any]) -> None:
        """Handle a decoded message."""

    async def __aenter__(self) -> "WebSocketManager":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
