"""
Websocket client for the OpenAI Realtime API.

One ``RealtimeAudioClient`` is opened per call. It carries JSON events only: audio
travels base64-encoded inside ``input_audio_buffer.append`` commands and
``response.output_audio.delta`` events. A dropped connection is not resumed; the
call it belongs to is torn down instead.
"""

import asyncio
import logging
import socket
import time
from typing import AsyncIterator, Union

import websockets
from pydantic import BaseModel
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, ConnectionClosedOK

from callbridge.bridge import translator
from callbridge.config.constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_REALTIME_URL,
    LOGGER_NAME,
    REALTIME_INPUT_AUDIO_APPEND,
)

logger = logging.getLogger(LOGGER_NAME)

# WebSocket configuration for low latency
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB - large enough for audio chunks
WS_MAX_QUEUE = 32  # Small queue to prevent buffering
WS_PING_INTERVAL = 5  # seconds between pings
WS_PING_TIMEOUT = 10
SEND_TIMEOUT = 5.0


class RealtimeAudioClient:
    """
    Client to connect to OpenAI Realtime API over WebSocket for speech-to-speech.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        url: str = DEFAULT_REALTIME_URL,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.connect_timeout = connect_timeout
        self.ws = None
        self._connection_active = False
        self._is_closing = False
        logger.debug(f"RealtimeAudioClient initialized with model: {model}")

    @property
    def is_open(self) -> bool:
        return self._connection_active and self.ws is not None and not self._is_closing

    async def connect(self) -> bool:
        """
        Connect to the OpenAI Realtime WebSocket endpoint.

        Returns:
            bool: True if connection was successful, False otherwise
        """
        if self._is_closing:
            logger.warning("Cannot connect - client is closing")
            return False

        url = f"{self.url}?model={self.model}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Beta": "realtime=v1",
        }

        try:
            logger.info(f"Connecting to OpenAI Realtime API with model: {self.model}")
            connection_start = time.time()
            self.ws = await asyncio.wait_for(
                websockets.connect(
                    url,
                    max_size=WS_MAX_SIZE,
                    max_queue=WS_MAX_QUEUE,
                    ping_interval=WS_PING_INTERVAL,
                    ping_timeout=WS_PING_TIMEOUT,
                    compression=None,  # Disable compression for lower latency
                    additional_headers=headers,
                ),
                timeout=self.connect_timeout,
            )
            logger.debug(f"WebSocket connection established in {time.time() - connection_start:.2f} seconds")
            self._optimize_socket()

            self._connection_active = True
            logger.info("Successfully connected to OpenAI Realtime API")
            return True
        except asyncio.TimeoutError:
            logger.error(f"Timeout while connecting to OpenAI Realtime API (after {self.connect_timeout}s)")
            self._connection_active = False
            return False
        except (OSError, websockets.InvalidHandshake, websockets.InvalidURI) as e:
            logger.error(f"Failed to connect to OpenAI Realtime API: {e}")
            self._connection_active = False
            return False

    def _optimize_socket(self) -> None:
        """Disable Nagle's algorithm on the underlying TCP socket."""
        transport = getattr(self.ws, "transport", None)
        sock = transport.get_extra_info("socket") if transport is not None else None
        if sock is None:
            return
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            logger.debug("Optimized OpenAI socket: TCP_NODELAY enabled for low latency")
        except OSError as e:
            logger.warning(f"Could not optimize OpenAI socket: {e}")

    async def send_event(self, message: Union[BaseModel, str]) -> bool:
        """
        Send one client event.

        Events sent while the connection is not open are dropped; caller audio in
        particular must not pile up while the link is down.

        Args:
            message: The command model (or pre-serialized JSON text)

        Returns:
            bool: True if the event was handed to the socket
        """
        if not self.is_open:
            if getattr(message, "type", None) != REALTIME_INPUT_AUDIO_APPEND:
                logger.debug(f"Dropping {getattr(message, 'type', 'event')}: connection not open")
            return False

        text = message if isinstance(message, str) else translator.dump(message)
        try:
            await asyncio.wait_for(self.ws.send(text), timeout=SEND_TIMEOUT)
            return True
        except asyncio.TimeoutError:
            logger.warning("Timeout while sending event to OpenAI")
            return False
        except ConnectionClosed as e:
            logger.warning(f"Connection closed while sending event: {e}")
            self._connection_active = False
            return False

    async def iter_messages(self) -> AsyncIterator[Union[str, bytes]]:
        """
        Yield messages from OpenAI in arrival order until the connection closes.
        """
        if self.ws is None:
            logger.error("WebSocket not initialized for receive loop")
            return

        try:
            async for message in self.ws:
                yield message
        except ConnectionClosedOK:
            logger.info("OpenAI WebSocket connection closed normally")
        except ConnectionClosedError as e:
            logger.warning(f"OpenAI WebSocket connection closed unexpectedly: {e}")
        finally:
            self._connection_active = False

    async def close(self) -> None:
        """
        Close the WebSocket connection.
        """
        if self._is_closing:
            return
        logger.info("Closing OpenAI Realtime client")
        self._is_closing = True
        self._connection_active = False

        if self.ws is not None:
            try:
                await self.ws.close()
            except ConnectionClosed:
                pass

        logger.info("OpenAI Realtime client closed")
