"""
WebSocket connection manager for telephony media streams.

This module implements the server side of the media stream websocket, providing
the infrastructure to:
- Accept media connections from the telephony gateway
- Create a ``CallBridge`` per connection and run it to completion
- Keep track of the calls currently being bridged

The WebSocketManager class is the entry point for every call; all per-call protocol
handling lives in ``callbridge.bridge``.
"""

import logging
import socket
from typing import Optional

from fastapi import WebSocket

from callbridge.bridge.call_bridge import CallBridge, ClientFactory
from callbridge.bridge.realtime_api import RealtimeAudioClient
from callbridge.config.constants import LOGGER_NAME
from callbridge.config.settings import BridgeSettings
from callbridge.models.call_registry import CallRegistry

logger = logging.getLogger(LOGGER_NAME)


class WebSocketManager:
    """Accepts media websockets and runs one ``CallBridge`` for each of them.

    Settings are resolved once per manager; every call shares them.
    """

    def __init__(
        self,
        settings: Optional[BridgeSettings] = None,
        client_factory: ClientFactory = RealtimeAudioClient,
    ):
        self.settings = settings or BridgeSettings.from_env()
        self.client_factory = client_factory
        self.call_registry = CallRegistry()

    @property
    def active_calls(self) -> int:
        return len(self.call_registry)

    async def _optimize_socket(self, websocket: WebSocket) -> None:
        """
        Optimize the WebSocket's underlying TCP socket for low-latency transmission.

        Args:
            websocket: The FastAPI WebSocket connection
        """
        client = websocket.client
        sock = getattr(client, "sock", None)
        if sock is None:
            return
        try:
            # Disable Nagle's algorithm to send packets immediately
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            logger.info("Optimized socket: TCP_NODELAY enabled for low latency")
        except OSError as e:
            logger.warning(f"Could not optimize socket: {e}")

    async def handle_websocket(self, websocket: WebSocket) -> None:
        """Handle a media websocket connection throughout its lifecycle.

        Args:
            websocket (WebSocket): The FastAPI WebSocket connection object

        This method:
        1. Accepts the WebSocket connection
        2. Opens the call's Speech Service connection (closing the media websocket
           if that fails)
        3. Registers the call and bridges it until either side disconnects
        4. Removes the call from the registry
        """
        await websocket.accept()
        await self._optimize_socket(websocket)
        logger.info("Media websocket connection accepted")

        if not self.settings.openai_api_key:
            logger.error("OPENAI_API_KEY environment variable not set; rejecting call")
            await websocket.close()
            return

        bridge = CallBridge(websocket, self.settings, client_factory=self.client_factory)
        if not await bridge.connect():
            return

        self.call_registry.add_call(bridge.call_id, bridge)
        logger.info(f"Call registered: {bridge.call_id} (active calls: {self.active_calls})")
        try:
            await bridge.run()
        finally:
            self.call_registry.remove_call(bridge.call_id)
            logger.info(f"Call removed: {bridge.call_id} (active calls: {self.active_calls})")
