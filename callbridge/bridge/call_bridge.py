"""
Bridge between one telephony media stream and one OpenAI Realtime session.

A ``CallBridge`` is created for every accepted media websocket. It owns the
Realtime client, the ``CallSession`` and the ``TurnController`` of that call, and:
- runs one receive loop per socket, parsing each message and handing it to the
  controller
- executes the effects the controller returns (outbound messages and timers)
- tears the whole call down as soon as either side goes away

Everything that touches the session, whether an inbound event or a fired timer,
happens while holding the bridge's lock, so events of one call are handled one at a
time and in arrival order per socket.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from callbridge.bridge import translator
from callbridge.bridge.effects import CancelTimer, Channel, Effects, Send, StartTimer
from callbridge.bridge.realtime_api import RealtimeAudioClient
from callbridge.bridge.translator import MalformedEventError, UnrecognizedEventError
from callbridge.bridge.turn_controller import TurnController
from callbridge.config.constants import LOGGER_NAME, MEDIA_EVENT_STOP
from callbridge.config.settings import BridgeSettings
from callbridge.models.call_session import CallSession

logger = logging.getLogger(LOGGER_NAME)

ClientFactory = Callable[..., RealtimeAudioClient]


class CallBridge:
    """
    Runs a single call from media connection accept to teardown.
    """

    def __init__(
        self,
        websocket: WebSocket,
        settings: BridgeSettings,
        client_factory: ClientFactory = RealtimeAudioClient,
    ):
        self.websocket = websocket
        self.settings = settings
        self.session = CallSession()
        self.controller = TurnController(self.session, settings)
        self.client = client_factory(
            api_key=settings.openai_api_key,
            model=settings.realtime_model,
            url=settings.realtime_url,
            connect_timeout=settings.connect_timeout,
        )

        self._lock = asyncio.Lock()
        self._timers: Dict[str, asyncio.Task] = {}
        self._media_task: Optional[asyncio.Task] = None
        self._realtime_task: Optional[asyncio.Task] = None
        self._closing = False

    @property
    def call_id(self) -> str:
        return self.session.call_id

    @property
    def closing(self) -> bool:
        return self._closing

    async def connect(self) -> bool:
        """
        Open the Speech Service connection for this call.

        On failure the media websocket is closed and the call never starts.

        Returns:
            bool: True if the Speech Service is connected
        """
        if await self.client.connect():
            logger.info(f"Speech service connected for call: {self.call_id}")
            return True

        logger.error(f"Could not connect to the speech service; dropping call: {self.call_id}")
        self._closing = True
        await self._close_media_socket()
        return False

    async def run(self) -> None:
        """
        Bridge the call until either side disconnects, then tear it down.

        ``connect()`` must have succeeded first.
        """
        async with self._lock:
            await self._execute(self.controller.start())

        self._media_task = asyncio.create_task(self._media_loop())
        self._realtime_task = asyncio.create_task(self._realtime_loop())
        try:
            await asyncio.wait(
                {self._media_task, self._realtime_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            await self.close()

    async def close(self) -> None:
        """
        Tear the call down. Safe to call more than once.
        """
        if self._closing:
            return
        self._closing = True
        logger.info(f"Tearing down call: {self.call_id}")

        current = asyncio.current_task()
        pending = [task for task in self._timers.values() if task is not current]
        self._timers.clear()
        for task in (self._media_task, self._realtime_task):
            if task is not None and task is not current and not task.done():
                pending.append(task)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        await self.client.close()
        await self._close_media_socket()
        logger.info(f"Call summary: {self.session.summary()}")

    # Receive loops
    async def _media_loop(self) -> None:
        try:
            while True:
                message = await self.websocket.receive()
                if message["type"] == "websocket.disconnect":
                    logger.info(
                        f"Media websocket disconnected (code {message.get('code')}) for call: {self.call_id}"
                    )
                    break

                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                try:
                    event = translator.parse_media_event(raw)
                except UnrecognizedEventError as e:
                    logger.debug(f"Ignoring media event '{e.event_type}': {e.raw_excerpt}")
                    continue
                except MalformedEventError as e:
                    logger.warning(f"Malformed media event ({e}): {e.raw_excerpt}")
                    continue

                async with self._lock:
                    if self._closing:
                        break
                    await self._execute(self.controller.handle_media_event(event))

                if event.event == MEDIA_EVENT_STOP:
                    logger.info(f"Media stream stopped for call: {self.call_id}")
                    break
        except Exception as e:
            logger.error(f"Error in media loop for call {self.call_id}: {e}", exc_info=True)

    async def _realtime_loop(self) -> None:
        try:
            async for raw in self.client.iter_messages():
                try:
                    event = translator.parse_realtime_event(raw)
                except UnrecognizedEventError as e:
                    logger.debug(f"Ignoring realtime event '{e.event_type}': {e.raw_excerpt}")
                    continue
                except MalformedEventError as e:
                    logger.warning(f"Malformed realtime event ({e}): {e.raw_excerpt}")
                    continue

                async with self._lock:
                    if self._closing:
                        break
                    await self._execute(self.controller.handle_realtime_event(event))
            logger.info(f"Speech service connection ended for call: {self.call_id}")
        except Exception as e:
            logger.error(f"Error in realtime loop for call {self.call_id}: {e}", exc_info=True)

    # Effects
    async def _execute(self, effects: Effects) -> None:
        """Carry out controller effects in order. Caller holds the lock."""
        for effect in effects:
            if self._closing:
                return
            if isinstance(effect, Send):
                await self._send(effect)
            elif isinstance(effect, StartTimer):
                self._start_timer(effect)
            elif isinstance(effect, CancelTimer):
                self._cancel_timer(effect.name)

    async def _send(self, effect: Send) -> None:
        if effect.channel == Channel.REALTIME:
            await self.client.send_event(effect.message)
            return

        try:
            await self.websocket.send_text(translator.dump(effect.message))
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"Could not send to media websocket for call {self.call_id}: {e}")

    def _start_timer(self, timer: StartTimer) -> None:
        self._cancel_timer(timer.name)
        self._timers[timer.name] = asyncio.create_task(self._run_timer(timer))

    def _cancel_timer(self, name: str) -> None:
        task = self._timers.pop(name, None)
        if task is not None and not task.done():
            task.cancel()

    async def _run_timer(self, timer: StartTimer) -> None:
        await asyncio.sleep(timer.delay)
        try:
            async with self._lock:
                if self._closing:
                    return
                if self._timers.get(timer.name) is asyncio.current_task():
                    del self._timers[timer.name]
                await self._execute(self.controller.handle_timer(timer.name, timer.token))
        except Exception as e:
            logger.error(f"Error in {timer.name} timer for call {self.call_id}: {e}", exc_info=True)
            await self.close()

    async def _close_media_socket(self) -> None:
        if self.websocket.client_state != WebSocketState.CONNECTED:
            return
        try:
            await self.websocket.close()
        except RuntimeError as e:
            logger.debug(f"Media websocket already closed for call {self.call_id}: {e}")
