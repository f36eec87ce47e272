"""
Bridge module connecting telephony media streams with the OpenAI Realtime API.

This module holds everything that happens during a call, from protocol
translation to turn taking and the socket lifecycle.

Key components:
- translator: Stateless parsing of inbound events and construction of outbound
  messages for both channels.
- turn_controller: ``TurnController``, the synchronous state machine deciding what
  to send and when (greeting, responses, barge-in).
- pacer: ``AudioPacer``, which prebuffers the start of each response.
- effects: The effect types the controller returns (sends, timer starts/cancels).
- realtime_api: ``RealtimeAudioClient``, the websocket client for the Speech Service.
- call_bridge: ``CallBridge``, which runs one call from accept to teardown.

Usage examples:
```python
from callbridge.bridge import CallBridge
from callbridge.config.settings import BridgeSettings

async def handle_call(websocket):
    bridge = CallBridge(websocket, BridgeSettings.from_env())
    if await bridge.connect():
        await bridge.run()
```
"""

from callbridge.bridge.call_bridge import CallBridge
from callbridge.bridge.realtime_api import RealtimeAudioClient
from callbridge.bridge.turn_controller import TurnController

__all__ = ["CallBridge", "RealtimeAudioClient", "TurnController"]
