"""
Models module for data structures and state management in the call bridge.

This module provides structured data models and state classes for the application,
defining the schemas of both the telephony Media Channel and the OpenAI Realtime API.

Key components:
- call_session: ``CallSession`` and ``TurnState``, the mutable record of one call.
- media_schemas: Pydantic models for media stream events (start, media, mark, stop,
  outbound media/mark/clear).
- realtime_schemas: Pydantic models for Realtime API client commands and server events.
- call_registry: Bookkeeping of the calls currently being bridged.

Usage examples:
```python
from pydantic import TypeAdapter

from callbridge.models.media_schemas import InboundMediaEvent, ClearMessage

event = TypeAdapter(InboundMediaEvent).validate_json(raw_text)
clear = ClearMessage(streamSid="MZ123")
await websocket.send_text(clear.model_dump_json())
```
"""

from callbridge.models.call_registry import CallRegistry
from callbridge.models.call_session import CallSession, TurnState
from callbridge.models.media_schemas import (
    ClearMessage,
    ConnectedEvent,
    DtmfEvent,
    InboundMediaEvent,
    MarkEvent,
    MediaEvent,
    OutboundMarkMessage,
    OutboundMediaMessage,
    StartEvent,
    StopEvent,
)
from callbridge.models.realtime_schemas import (
    InputAudioAppendCommand,
    InputCommittedEvent,
    ItemTruncateCommand,
    RealtimeErrorEvent,
    RealtimeServerEvent,
    ResponseAudioDeltaEvent,
    ResponseCancelCommand,
    ResponseCreateCommand,
    ResponseCreatedEvent,
    ResponseDoneEvent,
    SessionUpdateCommand,
    SessionUpdatedEvent,
    SpeechStartedEvent,
    SpeechStoppedEvent,
    TranscriptionCompletedEvent,
)
