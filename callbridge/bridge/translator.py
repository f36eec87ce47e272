"""
Protocol translation between the Media Channel and the Speech Service.

Every function here is a stateless mapping: raw websocket text to a validated
event model, or arguments to an outbound command model. Session state is never
touched here; that is the ``TurnController``'s job.
"""

import json
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from callbridge.config.constants import (
    RAW_PAYLOAD_LOG_LIMIT,
    REALTIME_ERROR,
    REALTIME_INPUT_COMMITTED,
    REALTIME_RESPONSE_AUDIO_DELTA,
    REALTIME_RESPONSE_AUDIO_DELTA_BETA,
    REALTIME_RESPONSE_CREATED,
    REALTIME_RESPONSE_DONE,
    REALTIME_SESSION_CREATED,
    REALTIME_SESSION_UPDATED,
    REALTIME_SPEECH_STARTED,
    REALTIME_SPEECH_STOPPED,
    REALTIME_TRANSCRIPTION_COMPLETED,
    REALTIME_TRANSCRIPTION_COMPLETED_SHORT,
)
from callbridge.config.settings import BridgeSettings
from callbridge.models.media_schemas import (
    INBOUND_MEDIA_EVENT_TYPES,
    ClearMessage,
    InboundMediaEvent,
    MarkPayload,
    MediaEvent,
    OutboundMarkMessage,
    OutboundMediaMessage,
    OutboundMediaPayload,
)
from callbridge.models.realtime_schemas import (
    InputAudioAppendCommand,
    InputAudioTranscription,
    ItemTruncateCommand,
    RealtimeServerEvent,
    ResponseCancelCommand,
    ResponseCreateCommand,
    ResponseParameters,
    SessionConfig,
    SessionUpdateCommand,
    TurnDetection,
)

HANDLED_REALTIME_EVENT_TYPES = frozenset(
    {
        REALTIME_SESSION_CREATED,
        REALTIME_SESSION_UPDATED,
        REALTIME_RESPONSE_CREATED,
        REALTIME_RESPONSE_AUDIO_DELTA,
        REALTIME_RESPONSE_AUDIO_DELTA_BETA,
        REALTIME_RESPONSE_DONE,
        REALTIME_SPEECH_STARTED,
        REALTIME_SPEECH_STOPPED,
        REALTIME_INPUT_COMMITTED,
        REALTIME_TRANSCRIPTION_COMPLETED,
        REALTIME_TRANSCRIPTION_COMPLETED_SHORT,
        REALTIME_ERROR,
    }
)

_media_event_adapter = TypeAdapter(InboundMediaEvent)
_realtime_event_adapter = TypeAdapter(RealtimeServerEvent)


class MalformedEventError(ValueError):
    """An event could not be parsed into a known, valid shape."""

    def __init__(self, message: str, raw: Any = None):
        super().__init__(message)
        self.raw = raw

    @property
    def raw_excerpt(self) -> str:
        return truncate_payload(self.raw)


class UnrecognizedEventError(MalformedEventError):
    """Well-formed JSON whose event type this bridge does not handle."""

    def __init__(self, event_type: Optional[str], raw: Any = None):
        super().__init__(f"Unrecognized event type: {event_type}", raw)
        self.event_type = event_type


def truncate_payload(raw: Any, limit: int = RAW_PAYLOAD_LOG_LIMIT) -> str:
    if raw is None:
        return ""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    text = raw if isinstance(raw, str) else repr(raw)
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def _load_object(raw: Union[str, bytes], discriminator: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise MalformedEventError(f"Invalid JSON: {e}", raw) from e
    if not isinstance(data, dict):
        raise MalformedEventError("Event is not a JSON object", raw)
    if not isinstance(data.get(discriminator), str):
        raise MalformedEventError(f"Event has no '{discriminator}' field", raw)
    return data


def parse_media_event(raw: Union[str, bytes]) -> BaseModel:
    """
    Parse one message received from the Media Channel.

    Args:
        raw: The websocket frame, text or binary

    Returns:
        The validated inbound media event model

    Raises:
        UnrecognizedEventError: If the ``event`` name is not one the gateway sends
        MalformedEventError: If the message is not valid JSON or fails validation
    """
    data = _load_object(raw, "event")
    if data["event"] not in INBOUND_MEDIA_EVENT_TYPES:
        raise UnrecognizedEventError(data["event"], raw)
    try:
        return _media_event_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid {data['event']} event: {e}", raw) from e


def parse_realtime_event(raw: Union[str, bytes]) -> BaseModel:
    """
    Parse one message received from the Speech Service.

    Args:
        raw: The websocket text frame

    Returns:
        The validated server event model

    Raises:
        UnrecognizedEventError: For server events the bridge does not act on
        MalformedEventError: If the message is not valid JSON or fails validation
    """
    data = _load_object(raw, "type")
    if data["type"] not in HANDLED_REALTIME_EVENT_TYPES:
        raise UnrecognizedEventError(data["type"], raw)
    try:
        return _realtime_event_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid {data['type']} event: {e}", raw) from e


def dump(message: BaseModel) -> str:
    """Serialize an outbound model to websocket text, omitting unset optionals."""
    return message.model_dump_json(exclude_none=True)


# Media Channel -> Speech Service
def append_audio(event: MediaEvent) -> InputAudioAppendCommand:
    return InputAudioAppendCommand(audio=event.media.payload)


# Speech Service -> Media Channel
def media_frame(stream_id: str, payload: str) -> OutboundMediaMessage:
    return OutboundMediaMessage(streamSid=stream_id, media=OutboundMediaPayload(payload=payload))


def mark(stream_id: str, name: str) -> OutboundMarkMessage:
    return OutboundMarkMessage(streamSid=stream_id, mark=MarkPayload(name=name))


def clear(stream_id: str) -> ClearMessage:
    return ClearMessage(streamSid=stream_id)


# Speech Service commands
def session_update(settings: BridgeSettings) -> SessionUpdateCommand:
    """Build the single configuration command sent for a call."""
    transcription = None
    if settings.transcription_model:
        transcription = InputAudioTranscription(model=settings.transcription_model)
    return SessionUpdateCommand(
        session=SessionConfig(
            instructions=settings.instructions,
            voice=settings.voice,
            turn_detection=TurnDetection(
                threshold=settings.vad_threshold,
                silence_duration_ms=settings.vad_silence_duration_ms,
                prefix_padding_ms=settings.vad_prefix_padding_ms,
                create_response=settings.automatic_responses,
                interrupt_response=settings.interrupt_response,
            ),
            input_audio_transcription=transcription,
            temperature=settings.temperature,
        )
    )


def response_create(instructions: Optional[str] = None) -> ResponseCreateCommand:
    return ResponseCreateCommand(response=ResponseParameters(instructions=instructions))


def truncate_item(item_id: str, audio_end_ms: int) -> ItemTruncateCommand:
    return ItemTruncateCommand(item_id=item_id, content_index=0, audio_end_ms=audio_end_ms)


def response_cancel() -> ResponseCancelCommand:
    return ResponseCancelCommand()
