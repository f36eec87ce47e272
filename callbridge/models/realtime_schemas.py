"""
Pydantic models for OpenAI Realtime API message structures.

This module provides type-safe models for the events exchanged with the Realtime API:
the client commands this bridge sends and the subset of server events it acts on.
Server events carry many more fields than modelled here; extra fields are ignored.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from callbridge.config.constants import AUDIO_FORMAT_G711_ULAW


class RealtimeBaseMessage(BaseModel):
    """Base model for Realtime API messages."""

    model_config = ConfigDict(extra="ignore")

    type: str


# Client commands
class TurnDetection(BaseModel):
    """Server-side voice activity detection parameters."""

    type: Literal["server_vad"] = "server_vad"
    threshold: float
    silence_duration_ms: int
    prefix_padding_ms: int
    create_response: bool
    interrupt_response: bool


class InputAudioTranscription(BaseModel):
    model: str


class SessionConfig(BaseModel):
    modalities: List[str] = Field(default_factory=lambda: ["audio", "text"])
    instructions: str
    voice: str
    input_audio_format: str = AUDIO_FORMAT_G711_ULAW
    output_audio_format: str = AUDIO_FORMAT_G711_ULAW
    turn_detection: TurnDetection
    input_audio_transcription: Optional[InputAudioTranscription] = None
    temperature: Optional[float] = None


class SessionUpdateCommand(RealtimeBaseMessage):
    type: Literal["session.update"] = "session.update"
    session: SessionConfig


class ResponseParameters(BaseModel):
    modalities: List[str] = Field(default_factory=lambda: ["audio", "text"])
    instructions: Optional[str] = None


class ResponseCreateCommand(RealtimeBaseMessage):
    type: Literal["response.create"] = "response.create"
    response: Optional[ResponseParameters] = None


class ResponseCancelCommand(RealtimeBaseMessage):
    type: Literal["response.cancel"] = "response.cancel"


class InputAudioAppendCommand(RealtimeBaseMessage):
    type: Literal["input_audio_buffer.append"] = "input_audio_buffer.append"
    audio: str = Field(..., description="Base64-encoded audio in the session input format")


class ItemTruncateCommand(RealtimeBaseMessage):
    """Cut an assistant item at the point the caller stopped hearing it."""

    type: Literal["conversation.item.truncate"] = "conversation.item.truncate"
    item_id: str
    content_index: int = 0
    audio_end_ms: int = Field(..., ge=0)


# Server events
class ResponseInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    status: Optional[str] = None
    status_details: Optional[Dict[str, Any]] = None


class SessionCreatedEvent(RealtimeBaseMessage):
    type: Literal["session.created"]


class SessionUpdatedEvent(RealtimeBaseMessage):
    """Configuration acknowledged."""

    type: Literal["session.updated"]


class ResponseCreatedEvent(RealtimeBaseMessage):
    type: Literal["response.created"]
    response: ResponseInfo = Field(default_factory=ResponseInfo)


class ResponseAudioDeltaEvent(RealtimeBaseMessage):
    """A chunk of synthesized audio."""

    type: Literal["response.output_audio.delta", "response.audio.delta"]
    delta: str = Field(..., min_length=1, description="Base64-encoded audio chunk")
    item_id: Optional[str] = None
    response_id: Optional[str] = None


class ResponseDoneEvent(RealtimeBaseMessage):
    type: Literal["response.done"]
    response: ResponseInfo = Field(default_factory=ResponseInfo)

    @property
    def failed(self) -> bool:
        return self.response.status == "failed"


class SpeechStartedEvent(RealtimeBaseMessage):
    type: Literal["input_audio_buffer.speech_started"]
    audio_start_ms: Optional[int] = None
    item_id: Optional[str] = None


class SpeechStoppedEvent(RealtimeBaseMessage):
    type: Literal["input_audio_buffer.speech_stopped"]
    audio_end_ms: Optional[int] = None
    item_id: Optional[str] = None


class InputCommittedEvent(RealtimeBaseMessage):
    type: Literal["input_audio_buffer.committed"]
    item_id: Optional[str] = None
    previous_item_id: Optional[str] = None


class TranscriptionCompletedEvent(RealtimeBaseMessage):
    type: Literal[
        "conversation.item.input_audio_transcription.completed",
        "input_audio_transcription.completed",
    ]
    item_id: Optional[str] = None
    transcript: Optional[str] = None


class ErrorDetail(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    code: Optional[str] = None
    message: Optional[str] = None
    param: Optional[str] = None
    event_id: Optional[str] = None


class RealtimeErrorEvent(RealtimeBaseMessage):
    type: Literal["error"]
    error: ErrorDetail = Field(default_factory=ErrorDetail)


RealtimeServerEvent = Annotated[
    Union[
        SessionCreatedEvent,
        SessionUpdatedEvent,
        ResponseCreatedEvent,
        ResponseAudioDeltaEvent,
        ResponseDoneEvent,
        SpeechStartedEvent,
        SpeechStoppedEvent,
        InputCommittedEvent,
        TranscriptionCompletedEvent,
        RealtimeErrorEvent,
    ],
    Field(discriminator="type"),
]
