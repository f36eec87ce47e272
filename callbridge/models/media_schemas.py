"""
Pydantic models for the telephony Media Channel message schemas.

This module defines structured data models for the incoming and outgoing events of
the media stream websocket (Twilio Media Streams vocabulary), providing type
validation and documentation. Field names follow the wire format.
"""

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from callbridge.config.constants import (
    MEDIA_EVENT_CONNECTED,
    MEDIA_EVENT_DTMF,
    MEDIA_EVENT_MARK,
    MEDIA_EVENT_MEDIA,
    MEDIA_EVENT_START,
    MEDIA_EVENT_STOP,
)


class MediaBaseModel(BaseModel):
    """Base model for media channel payloads; unknown wire fields are tolerated."""

    model_config = ConfigDict(extra="ignore")


# Inbound payloads
class MediaFormat(MediaBaseModel):
    """Audio format announced by the gateway on stream start."""

    encoding: str = Field(..., description="Audio encoding, e.g. audio/x-mulaw")
    sampleRate: int = Field(..., description="Sample rate in Hz")
    channels: int = Field(1, description="Number of channels")


class StartPayload(MediaBaseModel):
    """Body of a start event."""

    streamSid: str = Field(..., description="Identifier of the media stream")
    accountSid: Optional[str] = None
    callSid: Optional[str] = None
    tracks: List[str] = Field(default_factory=list)
    customParameters: Dict[str, str] = Field(default_factory=dict)
    mediaFormat: Optional[MediaFormat] = None

    @field_validator("streamSid")
    def validate_stream_sid(cls, v):
        """Validate that the stream identifier is not empty."""
        if not v.strip():
            raise ValueError("streamSid cannot be empty")
        return v


class InboundMediaPayload(MediaBaseModel):
    """Body of an inbound media event."""

    track: Optional[str] = None
    chunk: Optional[int] = None
    timestamp: int = Field(..., description="Milliseconds since the stream started")
    payload: str = Field(..., description="Base64-encoded mu-law audio")

    @field_validator("timestamp")
    def validate_timestamp(cls, v):
        """Validate that the media timestamp is not negative."""
        if v < 0:
            raise ValueError("timestamp cannot be negative")
        return v


class MarkPayload(MediaBaseModel):
    """Body of a mark event, in either direction."""

    name: str = Field(..., description="Mark name")


class StopPayload(MediaBaseModel):
    accountSid: Optional[str] = None
    callSid: Optional[str] = None


class DtmfPayload(MediaBaseModel):
    track: Optional[str] = None
    digit: str


# Inbound events
class ConnectedEvent(MediaBaseModel):
    """First message on a new media connection."""

    event: Literal["connected"]
    protocol: Optional[str] = None
    version: Optional[str] = None


class StartEvent(MediaBaseModel):
    """Stream metadata; sent once, before any media."""

    event: Literal["start"]
    sequenceNumber: Optional[str] = None
    streamSid: Optional[str] = None
    start: StartPayload


class MediaEvent(MediaBaseModel):
    """One frame of caller audio."""

    event: Literal["media"]
    sequenceNumber: Optional[str] = None
    streamSid: Optional[str] = None
    media: InboundMediaPayload


class MarkEvent(MediaBaseModel):
    """Playback acknowledgment for a previously sent mark."""

    event: Literal["mark"]
    sequenceNumber: Optional[str] = None
    streamSid: Optional[str] = None
    mark: MarkPayload


class StopEvent(MediaBaseModel):
    """The stream has ended."""

    event: Literal["stop"]
    sequenceNumber: Optional[str] = None
    streamSid: Optional[str] = None
    stop: Optional[StopPayload] = None


class DtmfEvent(MediaBaseModel):
    event: Literal["dtmf"]
    streamSid: Optional[str] = None
    dtmf: DtmfPayload


InboundMediaEvent = Annotated[
    Union[ConnectedEvent, StartEvent, MediaEvent, MarkEvent, StopEvent, DtmfEvent],
    Field(discriminator="event"),
]

INBOUND_MEDIA_EVENT_TYPES = (
    MEDIA_EVENT_CONNECTED,
    MEDIA_EVENT_START,
    MEDIA_EVENT_MEDIA,
    MEDIA_EVENT_MARK,
    MEDIA_EVENT_STOP,
    MEDIA_EVENT_DTMF,
)


# Outbound events
class OutboundMediaPayload(MediaBaseModel):
    payload: str = Field(..., description="Base64-encoded mu-law audio")

    @field_validator("payload")
    def validate_payload(cls, v):
        """Validate that outbound audio is not empty."""
        if not v:
            raise ValueError("Audio payload cannot be empty")
        return v


class OutboundMediaMessage(MediaBaseModel):
    """Audio to be played to the caller."""

    event: Literal["media"] = "media"
    streamSid: str
    media: OutboundMediaPayload


class OutboundMarkMessage(MediaBaseModel):
    """Request a playback acknowledgment once preceding audio has played."""

    event: Literal["mark"] = "mark"
    streamSid: str
    mark: MarkPayload


class ClearMessage(MediaBaseModel):
    """Discard all audio buffered for playback on the gateway."""

    event: Literal["clear"] = "clear"
    streamSid: str

