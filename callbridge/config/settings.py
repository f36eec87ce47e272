"""
Runtime settings for the call bridge.

Settings are read from environment variables (optionally populated from a
``.env`` file by the application entry point) and validated with Pydantic so a
misconfigured deployment fails at startup rather than in the middle of a call.
"""

import os
from pathlib import Path
from typing import Dict, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from callbridge.config.constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_GREETING_DELAY,
    DEFAULT_GREETING_INSTRUCTIONS,
    DEFAULT_INSTRUCTIONS,
    DEFAULT_PACER_PREBUFFER_CHUNKS,
    DEFAULT_REALTIME_MODEL,
    DEFAULT_REALTIME_URL,
    DEFAULT_RESPONSE_CREATE_TIMEOUT,
    DEFAULT_RESPONSE_FALLBACK_DELAY,
    DEFAULT_SESSION_SETTLE_DELAY,
    DEFAULT_TEMPERATURE,
    DEFAULT_VAD_PREFIX_PADDING_MS,
    DEFAULT_VAD_SILENCE_DURATION_MS,
    DEFAULT_VAD_THRESHOLD,
    DEFAULT_VOICE,
    RESPONSE_MODE_AUTOMATIC,
    RESPONSE_MODE_MANUAL,
)

# Environment variable name -> settings field name
ENV_FIELDS: Dict[str, str] = {
    "OPENAI_API_KEY": "openai_api_key",
    "OPENAI_REALTIME_MODEL": "realtime_model",
    "OPENAI_REALTIME_URL": "realtime_url",
    "VOICE": "voice",
    "TEMPERATURE": "temperature",
    "INSTRUCTIONS": "instructions",
    "GREETING_INSTRUCTIONS": "greeting_instructions",
    "RESPONSE_MODE": "response_mode",
    "VAD_THRESHOLD": "vad_threshold",
    "VAD_SILENCE_DURATION_MS": "vad_silence_duration_ms",
    "VAD_PREFIX_PADDING_MS": "vad_prefix_padding_ms",
    "INTERRUPT_RESPONSE": "interrupt_response",
    "TRANSCRIPTION_MODEL": "transcription_model",
    "PACER_PREBUFFER_CHUNKS": "pacer_prebuffer_chunks",
    "SESSION_SETTLE_DELAY": "session_settle_delay",
    "GREETING_DELAY": "greeting_delay",
    "RESPONSE_FALLBACK_DELAY": "response_fallback_delay",
    "RESPONSE_CREATE_TIMEOUT": "response_create_timeout",
    "CONNECT_TIMEOUT": "connect_timeout",
    "SHOW_TIMING_MATH": "log_timing",
}


def load_instructions(path: str) -> str:
    """Read the agent instructions text verbatim from ``path``."""
    return Path(path).read_text(encoding="utf-8").strip()


class BridgeSettings(BaseModel):
    """Validated configuration shared by every call handled by the process."""

    openai_api_key: Optional[str] = Field(None, description="OpenAI API key")
    realtime_model: str = Field(DEFAULT_REALTIME_MODEL, description="Realtime model name")
    realtime_url: str = Field(DEFAULT_REALTIME_URL, description="Realtime websocket endpoint")
    voice: str = Field(DEFAULT_VOICE, description="Voice used for synthesized audio")
    temperature: float = Field(DEFAULT_TEMPERATURE, ge=0.6, le=1.2)
    instructions: str = Field(DEFAULT_INSTRUCTIONS, description="Agent instructions, injected verbatim")
    greeting_instructions: str = Field(DEFAULT_GREETING_INSTRUCTIONS)

    response_mode: Literal["manual", "automatic"] = RESPONSE_MODE_MANUAL
    vad_threshold: float = Field(DEFAULT_VAD_THRESHOLD, ge=0.0, le=1.0)
    vad_silence_duration_ms: int = Field(DEFAULT_VAD_SILENCE_DURATION_MS, ge=0)
    vad_prefix_padding_ms: int = Field(DEFAULT_VAD_PREFIX_PADDING_MS, ge=0)
    interrupt_response: bool = True
    transcription_model: Optional[str] = "whisper-1"

    pacer_prebuffer_chunks: int = Field(DEFAULT_PACER_PREBUFFER_CHUNKS, ge=0)
    session_settle_delay: float = Field(DEFAULT_SESSION_SETTLE_DELAY, ge=0.0)
    greeting_delay: float = Field(DEFAULT_GREETING_DELAY, ge=0.0)
    response_fallback_delay: float = Field(DEFAULT_RESPONSE_FALLBACK_DELAY, ge=0.0)
    response_create_timeout: float = Field(DEFAULT_RESPONSE_CREATE_TIMEOUT, gt=0.0)
    connect_timeout: float = Field(DEFAULT_CONNECT_TIMEOUT, gt=0.0)
    log_timing: bool = False

    @field_validator("response_mode", mode="before")
    def normalize_response_mode(cls, v):
        """Accept the mode name case-insensitively."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("instructions", "greeting_instructions")
    def validate_instructions(cls, v):
        """Instructions are sent verbatim but must not be blank."""
        if not v.strip():
            raise ValueError("Instructions cannot be empty")
        return v

    @field_validator("transcription_model", mode="before")
    def empty_transcription_model(cls, v):
        """An empty string disables input transcription."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("realtime_url")
    def validate_realtime_url(cls, v):
        """The Speech Service is only reachable over a websocket URL."""
        if not v.startswith(("ws://", "wss://")):
            raise ValueError(f"Realtime URL must be a websocket URL: {v}")
        return v

    @property
    def automatic_responses(self) -> bool:
        return self.response_mode == RESPONSE_MODE_AUTOMATIC

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BridgeSettings":
        """
        Build settings from environment variables.

        Unset variables fall back to the field defaults. ``INSTRUCTIONS_FILE``,
        when set, takes precedence over ``INSTRUCTIONS``.

        Args:
            environ: Mapping to read from; defaults to ``os.environ``

        Returns:
            BridgeSettings: The validated settings

        Raises:
            pydantic.ValidationError: If any value is invalid
        """
        environ = os.environ if environ is None else environ
        values = {
            field: environ[name] for name, field in ENV_FIELDS.items() if name in environ
        }
        instructions_file = environ.get("INSTRUCTIONS_FILE")
        if instructions_file:
            values["instructions"] = load_instructions(instructions_file)
        return cls(**values)
