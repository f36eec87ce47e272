"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for wire vocabulary and default tunables so both
sides of the bridge agree on event names.
"""

# Logger name used throughout the application
LOGGER_NAME = "call_bridge"

# Default OpenAI model and endpoint for the Realtime API
DEFAULT_REALTIME_MODEL = "gpt-realtime"
DEFAULT_REALTIME_URL = "wss://api.openai.com/v1/realtime"
DEFAULT_VOICE = "alloy"
DEFAULT_TEMPERATURE = 0.8

# 8kHz G.711 mu-law, the codec used on both sides of a phone call
AUDIO_FORMAT_G711_ULAW = "g711_ulaw"

DEFAULT_INSTRUCTIONS = (
    "You are a helpful and friendly voice assistant answering a phone call. "
    "Keep your answers short and conversational."
)
DEFAULT_GREETING_INSTRUCTIONS = (
    "Greet the caller warmly and briefly, then ask how you can help."
)

# Response modes
RESPONSE_MODE_MANUAL = "manual"
RESPONSE_MODE_AUTOMATIC = "automatic"

# Turn detection defaults
DEFAULT_VAD_THRESHOLD = 0.7
DEFAULT_VAD_SILENCE_DURATION_MS = 500
DEFAULT_VAD_PREFIX_PADDING_MS = 300

# Timing defaults (seconds)
DEFAULT_SESSION_SETTLE_DELAY = 0.1
DEFAULT_GREETING_DELAY = 0.25
DEFAULT_RESPONSE_FALLBACK_DELAY = 0.25
DEFAULT_RESPONSE_CREATE_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 10.0

# Number of audio deltas held back at the start of every response
DEFAULT_PACER_PREBUFFER_CHUNKS = 5

# Session-local timer names
TIMER_CONFIGURE = "configure"
TIMER_GREETING = "greeting"
TIMER_RESPONSE_FALLBACK = "response_fallback"
TIMER_RESPONSE_WATCHDOG = "response_watchdog"

# Media Channel event names
MEDIA_EVENT_CONNECTED = "connected"
MEDIA_EVENT_START = "start"
MEDIA_EVENT_MEDIA = "media"
MEDIA_EVENT_MARK = "mark"
MEDIA_EVENT_STOP = "stop"
MEDIA_EVENT_DTMF = "dtmf"

# Speech Service client events
REALTIME_INPUT_AUDIO_APPEND = "input_audio_buffer.append"

# Speech Service server events
REALTIME_SESSION_CREATED = "session.created"
REALTIME_SESSION_UPDATED = "session.updated"
REALTIME_RESPONSE_CREATED = "response.created"
REALTIME_RESPONSE_AUDIO_DELTA = "response.output_audio.delta"
REALTIME_RESPONSE_AUDIO_DELTA_BETA = "response.audio.delta"
REALTIME_RESPONSE_DONE = "response.done"
REALTIME_SPEECH_STARTED = "input_audio_buffer.speech_started"
REALTIME_SPEECH_STOPPED = "input_audio_buffer.speech_stopped"
REALTIME_INPUT_COMMITTED = "input_audio_buffer.committed"
REALTIME_TRANSCRIPTION_COMPLETED = "conversation.item.input_audio_transcription.completed"
REALTIME_TRANSCRIPTION_COMPLETED_SHORT = "input_audio_transcription.completed"
REALTIME_ERROR = "error"

# Maximum number of characters of a raw payload included in a log line
RAW_PAYLOAD_LOG_LIMIT = 300
