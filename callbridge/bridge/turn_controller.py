"""
Turn-taking state machine for one call.

The ``TurnController`` owns every state transition of a ``CallSession``. Each inbound
event (from either websocket) and each fired timer is handled by a synchronous
method that mutates the session and returns the effects to execute. The controller
never awaits and never touches a socket, so handling stays serialized as long as the
caller holds the bridge's lock while handling an event and executing its effects.

Lifecycle of a call::

    IDLE -> AWAITING_SESSION_READY -> AWAITING_GREETING -> MODEL_RESPONDING
                                                            |        ^
                                          speech_started    v        | response.created
                                                         CALLER_SPEAKING / IDLE

Responses are either requested by this controller (manual mode) or created by the
Speech Service's own turn detection (automatic mode). In both modes at most one
response is outstanding at any time.
"""

import json
import logging
from typing import Callable, Dict, Optional

from pydantic import BaseModel

from callbridge.bridge import translator
from callbridge.bridge.effects import CancelTimer, Effects, StartTimer, to_media, to_realtime
from callbridge.bridge.pacer import AudioPacer
from callbridge.config.constants import (
    LOGGER_NAME,
    MEDIA_EVENT_CONNECTED,
    MEDIA_EVENT_DTMF,
    MEDIA_EVENT_MARK,
    MEDIA_EVENT_MEDIA,
    MEDIA_EVENT_START,
    MEDIA_EVENT_STOP,
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
    TIMER_CONFIGURE,
    TIMER_GREETING,
    TIMER_RESPONSE_FALLBACK,
    TIMER_RESPONSE_WATCHDOG,
)
from callbridge.config.settings import BridgeSettings
from callbridge.models.call_session import CallSession, TurnState
from callbridge.models.media_schemas import (
    ConnectedEvent,
    DtmfEvent,
    MarkEvent,
    MediaEvent,
    StartEvent,
    StopEvent,
)
from callbridge.models.realtime_schemas import (
    InputCommittedEvent,
    RealtimeErrorEvent,
    ResponseAudioDeltaEvent,
    ResponseCreatedEvent,
    ResponseDoneEvent,
    SessionUpdatedEvent,
    SpeechStartedEvent,
    SpeechStoppedEvent,
    TranscriptionCompletedEvent,
)

logger = logging.getLogger(LOGGER_NAME)

# Type hint for event and timer handler methods
HandlerFunc = Callable[..., Effects]


class TurnController:
    """Decides what to send, and when, for one call."""

    def __init__(
        self,
        session: CallSession,
        settings: BridgeSettings,
        pacer: Optional[AudioPacer] = None,
    ):
        self.session = session
        self.settings = settings
        self.pacer = pacer or AudioPacer(settings.pacer_prebuffer_chunks)

        self.media_handlers: Dict[str, HandlerFunc] = {
            MEDIA_EVENT_CONNECTED: self._on_connected,
            MEDIA_EVENT_START: self._on_start,
            MEDIA_EVENT_MEDIA: self._on_media,
            MEDIA_EVENT_MARK: self._on_mark,
            MEDIA_EVENT_STOP: self._on_stop,
            MEDIA_EVENT_DTMF: self._on_dtmf,
        }
        self.realtime_handlers: Dict[str, HandlerFunc] = {
            REALTIME_SESSION_CREATED: self._on_session_created,
            REALTIME_SESSION_UPDATED: self._on_session_updated,
            REALTIME_RESPONSE_CREATED: self._on_response_created,
            REALTIME_RESPONSE_AUDIO_DELTA: self._on_audio_delta,
            REALTIME_RESPONSE_AUDIO_DELTA_BETA: self._on_audio_delta,
            REALTIME_RESPONSE_DONE: self._on_response_done,
            REALTIME_SPEECH_STARTED: self._on_speech_started,
            REALTIME_SPEECH_STOPPED: self._on_speech_stopped,
            REALTIME_INPUT_COMMITTED: self._on_input_committed,
            REALTIME_TRANSCRIPTION_COMPLETED: self._on_transcription_completed,
            REALTIME_TRANSCRIPTION_COMPLETED_SHORT: self._on_transcription_completed,
            REALTIME_ERROR: self._on_error,
        }
        self.timer_handlers: Dict[str, HandlerFunc] = {
            TIMER_CONFIGURE: self._on_configure_timer,
            TIMER_GREETING: self._on_greeting_timer,
            TIMER_RESPONSE_FALLBACK: self._on_fallback_timer,
            TIMER_RESPONSE_WATCHDOG: self._on_watchdog_timer,
        }

    @property
    def manual_mode(self) -> bool:
        return not self.settings.automatic_responses

    # Entry points
    def handle_media_event(self, event: BaseModel) -> Effects:
        """Apply one validated Media Channel event."""
        handler = self.media_handlers.get(event.event)
        if handler is None:
            logger.warning(f"No handler for media event: {event.event}")
            return []
        return handler(event)

    def handle_realtime_event(self, event: BaseModel) -> Effects:
        """Apply one validated Speech Service event."""
        handler = self.realtime_handlers.get(event.type)
        if handler is None:
            logger.warning(f"No handler for realtime event: {event.type}")
            return []
        return handler(event)

    def handle_timer(self, name: str, token: Optional[str] = None) -> Effects:
        """Apply a fired session timer."""
        handler = self.timer_handlers.get(name)
        if handler is None:
            logger.warning(f"Unknown timer fired: {name}")
            return []
        return handler(token)

    def start(self) -> Effects:
        """Speech Service link is open; configure it after the settle delay."""
        return [StartTimer(TIMER_CONFIGURE, self.settings.session_settle_delay)]

    # Media Channel events
    def _on_connected(self, event: ConnectedEvent) -> Effects:
        logger.info(f"Media channel connected (protocol: {event.protocol}) for call: {self.session.call_id}")
        return []

    def _on_start(self, event: StartEvent) -> Effects:
        session = self.session
        if session.stream_id is not None:
            logger.warning(
                f"Ignoring second start event for stream {event.start.streamSid}; "
                f"call {session.call_id} is bound to stream {session.stream_id}"
            )
            return []

        session.stream_id = event.start.streamSid
        session.call_sid = event.start.callSid
        session.media_clock = 0
        session.clear_response_tracking()
        logger.info(f"Incoming stream started: {session.stream_id} for call: {session.call_id}")
        return self._check_ready()

    def _on_media(self, event: MediaEvent) -> Effects:
        self.session.frames_received += 1
        self.session.advance_clock(event.media.timestamp)
        return [to_realtime(translator.append_audio(event))]

    def _on_mark(self, event: MarkEvent) -> Effects:
        if not self.session.acknowledge_playback(event.mark.name):
            logger.debug(f"Ignoring stale playback acknowledgment: {event.mark.name}")
        return []

    def _on_stop(self, event: StopEvent) -> Effects:
        logger.info(f"Media stream stopped for call: {self.session.call_id}")
        return []

    def _on_dtmf(self, event: DtmfEvent) -> Effects:
        logger.info(f"DTMF digit received: {event.dtmf.digit} for call: {self.session.call_id}")
        return []

    # Speech Service events
    def _on_session_created(self, event: BaseModel) -> Effects:
        logger.debug(f"Speech session created for call: {self.session.call_id}")
        return []

    def _on_session_updated(self, event: SessionUpdatedEvent) -> Effects:
        if self.session.session_configured:
            logger.debug(f"Repeated session.updated ignored for call: {self.session.call_id}")
            return []
        self.session.session_configured = True
        logger.info(f"Speech session configured for call: {self.session.call_id}")
        return self._check_ready()

    def _on_response_created(self, event: ResponseCreatedEvent) -> Effects:
        session = self.session
        session.response_in_flight = True
        session.turn_state = TurnState.MODEL_RESPONDING
        session.clear_response_tracking()
        self.pacer.reset(session)
        logger.info(f"Response created: {event.response.id} for call: {session.call_id}")
        return [CancelTimer(TIMER_RESPONSE_WATCHDOG)]

    def _on_audio_delta(self, event: ResponseAudioDeltaEvent) -> Effects:
        session = self.session
        if session.turn_state != TurnState.MODEL_RESPONDING:
            logger.debug(f"Dropping audio delta in state {session.turn_state.value}")
            return []
        if session.stream_id is None:
            logger.warning(f"Dropping audio delta before stream start for call: {session.call_id}")
            return []

        if session.response_anchor is None:
            session.response_anchor = session.media_clock
            if self.settings.log_timing:
                logger.debug(f"Response audio anchored at {session.response_anchor}ms")
        if event.item_id:
            session.active_assistant_item_id = event.item_id
        return self.pacer.push(session, event.delta)

    def _on_response_done(self, event: ResponseDoneEvent) -> Effects:
        session = self.session
        status = event.response.status
        if event.failed:
            details = json.dumps(event.response.status_details, indent=2)
            logger.error(f"Response failed for call {session.call_id}: {details}")
        elif status not in (None, "completed"):
            logger.info(f"Response ended with status '{status}' for call: {session.call_id}")

        effects: Effects = []
        if session.stream_id is not None:
            effects.extend(self.pacer.flush(session))
        else:
            self.pacer.discard(session)

        session.clear_response_tracking()
        session.response_in_flight = False
        if session.turn_state in (TurnState.MODEL_RESPONDING, TurnState.AWAITING_GREETING):
            session.turn_state = TurnState.IDLE
        effects.append(CancelTimer(TIMER_RESPONSE_WATCHDOG))
        effects.extend(self._retry_deferred_greeting())
        return effects

    def _on_speech_started(self, event: SpeechStartedEvent) -> Effects:
        session = self.session
        if (
            session.turn_state == TurnState.MODEL_RESPONDING
            and session.playback_pending
            and session.response_anchor is not None
        ):
            return self._interrupt()
        logger.debug(
            f"Caller speech started with nothing to interrupt "
            f"(state={session.turn_state.value}, pending_marks={len(session.playback_ack_queue)})"
        )
        return []

    def _interrupt(self) -> Effects:
        """Caller barged in over audible assistant audio: cut it short."""
        session = self.session
        elapsed = max(0, session.media_clock - session.response_anchor)
        if self.settings.log_timing:
            logger.debug(
                f"Truncation point: {session.media_clock} - {session.response_anchor} = {elapsed}ms"
            )

        effects: Effects = []
        if session.active_assistant_item_id:
            effects.append(
                to_realtime(translator.truncate_item(session.active_assistant_item_id, elapsed))
            )
        effects.append(to_media(translator.clear(session.stream_id)))
        if not self.settings.interrupt_response:
            effects.append(to_realtime(translator.response_cancel()))

        session.playback_ack_queue.clear()
        session.clear_response_tracking()
        self.pacer.discard(session)
        session.interruptions += 1
        session.turn_state = TurnState.CALLER_SPEAKING
        logger.info(f"Caller interrupted response after {elapsed}ms on call: {session.call_id}")
        return effects

    def _on_speech_stopped(self, event: SpeechStoppedEvent) -> Effects:
        if self.session.turn_state == TurnState.CALLER_SPEAKING:
            self.session.turn_state = TurnState.IDLE
        if self.manual_mode:
            return [StartTimer(TIMER_RESPONSE_FALLBACK, self.settings.response_fallback_delay, event.item_id)]
        return []

    def _on_input_committed(self, event: InputCommittedEvent) -> Effects:
        self.session.last_committed_item_id = event.item_id
        if not self.manual_mode:
            return []
        return [CancelTimer(TIMER_RESPONSE_FALLBACK)] + self._request_response(
            "input-committed", event.item_id
        )

    def _on_transcription_completed(self, event: TranscriptionCompletedEvent) -> Effects:
        logger.debug(f"Caller transcript for item {event.item_id}: {event.transcript}")
        if not self.manual_mode:
            return []
        return [CancelTimer(TIMER_RESPONSE_FALLBACK)] + self._request_response(
            "transcription-completed", event.item_id
        )

    def _on_error(self, event: RealtimeErrorEvent) -> Effects:
        error = event.error
        logger.error(
            f"Speech service error for call {self.session.call_id}: "
            f"{error.type}/{error.code}: {error.message}"
        )
        return []

    # Timers
    def _on_configure_timer(self, token: Optional[str]) -> Effects:
        if self.session.configuration_sent:
            return []
        self.session.configuration_sent = True
        logger.info(
            f"Configuring speech session for call {self.session.call_id} "
            f"(voice={self.settings.voice}, mode={self.settings.response_mode})"
        )
        return [to_realtime(translator.session_update(self.settings))]

    def _on_greeting_timer(self, token: Optional[str]) -> Effects:
        session = self.session
        if session.greeting_issued or not session.ready_for_greeting:
            return []
        return self._issue_greeting()

    def _on_fallback_timer(self, token: Optional[str]) -> Effects:
        item_id = token or self.session.last_committed_item_id
        return self._request_response("fallback-timeout", item_id)

    def _on_watchdog_timer(self, token: Optional[str]) -> Effects:
        session = self.session
        if token != str(session.response_request_seq) or not session.response_in_flight:
            return []
        if session.turn_state == TurnState.MODEL_RESPONDING:
            return []
        logger.warning(
            f"No response created within {self.settings.response_create_timeout}s "
            f"for call {session.call_id}; releasing response guard"
        )
        session.response_in_flight = False
        return self._retry_deferred_greeting()

    # Helpers
    def _check_ready(self) -> Effects:
        """Rendezvous of stream start and session configuration, in either order."""
        session = self.session
        if session.turn_state not in (TurnState.IDLE, TurnState.AWAITING_SESSION_READY):
            return []
        if not session.ready_for_greeting:
            session.turn_state = TurnState.AWAITING_SESSION_READY
            return []
        if session.greeting_issued:
            return []
        session.turn_state = TurnState.AWAITING_GREETING
        return [StartTimer(TIMER_GREETING, self.settings.greeting_delay)]

    def _issue_greeting(self) -> Effects:
        """Request the greeting, or defer it while another response is outstanding."""
        session = self.session
        effects = self._request_response(
            "greeting", None, instructions=self.settings.greeting_instructions
        )
        if effects:
            session.greeting_issued = True
            session.greeting_deferred = False
        else:
            session.greeting_deferred = True
            logger.info(f"Greeting deferred until the current response ends for call: {session.call_id}")
        return effects

    def _retry_deferred_greeting(self) -> Effects:
        session = self.session
        if not session.greeting_deferred or session.greeting_issued:
            return []
        return self._issue_greeting()

    def _request_response(
        self, reason: str, item_id: Optional[str], instructions: Optional[str] = None
    ) -> Effects:
        """Ask the Speech Service for a response unless one is already outstanding."""
        session = self.session
        if not session.session_configured:
            logger.debug(f"Skipping response.create ({reason}): session not configured")
            return []
        if session.response_in_flight:
            logger.debug(f"Skipping response.create ({reason}): response already in progress")
            return []
        if item_id is not None and item_id == session.answered_item_id:
            logger.debug(f"Skipping response.create ({reason}): item {item_id} already answered")
            return []

        session.response_in_flight = True
        session.response_request_seq += 1
        if item_id is not None:
            session.answered_item_id = item_id
        logger.info(f"Creating response ({reason}) for call: {session.call_id}")
        return [
            to_realtime(translator.response_create(instructions)),
            StartTimer(
                TIMER_RESPONSE_WATCHDOG,
                self.settings.response_create_timeout,
                str(session.response_request_seq),
            ),
        ]
