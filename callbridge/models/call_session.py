"""
Per-call session state.

A ``CallSession`` is the mutable record of one call's progress. It is owned by
exactly one ``CallBridge`` and only ever mutated by that bridge's
``TurnController`` (and the ``AudioPacer`` it drives), while the bridge's lock is
held.
"""

import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, List, Optional


class TurnState(str, Enum):
    """Turn-taking state of a call."""

    IDLE = "idle"
    AWAITING_SESSION_READY = "awaiting_session_ready"
    AWAITING_GREETING = "awaiting_greeting"
    MODEL_RESPONDING = "model_responding"
    CALLER_SPEAKING = "caller_speaking"


@dataclass
class CallSession:
    """State for one established media connection."""

    call_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    stream_id: Optional[str] = None
    call_sid: Optional[str] = None

    media_clock: int = 0  # ms, latest inbound media timestamp
    response_anchor: Optional[int] = None  # ms, media_clock at first delta of the response
    active_assistant_item_id: Optional[str] = None
    playback_ack_queue: Deque[str] = field(default_factory=deque)

    turn_state: TurnState = TurnState.IDLE
    session_configured: bool = False
    configuration_sent: bool = False
    greeting_issued: bool = False
    greeting_deferred: bool = False  # greeting timer fired while another response was outstanding

    pending_outbound_audio: List[str] = field(default_factory=list)
    has_flushed: bool = False

    response_in_flight: bool = False
    response_request_seq: int = 0
    answered_item_id: Optional[str] = None
    last_committed_item_id: Optional[str] = None

    mark_counter: int = 0
    frames_received: int = 0
    frames_sent: int = 0
    interruptions: int = 0

    @property
    def ready_for_greeting(self) -> bool:
        """Both the media stream and the speech session are ready."""
        return self.stream_id is not None and self.session_configured

    @property
    def playback_pending(self) -> bool:
        """Outbound audio has been sent that the caller has not finished hearing."""
        return bool(self.playback_ack_queue)

    def advance_clock(self, timestamp: int) -> None:
        """Move the media clock forward; older timestamps never move it back."""
        if timestamp > self.media_clock:
            self.media_clock = timestamp

    def next_mark_name(self) -> str:
        self.mark_counter += 1
        return f"audio-{self.mark_counter}"

    def acknowledge_playback(self, name: Optional[str]) -> bool:
        """
        Remove acknowledged marks from the playback queue.

        Marks are acknowledged in order, so everything up to and including ``name``
        has been played. A name that is not queued belongs to playback that was
        already cleared and is ignored. Without a name the oldest mark is removed.

        Returns:
            True if the queue changed
        """
        if not self.playback_ack_queue:
            return False
        if name is None:
            self.playback_ack_queue.popleft()
            return True
        if name not in self.playback_ack_queue:
            return False
        while self.playback_ack_queue:
            if self.playback_ack_queue.popleft() == name:
                break
        return True

    def clear_response_tracking(self) -> None:
        """Forget the anchor and item of the current assistant response."""
        self.response_anchor = None
        self.active_assistant_item_id = None

    def summary(self) -> dict:
        return {
            "call_id": self.call_id,
            "stream_id": self.stream_id,
            "call_sid": self.call_sid,
            "turn_state": self.turn_state.value,
            "frames_received": self.frames_received,
            "frames_sent": self.frames_sent,
            "interruptions": self.interruptions,
            "greeting_issued": self.greeting_issued,
        }
