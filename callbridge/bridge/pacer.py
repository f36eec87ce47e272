"""
Outbound audio pacing.

Synthesized audio arrives in network-sized bursts. Sending the very first delta of a
response on its own makes the gateway start playback with almost nothing queued,
which is heard as a clipped or choppy start. The pacer therefore holds back the first
few deltas of every response and releases them back-to-back; after that, deltas pass
straight through.

Each released chunk becomes an outbound media frame followed by a mark, and the
mark name is queued on the session so playback progress can be tracked.
"""

import logging
from typing import Iterable, List

from callbridge.bridge import translator
from callbridge.bridge.effects import Send, to_media
from callbridge.config.constants import DEFAULT_PACER_PREBUFFER_CHUNKS, LOGGER_NAME
from callbridge.models.call_session import CallSession

logger = logging.getLogger(LOGGER_NAME)


class AudioPacer:
    """Prebuffers the start of each response before releasing it to the caller."""

    def __init__(self, prebuffer_chunks: int = DEFAULT_PACER_PREBUFFER_CHUNKS):
        self.prebuffer_chunks = prebuffer_chunks

    def reset(self, session: CallSession) -> None:
        """Start buffering again; called when a new response is created."""
        session.pending_outbound_audio.clear()
        session.has_flushed = False

    def discard(self, session: CallSession) -> None:
        """Drop buffered audio that must never be played (caller interrupted)."""
        if session.pending_outbound_audio:
            logger.debug(
                f"Discarding {len(session.pending_outbound_audio)} buffered chunks "
                f"for call: {session.call_id}"
            )
        session.pending_outbound_audio.clear()

    def push(self, session: CallSession, chunk: str) -> List[Send]:
        """
        Accept one audio delta.

        Args:
            session: The call the audio belongs to
            chunk: Base64-encoded audio

        Returns:
            The media/mark messages to send now (possibly none)
        """
        if session.has_flushed:
            return self._release(session, [chunk])

        session.pending_outbound_audio.append(chunk)
        if len(session.pending_outbound_audio) >= self.prebuffer_chunks:
            return self.flush(session)
        return []

    def flush(self, session: CallSession) -> List[Send]:
        """Release everything buffered for the current response."""
        chunks = list(session.pending_outbound_audio)
        session.pending_outbound_audio.clear()
        session.has_flushed = True
        if chunks:
            logger.debug(f"Flushing {len(chunks)} prebuffered chunks for call: {session.call_id}")
        return self._release(session, chunks)

    def _release(self, session: CallSession, chunks: Iterable[str]) -> List[Send]:
        messages: List[Send] = []
        for chunk in chunks:
            name = session.next_mark_name()
            messages.append(to_media(translator.media_frame(session.stream_id, chunk)))
            messages.append(to_media(translator.mark(session.stream_id, name)))
            session.playback_ack_queue.append(name)
            session.frames_sent += 1
        return messages
