import unittest

from callbridge.models.call_session import CallSession, TurnState


class TestCallSession(unittest.TestCase):

    def setUp(self):
        self.session = CallSession()

    def test_initial_state(self):
        self.assertEqual(self.session.turn_state, TurnState.IDLE)
        self.assertEqual(self.session.media_clock, 0)
        self.assertIsNone(self.session.stream_id)
        self.assertIsNone(self.session.response_anchor)
        self.assertFalse(self.session.playback_pending)
        self.assertFalse(self.session.ready_for_greeting)

    def test_call_ids_are_unique(self):
        self.assertNotEqual(CallSession().call_id, CallSession().call_id)

    def test_clock_never_moves_backwards(self):
        self.session.advance_clock(200)
        self.session.advance_clock(120)
        self.assertEqual(self.session.media_clock, 200)

        self.session.advance_clock(220)
        self.assertEqual(self.session.media_clock, 220)

    def test_ready_for_greeting_needs_stream_and_configuration(self):
        self.session.stream_id = "MZ123"
        self.assertFalse(self.session.ready_for_greeting)

        self.session.session_configured = True
        self.assertTrue(self.session.ready_for_greeting)

    def test_mark_names_are_unique(self):
        names = [self.session.next_mark_name() for _ in range(3)]
        self.assertEqual(names, ["audio-1", "audio-2", "audio-3"])

    def test_acknowledge_pops_through_named_mark(self):
        self.session.playback_ack_queue.extend(["audio-1", "audio-2", "audio-3"])

        self.assertTrue(self.session.acknowledge_playback("audio-2"))
        self.assertEqual(list(self.session.playback_ack_queue), ["audio-3"])

    def test_acknowledge_in_order(self):
        self.session.playback_ack_queue.extend(["audio-1", "audio-2"])

        self.assertTrue(self.session.acknowledge_playback("audio-1"))
        self.assertTrue(self.session.acknowledge_playback("audio-2"))
        self.assertFalse(self.session.playback_pending)

    def test_stale_acknowledgment_is_ignored(self):
        self.session.playback_ack_queue.extend(["audio-4"])

        self.assertFalse(self.session.acknowledge_playback("audio-2"))
        self.assertEqual(list(self.session.playback_ack_queue), ["audio-4"])

    def test_acknowledgment_on_empty_queue(self):
        self.assertFalse(self.session.acknowledge_playback("audio-1"))
        self.assertFalse(self.session.acknowledge_playback(None))

    def test_unnamed_acknowledgment_pops_oldest(self):
        self.session.playback_ack_queue.extend(["audio-1", "audio-2"])

        self.assertTrue(self.session.acknowledge_playback(None))
        self.assertEqual(list(self.session.playback_ack_queue), ["audio-2"])

    def test_clear_response_tracking(self):
        self.session.response_anchor = 4200
        self.session.active_assistant_item_id = "item_1"

        self.session.clear_response_tracking()

        self.assertIsNone(self.session.response_anchor)
        self.assertIsNone(self.session.active_assistant_item_id)

    def test_summary(self):
        self.session.stream_id = "MZ123"
        self.session.frames_received = 10
        self.session.interruptions = 1

        summary = self.session.summary()

        self.assertEqual(summary["call_id"], self.session.call_id)
        self.assertEqual(summary["stream_id"], "MZ123")
        self.assertEqual(summary["turn_state"], "idle")
        self.assertEqual(summary["frames_received"], 10)
        self.assertEqual(summary["interruptions"], 1)


if __name__ == "__main__":
    unittest.main()
