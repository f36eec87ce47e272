import unittest
from unittest.mock import MagicMock

from callbridge.models.call_registry import CallRegistry


class TestCallRegistry(unittest.TestCase):

    def setUp(self):
        self.registry = CallRegistry()
        self.bridge = MagicMock()
        self.call_id = "test-call-id"

    def test_add_call(self):
        # Execute
        self.registry.add_call(self.call_id, self.bridge)

        # Assert
        self.assertIn(self.call_id, self.registry.active_calls)
        self.assertIs(self.registry.active_calls[self.call_id], self.bridge)
        self.assertEqual(len(self.registry), 1)

    def test_get_call(self):
        self.registry.add_call(self.call_id, self.bridge)
        self.assertIs(self.registry.get_call(self.call_id), self.bridge)

    def test_get_nonexistent_call(self):
        self.assertIsNone(self.registry.get_call("nonexistent-id"))

    def test_remove_call(self):
        # Setup
        self.registry.add_call(self.call_id, self.bridge)

        # Execute
        self.registry.remove_call(self.call_id)

        # Assert
        self.assertNotIn(self.call_id, self.registry.active_calls)
        self.assertEqual(len(self.registry), 0)

    def test_remove_nonexistent_call(self):
        # Should not raise
        self.registry.remove_call("nonexistent-id")
        self.assertEqual(len(self.registry), 0)

    def test_get_all_calls(self):
        other = MagicMock()
        self.registry.add_call(self.call_id, self.bridge)
        self.registry.add_call("other-call-id", other)

        all_calls = self.registry.get_all_calls()

        self.assertEqual(set(all_calls), {self.call_id, "other-call-id"})


if __name__ == "__main__":
    unittest.main()
