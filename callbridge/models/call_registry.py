"""
Registry of live call bridges.

The ``CallRegistry`` tracks which calls are currently bridged so the service can
report them (for example on the health endpoint). It holds references only; every
call's state stays inside its own bridge.
"""

from typing import Any, Dict, Optional


class CallRegistry:
    """
    Keeps track of active calls keyed by their local call id.

    Calls are added when a media connection has a working Speech Service link and
    removed when the bridge tears down.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self.active_calls: Dict[str, Any] = {}

    def add_call(self, call_id: str, bridge: Any) -> None:
        """
        Register a live call.

        Args:
            call_id: Local identifier of the call
            bridge: The bridge handling the call
        """
        self.active_calls[call_id] = bridge

    def get_call(self, call_id: str) -> Optional[Any]:
        """
        Get the bridge of an active call.

        Args:
            call_id: Local identifier of the call

        Returns:
            The bridge, or None if the call is not active
        """
        return self.active_calls.get(call_id)

    def remove_call(self, call_id: str) -> None:
        """Remove a call; unknown ids are ignored."""
        self.active_calls.pop(call_id, None)

    def get_all_calls(self) -> Dict[str, Any]:
        return self.active_calls

    def __len__(self) -> int:
        return len(self.active_calls)
