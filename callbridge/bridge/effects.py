"""
Effects returned by the turn controller.

State transitions are synchronous and never perform I/O; instead they return an
ordered list of effects which the ``CallBridge`` executes: messages for either
websocket, and requests to start or cancel session-local timers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel


class Channel(str, Enum):
    MEDIA = "media"
    REALTIME = "realtime"


@dataclass(frozen=True)
class Send:
    """Send ``message`` on ``channel``."""

    channel: Channel
    message: BaseModel


@dataclass(frozen=True)
class StartTimer:
    """Run the timer ``name`` after ``delay`` seconds, replacing a pending one."""

    name: str
    delay: float
    token: Optional[str] = None


@dataclass(frozen=True)
class CancelTimer:
    name: str


Effect = Union[Send, StartTimer, CancelTimer]
Effects = List[Effect]


def to_media(message: BaseModel) -> Send:
    return Send(Channel.MEDIA, message)


def to_realtime(message: BaseModel) -> Send:
    return Send(Channel.REALTIME, message)
