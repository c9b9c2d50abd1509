"""Client-side voice capture: state machine, scheduling, upload and events."""

from .controller import CaptureController
from .client import TranscriptionClient
from .publisher import CaptureEventPublisher, STATE_TOPIC, RESULT_TOPIC
from .scheduler import ThreadingScheduler

__all__ = [
    "CaptureController",
    "TranscriptionClient",
    "CaptureEventPublisher",
    "STATE_TOPIC",
    "RESULT_TOPIC",
    "ThreadingScheduler",
]
