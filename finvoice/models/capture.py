"""Capture-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class CaptureState(Enum):
    """States of the voice capture state machine."""
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    ERROR = "error"


@dataclass
class CaptureStateEvent:
    """State transition published on the ``voice_state`` topic."""
    previous: CaptureState
    current: CaptureState
    generation: int
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class CaptureStats:
    """Snapshot of the current capture session."""
    state: CaptureState
    generation: int
    chunk_count: int
    buffered_bytes: int
    silence_timer_pending: bool
    error_message: Optional[str] = None
