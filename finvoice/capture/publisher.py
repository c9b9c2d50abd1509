"""Capture event publisher for pub/sub consumers (UI, form filling)."""

import logging
from pubsub import pub

from ..models.capture import CaptureStateEvent
from ..models.transcription import TranscriptionResponse

logger = logging.getLogger(__name__)

STATE_TOPIC = "voice_state"
RESULT_TOPIC = "voice_result"


class CaptureEventPublisher:
    """Publishes state transitions and results using pubsub.pub."""

    def __init__(self, state_topic: str = STATE_TOPIC, result_topic: str = RESULT_TOPIC):
        """Initialize capture event publisher.

        Args:
            state_topic: Pub/sub topic for state transitions
            result_topic: Pub/sub topic for successful results
        """
        self.state_topic = state_topic
        self.result_topic = result_topic
        logger.info(f"CaptureEventPublisher initialized with topics: {state_topic}, {result_topic}")

    def publish_state(self, event: CaptureStateEvent) -> None:
        pub.sendMessage(self.state_topic, event=event)
        logger.debug(f"Published state {event.previous.value} -> {event.current.value}")

    def publish_result(self, result: TranscriptionResponse) -> None:
        pub.sendMessage(self.result_topic, result=result)
