"""Abstract base class for speech-to-text backends."""

from abc import ABC, abstractmethod
import logging

from ..models.transcription import AudioUpload

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Turns one uploaded clip into raw text."""

    service_name = "abstract"

    @abstractmethod
    async def transcribe(self, audio: AudioUpload) -> str:
        """Transcribe an audio clip.

        Args:
            audio: The uploaded clip

        Returns:
            Raw transcript; may be empty when nothing was said

        Raises:
            TranscriptionFailure: If the service call fails
        """
        pass
