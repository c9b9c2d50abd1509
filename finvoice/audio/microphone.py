"""Microphone input stream backed by PyAudio."""

import logging
from typing import Optional

from ..exceptions import PermissionDenied

logger = logging.getLogger(__name__)


class MicrophoneStream:
    """Raw 16-bit PCM input from the default microphone."""

    sample_width = 2  # 16-bit

    def __init__(self, sample_rate: int = 16000, channels: int = 1, frames_per_buffer: int = 256):
        self.sample_rate = sample_rate
        self.channels = channels
        self.frames_per_buffer = frames_per_buffer

        self.pyaudio_instance = None
        self.stream = None

    @property
    def is_open(self) -> bool:
        return self.stream is not None

    def open(self) -> None:
        """Acquire the microphone.

        Raises:
            PermissionDenied: If the device is missing or access is refused.
        """
        import pyaudio

        if self.is_open:
            return

        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            self.stream = self.pyaudio_instance.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.frames_per_buffer,
                stream_callback=None
            )
        except (OSError, IOError) as e:
            self._terminate()
            logger.error(f"Could not open microphone: {e}")
            raise PermissionDenied(f"Microphone unavailable or access denied: {e}", cause=e) from e

        logger.info(f"Microphone stream opened: {self.sample_rate}Hz, "
                    f"{self.frames_per_buffer} samples/buffer")

    def read(self, frames: int) -> bytes:
        if self.stream is None:
            raise PermissionDenied("Microphone stream is not open")
        return self.stream.read(frames, exception_on_overflow=False)

    def close(self) -> None:
        """Release the microphone. Safe to call more than once."""
        stream, self.stream = self.stream, None
        try:
            if stream is not None:
                for step in (stream.stop_stream, stream.close):
                    try:
                        step()
                    except (OSError, IOError) as e:
                        logger.warning(f"Error closing microphone stream: {e}")
                logger.debug("Microphone stream closed")
        finally:
            self._terminate()

    def _terminate(self) -> None:
        instance: Optional[object] = self.pyaudio_instance
        self.pyaudio_instance = None
        if instance is not None:
            instance.terminate()
