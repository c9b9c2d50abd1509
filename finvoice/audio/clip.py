"""Turn recorded PCM chunks into an uploadable WAV clip."""

import io
import wave
import logging
from typing import Iterable

logger = logging.getLogger(__name__)


def encode_wav(chunks: Iterable[bytes], sample_rate: int = 16000,
               channels: int = 1, sample_width: int = 2) -> bytes:
    """Concatenate chunks, in order, into a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        for chunk in chunks:
            wf.writeframes(chunk)

    data = buffer.getvalue()
    logger.debug(f"Encoded WAV clip: {len(data)} bytes")
    return data
