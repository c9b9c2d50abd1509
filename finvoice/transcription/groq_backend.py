"""Groq Whisper speech-to-text backend."""

import asyncio
import time
import logging

import aiohttp

from .base import AbstractTranscriptionBackend
from ..exceptions import TranscriptionFailure
from ..models.transcription import AudioUpload

logger = logging.getLogger(__name__)


class GroqWhisperBackend(AbstractTranscriptionBackend):
    """Transcribes clips with Whisper on Groq's OpenAI-compatible API."""

    service_name = "Groq Whisper"

    def __init__(self,
                 api_key: str,
                 model: str = "whisper-large-v3-turbo",
                 base_url: str = "https://api.groq.com/openai/v1",
                 timeout_seconds: float = 60.0):
        """Initialize Groq backend.

        Args:
            api_key: Groq API key
            model: Whisper model name
            base_url: API root, overridable for proxies and tests
            timeout_seconds: Total timeout for one transcription call
        """
        if not api_key:
            raise ValueError("Groq API key is required")
        self.api_key = api_key
        self.model = model
        self.url = base_url.rstrip("/") + "/audio/transcriptions"
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        logger.info(f"GroqWhisperBackend initialized with model: {model}")

    async def transcribe(self, audio: AudioUpload) -> str:
        start_time = time.time()
        headers = {"Authorization": f"Bearer {self.api_key}"}

        form = aiohttp.FormData()
        form.add_field("file", audio.data, filename=audio.filename, content_type=audio.content_type)
        form.add_field("model", self.model)
        # Deterministic decoding
        form.add_field("temperature", "0")
        form.add_field("response_format", "verbose_json")

        logger.debug(f"Sending {audio.size} bytes ({audio.content_type}) to {self.service_name}")
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.url, headers=headers, data=form) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TranscriptionFailure(f"Groq API error: {response.status} - {error_text}")
                    result = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TranscriptionFailure("Groq transcription timed out", cause=e) from e
        except aiohttp.ClientError as e:
            logger.error(f"Groq request failed: {e}")
            raise TranscriptionFailure(f"Groq transcription request failed: {e}", cause=e) from e
        except ValueError as e:
            raise TranscriptionFailure(f"Groq returned malformed JSON: {e}", cause=e) from e

        if not isinstance(result, dict) or not isinstance(result.get("text", ""), str):
            raise TranscriptionFailure("Groq response has no transcript text")

        text = result.get("text", "")
        processing_time = time.time() - start_time
        logger.info(f"Transcription finished in {processing_time:.2f}s: '{text.strip()}'")
        return text
