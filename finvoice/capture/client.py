"""HTTP client for the transcription endpoint."""

import asyncio
import logging
from typing import Optional

import aiohttp

from ..exceptions import TranscriptionRequestError
from ..models.transcription import FormType, TranscriptionResponse

logger = logging.getLogger(__name__)


class TranscriptionClient:
    """Uploads a finished clip to ``/api/transcribe``."""

    def __init__(self, server_url: str, timeout_seconds: float = 90.0):
        self.endpoint = server_url.rstrip("/") + "/api/transcribe"
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def transcribe(self, audio: bytes, form_type: FormType,
                         filename: str = "recording.wav",
                         content_type: str = "audio/wav") -> TranscriptionResponse:
        """Send one clip and return ``{transcript, structured}``.

        Raises:
            TranscriptionRequestError: On a non-2xx answer, a body without a
                transcript, or a connection failure.
        """
        form = aiohttp.FormData()
        form.add_field("audio", audio, filename=filename, content_type=content_type)

        logger.info(f"Uploading {len(audio)} bytes for {form_type.value} transcription")
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.endpoint, params={"type": form_type.value}, data=form) as response:
                    if response.status >= 400:
                        message = await self._error_message(response)
                        raise TranscriptionRequestError(message, status_code=response.status)
                    data = await response.json()
        except asyncio.TimeoutError as e:
            raise TranscriptionRequestError("Transcription request timed out", status_code=504, cause=e) from e
        except aiohttp.ClientError as e:
            raise TranscriptionRequestError(f"Transcription request failed: {e}", cause=e) from e

        transcript = data.get("transcript") if isinstance(data, dict) else None
        if not transcript:
            raise TranscriptionRequestError("No transcript received")

        structured = data.get("structured")
        return TranscriptionResponse(
            transcript=transcript,
            structured=structured if isinstance(structured, dict) else {},
        )

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        fallback = f"Transcription failed: {response.status}"
        try:
            body: Optional[dict] = await response.json(content_type=None)
        except ValueError:
            return fallback
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return fallback
