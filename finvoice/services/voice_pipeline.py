"""Transcribe-then-structure pipeline behind the upload endpoint."""

import logging
from datetime import date
from typing import Callable, Dict, Optional

from ..categories import CategoryCatalog, load_catalogs
from ..config import FinVoiceConfig
from ..exceptions import ConfigError, MissingAudio, NoSpeechDetected
from ..models.transcription import AudioUpload, FormType, TranscriptionResponse
from ..structuring import GeminiStructuringEngine, StructuringEngine
from ..transcription import AbstractTranscriptionBackend, GroqWhisperBackend

logger = logging.getLogger(__name__)


class VoicePipeline:
    """Runs one request: validate, transcribe, structure.

    Stages run strictly in sequence and nothing is retried or cached. Backends
    are built per request from the current credentials, so a key added to the
    environment takes effect without a restart.
    """

    def __init__(
        self,
        config: FinVoiceConfig,
        catalogs: Optional[Dict[FormType, CategoryCatalog]] = None,
        transcriber_factory: Optional[Callable[[str], AbstractTranscriptionBackend]] = None,
        structurer_factory: Optional[Callable[[str], StructuringEngine]] = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the pipeline.

        Args:
            config: Application configuration
            catalogs: Subject/category enumerations per form type
            transcriber_factory: Builds a speech-to-text backend from an API key
            structurer_factory: Builds a structuring engine from an API key
            today: Current server date, used to resolve relative dates
        """
        self.config = config
        self.catalogs = catalogs or load_catalogs(config.get('categories'))
        self._transcriber_factory = transcriber_factory or self._create_groq_backend
        self._structurer_factory = structurer_factory or self._create_gemini_engine
        self._today = today

    async def process(self, audio: Optional[AudioUpload], form_type: FormType) -> TranscriptionResponse:
        """Turn an uploaded clip into ``{transcript, structured}``.

        Raises:
            MissingAudio: No clip, or an empty one
            ConfigError: Either credential is unset; checked before any external call
            NoSpeechDetected: The transcript is blank; structuring is skipped
            TranscriptionFailure, StructuringFailure: An external call failed
        """
        if audio is None or audio.size == 0:
            raise MissingAudio()

        groq_key = self.config.get_groq_api_key()
        if not groq_key:
            raise ConfigError("GROQ_API_KEY is not configured")
        gemini_key = self.config.get_gemini_api_key()
        if not gemini_key:
            raise ConfigError("GEMINI_API_KEY is not configured")

        logger.info(f"Processing {audio.size} bytes of {form_type.value} audio")

        transcriber = self._transcriber_factory(groq_key)
        transcript = await transcriber.transcribe(audio)
        if not transcript or not transcript.strip():
            logger.info("No speech detected, skipping structuring")
            raise NoSpeechDetected()

        structurer = self._structurer_factory(gemini_key)
        structured = await structurer.structure(transcript, self.catalogs[form_type], self._today())

        return TranscriptionResponse(transcript=transcript, structured=structured)

    def _create_groq_backend(self, api_key: str) -> GroqWhisperBackend:
        return GroqWhisperBackend(
            api_key=api_key,
            model=self.config.get('groq.model', 'whisper-large-v3-turbo'),
            base_url=self.config.get('groq.base_url', 'https://api.groq.com/openai/v1'),
            timeout_seconds=self.config.get('groq.timeout_seconds', 60),
        )

    def _create_gemini_engine(self, api_key: str) -> GeminiStructuringEngine:
        return GeminiStructuringEngine(
            api_key=api_key,
            model=self.config.get('gemini.model', 'gemini-2.5-flash'),
        )
