"""Gemini engine that turns a transcript into structured transaction fields."""

import time
import logging
from datetime import date
from typing import Any, Dict, Optional, Protocol

from google import genai
from pydantic import ValidationError

from ..categories import CategoryCatalog
from ..exceptions import StructuringFailure
from ..models.transcription import StructuredExtraction
from .prompt import build_prompt
from .schema import build_response_schema

logger = logging.getLogger(__name__)


class StructuringEngine(Protocol):
    """Protocol for engines that extract form fields from text."""

    async def structure(self, transcript: str, catalog: CategoryCatalog, today: date) -> Dict[str, Any]:
        ...


class GeminiStructuringEngine:
    """Structured extraction using Google Gemini with a constrained JSON schema."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash",
                 client: Optional[genai.Client] = None):
        """Initialize Gemini structuring engine.

        Args:
            api_key: Gemini API key
            model: Gemini model name
            client: Pre-built client; one is created from ``api_key`` when omitted
        """
        self.model = model
        self._client = client or genai.Client(api_key=api_key)
        logger.info(f"GeminiStructuringEngine initialized with model: {model}")

    async def structure(self, transcript: str, catalog: CategoryCatalog, today: date) -> Dict[str, Any]:
        """Extract form fields from a transcript.

        Returns:
            The inferred fields only; anything the model left out is absent.

        Raises:
            StructuringFailure: If the API call fails or its JSON does not parse.
        """
        start_time = time.time()
        prompt = build_prompt(transcript, catalog, today)

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config={
                    "response_mime_type": "application/json",
                    "response_schema": build_response_schema(catalog),
                },
            )
        except Exception as e:
            logger.exception("Gemini API call failed")
            raise StructuringFailure(f"Gemini structuring failed: {e}", cause=e) from e

        if not response.text:
            raise StructuringFailure("Gemini returned empty response")

        try:
            extraction = StructuredExtraction.model_validate_json(response.text)
        except ValidationError as e:
            logger.error(f"Unparseable structured output: {response.text!r}")
            raise StructuringFailure(f"Could not parse structured output: {e}", cause=e) from e

        payload = extraction.to_payload(catalog.form_type)
        logger.info(f"Structuring finished in {time.time() - start_time:.2f}s: {payload}")
        return payload
