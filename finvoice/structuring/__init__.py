"""Transcript-to-form-field structuring."""

from .gemini_engine import GeminiStructuringEngine, StructuringEngine
from .prompt import build_prompt
from .schema import build_response_schema

__all__ = [
    "GeminiStructuringEngine",
    "StructuringEngine",
    "build_prompt",
    "build_response_schema",
]
