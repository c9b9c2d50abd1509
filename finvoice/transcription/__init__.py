"""Speech-to-text backends for finvoice."""

from .base import AbstractTranscriptionBackend
from .groq_backend import GroqWhisperBackend

__all__ = [
    "AbstractTranscriptionBackend",
    "GroqWhisperBackend",
]
