"""Services layer for finvoice application logic."""

from .voice_pipeline import VoicePipeline

__all__ = [
    "VoicePipeline",
]
