"""HTTP surface of the transcription service."""

from .app import create_app, PIPELINE_KEY

__all__ = [
    "create_app",
    "PIPELINE_KEY",
]
