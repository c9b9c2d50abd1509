"""Data models for the finvoice application."""

from .capture import CaptureState, CaptureStateEvent, CaptureStats
from .transcription import (
    FormType,
    AudioUpload,
    StructuredExtraction,
    TranscriptionResponse,
)
from .forms import TransactionDraft, draft_from_voice

__all__ = [
    "CaptureState",
    "CaptureStateEvent",
    "CaptureStats",
    "FormType",
    "AudioUpload",
    "StructuredExtraction",
    "TranscriptionResponse",
    # Form pre-filling
    "TransactionDraft",
    "draft_from_voice",
]
