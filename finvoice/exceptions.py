"""Error taxonomy for voice capture and the transcription service."""

from typing import Optional


class VoiceInputError(Exception):
    """Base class for every voice-input failure.

    Server-side errors carry the HTTP status they are reported with.
    """

    status_code: int = 500

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


# Client side

class CaptureError(VoiceInputError):
    """Raised by the capture controller and its audio primitives."""


class PermissionDenied(CaptureError, PermissionError):
    """Microphone access was refused or no input device is available."""


class NoAudioRecorded(CaptureError):
    """Recording finished without a single byte of audio."""

    def __init__(self, message: str = "No audio recorded"):
        super().__init__(message)


class TranscriptionRequestError(CaptureError):
    """The transcription endpoint answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: int = 500, cause: Optional[Exception] = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code


# Server side

class MissingAudio(VoiceInputError):
    status_code = 400

    def __init__(self, message: str = "No audio file provided"):
        super().__init__(message)


class InvalidFormType(VoiceInputError):
    status_code = 400

    def __init__(self, form_type: str):
        self.form_type = form_type
        super().__init__(f"Unsupported form type: {form_type!r} (expected 'expense' or 'income')")


class NoSpeechDetected(VoiceInputError):
    status_code = 400

    def __init__(self, message: str = "No speech detected in the audio"):
        super().__init__(message)


class ConfigError(VoiceInputError):
    """A required credential or setting is missing."""

    status_code = 500


class TranscriptionFailure(VoiceInputError):
    """The speech-to-text call failed or returned something unusable."""

    status_code = 500


class StructuringFailure(VoiceInputError):
    """The language model call failed or its JSON could not be parsed."""

    status_code = 500
