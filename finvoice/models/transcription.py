"""Transcription and structured-extraction data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from ..exceptions import InvalidFormType


class FormType(Enum):
    """Which transaction form a voice clip is meant to fill."""
    EXPENSE = "expense"
    INCOME = "income"

    @classmethod
    def parse(cls, value: Optional[str]) -> "FormType":
        """Parse a ``type`` query value; missing means expense."""
        if value is None or value == "":
            return cls.EXPENSE
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidFormType(value)


@dataclass
class AudioUpload:
    """A single uploaded audio clip."""
    data: bytes
    filename: str = "recording.wav"
    content_type: str = "audio/wav"

    @property
    def size(self) -> int:
        return len(self.data)


class StructuredExtraction(BaseModel):
    """Transaction fields inferred from a transcript.

    Only ``amount`` is needed for a usable result. Fields the model could not
    infer stay unset and are dropped by :meth:`to_payload`.
    """

    model_config = ConfigDict(extra="ignore")

    subject: Optional[str] = None
    category: Optional[str] = None
    amount: Optional[Union[int, float]] = None
    description: Optional[str] = None
    date: Optional[str] = None
    reimbursed: Optional[Literal["TRUE", "FALSE"]] = None

    def to_payload(self, form_type: FormType) -> Dict[str, Any]:
        exclude = {"reimbursed"} if form_type is FormType.INCOME else set()
        return self.model_dump(exclude_none=True, exclude=exclude)


@dataclass
class TranscriptionResponse:
    """Body of a successful ``/api/transcribe`` call."""
    transcript: str
    structured: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"transcript": self.transcript, "structured": self.structured}
