"""Transaction form drafts pre-filled from a voice result."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .transcription import FormType, TranscriptionResponse


@dataclass
class TransactionDraft:
    """Editable expense/income form state.

    Voice input only pre-fills this; the user reviews and submits it.
    """
    form_type: FormType
    date: str
    subject: Optional[str] = None
    category: Optional[str] = None
    amount: Optional[float] = None
    description: str = ""
    reimbursed: bool = False
    transcript: str = ""
    filled_fields: List[str] = field(default_factory=list)

    def is_complete(self) -> bool:
        """A draft can be submitted once the amount is known."""
        return self.amount is not None and self.amount > 0

    def missing_fields(self) -> List[str]:
        missing = []
        for name in ("subject", "category", "amount"):
            if getattr(self, name) is None:
                missing.append(name)
        return missing


def draft_from_voice(result: TranscriptionResponse, form_type: FormType,
                     today: Optional[date] = None) -> TransactionDraft:
    """Build a form draft from a ``{transcript, structured}`` result."""
    structured: Dict[str, Any] = result.structured or {}
    today = today or date.today()
    draft = TransactionDraft(
        form_type=form_type,
        date=structured.get("date") or today.isoformat(),
        transcript=result.transcript,
    )

    for name in ("subject", "category", "description"):
        value = structured.get(name)
        if value:
            setattr(draft, name, value)
            draft.filled_fields.append(name)

    amount = structured.get("amount")
    if isinstance(amount, (int, float)) and not isinstance(amount, bool):
        draft.amount = amount
        draft.filled_fields.append("amount")

    if structured.get("date"):
        draft.filled_fields.append("date")

    if form_type is FormType.EXPENSE and "reimbursed" in structured:
        draft.reimbursed = structured["reimbursed"] == "TRUE"
        draft.filled_fields.append("reimbursed")

    return draft
