"""Response schema the language model must follow."""

from typing import Any, Dict

from ..categories import CategoryCatalog
from ..models.transcription import FormType


def build_response_schema(catalog: CategoryCatalog) -> Dict[str, Any]:
    """JSON schema (Gemini dialect) for one form type.

    ``subject`` and ``category`` are restricted to the catalog, ``amount`` is
    the only required field and ``reimbursed`` exists for expenses only.
    """
    is_expense = catalog.form_type is FormType.EXPENSE
    noun = catalog.form_type.value

    properties: Dict[str, Any] = {
        "subject": {
            "type": "STRING",
            "description": ("The person responsible for this expense" if is_expense
                            else "The person who received this income"),
            "enum": list(catalog.subjects),
        },
        "category": {
            "type": "STRING",
            "description": f"The category of {noun}",
            "enum": list(catalog.categories),
        },
        "amount": {
            "type": "NUMBER",
            "description": ("The amount in Indonesian Rupiah (IDR). Convert any mentioned "
                            "currency or approximate values." if is_expense
                            else "The amount in Indonesian Rupiah (IDR)"),
        },
        "description": {
            "type": "STRING",
            "description": f"Optional notes or description about the {noun}",
        },
        "date": {
            "type": "STRING",
            "description": "The date in YYYY-MM-DD format. Only include it when a date is mentioned.",
        },
    }
    if is_expense:
        properties["reimbursed"] = {
            "type": "STRING",
            "description": "Whether this expense is reimbursable",
            "enum": ["TRUE", "FALSE"],
        }

    return {
        "type": "OBJECT",
        "properties": properties,
        "required": ["amount"],
    }
