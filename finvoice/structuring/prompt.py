"""Prompt construction for transcript structuring."""

from datetime import date

from ..categories import CategoryCatalog
from ..models.transcription import FormType


def build_prompt(transcript: str, catalog: CategoryCatalog, today: date) -> str:
    """Instructions for turning one transcript into form fields."""
    form_type = catalog.form_type.value
    today_iso = today.isoformat()

    instructions = [
        'Extract the amount (required). The user might say amounts in Indonesian like '
        '"dua puluh ribu" (20000), "seratus ribu" (100000), "satu juta" (1000000), or with '
        'shorthand multipliers such as "rb", "k", "jt". Convert to a plain number.',
        f'Try to match the subject to one of these options: {", ".join(catalog.subjects)}. '
        + " ".join(catalog.subject_hints),
        'Try to match the category to one of these options based on context: '
        f'{", ".join(catalog.category_labels)}.',
        'If a date is mentioned, convert it to YYYY-MM-DD format relative to today. Words like '
        f'"kemarin" mean yesterday and "hari ini" means today ({today_iso}). '
        'If no date is mentioned, leave the date out.',
        'For the description/notes field, format the text in Title Case (capitalize the first '
        'letter of each word). For example: "Beli Makan di Kantin", "Bayar Parkir Motor", '
        '"Ongkos Ojol ke Kantor".',
    ]
    if catalog.form_type is FormType.EXPENSE:
        instructions.append(
            'Set reimbursed to "TRUE" if the user mentions it should be reimbursed and '
            '"FALSE" if they say it will not be; otherwise leave it out.'
        )

    numbered = "\n".join(f"{i}. {line.strip()}" for i, line in enumerate(instructions, 1))

    return (
        f"You are a finance tracker assistant. Parse the following voice input and extract "
        f"the {form_type} information.\n\n"
        f'Voice input (transcribed): "{transcript}"\n\n'
        f"Today's date: {today_iso}\n\n"
        f"Instructions:\n{numbered}\n\n"
        "Extract the structured data from the voice input. Only include fields that can be "
        "reasonably inferred from the input; omit anything you would have to guess."
    )
