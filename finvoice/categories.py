"""Subject and category enumerations offered to the structuring model."""

import re
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models.transcription import FormType

logger = logging.getLogger(__name__)

# Leading emoji (or any non-space token) before the human label, e.g. "🛒 Groceries"
_ICON_PREFIX = re.compile(r"^[^\s]+\s")

EXPENSE_SUBJECTS = [
    "Al (Personal)",
    "Nurin (Personal)",
    "Al (Family)",
    "Nurin (Family)",
    "Al (Lainnya)",
    "Nurin (Lainnya)",
    "Al & Nurin",
]

EXPENSE_CATEGORIES = [
    "🍔 Food & Beverages",
    "🥫 Snacks",
    "👼🏼 Baby",
    "🛒 Groceries",
    "🚗 Transportation",
    "🎓 Education",
    "🍿 Entertainment",
    "🎁 Gift & Donations",
    "😊 Family",
    "💊 Health",
    "🧾 Bill & Utilities",
    "💵 Fees & Charges",
    "🛍️ Shopping",
    "💰 Investment",
    "🏠 Accommodation",
    "🎲 Others",
]

INCOME_SUBJECTS = ["Al", "Nurin"]

INCOME_CATEGORIES = [
    "💰 Salary",
    "✍🏼 Event",
    "💼 Business",
    "🎁 Gift",
    "🎲 Others",
]

EXPENSE_SUBJECT_HINTS = [
    'If the user mentions "Al", "saya" (me), or similar, use "Al (Personal)".',
    'If they mention "Nurin" or "istri" (wife), use "Nurin (Personal)".',
]

INCOME_SUBJECT_HINTS = [
    'If the user mentions "Al", "saya" (me), or similar, use "Al".',
    'If they mention "Nurin" or "istri" (wife), use "Nurin".',
]


def strip_icon(value: str) -> str:
    """'🛒 Groceries' -> 'Groceries'."""
    return _ICON_PREFIX.sub("", value, count=1)


@dataclass
class CategoryCatalog:
    """Allowed values for one form type."""
    form_type: FormType
    subjects: List[str]
    categories: List[str]
    subject_hints: List[str] = field(default_factory=list)

    @property
    def category_labels(self) -> List[str]:
        return [strip_icon(c) for c in self.categories]


DEFAULT_CATALOGS: Dict[FormType, CategoryCatalog] = {
    FormType.EXPENSE: CategoryCatalog(
        FormType.EXPENSE, EXPENSE_SUBJECTS, EXPENSE_CATEGORIES, EXPENSE_SUBJECT_HINTS
    ),
    FormType.INCOME: CategoryCatalog(
        FormType.INCOME, INCOME_SUBJECTS, INCOME_CATEGORIES, INCOME_SUBJECT_HINTS
    ),
}


def load_catalogs(overrides: Optional[Dict[str, Any]] = None) -> Dict[FormType, CategoryCatalog]:
    """Build catalogs from the ``categories`` config section.

    Each form type may override ``subjects``, ``categories`` and ``subject_hints``;
    anything not given falls back to the defaults. Empty subject or category
    lists fall back too; an empty hint list disables the hints. Overriding
    ``subjects`` without ``subject_hints`` drops the default hints, which name
    the default subjects.
    """
    catalogs = {}
    overrides = overrides or {}
    for form_type, default in DEFAULT_CATALOGS.items():
        section = overrides.get(form_type.value) or {}
        subjects = section.get("subjects")
        # Default hints name the default subjects, so they go when the subjects change
        default_hints = [] if subjects else default.subject_hints
        catalog = CategoryCatalog(
            form_type=form_type,
            subjects=list(subjects or default.subjects),
            categories=list(section.get("categories") or default.categories),
            subject_hints=list(section.get("subject_hints", default_hints)),
        )
        catalogs[form_type] = catalog
        logger.debug(f"Catalog {form_type.value}: {len(catalog.subjects)} subjects, "
                     f"{len(catalog.categories)} categories")
    return catalogs
