from abc import ABC, abstractmethod
from collections.abc import Sequence

from statement_categorizer.models import CategorySuggestion


class Classifier(ABC):
    @abstractmethod
    def classify(
        self,
        description: str,
        merchant: str | None,
        amount: float,
        available_categories: Sequence[str],
        user_id: str | None = None,
    ) -> CategorySuggestion | None:
        """Attempt to categorize the transaction, or return None to defer."""
        pass


def resolve_category(suggested: str | None, available_categories: Sequence[str]) -> str | None:
    """
    Map a suggested category name onto one of ``available_categories``.

    A case-insensitive exact match wins over a substring match in either
    direction. Returns None when nothing matches.
    """
    if not suggested:
        return None
    normalized = suggested.strip().lower()
    if not normalized:
        return None

    for name in available_categories:
        if name.lower() == normalized:
            return name
    for name in available_categories:
        lowered = name.lower()
        if lowered and (normalized in lowered or lowered in normalized):
            return name
    return None
