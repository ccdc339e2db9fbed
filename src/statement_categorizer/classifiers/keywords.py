from collections.abc import Sequence

from statement_categorizer.domain.vocabulary import QUICK_MATCH_RULES, QuickMatchRule
from statement_categorizer.models import CategorySuggestion

from .base import Classifier, resolve_category


class QuickMatchClassifier(Classifier):
    """Ordered keyword rules over the description and merchant."""

    def __init__(self, rules: Sequence[QuickMatchRule] = QUICK_MATCH_RULES):
        self.rules = tuple(rules)

    def classify(
        self,
        description: str,
        merchant: str | None,
        amount: float,
        available_categories: Sequence[str],
        user_id: str | None = None,
    ) -> CategorySuggestion | None:
        desc = (description or "").lower()
        merch = (merchant or "").lower()

        for rule in self.rules:
            keyword = rule.first_hit(desc, merch)
            if not keyword:
                continue
            # A rule whose category the user lacks falls through to the next one.
            category = resolve_category(rule.category, available_categories)
            if category is None:
                continue
            return CategorySuggestion(
                category=category,
                confidence=rule.confidence,
                reasoning=f"Quick match based on keyword: {keyword}",
                source="quick_match",
            )
        return None
