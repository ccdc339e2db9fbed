from collections.abc import Sequence

from statement_categorizer.logger import get_logger
from statement_categorizer.models import CategorySuggestion
from statement_categorizer.services.learning import PatternStore

from .base import Classifier

logger = get_logger(__name__)


class LearnedPatternClassifier(Classifier):
    def __init__(self, patterns: PatternStore, threshold: float = 0.8):
        self.patterns = patterns
        self.threshold = threshold

    def classify(
        self,
        description: str,
        merchant: str | None,
        amount: float,
        available_categories: Sequence[str],
        user_id: str | None = None,
    ) -> CategorySuggestion | None:
        if not user_id:
            return None

        match = self.patterns.find_best_match(user_id, description, merchant)
        if match is None:
            return None
        if match.confidence <= self.threshold:
            logger.debug(
                "[LEARN] %s match '%s' below threshold (%.2f <= %.2f)",
                match.match_type,
                match.category_name,
                match.confidence,
                self.threshold,
            )
            return None

        return CategorySuggestion(
            category=match.category_name,
            confidence=min(match.confidence, 1.0),
            reasoning=f"Learned from previous {match.match_type} match",
            source="learned",
        )
