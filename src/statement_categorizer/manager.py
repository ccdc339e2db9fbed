import os
from collections.abc import Sequence

from statement_categorizer.classifiers.base import Classifier
from statement_categorizer.classifiers.keywords import QuickMatchClassifier
from statement_categorizer.classifiers.learned import LearnedPatternClassifier
from statement_categorizer.classifiers.llm import LLMClassifier, fallback_suggestion
from statement_categorizer.core import settings
from statement_categorizer.logger import get_logger
from statement_categorizer.models import CategorySuggestion
from statement_categorizer.services.learning import PatternStore

logger = get_logger(__name__)


class CategorizerService:
    def __init__(
        self,
        patterns: PatternStore,
        learned_threshold: float = settings.DEFAULT_LEARNED_PATTERN_THRESHOLD,
        llm: LLMClassifier | None = None,
        enable_llm: bool = True,
    ):
        self.classifiers: list[Classifier] = []

        # 1. Learned patterns (highest priority)
        self.learned = LearnedPatternClassifier(patterns, threshold=learned_threshold)
        self.classifiers.append(self.learned)

        # 2. Keyword rules
        self.quick_match = QuickMatchClassifier()
        self.classifiers.append(self.quick_match)

        # 3. LLM (fallback), only with an API key unless one is injected
        self.llm = llm
        if self.llm is None and enable_llm:
            api_key = os.getenv("OPENAI_API_KEY")
            if api_key:
                model = os.getenv("OPENAI_MODEL", settings.DEFAULT_OPENAI_MODEL)
                base_url = os.getenv("OPENAI_BASE_URL")
                temperature = settings.get_env_float(
                    "LLM_TEMPERATURE", settings.DEFAULT_LLM_TEMPERATURE, min_value=0.0, max_value=2.0
                )
                self.llm = LLMClassifier(api_key=api_key, model=model, base_url=base_url, temperature=temperature)
                logger.info(f"LLM Classifier enabled: model={model}, base_url={base_url or 'default'}")
            else:
                logger.warning("OPENAI_API_KEY not found. LLM classifier disabled.")
        if self.llm is not None:
            self.classifiers.append(self.llm)

    def categorize(
        self,
        description: str,
        merchant: str | None,
        amount: float,
        available_categories: Sequence[str],
        user_id: str | None = None,
    ) -> CategorySuggestion:
        """
        Suggest a category, trying learned patterns, keyword rules and the
        LLM in that order. Never raises; the worst case is a low-confidence
        fallback to the first available category.
        """
        for classifier in self.classifiers:
            classifier_name = classifier.__class__.__name__
            logger.debug(f"Trying {classifier_name} for: '{description[:50]}...'")

            try:
                result = classifier.classify(
                    description,
                    merchant,
                    amount,
                    available_categories,
                    user_id=user_id,
                )
            except Exception:
                logger.exception(f"{classifier_name} failed for: '{description[:50]}...'")
                continue

            if result:
                logger.debug(
                    f"{classifier_name} returned: '{result.category}' "
                    f"(confidence: {result.confidence:.2f})"
                )
                return result
            else:
                logger.debug(f"{classifier_name} returned: None")

        logger.debug(f"No classifier matched for: '{description[:50]}...'")
        reason = "Failed to get LLM categorization" if self.llm else "LLM categorization disabled"
        return fallback_suggestion(available_categories, reason)

    def llm_available(self) -> bool:
        return self.llm is not None and self.llm.check_health()
