import json
import os
from collections.abc import Sequence

from openai import OpenAI

from statement_categorizer.domain.vocabulary import render_rule_guidance
from statement_categorizer.errors import LLMError
from statement_categorizer.logger import get_logger
from statement_categorizer.models import CategorySuggestion

from .base import Classifier, resolve_category

logger = get_logger(__name__)

UNCATEGORIZED = "Uncategorized"
FALLBACK_CONFIDENCE = 0.1
DEFAULT_CONFIDENCE = 0.5

_DECODER = json.JSONDecoder()

PROMPT_TEMPLATE = """You are a financial transaction categorization assistant for Indian users. \
Analyze the following transaction and suggest the most appropriate category.

Transaction Details:
- Description: {description}
- Merchant: {merchant}
- Amount: ₹{amount:.2f}

Available Categories:
{categories}

Context: This is an Indian banking transaction. Use these keyword patterns:

{guidance}

Rules:
1. Investment purchases (Zerodha, Groww SIP, PPF, EPF, NPS) are assets, not expenses.
2. Dividends and capital gains are income, not asset sales.
3. Choose the most specific category available.
4. Confidence: 0.9+ for exact keyword matches, 0.7+ for strong patterns, 0.5+ for weak matches.

Respond ONLY in this exact JSON format:
{{"category": "Category Name", "confidence": 0.95, "reasoning": "Brief explanation"}}

Response:"""


def fallback_suggestion(available_categories: Sequence[str], reasoning: str) -> CategorySuggestion:
    return CategorySuggestion(
        category=available_categories[0] if available_categories else UNCATEGORIZED,
        confidence=FALLBACK_CONFIDENCE,
        reasoning=reasoning,
        source="fallback",
    )


class LLMClassifier(Classifier):
    """
    Last-resort classifier backed by an OpenAI-compatible chat endpoint.

    Always returns a suggestion: transport or parse failures degrade to the
    first available category at low confidence.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "llama3.2:3b",
        base_url: str | None = None,
        temperature: float = 0.3,
    ):
        self.client = OpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url or os.getenv("OPENAI_BASE_URL") or None,
        )
        self.model = model
        self.temperature = temperature

    def classify(
        self,
        description: str,
        merchant: str | None,
        amount: float,
        available_categories: Sequence[str],
        user_id: str | None = None,
    ) -> CategorySuggestion:
        prompt = self.build_prompt(description, merchant, amount, available_categories)
        try:
            text = self._complete(prompt)
        except LLMError as e:
            logger.error("[LLM] %s", e)
            return fallback_suggestion(available_categories, "Failed to get LLM categorization")

        return self.parse_response(text, available_categories)

    @staticmethod
    def build_prompt(
        description: str,
        merchant: str | None,
        amount: float,
        available_categories: Sequence[str],
    ) -> str:
        categories = "\n".join(f"{index}. {name}" for index, name in enumerate(available_categories, start=1))
        return PROMPT_TEMPLATE.format(
            description=description,
            merchant=merchant or "Unknown",
            amount=amount,
            categories=categories,
            guidance=render_rule_guidance(),
        )

    def _complete(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You are a helpful financial assistant."},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
            )
        except Exception as e:
            raise LLMError(f"Request to model '{self.model}' failed: {e}") from e

        choices = getattr(response, "choices", None)
        if not choices:
            raise LLMError("Empty response from model")
        content = getattr(choices[0].message, "content", None)
        if not content:
            raise LLMError("Empty response from model")
        return content

    @staticmethod
    def parse_response(text: str, available_categories: Sequence[str]) -> CategorySuggestion:
        parsed = _first_json_object(text or "")
        if parsed is None:
            return fallback_suggestion(available_categories, "Could not parse LLM response")

        suggested = parsed.get("category")
        category = resolve_category(suggested if isinstance(suggested, str) else None, available_categories)
        if category is None:
            category = available_categories[0] if available_categories else UNCATEGORIZED
        return CategorySuggestion(
            category=category,
            confidence=_clamp_confidence(parsed.get("confidence")),
            reasoning=str(parsed.get("reasoning") or ""),
            source="llm",
        )

    def check_health(self) -> bool:
        try:
            self.client.models.list()
        except Exception as e:
            logger.warning("[LLM] Health check failed: %s", e)
            return False
        return True


def _clamp_confidence(value: object) -> float:
    if isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        confidence = float(value) if value else DEFAULT_CONFIDENCE
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if confidence != confidence:  # NaN
        return DEFAULT_CONFIDENCE
    return max(0.0, min(1.0, confidence))


def _first_json_object(text: str) -> dict | None:
    """Decode the first JSON object embedded in ``text``, ignoring any prose around it."""
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    logger.warning("[LLM] No JSON object found in response: %s", text[:200])
    return None
