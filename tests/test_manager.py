from unittest.mock import MagicMock

import pytest

from statement_categorizer.manager import CategorizerService
from statement_categorizer.models import CategorySuggestion
from statement_categorizer.services.categories import CategoryService
from statement_categorizer.services.learning import PatternStore


@pytest.fixture
def mock_classifiers() -> tuple[MagicMock, MagicMock, MagicMock]:
    learned, quick, llm = MagicMock(), MagicMock(), MagicMock()
    return learned, quick, llm


def _service(mock_classifiers) -> CategorizerService:
    learned, quick, llm = mock_classifiers
    service = CategorizerService(patterns=MagicMock(), llm=llm)
    service.classifiers = [learned, quick, llm]
    return service


def test_manager_orchestration_priority(mock_classifiers) -> None:
    learned, quick, llm = mock_classifiers
    service = _service(mock_classifiers)

    # Case 1: learned pattern matches
    learned.classify.return_value = CategorySuggestion(category="Salary", confidence=1.0, source="learned")
    res = service.categorize("ACME CORP", None, 10.0, ["Salary"], user_id="u1")
    assert res.category == "Salary"
    assert res.source == "learned"
    quick.classify.assert_not_called()

    # Case 2: learned fails, keyword rule matches
    learned.classify.return_value = None
    quick.classify.return_value = CategorySuggestion(category="Fuel", confidence=0.95, source="quick_match")
    res = service.categorize("HPCL PUMP", None, 10.0, ["Fuel"], user_id="u1")
    assert res.category == "Fuel"
    assert res.source == "quick_match"
    llm.classify.assert_not_called()

    # Case 3: both fail, LLM matches
    quick.classify.return_value = None
    llm.classify.return_value = CategorySuggestion(category="Shopping", confidence=0.7, source="llm")
    res = service.categorize("MALL", None, 10.0, ["Shopping"], user_id="u1")
    assert res.category == "Shopping"
    assert res.source == "llm"


def test_manager_survives_classifier_errors(mock_classifiers) -> None:
    learned, quick, llm = mock_classifiers
    service = _service(mock_classifiers)

    learned.classify.side_effect = RuntimeError("database is locked")
    quick.classify.return_value = CategorySuggestion(category="Fuel", confidence=0.95, source="quick_match")

    res = service.categorize("HPCL PUMP", None, 10.0, ["Fuel"], user_id="u1")

    assert res.category == "Fuel"


def test_manager_fallback_when_nothing_matches(mock_classifiers) -> None:
    learned, quick, llm = mock_classifiers
    service = _service(mock_classifiers)
    for classifier in mock_classifiers:
        classifier.classify.return_value = None

    res = service.categorize("???", None, 10.0, ["Shopping", "Rent"])

    assert res.category == "Shopping"
    assert res.confidence == 0.1
    assert res.source == "fallback"
    assert res.reasoning == "Failed to get LLM categorization"


def test_manager_without_llm(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-fake")
    service = CategorizerService(patterns=MagicMock(), enable_llm=False)

    assert service.llm is None
    assert service.llm_available() is False

    res = service.categorize("???", None, 10.0, [])
    assert res.category == "Uncategorized"
    assert res.reasoning == "LLM categorization disabled"


def test_manager_without_api_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    service = CategorizerService(patterns=MagicMock())

    assert service.llm is None
    assert len(service.classifiers) == 2


def test_manager_quick_match_end_to_end(pattern_store: PatternStore, user_id: str, category_service: CategoryService) -> None:
    service = CategorizerService(patterns=pattern_store, enable_llm=False)
    names = category_service.available_names(user_id, "expense")

    res = service.categorize("UPI-SWIGGY-1234567890-paytm", None, 350.0, names, user_id=user_id)

    assert res.category == "Groceries & Food"
    assert res.confidence == 0.95
    assert res.source == "quick_match"


def test_manager_learns_from_correction(
    pattern_store: PatternStore, user_id: str, category_ids: dict[str, str], category_service: CategoryService
) -> None:
    service = CategorizerService(patterns=pattern_store, enable_llm=False)
    names = category_service.available_names(user_id, "income")

    before = service.categorize("ACME CORP PAYMENT", None, 50000.0, names, user_id=user_id)
    assert before.source == "fallback"

    pattern_store.record_correction(user_id, "ACME CORP PAYMENT", None, category_ids["Salary"])

    after = service.categorize("ACME CORP PAYMENT", None, 50000.0, names, user_id=user_id)
    assert after.category == "Salary"
    assert after.confidence >= 0.8
    assert after.source == "learned"
