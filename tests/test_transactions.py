from datetime import date

import pytest
from sqlalchemy import select

from statement_categorizer.errors import InvalidCategoryError, InvalidTransactionError, NotFoundError
from statement_categorizer.manager import CategorizerService
from statement_categorizer.services.assets import AssetSideEffectHandler
from statement_categorizer.services.learning import PatternStore
from statement_categorizer.services.transactions import TransactionService
from statement_categorizer.storage.orm import Asset, Transaction


@pytest.fixture
def service(session_factory) -> TransactionService:
    return TransactionService(session_factory)


@pytest.fixture
def stored(session_factory, user_id: str) -> list[str]:
    with session_factory() as session:
        rows = [
            Transaction(
                user_id=user_id,
                date=date(2024, 1, day),
                description=f"CARD PURCHASE {day}",
                amount=-100.0 * day,
                merchant="Cafe Blue" if day % 2 else None,
                type="expense",
            )
            for day in range(1, 13)
        ]
        rows.append(
            Transaction(user_id=user_id, date=date(2024, 1, 31), description="SALARY", amount=5000.0, type="income")
        )
        session.add_all(rows)
        session.commit()
        return [row.id for row in rows]


def test_list_page(service: TransactionService, user_id: str, stored: list[str]) -> None:
    rows, pagination = service.list_page(user_id, page=2, limit=5)

    assert [row.description for row in rows] == [f"CARD PURCHASE {day}" for day in (8, 7, 6, 5, 4)]
    assert pagination == {
        "current_page": 2,
        "total_pages": 3,
        "total_count": 13,
        "limit": 5,
        "has_next_page": True,
        "has_previous_page": True,
    }


def test_list_page_filters(service: TransactionService, user_id: str, stored: list[str]) -> None:
    income, _ = service.list_page(user_id, transaction_type="income")
    assert [row.description for row in income] == ["SALARY"]

    _, pagination = service.list_page(user_id, search="cafe", limit=100)
    assert pagination["total_count"] == 6

    assert service.list_page("someone-else")[1]["total_count"] == 0


def test_get(service: TransactionService, user_id: str, stored: list[str]) -> None:
    assert service.get(user_id, stored[0]).description == "CARD PURCHASE 1"

    with pytest.raises(NotFoundError):
        service.get("someone-else", stored[0])


@pytest.fixture
def writer(session_factory, pattern_store: PatternStore) -> TransactionService:
    categorizer = CategorizerService(patterns=pattern_store, enable_llm=False)
    return TransactionService(session_factory, categorizer, AssetSideEffectHandler())


def _assets(session_factory, user_id: str) -> list[Asset]:
    with session_factory() as session:
        return list(session.scalars(select(Asset).where(Asset.user_id == user_id)).all())


def test_create_categorizes_without_category(
    writer: TransactionService, user_id: str, category_ids: dict[str, str]
) -> None:
    created = writer.create(user_id, date(2024, 2, 1), "UPI-SWIGGY-99881", -420.0, "expense", notes="lunch")

    assert created.category_id == category_ids["Groceries & Food"]
    assert created.llm_categorized is True
    assert created.llm_confidence == 0.95
    assert created.amount == 420.0
    assert created.source == "Manual Entry"
    assert writer.get(user_id, created.id).notes == "lunch"


def test_create_with_category_is_manual(
    writer: TransactionService, user_id: str, category_ids: dict[str, str]
) -> None:
    created = writer.create(
        user_id, date(2024, 2, 1), "UPI-SWIGGY-99881", 420.0, "expense", category_id=category_ids["Dining Out"]
    )

    assert created.category_id == category_ids["Dining Out"]
    assert created.llm_categorized is False
    assert created.llm_confidence is None


def test_create_rejects_bad_input(writer: TransactionService, user_id: str) -> None:
    with pytest.raises(InvalidTransactionError):
        writer.create(user_id, date(2024, 2, 1), "   ", 10.0, "expense")
    with pytest.raises(InvalidCategoryError):
        writer.create(user_id, date(2024, 2, 1), "CASH", 10.0, "expense", category_id="missing")


def test_create_without_categorizer_leaves_uncategorized(session_factory, user_id: str) -> None:
    created = TransactionService(session_factory).create(user_id, date(2024, 2, 1), "UPI-SWIGGY", 10.0, "expense")

    assert created.category_id is None
    assert created.llm_categorized is False


def test_create_asset_updates_register(writer: TransactionService, session_factory, user_id: str) -> None:
    created = writer.create(user_id, date(2024, 2, 1), "ZERODHA BROKING LTD", 15000.0, "asset")

    assets = _assets(session_factory, user_id)
    assert created.category_id is not None
    assert len(assets) == 1
    assert assets[0].current_value == 15000.0


def test_create_survives_asset_failure(session_factory, pattern_store: PatternStore, user_id: str) -> None:
    class BrokenHandler(AssetSideEffectHandler):
        def _apply_mapping(self, session, transaction, user_id, mapping):
            raise RuntimeError("disk full")

    service = TransactionService(
        session_factory, CategorizerService(patterns=pattern_store, enable_llm=False), BrokenHandler()
    )
    created = service.create(user_id, date(2024, 2, 1), "ZERODHA BROKING LTD", 15000.0, "asset")

    assert service.get(user_id, created.id).category_id is not None
    assert _assets(session_factory, user_id) == []


def test_update(writer: TransactionService, user_id: str, category_ids: dict[str, str]) -> None:
    created = writer.create(user_id, date(2024, 2, 1), "UPI-SWIGGY-99881", 420.0, "expense")

    updated = writer.update(
        user_id,
        created.id,
        {"amount": -450.0, "tags": ["office"], "category_id": category_ids["Dining Out"]},
    )

    assert updated.amount == 450.0
    assert updated.tags == ["office"]
    assert updated.category_id == category_ids["Dining Out"]
    assert updated.llm_categorized is False
    assert updated.llm_confidence is None
    assert updated.description == "UPI-SWIGGY-99881"


def test_update_errors(writer: TransactionService, user_id: str, stored: list[str]) -> None:
    with pytest.raises(NotFoundError):
        writer.update("someone-else", stored[0], {"notes": "x"})
    with pytest.raises(InvalidTransactionError):
        writer.update(user_id, stored[0], {"type": "income"})
    with pytest.raises(InvalidTransactionError):
        writer.update(user_id, stored[0], {"amount": None})
    with pytest.raises(InvalidCategoryError):
        writer.update(user_id, stored[0], {"category_id": "missing"})


def test_delete(writer: TransactionService, user_id: str, stored: list[str]) -> None:
    with pytest.raises(NotFoundError):
        writer.delete("someone-else", stored[0])

    writer.delete(user_id, stored[0])

    with pytest.raises(NotFoundError):
        writer.get(user_id, stored[0])


@pytest.mark.anyio
async def test_bulk_categorize(
    writer: TransactionService, session_factory, user_id: str, category_ids: dict[str, str]
) -> None:
    with session_factory() as session:
        rows = [
            Transaction(
                user_id=user_id, date=date(2024, 3, 1), description="UPI-SWIGGY-1", amount=200.0, type="expense"
            ),
            Transaction(
                user_id=user_id,
                date=date(2024, 3, 2),
                description="UPI-SWIGGY-2",
                amount=250.0,
                type="expense",
                category_id=category_ids["Shopping"],
            ),
        ]
        session.add_all(rows)
        session.commit()
        ids = [row.id for row in rows]

    updated = await writer.bulk_categorize(user_id, ids + ["missing"])

    assert updated == 1
    assert writer.get(user_id, ids[0]).category_id == category_ids["Groceries & Food"]
    assert writer.get(user_id, ids[0]).llm_categorized is True
    assert writer.get(user_id, ids[1]).category_id == category_ids["Shopping"]

    assert await writer.bulk_categorize("someone-else", ids) == 0
    with pytest.raises(InvalidTransactionError):
        await writer.bulk_categorize(user_id, [])
