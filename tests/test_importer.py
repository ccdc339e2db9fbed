import csv
import io

import pytest
from sqlalchemy import select

from statement_categorizer.errors import StatementParseError
from statement_categorizer.manager import CategorizerService
from statement_categorizer.models import ColumnMapping
from statement_categorizer.services.assets import AssetSideEffectHandler
from statement_categorizer.services.importer import ImportService
from statement_categorizer.services.learning import PatternStore
from statement_categorizer.storage.orm import Asset, Transaction

HDFC_HEADERS = ["Date", "Narration", "Chq./Ref.No.", "Value Dt", "Withdrawal Amt.", "Deposit Amt.", "Closing Balance"]


def _csv(headers: list[str], *rows: list[str]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


STATEMENT = _csv(
    HDFC_HEADERS,
    ["15/01/23", "UPI-SWIGGY-1234567890-paytm", "0000123", "15/01/23", "350.00", "", "9650.00"],
    ["16/01/23", "SALARY JAN 2023 ACME", "0000124", "16/01/23", "", "50,000.00", "59650.00"],
    ["17/01/23", "ZERODHA BROKING LTD", "0000125", "17/01/23", "15,000.00", "", "44650.00"],
)


@pytest.fixture
def importer(session_factory, pattern_store: PatternStore) -> ImportService:
    categorizer = CategorizerService(patterns=pattern_store, enable_llm=False)
    return ImportService(session_factory, categorizer, pattern_store, AssetSideEffectHandler())


def _transactions(session_factory, user_id: str) -> dict[str, Transaction]:
    with session_factory() as session:
        rows = session.scalars(select(Transaction).where(Transaction.user_id == user_id)).all()
        return {row.description: row for row in rows}


def test_preview(importer: ImportService, user_id: str) -> None:
    result = importer.preview(user_id, STATEMENT)

    assert result.detected_format == "HDFC Bank"
    assert result.total_rows == 3
    assert len(result.transactions) == 3


@pytest.mark.anyio
async def test_import_statement(
    importer: ImportService, session_factory, user_id: str, category_ids: dict[str, str], pattern_store: PatternStore
) -> None:
    summary = await importer.import_statement(user_id, STATEMENT)

    assert summary.imported == 3
    assert summary.categorized == 3
    assert summary.skipped == 0
    assert summary.failed == 0

    stored = _transactions(session_factory, user_id)
    food = stored["UPI-SWIGGY-1234567890-paytm"]
    assert food.type == "expense"
    assert food.category_id == category_ids["Groceries & Food"]
    assert food.llm_categorized is True
    assert food.llm_confidence == 0.95
    assert food.source == "HDFC Savings Account"

    salary = stored["SALARY JAN 2023 ACME"]
    assert salary.type == "income"
    assert salary.amount == 50000.0
    assert salary.llm_confidence == 0.1

    stock = stored["ZERODHA BROKING LTD"]
    assert stock.type == "asset"
    assert stock.category_id == category_ids["Stock Purchase"]

    # Only confident rule matches are remembered.
    assert sorted(view.description for view in pattern_store.list_patterns(user_id)) == [
        "UPI-SWIGGY-1234567890-paytm",
        "ZERODHA BROKING LTD",
    ]

    with session_factory() as session:
        assets = session.scalars(select(Asset).where(Asset.user_id == user_id)).all()
        assert len(assets) == 1
        assert assets[0].category == "Stocks"
        assert assets[0].current_value == 15000.0


@pytest.mark.anyio
async def test_reimport_skips_duplicates(importer: ImportService, session_factory, user_id: str) -> None:
    await importer.import_statement(user_id, STATEMENT)

    summary = await importer.import_statement(user_id, STATEMENT)

    assert summary.imported == 0
    assert summary.skipped == 3
    assert len(_transactions(session_factory, user_id)) == 3


@pytest.mark.anyio
async def test_reimport_without_duplicate_check(importer: ImportService, user_id: str) -> None:
    await importer.import_statement(user_id, STATEMENT)

    summary = await importer.import_statement(user_id, STATEMENT, skip_duplicates=False)

    assert summary.imported == 3
    assert summary.skipped == 0


@pytest.mark.anyio
async def test_repeated_rows_within_one_file_are_kept(importer: ImportService, user_id: str) -> None:
    row = ["15/01/23", "CHAI POINT", "0000123", "15/01/23", "40.00", "", "9650.00"]

    summary = await importer.import_statement(user_id, _csv(HDFC_HEADERS, row, row))

    assert summary.imported == 2


@pytest.mark.anyio
async def test_import_with_mapping(importer: ImportService, session_factory, user_id: str) -> None:
    data = _csv(["When", "What", "HowMuch", "Direction"], ["03/02/2023", "Flat rent March", "15000", "Dr"])
    mapping = ColumnMapping(
        date_column="When",
        description_column="What",
        amount_column="HowMuch",
        type_column="Direction",
    )

    summary = await importer.import_statement(user_id, data, source="Landlord", mapping=mapping)

    assert summary.imported == 1
    transaction = _transactions(session_factory, user_id)["Flat rent March"]
    assert transaction.source == "Landlord"
    assert transaction.type == "expense"


@pytest.mark.anyio
async def test_import_without_transactions(importer: ImportService, user_id: str) -> None:
    with pytest.raises(StatementParseError):
        await importer.import_statement(user_id, _csv(HDFC_HEADERS))

    with pytest.raises(StatementParseError):
        await importer.import_statement(user_id, b"")
