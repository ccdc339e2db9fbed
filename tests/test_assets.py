from datetime import date

import pytest
from sqlalchemy import select

from statement_categorizer.services.assets import AssetSideEffectHandler, asset_name_for
from statement_categorizer.storage.orm import Asset, Transaction


@pytest.fixture
def handler() -> AssetSideEffectHandler:
    return AssetSideEffectHandler()


def _apply(session_factory, handler, user_id, category_id, amount, description="BUY INFY 10 SHARES", merchant="Zerodha"):
    with session_factory() as session:
        transaction = Transaction(
            user_id=user_id,
            date=date(2024, 3, 1),
            description=description,
            amount=amount,
            merchant=merchant,
            type="asset",
            category_id=category_id,
        )
        session.add(transaction)
        session.flush()
        effect = handler.apply(session, transaction, user_id)
        session.commit()
    return effect


def _assets(session_factory, user_id) -> list[Asset]:
    with session_factory() as session:
        return list(session.scalars(select(Asset).where(Asset.user_id == user_id)).all())


def test_asset_name_for() -> None:
    assert asset_name_for(Transaction(description="X", merchant=" Zerodha ")) == "Zerodha"
    assert asset_name_for(Transaction(description="NEFT TO ACME GOLD LTD", merchant=None)) == "NEFT TO ACME"
    assert asset_name_for(Transaction(description="", merchant=None)) == "Unknown Asset"


def test_purchase_then_sales(session_factory, handler, user_id, category_ids) -> None:
    created = _apply(session_factory, handler, user_id, category_ids["Stock Purchase"], 10000.0)
    assert created.action == "created"

    assets = _assets(session_factory, user_id)
    assert len(assets) == 1
    asset = assets[0]
    assert asset.id == created.asset_id
    assert asset.name == "Zerodha"
    assert asset.category == "Stocks"
    assert asset.sub_category == "Individual Stocks"
    assert asset.current_value == 10000.0
    assert asset.purchase_value == 10000.0
    assert asset.quantity == 1
    assert asset.purchase_date == date(2024, 3, 1)
    assert asset.description == "Auto-created from transaction: BUY INFY 10 SHARES"

    partial = _apply(session_factory, handler, user_id, category_ids["Stock Sale"], 4000.0)
    assert partial.action == "decreased"
    asset = _assets(session_factory, user_id)[0]
    assert asset.current_value == 6000.0
    assert asset.is_active is True

    final = _apply(session_factory, handler, user_id, category_ids["Stock Sale"], 6000.0)
    assert final.action == "decreased"
    asset = _assets(session_factory, user_id)[0]
    assert asset.current_value == 0.0
    assert asset.is_active is False


def test_repeat_purchase_increases(session_factory, handler, user_id, category_ids) -> None:
    _apply(session_factory, handler, user_id, category_ids["Stock Purchase"], 1500.0, merchant="Zerodha")
    effect = _apply(session_factory, handler, user_id, category_ids["Stock Purchase"], 500.0, merchant="Zerodha")

    assert effect.action == "increased"
    asset = _assets(session_factory, user_id)[0]
    assert asset.category == "Stocks"
    assert asset.current_value == 2000.0
    assert asset.quantity == 2


def test_oversized_sale_floors_at_zero(session_factory, handler, user_id, category_ids) -> None:
    _apply(session_factory, handler, user_id, category_ids["Asset Purchase"], 1000.0)
    _apply(session_factory, handler, user_id, category_ids["Asset Sale"], 2500.0)

    asset = _assets(session_factory, user_id)[0]
    assert asset.current_value == 0.0
    assert asset.is_active is False


def test_sale_without_asset_is_ignored(session_factory, handler, user_id, category_ids) -> None:
    effect = _apply(session_factory, handler, user_id, category_ids["Stock Sale"], 4000.0)

    assert effect.action == "ignored"
    assert _assets(session_factory, user_id) == []


def test_unmapped_category_is_ignored(session_factory, handler, user_id, category_ids) -> None:
    effect = _apply(session_factory, handler, user_id, category_ids["Gold Sale"], 4000.0)
    assert effect.action == "ignored"

    effect = _apply(session_factory, handler, user_id, None, 4000.0)
    assert effect.action == "ignored"
    assert _assets(session_factory, user_id) == []


def test_failure_is_reported_not_raised(session_factory, user_id, category_ids) -> None:
    class BrokenHandler(AssetSideEffectHandler):
        def _apply_mapping(self, session, transaction, user_id, mapping):
            raise RuntimeError("disk full")

    effect = _apply(session_factory, BrokenHandler(), user_id, category_ids["Asset Purchase"], 100.0)

    assert effect.action == "failed"
    assert effect.error == "disk full"
    with session_factory() as session:
        assert session.scalars(select(Transaction)).first() is not None
