from collections.abc import Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from statement_categorizer.domain.vocabulary import ASSET_CATEGORY_MAP, AssetMapping
from statement_categorizer.logger import get_logger
from statement_categorizer.models import AssetEffect
from statement_categorizer.storage.orm import Asset, Category, Transaction, utcnow

logger = get_logger(__name__)

UNKNOWN_ASSET = "Unknown Asset"


def asset_name_for(transaction: Transaction) -> str:
    if transaction.merchant and transaction.merchant.strip():
        return transaction.merchant.strip()
    words = (transaction.description or "").split()[:3]
    return " ".join(words) or UNKNOWN_ASSET


class AssetSideEffectHandler:
    """
    Keeps the asset register in step with asset-category transactions.

    Best effort: work happens inside a savepoint of the caller's session and
    failures are reported in the returned ``AssetEffect``, never raised.
    """

    def __init__(self, category_map: Mapping[str, AssetMapping] = ASSET_CATEGORY_MAP):
        self.category_map = category_map

    def apply(self, session: Session, transaction: Transaction, user_id: str) -> AssetEffect:
        if not transaction.category_id:
            return AssetEffect(action="ignored")
        category = session.get(Category, transaction.category_id)
        mapping = self.category_map.get(category.name) if category else None
        if mapping is None:
            return AssetEffect(action="ignored")

        try:
            with session.begin_nested():
                return self._apply_mapping(session, transaction, user_id, mapping)
        except Exception as e:
            logger.exception("[ASSET] Failed to update assets for transaction %s", transaction.id)
            return AssetEffect(action="failed", error=str(e))

    def _apply_mapping(
        self,
        session: Session,
        transaction: Transaction,
        user_id: str,
        mapping: AssetMapping,
    ) -> AssetEffect:
        name = asset_name_for(transaction)
        amount = abs(transaction.amount)
        asset = session.scalars(
            select(Asset).where(
                Asset.user_id == user_id,
                Asset.name == name,
                Asset.category == mapping.asset_category,
                Asset.sub_category == mapping.sub_category,
            )
        ).first()

        if asset is not None:
            asset.last_updated = utcnow()
            if mapping.is_sale:
                asset.current_value = max(0.0, asset.current_value - amount)
                asset.is_active = asset.current_value > 0
                logger.info("[ASSET] Reduced '%s' by %.2f to %.2f", name, amount, asset.current_value)
                return AssetEffect(action="decreased", asset_id=asset.id)

            asset.current_value += amount
            asset.quantity = (asset.quantity or 0) + 1
            logger.info("[ASSET] Added %.2f to '%s' (now %.2f)", amount, name, asset.current_value)
            return AssetEffect(action="increased", asset_id=asset.id)

        if mapping.is_sale:
            logger.debug("[ASSET] No asset '%s' to reduce; sale ignored", name)
            return AssetEffect(action="ignored")

        asset = Asset(
            user_id=user_id,
            name=name,
            category=mapping.asset_category,
            sub_category=mapping.sub_category,
            current_value=amount,
            purchase_value=amount,
            purchase_date=transaction.date,
            quantity=1,
            description=f"Auto-created from transaction: {transaction.description}",
            is_active=True,
        )
        session.add(asset)
        session.flush()
        logger.info("[ASSET] Created asset '%s' (%s) worth %.2f", name, mapping.asset_category, amount)
        return AssetEffect(action="created", asset_id=asset.id)
