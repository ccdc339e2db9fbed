import asyncio
import math
from collections.abc import Mapping
from datetime import date
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, sessionmaker

from statement_categorizer.errors import InvalidCategoryError, InvalidTransactionError, NotFoundError
from statement_categorizer.logger import get_logger
from statement_categorizer.manager import CategorizerService
from statement_categorizer.models import CategorySuggestion, TransactionType
from statement_categorizer.services.assets import AssetSideEffectHandler
from statement_categorizer.services.categories import category_ids_by_name, visible_categories
from statement_categorizer.storage.database import session_scope
from statement_categorizer.storage.orm import Category, Transaction

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100
UPDATABLE_FIELDS = frozenset({"date", "description", "amount", "merchant", "category_id", "notes", "tags"})
REQUIRED_FIELDS = frozenset({"date", "description", "amount"})


class TransactionService:
    """
    A user's stored transactions: paged listing, manual entry, edits and
    bulk categorization of uncategorized rows.

    Manual entries without a category go through the categorizer; asset
    entries then update the asset register, and a failure there never
    aborts the entry itself.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        categorizer: CategorizerService | None = None,
        assets: AssetSideEffectHandler | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.categorizer = categorizer
        self.assets = assets or AssetSideEffectHandler()

    def list_page(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        transaction_type: str | None = None,
        category_id: str | None = None,
        search: str | None = None,
    ) -> tuple[list[Transaction], dict[str, int | bool]]:
        page = max(1, page)
        limit = max(1, min(MAX_PAGE_SIZE, limit))

        conditions = [Transaction.user_id == user_id]
        if transaction_type:
            conditions.append(Transaction.type == transaction_type)
        if category_id:
            conditions.append(Transaction.category_id == category_id)
        if search:
            term = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(Transaction.description).like(term),
                    func.lower(Transaction.merchant).like(term),
                    func.lower(Transaction.notes).like(term),
                )
            )

        with session_scope(self.session_factory) as db:
            total = db.scalar(select(func.count(Transaction.id)).where(*conditions)) or 0
            rows = db.scalars(
                select(Transaction)
                .where(*conditions)
                .order_by(Transaction.date.desc(), Transaction.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()

        total_pages = math.ceil(total / limit)
        pagination = {
            "current_page": page,
            "total_pages": total_pages,
            "total_count": total,
            "limit": limit,
            "has_next_page": page < total_pages,
            "has_previous_page": page > 1,
        }
        return list(rows), pagination

    def get(self, user_id: str, transaction_id: str) -> Transaction:
        with session_scope(self.session_factory) as db:
            transaction = db.get(Transaction, transaction_id)
        if transaction is None or transaction.user_id != user_id:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return transaction

    @staticmethod
    def _owned(session: Session, user_id: str, transaction_id: str) -> Transaction:
        transaction = session.get(Transaction, transaction_id)
        if transaction is None or transaction.user_id != user_id:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return transaction

    @staticmethod
    def _check_category(session: Session, user_id: str, category_id: str) -> Category:
        category = session.get(Category, category_id)
        if category is None or category.user_id not in (user_id, None):
            raise InvalidCategoryError(f"Invalid category {category_id}")
        return category

    def _suggest(
        self,
        session: Session,
        user_id: str,
        transaction_type: str,
        description: str,
        merchant: str | None,
        amount: float,
    ) -> tuple[str, CategorySuggestion] | None:
        if self.categorizer is None:
            return None
        category_ids = category_ids_by_name(visible_categories(session, user_id, transaction_type))
        if not category_ids:
            return None
        suggestion = self.categorizer.categorize(
            description, merchant, abs(amount), list(category_ids), user_id=user_id
        )
        category_id = category_ids.get(suggestion.category)
        if category_id is None:
            return None
        return category_id, suggestion

    def create(
        self,
        user_id: str,
        transaction_date: date,
        description: str,
        amount: float,
        transaction_type: TransactionType | str,
        merchant: str | None = None,
        category_id: str | None = None,
        notes: str | None = None,
        tags: list[str] | None = None,
    ) -> Transaction:
        description = (description or "").strip()
        if not description:
            raise InvalidTransactionError("Transaction description is required")
        transaction_type = TransactionType(transaction_type).value

        with session_scope(self.session_factory) as db:
            transaction = Transaction(
                user_id=user_id,
                date=transaction_date,
                description=description,
                amount=abs(amount),
                merchant=merchant or None,
                type=transaction_type,
                source="Manual Entry",
                notes=notes,
                tags=list(tags or []),
            )
            if category_id:
                transaction.mark_manually_categorized(self._check_category(db, user_id, category_id).id)
            else:
                suggested = self._suggest(db, user_id, transaction_type, description, merchant, amount)
                if suggested:
                    transaction.mark_llm_categorized(suggested[0], suggested[1].confidence)
            db.add(transaction)
            db.flush()

            if transaction.category_id and transaction_type == TransactionType.ASSET.value:
                effect = self.assets.apply(db, transaction, user_id)
                logger.info("[ASSET] Manual entry %s: %s", transaction.id, effect.action)

        logger.info(
            "[TRANSACTION] Created %s for user %s (category %s)",
            transaction.id,
            user_id,
            transaction.category_id or "none",
        )
        return transaction

    def update(self, user_id: str, transaction_id: str, changes: Mapping[str, Any]) -> Transaction:
        """
        Apply a partial update. A new ``category_id`` counts as a manual
        choice and clears the LLM flags.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidTransactionError(f"Cannot update transaction fields: {', '.join(sorted(unknown))}")

        with session_scope(self.session_factory) as db:
            transaction = self._owned(db, user_id, transaction_id)
            for field, value in changes.items():
                if value is None and field in REQUIRED_FIELDS:
                    raise InvalidTransactionError(f"Transaction {field} cannot be empty")
                if field == "category_id":
                    if value is None:
                        transaction.category_id = None
                        transaction.llm_categorized = False
                        transaction.llm_confidence = None
                    elif value != transaction.category_id:
                        transaction.mark_manually_categorized(self._check_category(db, user_id, value).id)
                elif field == "description":
                    value = (value or "").strip()
                    if not value:
                        raise InvalidTransactionError("Transaction description is required")
                    transaction.description = value
                elif field == "amount":
                    transaction.amount = abs(value)
                elif field == "tags":
                    transaction.tags = list(value or [])
                else:
                    setattr(transaction, field, value)
            db.flush()
        return transaction

    def delete(self, user_id: str, transaction_id: str) -> None:
        with session_scope(self.session_factory) as db:
            db.delete(self._owned(db, user_id, transaction_id))
        logger.info("[TRANSACTION] Deleted %s for user %s", transaction_id, user_id)

    async def bulk_categorize(self, user_id: str, transaction_ids: list[str]) -> int:
        """Categorize the user's uncategorized transactions among ``transaction_ids``. Returns how many were set."""
        if not transaction_ids:
            raise InvalidTransactionError("Transaction IDs array required")
        if self.categorizer is None:
            return 0

        def load() -> tuple[list[tuple[str, str, str | None, float, str]], dict[str, dict[str, str]]]:
            with session_scope(self.session_factory) as db:
                rows = db.scalars(
                    select(Transaction).where(
                        Transaction.id.in_(transaction_ids),
                        Transaction.user_id == user_id,
                        Transaction.category_id.is_(None),
                    )
                ).all()
                types = {row.type for row in rows}
                indexes = {
                    transaction_type: category_ids_by_name(visible_categories(db, user_id, transaction_type))
                    for transaction_type in types
                }
                return [(r.id, r.description, r.merchant, abs(r.amount), r.type) for r in rows], indexes

        candidates, indexes = await asyncio.to_thread(load)

        async def suggest(description: str, merchant: str | None, amount: float, names: list[str]):
            return await asyncio.to_thread(
                self.categorizer.categorize, description, merchant, amount, names, user_id=user_id
            )

        pending = [candidate for candidate in candidates if indexes.get(candidate[4])]
        outcomes = await asyncio.gather(
            *(suggest(desc, merchant, amount, list(indexes[kind])) for _, desc, merchant, amount, kind in pending),
            return_exceptions=True,
        )

        updates: list[tuple[str, str, float]] = []
        for (transaction_id, _, _, _, kind), outcome in zip(pending, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("[TRANSACTION] Bulk categorization failed for %s: %s", transaction_id, outcome)
                continue
            category_id = indexes[kind].get(outcome.category)
            if category_id:
                updates.append((transaction_id, category_id, outcome.confidence))

        def apply() -> None:
            with session_scope(self.session_factory) as db:
                for transaction_id, category_id, confidence in updates:
                    transaction = db.get(Transaction, transaction_id)
                    if transaction is not None:
                        transaction.mark_llm_categorized(category_id, confidence)

        if updates:
            await asyncio.to_thread(apply)
        logger.info("[TRANSACTION] Bulk categorized %d of %d for user %s", len(updates), len(candidates), user_id)
        return len(updates)
