import asyncio
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from statement_categorizer.errors import NotFoundError
from statement_categorizer.logger import get_logger
from statement_categorizer.manager import CategorizerService
from statement_categorizer.models import CategorySuggestion, RecategorizeResult
from statement_categorizer.services.categories import category_ids_by_name, visible_categories
from statement_categorizer.storage.database import session_scope
from statement_categorizer.storage.orm import Transaction

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Candidate:
    id: str
    description: str
    merchant: str | None
    amount: float
    category_id: str | None


@dataclass(frozen=True)
class _Update:
    transaction_id: str
    category_id: str
    confidence: float


class RecategorizationService:
    """
    Re-runs the classifier over stored transactions.

    Classification within a batch runs concurrently with calls staggered by
    ``call_delay``; batches run one after another and each batch is written
    in a single session.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        categorizer: CategorizerService,
        threshold: float = 0.7,
        batch_size: int = 10,
        call_delay: float = 0.1,
    ) -> None:
        self.session_factory = session_factory
        self.categorizer = categorizer
        self.threshold = threshold
        self.batch_size = max(1, batch_size)
        self.call_delay = max(0.0, call_delay)

    def _load(self, user_id: str) -> tuple[list[_Candidate], dict[str, str]]:
        with session_scope(self.session_factory) as db:
            transactions = db.scalars(
                select(Transaction).where(Transaction.user_id == user_id).order_by(Transaction.date)
            ).all()
            candidates = [
                _Candidate(t.id, t.description, t.merchant, abs(t.amount), t.category_id) for t in transactions
            ]
            return candidates, category_ids_by_name(visible_categories(db, user_id))

    async def _suggest(
        self,
        candidate: _Candidate,
        category_names: list[str],
        user_id: str,
        delay: float,
    ) -> CategorySuggestion:
        if delay:
            await asyncio.sleep(delay)
        return await asyncio.to_thread(
            self.categorizer.categorize,
            candidate.description,
            candidate.merchant,
            candidate.amount,
            category_names,
            user_id=user_id,
        )

    def _apply(self, updates: list[_Update]) -> tuple[int, int]:
        applied = 0
        failed = 0
        with session_scope(self.session_factory) as db:
            for update in updates:
                try:
                    with db.begin_nested():
                        transaction = db.get(Transaction, update.transaction_id)
                        if transaction is None:
                            raise NotFoundError(f"Transaction {update.transaction_id} disappeared")
                        transaction.mark_llm_categorized(update.category_id, update.confidence)
                    applied += 1
                except Exception:
                    logger.exception("[RECATEGORIZE] Failed to update transaction %s", update.transaction_id)
                    failed += 1
        return applied, failed

    async def recategorize_all(self, user_id: str) -> RecategorizeResult:
        candidates, category_ids = await asyncio.to_thread(self._load, user_id)
        category_names = list(category_ids)
        result = RecategorizeResult(total=len(candidates))
        logger.info(
            "[RECATEGORIZE] Starting for user %s: %d transactions, %d categories",
            user_id,
            len(candidates),
            len(category_names),
        )

        for start in range(0, len(candidates), self.batch_size):
            batch = candidates[start:start + self.batch_size]
            outcomes = await asyncio.gather(
                *(
                    self._suggest(candidate, category_names, user_id, index * self.call_delay)
                    for index, candidate in enumerate(batch)
                ),
                return_exceptions=True,
            )

            updates: list[_Update] = []
            for candidate, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error("[RECATEGORIZE] Error processing transaction %s: %s", candidate.id, outcome)
                    result.failed += 1
                    continue
                category_id = category_ids.get(outcome.category)
                if (
                    category_id
                    and category_id != candidate.category_id
                    and outcome.confidence > self.threshold
                ):
                    updates.append(_Update(candidate.id, category_id, outcome.confidence))

            if updates:
                applied, failed = await asyncio.to_thread(self._apply, updates)
                result.updated += applied
                result.failed += failed

        logger.info(
            "[RECATEGORIZE] Finished for user %s: %d of %d updated, %d failed",
            user_id,
            result.updated,
            result.total,
            result.failed,
        )
        return result

    async def recategorize_one(self, transaction_id: str, user_id: str | None = None) -> bool:
        """Re-classify one transaction. Returns True when a category was applied."""

        def load() -> tuple[_Candidate, str, dict[str, str]]:
            with session_scope(self.session_factory) as db:
                transaction = db.get(Transaction, transaction_id)
                if transaction is None or (user_id is not None and transaction.user_id != user_id):
                    raise NotFoundError(f"Transaction {transaction_id} not found")
                candidate = _Candidate(
                    transaction.id,
                    transaction.description,
                    transaction.merchant,
                    abs(transaction.amount),
                    transaction.category_id,
                )
                owner = transaction.user_id
                return candidate, owner, category_ids_by_name(visible_categories(db, owner))

        candidate, owner, category_ids = await asyncio.to_thread(load)
        suggestion = await self._suggest(candidate, list(category_ids), owner, 0.0)

        category_id = category_ids.get(suggestion.category)
        if not category_id or suggestion.confidence <= self.threshold:
            logger.info(
                "[RECATEGORIZE] Kept transaction %s (suggested '%s' at %.2f)",
                transaction_id,
                suggestion.category,
                suggestion.confidence,
            )
            return False

        applied, _ = await asyncio.to_thread(self._apply, [_Update(candidate.id, category_id, suggestion.confidence)])
        return applied == 1
