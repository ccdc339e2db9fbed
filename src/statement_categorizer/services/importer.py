import asyncio
from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from statement_categorizer.errors import StatementParseError
from statement_categorizer.logger import get_logger
from statement_categorizer.manager import CategorizerService
from statement_categorizer.models import (
    CategorySuggestion,
    ColumnMapping,
    ImportSummary,
    ParsedTransaction,
    StatementParseResult,
    TransactionType,
    duplicate_key,
)
from statement_categorizer.parsing.statement import StatementParser
from statement_categorizer.services.assets import AssetSideEffectHandler
from statement_categorizer.services.categories import visible_categories
from statement_categorizer.services.learning import PatternStore
from statement_categorizer.storage.database import session_scope
from statement_categorizer.storage.orm import Transaction

logger = get_logger(__name__)

# type -> {category name -> category id}
CategoryIndex = dict[str, dict[str, str]]


class ImportService:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        categorizer: CategorizerService,
        patterns: PatternStore,
        assets: AssetSideEffectHandler,
        parser: StatementParser | None = None,
        batch_size: int = 10,
        ai_pattern_threshold: float = 0.9,
    ) -> None:
        self.session_factory = session_factory
        self.categorizer = categorizer
        self.patterns = patterns
        self.assets = assets
        self.parser = parser or StatementParser()
        self.batch_size = max(1, batch_size)
        self.ai_pattern_threshold = ai_pattern_threshold

    def preview(self, user_id: str, csv_bytes: bytes, source: str | None = None) -> StatementParseResult:
        result = self.parser.parse(csv_bytes, declared_source=source)
        logger.info(
            "[IMPORT] Preview for user %s: format=%s, %d of %d rows readable",
            user_id,
            result.detected_format,
            len(result.transactions),
            result.total_rows,
        )
        return result

    def _parse(
        self, csv_bytes: bytes, source: str | None, mapping: ColumnMapping | None
    ) -> StatementParseResult:
        if mapping:
            return self.parser.parse_with_mapping(csv_bytes, mapping, declared_source=source)
        return self.parser.parse(csv_bytes, declared_source=source)

    def _load_context(
        self, user_id: str, parsed: list[ParsedTransaction], skip_duplicates: bool
    ) -> tuple[CategoryIndex, set[str]]:
        with session_scope(self.session_factory) as db:
            index: CategoryIndex = defaultdict(dict)
            for category in visible_categories(db, user_id):
                index[category.type].setdefault(category.name, category.id)

            existing: set[str] = set()
            if skip_duplicates:
                dates = {transaction.date for transaction in parsed}
                rows = db.execute(
                    select(Transaction.date, Transaction.description, Transaction.amount).where(
                        Transaction.user_id == user_id,
                        Transaction.date.in_(dates),
                    )
                ).all()
                existing = {duplicate_key(day, description, amount) for day, description, amount in rows}
        return dict(index), existing

    async def _suggest(
        self, transaction: ParsedTransaction, categories: CategoryIndex, user_id: str
    ) -> CategorySuggestion | None:
        names = list(categories.get(transaction.type.value, {}))
        if not names:
            return None
        return await asyncio.to_thread(
            self.categorizer.categorize,
            transaction.description,
            transaction.merchant,
            transaction.amount,
            names,
            user_id=user_id,
        )

    def _persist_batch(
        self,
        user_id: str,
        batch: list[ParsedTransaction],
        suggestions: list[CategorySuggestion | BaseException | None],
        categories: CategoryIndex,
        summary: ImportSummary,
    ) -> None:
        with session_scope(self.session_factory) as db:
            for parsed, suggestion in zip(batch, suggestions):
                if isinstance(suggestion, BaseException):
                    logger.error("[IMPORT] Categorization failed for '%s': %s", parsed.description[:50], suggestion)
                    suggestion = None

                try:
                    with db.begin_nested():
                        record = Transaction(
                            user_id=user_id,
                            date=parsed.date,
                            description=parsed.description,
                            amount=parsed.amount,
                            merchant=parsed.merchant,
                            type=parsed.type.value,
                            source=parsed.source,
                            tags=[],
                        )
                        category_id = None
                        if suggestion is not None:
                            category_id = categories.get(parsed.type.value, {}).get(suggestion.category)
                        if category_id:
                            record.mark_llm_categorized(category_id, suggestion.confidence)
                        db.add(record)
                        db.flush()

                        if category_id and self._should_remember(suggestion):
                            self.patterns.record_ai_pattern(
                                user_id,
                                parsed.description,
                                parsed.merchant,
                                category_id,
                                suggestion.confidence,
                                session=db,
                            )
                        if category_id and parsed.type == TransactionType.ASSET:
                            self.assets.apply(db, record, user_id)
                except Exception:
                    logger.exception("[IMPORT] Failed to import transaction '%s'", parsed.description[:50])
                    summary.failed += 1
                    continue

                summary.imported += 1
                if category_id:
                    summary.categorized += 1

    def _should_remember(self, suggestion: CategorySuggestion) -> bool:
        return suggestion.source in ("quick_match", "llm") and suggestion.confidence >= self.ai_pattern_threshold

    async def import_statement(
        self,
        user_id: str,
        csv_bytes: bytes,
        source: str | None = None,
        mapping: ColumnMapping | None = None,
        skip_duplicates: bool = True,
    ) -> ImportSummary:
        parsed = await asyncio.to_thread(self._parse, csv_bytes, source, mapping)
        if not parsed.transactions:
            raise StatementParseError("No valid transactions found in CSV")

        categories, existing = await asyncio.to_thread(
            self._load_context, user_id, parsed.transactions, skip_duplicates
        )
        summary = ImportSummary(parse_skipped=parsed.skipped_rows)

        pending: list[ParsedTransaction] = []
        for transaction in parsed.transactions:
            if skip_duplicates and transaction.duplicate_key() in existing:
                summary.skipped += 1
                continue
            pending.append(transaction)

        for start in range(0, len(pending), self.batch_size):
            batch = pending[start:start + self.batch_size]
            suggestions = await asyncio.gather(
                *(self._suggest(transaction, categories, user_id) for transaction in batch),
                return_exceptions=True,
            )
            await asyncio.to_thread(self._persist_batch, user_id, batch, list(suggestions), categories, summary)

        logger.info(
            "[IMPORT] User %s: %d imported, %d skipped, %d failed, %d categorized",
            user_id,
            summary.imported,
            summary.skipped,
            summary.failed,
            summary.categorized,
        )
        return summary
