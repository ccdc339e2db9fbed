import re
from datetime import timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, joinedload, sessionmaker

from statement_categorizer.errors import InvalidCategoryError, NotFoundError
from statement_categorizer.logger import get_logger
from statement_categorizer.models import LearningStats, PatternMatch, PatternView
from statement_categorizer.storage.database import session_scope
from statement_categorizer.storage.orm import Category, CategoryPattern, Transaction, utcnow

logger = get_logger(__name__)

STOP_WORDS = frozenset({
    "upi", "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "from", "up", "about", "into", "through", "during", "before", "after", "above",
    "below", "between", "among", "under", "over",
})
MAX_KEYWORDS = 10
DESCRIPTION_SIMILARITY_THRESHOLD = 0.7
MERCHANT_MATCH_FACTOR = 0.8


def extract_keywords(text: str) -> list[str]:
    cleaned = re.sub(r"[^a-z0-9\s]", " ", (text or "").lower())
    words = [word for word in cleaned.split() if len(word) > 2 and word not in STOP_WORDS]
    return words[:MAX_KEYWORDS]


def jaccard_similarity(words_a: list[str], words_b: list[str]) -> float:
    if not words_a or not words_b:
        return 0.0
    set_a = set(words_a)
    set_b = set(words_b)
    return len(set_a & set_b) / len(set_a | set_b)


def description_key(description: str) -> str:
    return description.lower()


def _normalize_merchant(merchant: str | None) -> str | None:
    if merchant is None:
        return None
    merchant = merchant.strip()
    return merchant or None


class PatternStore:
    """
    Per-user (description, merchant) -> category associations.

    At most one pattern exists per user, lower-cased description and
    merchant. Updates keep the higher of the old and new confidence.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        description_threshold: float = DESCRIPTION_SIMILARITY_THRESHOLD,
        merchant_factor: float = MERCHANT_MATCH_FACTOR,
    ) -> None:
        self.session_factory = session_factory
        self.description_threshold = description_threshold
        self.merchant_factor = merchant_factor

    @staticmethod
    def _find_existing(
        session: Session, user_id: str, description: str, merchant: str | None
    ) -> CategoryPattern | None:
        stmt = select(CategoryPattern).where(
            CategoryPattern.user_id == user_id,
            CategoryPattern.description_key == description_key(description),
        )
        if merchant is None:
            stmt = stmt.where(CategoryPattern.merchant.is_(None))
        else:
            stmt = stmt.where(CategoryPattern.merchant == merchant)
        stmt = stmt.order_by(CategoryPattern.confidence.desc())
        return session.scalars(stmt).first()

    def record_correction(
        self,
        user_id: str,
        description: str,
        merchant: str | None,
        category_id: str,
        confidence: float = 1.0,
        session: Session | None = None,
    ) -> CategoryPattern:
        merchant = _normalize_merchant(merchant)
        with session_scope(self.session_factory, session) as db:
            pattern = self._find_existing(db, user_id, description, merchant)
            if pattern:
                pattern.category_id = category_id
                pattern.confidence = max(confidence, pattern.confidence)
                pattern.is_user_correction = True
                pattern.updated_at = utcnow()
            else:
                pattern = CategoryPattern(
                    user_id=user_id,
                    description=description,
                    description_key=description_key(description),
                    merchant=merchant,
                    category_id=category_id,
                    confidence=confidence,
                    is_user_correction=True,
                )
                db.add(pattern)
            db.flush()
            logger.debug(
                "[LEARN] Recorded correction for user %s: '%s' -> %s (confidence %.2f)",
                user_id,
                description[:50],
                category_id,
                pattern.confidence,
            )
            return pattern

    def record_ai_pattern(
        self,
        user_id: str,
        description: str,
        merchant: str | None,
        category_id: str,
        confidence: float,
        session: Session | None = None,
    ) -> CategoryPattern | None:
        """
        Remember a high-confidence automatic categorization.

        An existing user correction is left untouched and ``None`` is
        returned.
        """
        merchant = _normalize_merchant(merchant)
        with session_scope(self.session_factory, session) as db:
            pattern = self._find_existing(db, user_id, description, merchant)
            if pattern and pattern.is_user_correction:
                return None
            if pattern:
                pattern.category_id = category_id
                pattern.confidence = max(confidence, pattern.confidence)
                pattern.updated_at = utcnow()
            else:
                pattern = CategoryPattern(
                    user_id=user_id,
                    description=description,
                    description_key=description_key(description),
                    merchant=merchant,
                    category_id=category_id,
                    confidence=confidence,
                    is_user_correction=False,
                )
                db.add(pattern)
            db.flush()
            return pattern

    def find_best_match(self, user_id: str, description: str, merchant: str | None) -> PatternMatch | None:
        merchant = _normalize_merchant(merchant)
        with session_scope(self.session_factory) as db:
            exact = self._find_existing(db, user_id, description, merchant)
            if exact:
                return PatternMatch(
                    category_id=exact.category_id,
                    category_name=exact.category.name,
                    confidence=exact.confidence,
                    match_type="exact",
                )

            # Linear scan over the user's patterns; fine at personal-finance volumes.
            patterns = db.scalars(
                select(CategoryPattern)
                .options(joinedload(CategoryPattern.category))
                .where(CategoryPattern.user_id == user_id)
                .order_by(CategoryPattern.confidence.desc(), CategoryPattern.updated_at.desc())
            ).all()

            words = extract_keywords(description)
            if words:
                for pattern in patterns:
                    similarity = jaccard_similarity(words, extract_keywords(pattern.description))
                    if similarity > self.description_threshold:
                        return PatternMatch(
                            category_id=pattern.category_id,
                            category_name=pattern.category.name,
                            confidence=pattern.confidence * similarity,
                            match_type="description",
                        )

            if merchant:
                lowered = merchant.lower()
                for pattern in patterns:
                    if not pattern.merchant:
                        continue
                    candidate = pattern.merchant.lower()
                    if lowered in candidate or candidate in lowered:
                        return PatternMatch(
                            category_id=pattern.category_id,
                            category_name=pattern.category.name,
                            confidence=pattern.confidence * self.merchant_factor,
                            match_type="merchant",
                        )
        return None

    def list_patterns(self, user_id: str) -> list[PatternView]:
        with session_scope(self.session_factory) as db:
            patterns = db.scalars(
                select(CategoryPattern)
                .options(joinedload(CategoryPattern.category))
                .where(CategoryPattern.user_id == user_id)
                .order_by(CategoryPattern.confidence.desc(), CategoryPattern.updated_at.desc())
            ).all()
            return [
                PatternView(
                    id=pattern.id,
                    description=pattern.description,
                    merchant=pattern.merchant,
                    category_id=pattern.category_id,
                    category_name=pattern.category.name,
                    confidence=pattern.confidence,
                    is_user_correction=pattern.is_user_correction,
                )
                for pattern in patterns
            ]

    def cleanup(self, user_id: str, retention_days: int = 90) -> int:
        """Delete automatic patterns not updated within ``retention_days``."""
        cutoff = utcnow() - timedelta(days=retention_days)
        with session_scope(self.session_factory) as db:
            result = db.execute(
                delete(CategoryPattern).where(
                    CategoryPattern.user_id == user_id,
                    CategoryPattern.is_user_correction.is_(False),
                    CategoryPattern.updated_at < cutoff,
                )
            )
            removed = result.rowcount or 0
        logger.info("[LEARN] Removed %d stale patterns for user %s", removed, user_id)
        return removed

    def stats(self, user_id: str) -> LearningStats:
        with session_scope(self.session_factory) as db:
            total, average = db.execute(
                select(func.count(CategoryPattern.id), func.avg(CategoryPattern.confidence)).where(
                    CategoryPattern.user_id == user_id
                )
            ).one()
            corrections = db.scalar(
                select(func.count(CategoryPattern.id)).where(
                    CategoryPattern.user_id == user_id,
                    CategoryPattern.is_user_correction.is_(True),
                )
            )
        total = total or 0
        corrections = corrections or 0
        return LearningStats(
            total_patterns=total,
            user_corrections=corrections,
            ai_patterns=total - corrections,
            average_confidence=float(average or 0.0),
        )


class LearningService:
    def __init__(self, session_factory: sessionmaker[Session], patterns: PatternStore) -> None:
        self.session_factory = session_factory
        self.patterns = patterns

    def correct_category(self, user_id: str, transaction_id: str, category_id: str) -> Transaction:
        """
        Apply a manual category and remember it as a user correction.

        The transaction update and the pattern write share one database
        transaction.
        """
        with session_scope(self.session_factory) as db:
            transaction = db.get(Transaction, transaction_id)
            if transaction is None or transaction.user_id != user_id:
                raise NotFoundError(f"Transaction {transaction_id} not found")

            category = db.get(Category, category_id)
            if category is None or category.user_id not in (user_id, None):
                raise InvalidCategoryError(f"Invalid category {category_id}")

            transaction.mark_manually_categorized(category.id)
            self.patterns.record_correction(
                user_id,
                transaction.description,
                transaction.merchant,
                category.id,
                confidence=1.0,
                session=db,
            )
            logger.info(
                "[LEARN] Transaction %s corrected to '%s' for user %s",
                transaction_id,
                category.name,
                user_id,
            )
        return transaction
