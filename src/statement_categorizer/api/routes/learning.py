import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from statement_categorizer.api.dependencies import (
    get_current_user_id,
    get_learning_service,
    get_pattern_store,
)
from statement_categorizer.api.errors import http_error
from statement_categorizer.api.schemas import CleanupResponse, CorrectionRequest, TransactionResponse
from statement_categorizer.core import settings
from statement_categorizer.errors import CategorizerError
from statement_categorizer.models import LearningStats, PatternView
from statement_categorizer.services.learning import LearningService, PatternStore

router = APIRouter(prefix="/learning")


@router.put("/transactions/{transaction_id}/category", response_model=TransactionResponse)
async def correct_category(
    transaction_id: str,
    req: CorrectionRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    learning: Annotated[LearningService, Depends(get_learning_service)],
) -> TransactionResponse:
    try:
        transaction = await asyncio.to_thread(
            learning.correct_category, user_id, transaction_id, req.category_id
        )
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return TransactionResponse.model_validate(transaction)


@router.get("/patterns", response_model=list[PatternView])
async def list_patterns(
    user_id: Annotated[str, Depends(get_current_user_id)],
    patterns: Annotated[PatternStore, Depends(get_pattern_store)],
) -> list[PatternView]:
    return await asyncio.to_thread(patterns.list_patterns, user_id)


@router.get("/stats", response_model=LearningStats)
async def learning_stats(
    user_id: Annotated[str, Depends(get_current_user_id)],
    patterns: Annotated[PatternStore, Depends(get_pattern_store)],
) -> LearningStats:
    return await asyncio.to_thread(patterns.stats, user_id)


@router.delete("/patterns/cleanup", response_model=CleanupResponse)
async def cleanup_patterns(
    user_id: Annotated[str, Depends(get_current_user_id)],
    patterns: Annotated[PatternStore, Depends(get_pattern_store)],
    days: Annotated[int | None, Query(ge=1)] = None,
) -> CleanupResponse:
    retention_days = days or settings.pattern_retention_days()
    removed = await asyncio.to_thread(patterns.cleanup, user_id, retention_days)
    return CleanupResponse(removed=removed, days=retention_days)
