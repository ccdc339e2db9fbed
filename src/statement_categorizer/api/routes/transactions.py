import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from statement_categorizer.api.dependencies import get_current_user_id, get_transaction_service
from statement_categorizer.api.errors import http_error
from statement_categorizer.api.schemas import (
    BulkCategorizeRequest,
    BulkCategorizeResponse,
    TransactionCreateRequest,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdateRequest,
)
from statement_categorizer.errors import CategorizerError
from statement_categorizer.models import TransactionType
from statement_categorizer.services.transactions import TransactionService

router = APIRouter(prefix="/transactions")


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    user_id: Annotated[str, Depends(get_current_user_id)],
    transactions: Annotated[TransactionService, Depends(get_transaction_service)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    type: TransactionType | None = None,
    category_id: str | None = None,
    search: str | None = None,
) -> TransactionListResponse:
    rows, pagination = await asyncio.to_thread(
        transactions.list_page,
        user_id,
        page=page,
        limit=limit,
        transaction_type=type.value if type else None,
        category_id=category_id,
        search=search,
    )
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(row) for row in rows],
        pagination=pagination,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    transactions: Annotated[TransactionService, Depends(get_transaction_service)],
) -> TransactionResponse:
    try:
        transaction = await asyncio.to_thread(transactions.get, user_id, transaction_id)
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return TransactionResponse.model_validate(transaction)


@router.post("", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    req: TransactionCreateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    transactions: Annotated[TransactionService, Depends(get_transaction_service)],
) -> TransactionResponse:
    try:
        transaction = await asyncio.to_thread(
            transactions.create,
            user_id,
            req.date,
            req.description,
            req.amount,
            req.type,
            merchant=req.merchant,
            category_id=req.category_id,
            notes=req.notes,
            tags=req.tags,
        )
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return TransactionResponse.model_validate(transaction)


@router.post("/bulk-categorize", response_model=BulkCategorizeResponse)
async def bulk_categorize(
    req: BulkCategorizeRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    transactions: Annotated[TransactionService, Depends(get_transaction_service)],
) -> BulkCategorizeResponse:
    try:
        updated = await transactions.bulk_categorize(user_id, req.transaction_ids)
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return BulkCategorizeResponse(message=f"Categorized {updated} transactions", updated=updated)


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: str,
    req: TransactionUpdateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    transactions: Annotated[TransactionService, Depends(get_transaction_service)],
) -> TransactionResponse:
    try:
        transaction = await asyncio.to_thread(
            transactions.update, user_id, transaction_id, req.model_dump(exclude_unset=True)
        )
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return TransactionResponse.model_validate(transaction)


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    transactions: Annotated[TransactionService, Depends(get_transaction_service)],
) -> dict[str, str]:
    try:
        await asyncio.to_thread(transactions.delete, user_id, transaction_id)
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return {"message": "Transaction deleted successfully"}
