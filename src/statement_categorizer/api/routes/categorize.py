import asyncio
import os
from typing import Annotated

from fastapi import APIRouter, Depends

from statement_categorizer.api.dependencies import (
    get_category_service,
    get_optional_user_id,
    get_service,
)
from statement_categorizer.api.schemas import CategorizeRequest, HealthResponse
from statement_categorizer.manager import CategorizerService
from statement_categorizer.models import CategorySuggestion
from statement_categorizer.services.categories import CategoryService

router = APIRouter()


@router.post("/categorize", response_model=CategorySuggestion)
async def categorize_transaction(
    req: CategorizeRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
    categories: Annotated[CategoryService, Depends(get_category_service)],
    user_id: Annotated[str | None, Depends(get_optional_user_id)],
) -> CategorySuggestion:
    available = req.available_categories
    if available is None and user_id:
        available = await asyncio.to_thread(categories.available_names, user_id)

    return await asyncio.to_thread(
        service.categorize,
        req.description,
        req.merchant,
        abs(req.amount),
        available or [],
        user_id=user_id,
    )


@router.get("/health", response_model=HealthResponse)
async def health(
    service: Annotated[CategorizerService, Depends(get_service)],
) -> HealthResponse:
    llm_available = await asyncio.to_thread(service.llm_available)
    return HealthResponse(
        status="ok",
        llm_enabled=service.llm is not None,
        llm_available=llm_available,
        model=service.llm.model if service.llm else os.getenv("OPENAI_MODEL"),
    )
