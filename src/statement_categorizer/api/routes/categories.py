import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from statement_categorizer.api.dependencies import get_category_service, get_current_user_id
from statement_categorizer.api.errors import http_error
from statement_categorizer.api.schemas import CategoryCreateRequest, CategoryResponse, CategoryUpdateRequest
from statement_categorizer.errors import CategorizerError
from statement_categorizer.models import CategoryNode
from statement_categorizer.services.categories import CategoryService

router = APIRouter(prefix="/categories")


@router.get("", response_model=list[CategoryNode])
async def list_categories(
    user_id: Annotated[str, Depends(get_current_user_id)],
    categories: Annotated[CategoryService, Depends(get_category_service)],
) -> list[CategoryNode]:
    return await asyncio.to_thread(categories.list_tree, user_id)


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    req: CategoryCreateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    categories: Annotated[CategoryService, Depends(get_category_service)],
) -> CategoryResponse:
    try:
        category = await asyncio.to_thread(
            categories.create,
            user_id,
            req.name,
            req.type,
            req.color,
            icon=req.icon,
            parent_id=req.parent_id,
        )
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    req: CategoryUpdateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    categories: Annotated[CategoryService, Depends(get_category_service)],
) -> CategoryResponse:
    try:
        category = await asyncio.to_thread(
            categories.update, user_id, category_id, req.model_dump(exclude_unset=True)
        )
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    categories: Annotated[CategoryService, Depends(get_category_service)],
) -> dict[str, str]:
    try:
        await asyncio.to_thread(categories.delete, user_id, category_id)
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return {"message": "Category deleted successfully"}
