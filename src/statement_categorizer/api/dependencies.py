import asyncio
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from statement_categorizer.api.errors import http_error
from statement_categorizer.errors import NotFoundError
from statement_categorizer.manager import CategorizerService
from statement_categorizer.services.categories import CategoryService
from statement_categorizer.services.importer import ImportService
from statement_categorizer.services.learning import LearningService, PatternStore
from statement_categorizer.services.recategorization import RecategorizationService
from statement_categorizer.services.transactions import TransactionService
from statement_categorizer.services.users import UserService


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if not value:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return value


def get_service(request: Request) -> CategorizerService:
    return _state(request, "service")


def get_import_service(request: Request) -> ImportService:
    return _state(request, "importer")


def get_pattern_store(request: Request) -> PatternStore:
    return _state(request, "patterns")


def get_learning_service(request: Request) -> LearningService:
    return _state(request, "learning")


def get_recategorization_service(request: Request) -> RecategorizationService:
    return _state(request, "recategorization")


def get_category_service(request: Request) -> CategoryService:
    return _state(request, "categories")


def get_user_service(request: Request) -> UserService:
    return _state(request, "users")


def get_transaction_service(request: Request) -> TransactionService:
    return _state(request, "transactions")


async def get_current_user_id(
    x_user_id: Annotated[str, Header()],
    users: Annotated[UserService, Depends(get_user_service)],
) -> str:
    try:
        user = await asyncio.to_thread(users.get, x_user_id)
    except NotFoundError as exc:
        raise http_error(exc) from exc
    return user.id


async def get_optional_user_id(
    users: Annotated[UserService, Depends(get_user_service)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> str | None:
    if not x_user_id:
        return None
    return await get_current_user_id(x_user_id, users)
