import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from statement_categorizer.api.dependencies import get_user_service
from statement_categorizer.api.errors import http_error
from statement_categorizer.api.schemas import UserCreateRequest, UserResponse
from statement_categorizer.errors import CategorizerError
from statement_categorizer.services.users import UserService

router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    req: UserCreateRequest,
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    try:
        user = await asyncio.to_thread(users.create, req.email, req.name)
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return UserResponse.model_validate(user)
