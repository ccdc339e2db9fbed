from typing import Annotated

from fastapi import APIRouter, Depends

from statement_categorizer.api.dependencies import get_current_user_id, get_recategorization_service
from statement_categorizer.api.errors import http_error
from statement_categorizer.api.schemas import RecategorizeOneResponse
from statement_categorizer.errors import CategorizerError
from statement_categorizer.logger import get_logger
from statement_categorizer.models import RecategorizeResult
from statement_categorizer.services.recategorization import RecategorizationService

logger = get_logger(__name__)

router = APIRouter()


@router.post("/recategorize-all", response_model=RecategorizeResult)
async def recategorize_all(
    user_id: Annotated[str, Depends(get_current_user_id)],
    recategorization: Annotated[RecategorizationService, Depends(get_recategorization_service)],
) -> RecategorizeResult:
    logger.info("[RECATEGORIZE] Bulk recategorization requested by user %s", user_id)
    return await recategorization.recategorize_all(user_id)


@router.post("/recategorize/{transaction_id}", response_model=RecategorizeOneResponse)
async def recategorize_one(
    transaction_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    recategorization: Annotated[RecategorizationService, Depends(get_recategorization_service)],
) -> RecategorizeOneResponse:
    try:
        updated = await recategorization.recategorize_one(transaction_id, user_id=user_id)
    except CategorizerError as exc:
        raise http_error(exc) from exc
    return RecategorizeOneResponse(transaction_id=transaction_id, updated=updated)
