import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError

from statement_categorizer.api.dependencies import get_current_user_id, get_import_service
from statement_categorizer.api.errors import http_error
from statement_categorizer.api.schemas import ImportResponse
from statement_categorizer.core import settings
from statement_categorizer.errors import CategorizerError
from statement_categorizer.logger import get_logger
from statement_categorizer.models import ColumnMapping, StatementParseResult
from statement_categorizer.services.importer import ImportService

logger = get_logger(__name__)

router = APIRouter(prefix="/csv")


async def _read_upload(csv_file: UploadFile) -> bytes:
    limit = settings.max_upload_bytes()
    data = await csv_file.read(limit + 1)
    if len(data) > limit:
        logger.warning("[CSV] Rejected upload '%s' over %d bytes", csv_file.filename, limit)
        raise HTTPException(status_code=413, detail=f"CSV file exceeds {limit} bytes")
    if not data.strip():
        raise HTTPException(status_code=400, detail="CSV file is empty")
    return data


def _parse_mapping(raw: str | None) -> ColumnMapping | None:
    if not raw:
        return None
    try:
        return ColumnMapping.model_validate_json(raw)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid column mapping") from exc


@router.post("/preview", response_model=StatementParseResult)
async def preview_csv(
    csv_file: Annotated[UploadFile, File()],
    user_id: Annotated[str, Depends(get_current_user_id)],
    importer: Annotated[ImportService, Depends(get_import_service)],
    source: Annotated[str | None, Form()] = None,
) -> StatementParseResult:
    data = await _read_upload(csv_file)
    return await asyncio.to_thread(importer.preview, user_id, data, source)


@router.post("/import", response_model=ImportResponse)
async def import_csv(
    csv_file: Annotated[UploadFile, File()],
    user_id: Annotated[str, Depends(get_current_user_id)],
    importer: Annotated[ImportService, Depends(get_import_service)],
    source: Annotated[str | None, Form()] = None,
    mapping: Annotated[str | None, Form()] = None,
    skip_duplicates: Annotated[bool, Form()] = True,
) -> ImportResponse:
    data = await _read_upload(csv_file)
    column_mapping = _parse_mapping(mapping)
    try:
        summary = await importer.import_statement(
            user_id,
            data,
            source=source,
            mapping=column_mapping,
            skip_duplicates=skip_duplicates,
        )
    except CategorizerError as exc:
        raise http_error(exc) from exc

    return ImportResponse(
        message=(
            f"Import completed: {summary.imported} imported, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        ),
        results=summary,
    )
