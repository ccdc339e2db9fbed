from fastapi import HTTPException

from statement_categorizer.errors import (
    CategorizerError,
    CategoryInUseError,
    ConflictError,
    InvalidCategoryError,
    InvalidTransactionError,
    NotFoundError,
    StatementParseError,
)

_STATUS_CODES: tuple[tuple[type[CategorizerError], int], ...] = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidCategoryError, 400),
    (InvalidTransactionError, 400),
    (CategoryInUseError, 400),
    (StatementParseError, 400),
)


def http_error(exc: CategorizerError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
