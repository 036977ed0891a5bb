"""
Translate engine errors into HTTP responses.

Status mapping:
- NotFoundError            -> 404
- InvalidInputError        -> 400
- PreconditionError        -> 400 (command rejected, nothing written)
- TransactionConflictError -> 409 (retryable: every command is idempotent)
- DataConsistencyError     -> 500
"""
from fastapi import HTTPException

from swiss_bracket.services.errors import (
    DataConsistencyError,
    InvalidInputError,
    NotFoundError,
    PreconditionError,
    TournamentError,
    TransactionConflictError,
)


def to_http_exception(exc: TournamentError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (InvalidInputError, PreconditionError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, TransactionConflictError):
        return HTTPException(
            status_code=409,
            detail=f"TRANSACTION_CONFLICT: {exc}",
            headers={"Retry-After": "1"},
        )
    if isinstance(exc, DataConsistencyError):
        return HTTPException(status_code=500, detail=f"DATA_CONSISTENCY: {exc}")
    return HTTPException(status_code=500, detail=str(exc))
