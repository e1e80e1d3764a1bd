"""Mapping from core error kinds to HTTP responses."""

from typing import NoReturn

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from src.domain.errors import CoreError, ErrorKind
from src.ports.repo import StoreError

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.PARTIAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_error(error: CoreError) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"} if error.kind == ErrorKind.UNAUTHENTICATED else None
    return HTTPException(
        status_code=STATUS_BY_KIND[error.kind],
        detail={"code": error.kind.value, "message": error.message, "field": error.field},
        headers=headers,
    )


def raise_for_error(error: CoreError | None) -> NoReturn:
    if error is None:
        # A failed output must carry an error
        raise HTTPException(status_code=500, detail="Internal error")
    raise http_error(error)


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": {
                "code": "store_unavailable",
                "message": "The service is temporarily unavailable. Please retry.",
                "field": None,
            }
        },
    )
