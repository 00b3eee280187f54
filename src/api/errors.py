from fastapi import HTTPException
from src.core.exceptions import (
    CafeteriaError,
    ConcurrencyConflict,
    DuplicateKey,
    Forbidden,
    InsufficientStock,
    NotFound,
    StoreError,
    Unauthorized,
)

STATUS_CODES = {
    NotFound: 404,
    InsufficientStock: 409,
    DuplicateKey: 409,
    ConcurrencyConflict: 409,
    Unauthorized: 401,
    Forbidden: 403,
    StoreError: 500,
}


def http_error(exc: CafeteriaError) -> HTTPException:
    """Translate a domain error into the matching HTTP response"""
    status_code = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)), 500
    )

    if isinstance(exc, InsufficientStock):
        detail = {"error": str(exc), "current_quantity": exc.current_quantity}
    elif isinstance(exc, StoreError):
        # Store internals stay in the log
        detail = "Internal server error"
    else:
        detail = str(exc)

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(status_code=status_code, detail=detail, headers=headers)
