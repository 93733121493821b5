from fastapi import HTTPException, status

from src.exceptions import (
    ABFIError,
    NotFoundError,
    PermissionDeniedError,
    StoreUnavailableError,
    VersionConflictError,
)

_STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    VersionConflictError: status.HTTP_409_CONFLICT,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(e: ABFIError) -> HTTPException:
    """Map a domain error onto the HTTP status the routers report; default 400."""
    for exc_type, status_code in _STATUS_CODES.items():
        if isinstance(e, exc_type):
            return HTTPException(status_code=status_code, detail=e.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
