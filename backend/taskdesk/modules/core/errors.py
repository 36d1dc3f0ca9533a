import logging
from typing import NoReturn

from fastapi import HTTPException, status

from taskdesk.modules.auth.utils.ownership import (
    ResourceAccessError,
    ResourceConflictError,
    ResourceNotFoundError,
)


def RaiseResourceError(exc: Exception) -> NoReturn:
    detail = str(exc)
    if isinstance(exc, ResourceNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail) from exc
    if isinstance(exc, ResourceAccessError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail) from exc
    if isinstance(exc, ResourceConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail) from exc


def RaiseStorageError(logger: logging.Logger, label: str, exc: Exception) -> NoReturn:
    logger.exception("%s database error", label)
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"{label.capitalize()} storage unavailable",
    ) from exc
