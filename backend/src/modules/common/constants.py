"""Common constants used across the application."""

from typing import Callable, Dict, Type

from fastapi import HTTPException, status

from .exceptions import (
    DomainError,
    InvalidFolderFilterError,
    LibraryElementHasConnectionsError,
    MalformedModelError,
    PermissionDeniedError,
    ResourceExistsError,
    ResourceNotFoundError,
    StoreError,
    ValidationError,
    VersionMismatchError,
)

# Checked in order with isinstance, subclasses before their bases.
EXCEPTION_MAPPING: Dict[Type[DomainError], Callable[[str], HTTPException]] = {
    ResourceNotFoundError: lambda message: HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message),
    ResourceExistsError: lambda message: HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message),
    VersionMismatchError: lambda message: HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=message),
    PermissionDeniedError: lambda message: HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message),
    LibraryElementHasConnectionsError: lambda message: HTTPException(status_code=status.HTTP_423_LOCKED, detail=message),
    MalformedModelError: lambda message: HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message),
    # Literal 422, the status constant was renamed across Starlette releases.
    InvalidFolderFilterError: lambda message: HTTPException(status_code=422, detail=message),
    ValidationError: lambda message: HTTPException(status_code=422, detail=message),
    StoreError: lambda message: HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message),
}
