"""Domain exception classes for business logic errors."""


class DomainError(Exception):
    """Base class for all domain-specific errors."""

    pass


class ResourceNotFoundError(DomainError):
    """Raised when a requested resource cannot be found."""

    pass


class ResourceExistsError(DomainError):
    """Raised when attempting to create a resource that already exists."""

    pass


class ValidationError(DomainError):
    """Raised when data validation fails."""

    pass


class PermissionDeniedError(DomainError):
    """Raised when a user attempts an action they don't have permission for."""

    pass


class LibraryElementNotFoundError(ResourceNotFoundError):
    """Raised when no library element matches, or a concurrent delete won the race."""

    def __init__(self, message: str = "library element could not be found"):
        super().__init__(message)


class FolderNotFoundError(ResourceNotFoundError):
    """Raised when a folder id does not name a folder of the org."""

    def __init__(self, message: str = "folder not found"):
        super().__init__(message)


class LibraryElementExistsError(ResourceExistsError):
    """Raised when the store reports a uniqueness violation for a library element."""

    def __init__(self, message: str = "library element with that name or UID already exists"):
        super().__init__(message)


class VersionMismatchError(DomainError):
    """Raised when the caller's expected version differs from the stored one."""

    def __init__(self, message: str = "the library element has a newer version"):
        super().__init__(message)


class FolderAccessDeniedError(PermissionDeniedError):
    """Raised when the user may not write in a folder."""

    def __init__(self, message: str = "access denied to folder"):
        super().__init__(message)


class LibraryElementHasConnectionsError(DomainError):
    """Raised when deleting a library element that dashboards still use."""

    def __init__(self, message: str = "the library element has connections"):
        super().__init__(message)


class MalformedModelError(DomainError):
    """Raised when a library element model is not a JSON object."""

    pass


class InvalidFolderFilterError(ValidationError):
    """Raised when a folder filter is not a list of non-negative integers."""

    pass


class StoreError(DomainError):
    """Raised for persistence failures that have no more specific meaning."""

    pass
