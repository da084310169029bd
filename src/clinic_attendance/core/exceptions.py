class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class StorageUnavailableError(DomainError):
    """Raised when the persistence layer cannot be reached."""


class CacheUnavailableError(DomainError):
    """Raised when the cache backend cannot be reached."""


class DuplicateOpenSessionError(DomainError):
    """Raised by repositories when a second open attendance record would be created."""
