"""Custom exception hierarchy."""


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class SizeLimitError(ValidationError):
    """Raised when an uploaded file exceeds the configured ceiling."""
    pass


class AuthenticationError(AppError):
    """Raised when an operation needs an operator session and none is present."""
    pass


class InvalidUploadTokenError(AppError):
    """Raised when an upload token is unknown or expired."""
    pass


class NotFoundError(AppError):
    """Raised when a requested record does not exist."""
    pass


class ClaimNotFoundError(NotFoundError):
    """Raised when a claim is not found."""
    pass


class DocumentNotFoundError(NotFoundError):
    """Raised when a document is not found."""
    pass


class PolicyTypeNotFoundError(NotFoundError):
    """Raised when a policy type is not found."""
    pass


class AssignmentConflictError(AppError):
    """Raised when a label already has a selected document written concurrently."""
    pass


class StorageError(AppError):
    """Raised when an object storage write, sign or delete fails."""
    pass


class PersistenceError(AppError):
    """Raised when a database read or write fails."""
    pass
