"""Custom exception classes."""


class ChefGeniusException(Exception):
    """Base exception for ChefGenius application."""

    pass


class ValidationError(ChefGeniusException):
    """Raised when input validation fails."""

    pass


class NotFoundError(ChefGeniusException):
    """Raised when a saved recipe or the active recipe does not exist."""

    pass


class ConflictError(ChefGeniusException):
    """Raised when an operation collides with one already in flight."""

    pass


class TransientServiceError(ChefGeniusException):
    """Raised when an external call hit a rate limit or temporary unavailability."""

    pass


class GeminiError(ChefGeniusException):
    """Raised when a Gemini API call fails permanently."""

    pass


class MalformedResponseError(GeminiError):
    """Raised when a schema-shaped Gemini response cannot be parsed or validated."""

    pass


class StorageError(ChefGeniusException):
    """Raised when a persisted record cannot be written."""

    pass


class ImageProcessingError(ChefGeniusException):
    """Raised when image processing fails."""

    pass
