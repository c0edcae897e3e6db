"""Application error taxonomy.

Every error carries an HTTP status and a human-readable message. Request-time
errors are rendered by the exception handler in main.py; enrichment errors
raised in the background end up as text in the CV record's summary.
"""


class AppError(Exception):
    """Base class for errors that map to a structured failure response."""

    status_code = 500

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationError(AppError):
    status_code = 400


class Unauthenticated(AppError):
    status_code = 401


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 409


class UnsupportedMediaType(AppError):
    status_code = 415


class ExtractionError(AppError):
    status_code = 422


class StorageError(AppError):
    status_code = 500


class EnrichmentError(AppError):
    """Failure of the AI completion capability.

    ``position`` holds whatever position result was obtained alongside the
    failed summary, so callers can still persist it.
    """

    def __init__(self, message: str, *, cause: Exception | None = None, position: str | None = None) -> None:
        super().__init__(message, cause=cause)
        self.position = position


class Unauthorized(EnrichmentError):
    status_code = 401


class ModelNotFound(EnrichmentError):
    status_code = 404


class RateLimited(EnrichmentError):
    status_code = 429


class ServiceUnavailable(EnrichmentError):
    status_code = 503


class GenerationFailed(EnrichmentError):
    status_code = 500
