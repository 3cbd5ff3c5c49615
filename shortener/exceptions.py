"""
Exception taxonomy for the shortener.

Every error raised by the code generator or a storage backend derives from
`ShortenerError`, so the HTTP layer can catch a single base class and map the
concrete subclass to a status code.

Note that "URL already shortened" is deliberately absent: it is a successful
outcome reported through `SaveResult.conflict`, not an exception.
"""


class ShortenerError(Exception):
    """Base class for all shortener errors."""

    error_code = "shortener:error"


class GenerationError(ShortenerError):
    """Raised when the random source cannot produce a short code."""

    error_code = "codegen:generation_error"


class StorageError(ShortenerError):
    """Generic base class for storage backend errors."""

    error_code = "storage:storage_error"


class AllocationExhaustedError(StorageError):
    """Raised when every attempt of the retry budget hit a code collision."""

    error_code = "storage:allocation_exhausted_error"


class ShortURLNotFoundError(StorageError):
    """Raised when a short code was never allocated."""

    error_code = "storage:short_url_not_found_error"


class ShortURLGoneError(StorageError):
    """Raised when a short code exists but has been soft-deleted."""

    error_code = "storage:short_url_gone_error"


class BackendUnavailableError(StorageError):
    """Raised when the backing store cannot be reached.

    Examples include a refused database connection during bootstrap or ping,
    or a journal file that cannot be opened at startup.
    """

    error_code = "storage:backend_unavailable_error"
