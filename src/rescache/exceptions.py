"""Exception hierarchy for rescache.

All exceptions inherit from :class:`RescacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`rescache.exit_codes`.
Library callers catch the concrete subclasses to tell a corrupt entry
(:class:`DecodingError`) or a failing backend (:class:`StorageError`) apart
from a plain cache miss, which is never an exception. The top-level error
handler in :func:`rescache.app.main` catches ``RescacheError`` and exits with
the appropriate code.

Subclass hierarchy::

    RescacheError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- StorageError        (exit 6)
    +-- EncodingError       (exit 7)
    +-- DecodingError       (exit 8)
    +-- ConfigError         (exit 1)
"""

from rescache.exit_codes import (
    EXIT_DECODING_ERROR,
    EXIT_ENCODING_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_STORAGE_ERROR,
)


class RescacheError(Exception):
    """Base exception for all rescache errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RescacheError):
    """Raised for invalid CLI arguments such as a malformed ``-H`` header."""

    exit_code = EXIT_INVALID_USAGE


class StorageError(RescacheError):
    """Raised when the backend fails to read or write an entry.

    Never retried by the cache layer; the caller's resilience policy decides
    whether to fail the request or fall back to the network.
    """

    exit_code = EXIT_STORAGE_ERROR


class EncodingError(RescacheError):
    """Raised when a codec cannot serialise a value (non-primitive in the tree)."""

    exit_code = EXIT_ENCODING_ERROR


class DecodingError(RescacheError):
    """Raised when stored bytes cannot be parsed back into a response record.

    Covers corrupt entries and codec/version mismatches. A decoding failure
    is reported as an error on read and is never silently treated as a miss.
    """

    exit_code = EXIT_DECODING_ERROR


class ConfigError(RescacheError):
    """Raised for configuration problems (invalid JSON, unknown codec or backend)."""

    exit_code = EXIT_GENERIC_FAILURE
