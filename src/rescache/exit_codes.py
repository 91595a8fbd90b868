"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~rescache.exceptions.RescacheError` subclass.
Shell wrappers can inspect the exit code of the ``rescache`` maintenance
CLI to tell a cache miss from a corrupt entry without parsing stderr.

Example::

    $ rescache show https://api.example.com/users
    $ echo $?
    4   # EXIT_NOT_FOUND -- nothing cached for that request
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_NOT_FOUND = 4
"""No entry is cached for the requested key."""

EXIT_STORAGE_ERROR = 6
"""The storage backend failed to read or write an entry."""

EXIT_ENCODING_ERROR = 7
"""A value could not be serialised by the active codec."""

EXIT_DECODING_ERROR = 8
"""A stored entry could not be deserialised by the active codec."""
