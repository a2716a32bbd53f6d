"""
Logent error taxonomy.

Configuration and transport failures are recoverable: they are reported to
the user and the command ends. An unsupported dialect is a caller bug.
Running out of stream budget is not an exception at all, see
reconciler.ExchangeState.TIMED_OUT.

Author: Logent contributors | 2026-10-16
"""


class LogentError(Exception):
    """Base class for all Logent errors."""
    pass


class ConfigurationError(LogentError):
    """Raised when a required setting (API key, base URL) is missing."""
    pass


class TransportError(LogentError):
    """Raised when the completion service or a paper host cannot be reached."""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class UnsupportedDialectError(LogentError, ValueError):
    """Raised when a dialect-specific rendering is asked for an unknown dialect."""

    def __init__(self, dialect):
        super().__init__(f"Unknown format: {dialect}")
        self.dialect = dialect
