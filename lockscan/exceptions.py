"""Custom exceptions for lockscan."""


class LockscanError(Exception):
    """Base exception for all lockscan operations."""


class ConfigurationError(LockscanError):
    """Raised when configuration validation fails."""


class FileProcessingError(LockscanError):
    """Raised when a file cannot be read or decoded."""


class ParseError(LockscanError):
    """Raised when a whole document cannot be parsed.

    Per-record problems are reported as diagnostics instead.
    """


class UnsupportedFormatError(LockscanError):
    """Raised when a format is requested that no enabled parser handles."""
