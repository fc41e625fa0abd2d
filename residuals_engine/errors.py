"""
Error types raised by the residuals engine.
"""


class FormatError(ValueError):
    """A file cannot be parsed at all (e.g. no header row). Fatal for the whole file."""


class ValidationError(ValueError):
    """A single record failed validation. The record is skipped and reported."""


class PersistenceError(RuntimeError):
    """A storage backend failed to read or write."""
