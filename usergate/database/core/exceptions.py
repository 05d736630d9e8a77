class PersistenceError(Exception):
    """Raised when the database rejects an operation."""


class DuplicateInsertError(PersistenceError):
    """Raised when a write violates a unique index."""


class DocumentNotFoundError(Exception):
    """Raised when a requested document does not exist."""
