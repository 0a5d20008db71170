"""Exception hierarchy for search index synchronization."""


class SearchSyncError(Exception):
    """Base exception for all searchsync errors."""


class InvalidArgumentError(SearchSyncError, ValueError):
    """Raised when a caller passes a malformed record or document ID."""


class UnknownTypeError(InvalidArgumentError):
    """Raised when a record type is not part of the schema."""

    def __init__(self, type_name: str) -> None:
        """Initialize unknown type error.

        Args:
            type_name: The record type that could not be resolved.
        """
        super().__init__(f"Unknown record type: {type_name}")
        self.type_name = type_name


class ConfigurationError(SearchSyncError):
    """Raised when the schema or index configuration is inconsistent."""


class ConfigFileError(ConfigurationError):
    """Raised when the configuration file cannot be read or validated."""

    def __init__(self, message: str, path: str) -> None:
        """Initialize configuration file error.

        Args:
            message: Error description.
            path: Path of the offending configuration file.
        """
        super().__init__(message)
        self.path = path


class ExternalCallError(SearchSyncError):
    """Raised when the search daemon rejects a request or cannot be reached."""

    def __init__(self, operation: str, message: str) -> None:
        """Initialize external call error.

        Args:
            operation: Backend operation that failed (e.g. "reindex").
            message: Error description from the backend.
        """
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
