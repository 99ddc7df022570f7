"""Custom exception classes for fx-journal."""


class FxJournalError(Exception):
    """Base exception for all fx-journal errors."""

    def __init__(self, message: str):
        """Initialize with error message."""
        self.message = message
        super().__init__(message)


class DataError(FxJournalError):
    """Data validation or processing errors."""

    pass


class ValidationError(DataError):
    """Input validation errors."""

    pass


class CSVParseError(DataError):
    """Raised when an uploaded report cannot be parsed at all."""

    def __init__(self, message: str, row_number: int | None = None):
        """
        Initialize parse error.

        Args:
            message: What went wrong
            row_number: 1-based line number, when the failure is tied to one line
        """
        self.row_number = row_number
        super().__init__(message)


class DatabaseError(FxJournalError):
    """Database operation errors."""

    pass


class ImportLogNotFoundError(DatabaseError):
    """Import audit log not found in database."""

    def __init__(self, log_id: int):
        """
        Initialize with audit log ID.

        Args:
            log_id: The import log ID that wasn't found
        """
        super().__init__(f"Import log not found: {log_id}")


class ConfigurationError(FxJournalError):
    """Configuration errors."""

    pass


# Error message helpers


def format_error_message(error: Exception) -> str:
    """
    Format exception into user-friendly error message.

    Args:
        error: The exception to format

    Returns:
        Formatted error message
    """
    if isinstance(error, FxJournalError):
        return error.message

    error_type = type(error).__name__
    return f"{error_type}: {str(error)}"


def get_error_color(error: Exception) -> str:
    """
    Get Rich color for error type.

    Args:
        error: The exception

    Returns:
        Rich color name
    """
    if isinstance(error, (ValidationError, DataError)):
        return "red"
    elif isinstance(error, ConfigurationError):
        return "orange"
    elif isinstance(error, DatabaseError):
        return "magenta"
    else:
        return "red"
