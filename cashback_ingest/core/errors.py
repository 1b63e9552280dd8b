class IngestError(Exception):
    """Base class for errors surfaced to the caller of an ingestion request."""


class DatabasePoolError(IngestError):
    """Raised when the per-request database connection pool cannot be opened."""

    def __init__(self, cause: Exception, message: str = None):
        self.cause = cause
        self.message = message or f"Could not open database connection pool: {cause}"
        super().__init__(self.message)


class InvalidDateParams(IngestError, ValueError):
    """Raised when month/year cannot be turned into a destination schema name."""

    def __init__(self, month, year, reason: str):
        self.month = month
        self.year = year
        self.message = f"Invalid date parameters (month={month!r}, year={year!r}): {reason}"
        super().__init__(self.message)
