"""
Custom exception hierarchy for the reporting engine.

Exception Hierarchy:
    StoreError (base)
    ├── StoreQueryError        - Aggregate query failed inside the store
    └── QueryTimeoutError      - Aggregate query exceeded its timeout

    ValidationError            - Input validation failed (client fault)
"""


class StoreError(Exception):
    """Base exception for all Aggregate Store failures."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class StoreQueryError(StoreError):
    """
    The store rejected or failed to execute an aggregate query.

    Carries the name of the fetch operation that failed.
    """

    def __init__(self, message: str, details: str = None, operation: str = None):
        super().__init__(message, details)
        self.operation = operation


class QueryTimeoutError(StoreError):
    """
    Database query exceeded timeout.

    Indicates a long-running query that should be investigated:
    - Missing index
    - Too much data being scanned
    - Window far larger than expected
    """

    def __init__(self, query: str, timeout: float, details: str = None):
        self.query = query[:200] + "..." if len(query) > 200 else query
        self.timeout = timeout
        message = f"Query timed out after {timeout}s"
        super().__init__(message, details)

    def __str__(self) -> str:
        return f"QueryTimeoutError: Query timed out after {self.timeout}s - {self.query}"


class ValidationError(Exception):
    """
    Input validation failed.

    Raised before any store call is issued.
    """

    def __init__(self, field: str, message: str, value: any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"
