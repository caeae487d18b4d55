"""
Custom exceptions for pagecache.
"""


class PageCacheError(Exception):
    """Base exception for all pagecache errors."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(PageCacheError):
    """Raised when the cache configuration is malformed."""

    def __init__(self, setting: str, details: str | None = None):
        super().__init__(f"Invalid cache configuration for '{setting}'", details=details)
        self.setting = setting


class StoreError(PageCacheError):
    """Raised when a store backend operation fails."""

    def __init__(self, operation: str, details: str | None = None):
        super().__init__(f"Store error during {operation}", details=details)
        self.operation = operation


class SerializationError(PageCacheError):
    """Raised when a render result cannot be encoded or decoded."""

    def __init__(self, operation: str, details: str | None = None):
        super().__init__(f"Failed to {operation} render result", details=details)
        self.operation = operation


class ValidationError(PageCacheError):
    """Raised when data validation fails."""

    def __init__(self, field: str, value: str, reason: str):
        super().__init__(
            f"Validation failed for {field}",
            details=f"Value '{value}' is invalid: {reason}",
        )
        self.field = field
        self.value = value
        self.reason = reason
