"""
Custom exceptions for the offline sync queue.

All components raise these exceptions for consistent error handling
across the queue store, transports, and configuration layer.
"""


class OfflineQueueError(Exception):
    """Base exception for all offline sync queue errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnsupportedEntityError(OfflineQueueError):
    """Raised when a mutation targets an entity outside the supported set."""

    def __init__(self, entity: str):
        super().__init__(f"Unsupported entity: {entity!r}", {"entity": entity})
        self.entity = entity


class InvalidMutationError(OfflineQueueError):
    """Raised when a mutation is malformed (bad type, missing target id, ...)."""

    def __init__(self, message: str, field: str | None = None, mutation_id: str | None = None):
        details = {}
        if field:
            details["field"] = field
        if mutation_id:
            details["mutation_id"] = mutation_id
        super().__init__(message, details)
        self.field = field
        self.mutation_id = mutation_id


class StorageIOError(OfflineQueueError):
    """Raised when a key-value storage operation fails."""

    def __init__(self, operation: str, key: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if key:
            details["key"] = key
        if cause:
            details["cause"] = str(cause)
        message = f"Storage I/O error during {operation}"
        if key:
            message += f": {key}"
        super().__init__(message, details)
        self.operation = operation
        self.key = key
        self.cause = cause


class TransportError(OfflineQueueError):
    """Raised when an outbound request cannot be delivered at all.

    Note: an HTTP error status is not a TransportError; it is a response
    with ``ok=False``. This covers connection failures and timeouts.
    """

    def __init__(self, method: str, path: str, cause: Exception | None = None):
        details = {"method": method, "path": path}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Request failed: {method} {path}", details)
        self.method = method
        self.path = path
        self.cause = cause


class ConfigurationError(OfflineQueueError):
    """Raised when configuration values are invalid."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Invalid configuration for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value
