"""Exception types raised by adapters, the factory and the ORM.

Every error derives from :class:`StoreError`. Where a builtin exception
describes the same failure the class also inherits from it, so callers that
already catch ``ConnectionError`` or ``ValueError`` keep working.
"""

import typing as t


class StoreError(Exception):
    """Base exception for storebridge operations."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        target: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.target = target
        self.original_error = original_error


class StoreConnectionError(StoreError, ConnectionError):
    """Raised when an adapter cannot establish its connection."""


class NotConnectedError(StoreError):
    """Raised when an operation is issued before connect or after disconnect."""

    def __init__(self, operation: str, store: str) -> None:
        super().__init__(
            f"{store} adapter is not connected; call connect() before {operation}()",
            operation=operation,
        )
        self.store = store


class InvalidArgumentError(StoreError, ValueError):
    """Raised when an operation is missing a required argument."""


class UnsupportedTypeError(StoreError, ValueError):
    """Raised when the factory is given an unknown store type."""

    def __init__(self, store_type: t.Any) -> None:
        super().__init__(
            f"Unsupported database type: {store_type}",
            operation="create_adapter",
        )
        self.store_type = store_type


class UnsupportedOperationError(StoreError, NotImplementedError):
    """Raised when a store cannot perform the requested operation."""


class NotDefinedError(StoreError, LookupError):
    """Raised when a model has no table binding and no fallback name."""

    def __init__(self, model: t.Any) -> None:
        name = getattr(model, "__name__", model)
        super().__init__(
            f"Model {name} not defined or table_name not set",
            operation="get_table_name",
        )
        self.model = model


class ConfigError(StoreError):
    """Raised when a settings file cannot be turned into adapter settings."""

    def __init__(self, path: str | object, message: str | None = None) -> None:
        super().__init__(message or f"Invalid configuration file: {path}")
        self.path = path
