from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from botocore.exceptions import ClientError

from ._logging import log_context, logger


class DynamapError(Exception):
    """Base exception for all dynamap errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class NotPointerError(DynamapError, TypeError):
    """Raised when a destination is neither a record nor a collection of records."""

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"destination must be a record or a collection of records, got {type(value).__name__}"
        )
        self.value = value


class NilElementError(DynamapError, ValueError):
    """Raised when a destination references no record type (None, empty list, bare Many)."""

    def __init__(self, message: str = "destination does not reference a record type") -> None:
        super().__init__(message)


class UnsupportedTypeError(DynamapError, TypeError):
    """Raised when a key field has no DynamoDB scalar type mapping."""

    def __init__(self, field_name: str, annotation: Any) -> None:
        super().__init__(
            f"field '{field_name}' of type {annotation!r} cannot be used as a key attribute"
        )
        self.field_name = field_name
        self.annotation = annotation


class SliceProhibitedError(DynamapError, TypeError):
    """Raised when a single-record operation (get_item, create, ...) is given a collection."""

    def __init__(self, operation: str = "get_item") -> None:
        super().__init__(f"collection destination is prohibited for {operation}")
        self.operation = operation


class NotFoundError(DynamapError):
    """
    Raised when an item is absent or soft-deleted.

    Both cases share this error on purpose, callers cannot tell them apart.
    """

    def __init__(self, table_name: str, key: dict[str, Any]) -> None:
        super().__init__(f"Item with key {key} not found in table '{table_name}'")
        self.table_name = table_name
        self.key = key


class SchemaDefinitionError(DynamapError, ValueError):
    """Raised when role annotations do not describe a valid table schema."""

    def __init__(self, record_name: str, message: str) -> None:
        super().__init__(f"{record_name}: {message}")
        self.record_name = record_name


class DynamoSerializationError(DynamapError):
    """Raised when serialization to DynamoDB format fails (e.g. unsupported type)."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


@contextmanager
def store_call(table_name: str, operation: str) -> Generator[None, None, None]:
    """
    Context manager around a single request to DynamoDB.

    botocore ClientError is logged with its error code and re-raised unchanged,
    so callers see exactly what the store reported.

    Usage:
        with store_call("users", "get_item"):
            client.get_item(...)
    """
    try:
        yield
    except ClientError as e:
        error = e.response.get("Error", {})
        logger.warning(
            "DynamoDB request failed",
            extra=log_context(
                table_name,
                operation,
                error_code=error.get("Code", "Unknown"),
                error_message=error.get("Message", str(e)),
            ),
        )
        raise
