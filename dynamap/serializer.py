from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, cast
from uuid import UUID

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer
from pydantic import BaseModel

from .exceptions import DynamoSerializationError


class DynamoSerializer:
    """
    Handles the conversion between records, Python values and DynamoDB Low-Level format.

    Architectural Note:
    -------------------
    DynamoDB requires numbers to be passed as 'Decimal' to avoid precision loss.
    Pydantic uses 'float'. Boto3's TypeSerializer throws an error if it encounters a float.
    This class acts as a Middleware to recursively convert Python types to DynamoDB-safe
    types before passing them to Boto3, and vice versa on retrieval.
    """

    def __init__(self) -> None:
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    def to_item(self, record: BaseModel) -> dict[str, dict[str, Any]]:
        """
        Converts a record to a DynamoDB item keyed by attribute (alias) names.
        None values are left out, so an unset identity is simply absent.
        """
        data = record.model_dump(mode="python", by_alias=True, exclude_none=True)
        return self.to_dynamo(data)

    def to_dynamo(self, data: dict[str, Any]) -> dict[str, dict[str, Any]]:
        """Converts a standard Python dict to DynamoDB JSON format ({"S": "...", "N": "..."})."""
        clean_data = self._prepare_for_dynamo(data)
        result = {}

        for k, v in clean_data.items():
            try:
                serialized = self._serializer.serialize(v)
            except TypeError as e:
                raise DynamoSerializationError(
                    f"Failed to serialize field '{k}'. value={v!r} error={e!s}", original_error=e
                ) from e

            # DynamoDB rejects empty sets
            if not (isinstance(v, (set, frozenset)) and len(v) == 0):
                result[k] = cast(dict[str, Any], serialized)
        return result

    def to_dynamo_value(self, value: Any) -> dict[str, Any]:
        """
        Serializes a single value to DynamoDB format.
        Used for ExpressionAttributeValues and key values.
        E.g.: 10.5 -> {'N': '10.5'}
        """
        clean_value = self._prepare_for_dynamo(value)
        try:
            result = cast(dict[str, Any], self._serializer.serialize(clean_value))
        except TypeError as e:
            raise DynamoSerializationError(
                f"Failed to serialize value '{value}'. error={e!s}", original_error=e
            ) from e
        return result

    def from_dynamo(self, item: dict[str, Any]) -> dict[str, Any]:
        """Converts DynamoDB JSON format back to standard Python dict."""
        try:
            python_data = {k: self._deserializer.deserialize(v) for k, v in item.items()}
        except (TypeError, ValueError) as e:
            raise DynamoSerializationError(
                f"Failed to deserialize item. error={e!s}", original_error=e
            ) from e
        result = self._restore_to_python(python_data)
        assert isinstance(result, dict)
        return result

    def _prepare_for_dynamo(self, value: Any) -> Any:
        """
        Recursively prepares Python values for Boto3 TypeSerializer.

        Converts:
        - float -> Decimal (boto3 requirement)
        - datetime/date -> ISO 8601 string
        - UUID -> string
        - Enum -> value
        """
        if isinstance(value, bool):
            return value
        if isinstance(value, float):
            # Convert to string first to avoid float precision artifacts during Decimal creation
            return Decimal(str(value))
        if isinstance(value, datetime):
            utc_offset = value.utcoffset()
            if utc_offset is not None and utc_offset.total_seconds() == 0:
                # UTC timezone - use 'Z' suffix like Pydantic does
                return value.replace(tzinfo=None).isoformat() + "Z"
            return value.isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (set, frozenset)):
            # Kept as set for SS/NS/BS support
            return {self._prepare_for_dynamo(v) for v in value}
        if isinstance(value, (list, tuple)):
            return [self._prepare_for_dynamo(v) for v in value]
        if isinstance(value, dict):
            return {k: self._prepare_for_dynamo(v) for k, v in value.items()}
        return value

    def _restore_to_python(self, value: Any) -> Any:
        """
        Recursively restores DynamoDB values to Python-friendly types.

        Converts:
        - Decimal -> int (if whole number) or float
        - Binary -> bytes
        """
        if isinstance(value, Decimal):
            if value % 1 == 0:
                return int(value)
            return float(value)
        if isinstance(value, Binary):
            return bytes(value.value)
        if isinstance(value, set):
            return {self._restore_to_python(v) for v in value}
        if isinstance(value, list):
            return [self._restore_to_python(v) for v in value]
        if isinstance(value, dict):
            return {k: self._restore_to_python(v) for k, v in value.items()}
        return value
