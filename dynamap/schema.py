"""
Table schema derivation.

Folds the annotated fields of a record type into a DynamoDB table description:
attribute definitions, primary key schema, and global/local secondary indexes.

Role tokens (comma separated, see fields.Attribute):
    hash, range
    global_secondary_index(<index>:hash|range)
    local_secondary_index(<index>:hash|range)

Hash elements are always prepended to a key schema and range elements appended,
so every key schema reads hash-then-range whatever the field order.
"""

import re
import types
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from ._logging import logger
from .base import unwrap_record_type
from .config import DEFAULT_READ_CAPACITY, DEFAULT_WRITE_CAPACITY
from .exceptions import SchemaDefinitionError, UnsupportedTypeError
from .fields import HASH, RANGE
from .walker import FieldDescriptor, walk_fields

ScalarType = Literal["S", "N"]
KeyType = Literal["HASH", "RANGE"]

KEY_TYPES: dict[str, KeyType] = {HASH: "HASH", RANGE: "RANGE"}

_INDEX_TOKEN = re.compile(
    r"^(?P<kind>global|local)_secondary_index\((?P<name>[^:()\s]+):(?P<role>hash|range)\)$"
)


@dataclass(frozen=True)
class AttributeDefinition:
    name: str
    type: ScalarType

    def to_request(self) -> dict[str, str]:
        return {"AttributeName": self.name, "AttributeType": self.type}


@dataclass(frozen=True)
class KeySchemaElement:
    name: str
    key_type: KeyType

    def to_request(self) -> dict[str, str]:
        return {"AttributeName": self.name, "KeyType": self.key_type}


def _add_key(key_schema: list[KeySchemaElement], element: KeySchemaElement) -> None:
    if element in key_schema:
        return
    if element.key_type == "HASH":
        key_schema.insert(0, element)
    else:
        key_schema.append(element)


def _key_named(key_schema: list[KeySchemaElement], key_type: KeyType) -> str | None:
    for element in key_schema:
        if element.key_type == key_type:
            return element.name
    return None


@dataclass
class SecondaryIndex:
    """
    A global or local secondary index descriptor.

    Global indexes carry their own provisioned throughput; local ones share the
    table's partition key and only add a range key.
    """

    index_name: str
    is_global: bool
    key_schema: list[KeySchemaElement] = field(default_factory=list)
    projection_type: str = "ALL"
    read_capacity: int | None = None
    write_capacity: int | None = None

    @property
    def hash_key(self) -> str | None:
        return _key_named(self.key_schema, "HASH")

    @property
    def range_key(self) -> str | None:
        return _key_named(self.key_schema, "RANGE")

    def add_key(self, element: KeySchemaElement) -> None:
        _add_key(self.key_schema, element)

    def to_request(self) -> dict[str, Any]:
        request: dict[str, Any] = {
            "IndexName": self.index_name,
            "KeySchema": [element.to_request() for element in self.key_schema],
            "Projection": {"ProjectionType": self.projection_type},
        }
        if self.is_global:
            request["ProvisionedThroughput"] = {
                "ReadCapacityUnits": self.read_capacity,
                "WriteCapacityUnits": self.write_capacity,
            }
        return request


@dataclass
class TableSchema:
    """
    The physical schema derived from a record type.

    Invariant: every attribute referenced by any key schema appears exactly
    once in attribute_definitions.
    """

    attribute_definitions: list[AttributeDefinition] = field(default_factory=list)
    key_schema: list[KeySchemaElement] = field(default_factory=list)
    global_secondary_indexes: list[SecondaryIndex] = field(default_factory=list)
    local_secondary_indexes: list[SecondaryIndex] = field(default_factory=list)
    read_capacity: int = DEFAULT_READ_CAPACITY
    write_capacity: int = DEFAULT_WRITE_CAPACITY

    @property
    def hash_key(self) -> str | None:
        return _key_named(self.key_schema, "HASH")

    @property
    def range_key(self) -> str | None:
        return _key_named(self.key_schema, "RANGE")

    @property
    def indexes(self) -> list[SecondaryIndex]:
        return [*self.global_secondary_indexes, *self.local_secondary_indexes]

    def get_index(self, index_name: str) -> SecondaryIndex | None:
        for index in self.indexes:
            if index.index_name == index_name:
                return index
        return None

    def index_for_hash_key(self, attribute_name: str) -> SecondaryIndex | None:
        """Returns the first global index partitioned on `attribute_name`."""
        for index in self.global_secondary_indexes:
            if index.hash_key == attribute_name:
                return index
        return None

    def add_attribute(self, definition: AttributeDefinition) -> None:
        if any(existing.name == definition.name for existing in self.attribute_definitions):
            return
        self.attribute_definitions.append(definition)

    def to_request(self, table_name: str) -> dict[str, Any]:
        """Renders the CreateTable request parameters."""
        request: dict[str, Any] = {
            "TableName": table_name,
            "AttributeDefinitions": [d.to_request() for d in self.attribute_definitions],
            "KeySchema": [element.to_request() for element in self.key_schema],
            "ProvisionedThroughput": {
                "ReadCapacityUnits": self.read_capacity,
                "WriteCapacityUnits": self.write_capacity,
            },
        }
        if self.global_secondary_indexes:
            request["GlobalSecondaryIndexes"] = [
                index.to_request() for index in self.global_secondary_indexes
            ]
        if self.local_secondary_indexes:
            request["LocalSecondaryIndexes"] = [
                index.to_request() for index in self.local_secondary_indexes
            ]
        return request


def infer_scalar_type(descriptor: FieldDescriptor) -> ScalarType:
    """
    Maps a field's declared type to a DynamoDB scalar attribute type.

    str (and subclasses, Optional[str]) -> "S"; any int kind except bool -> "N".

    Raises:
        UnsupportedTypeError: For every other type
    """
    annotation = _strip_optional(descriptor.annotation)

    if isinstance(annotation, type) and get_origin(annotation) is None:
        if issubclass(annotation, str):
            return "S"
        if issubclass(annotation, int) and not issubclass(annotation, bool):
            return "N"

    raise UnsupportedTypeError(descriptor.name, descriptor.annotation)


def _strip_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Annotated:
        return _strip_optional(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return _strip_optional(members[0])
    return annotation


def split_roles(roles: str) -> list[str]:
    """Splits a raw role annotation into its tokens, dropping blanks."""
    return [token.strip() for token in roles.split(",") if token.strip()]


def build_table_schema(
    target: Any,
    read_capacity: int = DEFAULT_READ_CAPACITY,
    write_capacity: int = DEFAULT_WRITE_CAPACITY,
) -> TableSchema:
    """
    Derives the table schema of the record type behind `target`.

    Only fields that carry role tokens take part: DynamoDB rejects attribute
    definitions that no key schema uses.

    Local indexes get the table's hash key prepended once every field has been
    seen, so their partition key never depends on field declaration order.

    Raises:
        UnsupportedTypeError: If a key field is neither text nor integer
        SchemaDefinitionError: If the role tokens do not form a valid schema
    """
    record_type, _ = unwrap_record_type(target)
    record_name = record_type.__name__

    schema = TableSchema(read_capacity=read_capacity, write_capacity=write_capacity)
    # (index_name, attribute_name) pairs naming a local index's hash key explicitly
    local_hash_claims: list[tuple[str, str]] = []

    for descriptor in walk_fields(record_type):
        tokens = split_roles(descriptor.roles)
        if not tokens:
            continue

        schema.add_attribute(
            AttributeDefinition(name=descriptor.attribute_name, type=infer_scalar_type(descriptor))
        )

        for token in tokens:
            if token in KEY_TYPES:
                _add_key(
                    schema.key_schema,
                    KeySchemaElement(name=descriptor.attribute_name, key_type=KEY_TYPES[token]),
                )
                continue

            match = _INDEX_TOKEN.match(token)
            if match is None:
                raise SchemaDefinitionError(
                    record_name, f"invalid role token '{token}' on field '{descriptor.name}'"
                )

            index = _get_or_create_index(
                schema, record_name, match.group("name"), match.group("kind") == "global"
            )
            role = match.group("role")
            if not index.is_global and role == HASH:
                local_hash_claims.append((index.index_name, descriptor.attribute_name))
                continue
            index.add_key(KeySchemaElement(name=descriptor.attribute_name, key_type=KEY_TYPES[role]))

    _resolve_local_indexes(schema, record_name, local_hash_claims)
    _validate(schema, record_name)

    logger.debug(
        "Built table schema",
        extra={
            "record": record_name,
            "hash_key": schema.hash_key,
            "range_key": schema.range_key,
            "indexes": [index.index_name for index in schema.indexes],
        },
    )
    return schema


def _get_or_create_index(
    schema: TableSchema, record_name: str, index_name: str, is_global: bool
) -> SecondaryIndex:
    index = schema.get_index(index_name)
    if index is not None:
        if index.is_global != is_global:
            raise SchemaDefinitionError(
                record_name, f"index '{index_name}' is declared both global and local"
            )
        return index

    if is_global:
        index = SecondaryIndex(
            index_name=index_name,
            is_global=True,
            read_capacity=schema.read_capacity,
            write_capacity=schema.write_capacity,
        )
        schema.global_secondary_indexes.append(index)
    else:
        index = SecondaryIndex(index_name=index_name, is_global=False)
        schema.local_secondary_indexes.append(index)
    return index


def _resolve_local_indexes(
    schema: TableSchema, record_name: str, local_hash_claims: list[tuple[str, str]]
) -> None:
    if not schema.local_secondary_indexes:
        return

    table_hash = schema.hash_key
    if table_hash is None:
        raise SchemaDefinitionError(record_name, "local secondary indexes need a table hash key")

    for index_name, attribute_name in local_hash_claims:
        if attribute_name != table_hash:
            raise SchemaDefinitionError(
                record_name,
                f"local index '{index_name}' must be partitioned on the table hash key "
                f"'{table_hash}', not '{attribute_name}'",
            )

    for index in schema.local_secondary_indexes:
        index.add_key(KeySchemaElement(name=table_hash, key_type="HASH"))


def _validate(schema: TableSchema, record_name: str) -> None:
    _validate_key_schema(schema.key_schema, record_name, "table")
    if schema.hash_key is None:
        raise SchemaDefinitionError(record_name, "no field is annotated as the table hash key")

    for index in schema.global_secondary_indexes:
        _validate_key_schema(index.key_schema, record_name, f"index '{index.index_name}'")
        if index.hash_key is None:
            raise SchemaDefinitionError(
                record_name, f"global index '{index.index_name}' has no hash key"
            )

    for index in schema.local_secondary_indexes:
        _validate_key_schema(index.key_schema, record_name, f"index '{index.index_name}'")
        if index.range_key is None:
            raise SchemaDefinitionError(
                record_name, f"local index '{index.index_name}' has no range key"
            )
        if schema.range_key is None:
            raise SchemaDefinitionError(
                record_name,
                f"local index '{index.index_name}' needs a table with a range key",
            )


def _validate_key_schema(
    key_schema: list[KeySchemaElement], record_name: str, owner: str
) -> None:
    for key_type in ("HASH", "RANGE"):
        names = [element.name for element in key_schema if element.key_type == key_type]
        if len(names) > 1:
            raise SchemaDefinitionError(
                record_name, f"{owner} has more than one {key_type} key: {names}"
            )
