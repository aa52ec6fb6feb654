from .access import DynamoAccess
from .base import Many, Model
from .conditions import Attr, Condition, DynCondition, KeyAttr
from .config import AccessConfig
from .exceptions import (
    DynamapError,
    DynamoSerializationError,
    NilElementError,
    NotFoundError,
    NotPointerError,
    SchemaDefinitionError,
    SliceProhibitedError,
    UnsupportedTypeError,
)
from .fields import HASH, RANGE, Attribute, gsi, lsi, roles
from .migration import read_dump, write_dump
from .params import PageResult, RequestParams
from .schema import TableSchema, build_table_schema
from .soft_delete import exclude_deleted, not_deleted

__all__ = [
    "DynamoAccess",
    "AccessConfig",
    "Model",
    "Many",
    # Field declarations
    "Attribute",
    "HASH",
    "RANGE",
    "roles",
    "gsi",
    "lsi",
    # Schema
    "TableSchema",
    "build_table_schema",
    # Requests
    "RequestParams",
    "PageResult",
    # Conditions DSL
    "Attr",  # Filter conditions
    "KeyAttr",  # Key conditions
    "DynCondition",  # Wrapper type (rarely used directly)
    "Condition",  # Type alias for type hints
    "not_deleted",
    "exclude_deleted",
    # Dumps
    "write_dump",
    "read_dump",
    # Exceptions
    "DynamapError",
    "NotPointerError",
    "NilElementError",
    "UnsupportedTypeError",
    "SliceProhibitedError",
    "NotFoundError",
    "SchemaDefinitionError",
    "DynamoSerializationError",
]
