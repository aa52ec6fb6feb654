"""
Type descriptor walker.

Reflects over a record type and yields its annotated fields in the order the
schema builder consumes them: the identity/timestamp block first, then the
record's own fields in declaration order.
"""

from dataclasses import dataclass
from typing import Any

from pydantic.fields import FieldInfo

from .base import is_base_record, unwrap_record_type
from .fields import ROLES_FLAG


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One annotated field of a record type.

    Attributes:
        name: Python attribute name on the record
        attribute_name: Serialization name (the attribute name in DynamoDB)
        annotation: Declared type, used to infer the scalar attribute type
        roles: Raw, un-parsed role string ("" when the field has no key role)
    """

    name: str
    attribute_name: str
    annotation: Any
    roles: str


def walk_fields(target: Any) -> list[FieldDescriptor]:
    """
    Returns the annotated fields of the record type behind `target`.

    `target` may be a record class or instance, a collection of records, or a
    list[...] / Many[...] type. Fields without an explicit serialization name
    (no alias) are skipped.

    Raises:
        NotPointerError: If the target is not record-shaped
        NilElementError: If the target references nothing
    """
    record_type, _ = unwrap_record_type(target)
    model_fields: dict[str, FieldInfo] = record_type.model_fields

    ordered: list[str] = []
    if is_base_record(record_type):
        # Overrides on the record win, but the block keeps its leading position
        ordered.extend(name for name in record_type.base_fields().model_fields)
    ordered.extend(name for name in model_fields if name not in ordered)

    descriptors = []
    for name in ordered:
        descriptor = _describe(name, model_fields[name])
        if descriptor is not None:
            descriptors.append(descriptor)
    return descriptors


def _describe(name: str, field_info: FieldInfo) -> FieldDescriptor | None:
    if not field_info.alias:
        return None

    extra = field_info.json_schema_extra
    roles = extra.get(ROLES_FLAG, "") if isinstance(extra, dict) else ""

    return FieldDescriptor(
        name=name,
        attribute_name=field_info.alias,
        annotation=field_info.annotation,
        roles=str(roles or ""),
    )
