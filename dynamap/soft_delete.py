"""
Soft-delete policy.

A record is soft-deleted when its deletion marker is non-zero. Reads by key
treat such records exactly like missing ones; queries and scans exclude them
only when the caller composes not_deleted() into the filter.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel

from .base import DELETED_ATTRIBUTE, ID_ATTRIBUTE, is_base_record
from .conditions import Attr, Condition, DynCondition, wrap_condition


def not_deleted() -> DynCondition:
    """
    Filter condition matching live records.

    A missing marker counts as live, so records written before the marker
    existed are not dropped.

    Usage:
        RequestParams(filter=(Attr("dId") == "D-1") & not_deleted())
    """
    return Attr(DELETED_ATTRIBUTE).not_exists() | (Attr(DELETED_ATTRIBUTE) == 0)


def exclude_deleted(condition: Condition | None) -> DynCondition:
    """ANDs not_deleted() onto an optional filter condition."""
    if condition is None:
        return not_deleted()
    return wrap_condition(condition) & not_deleted()


def is_live(item: dict[str, Any]) -> bool:
    """True if a raw DynamoDB item has no deletion marker or a zero one."""
    marker = item.get(DELETED_ATTRIBUTE)
    if not marker or "N" not in marker:
        return True
    try:
        return Decimal(marker["N"]) == 0
    except InvalidOperation:
        return False


def is_present(item: dict[str, Any] | None, record_type: type[BaseModel]) -> bool:
    """
    Existence check applied after a read by key.

    The item must exist, be live, and, for records carrying the identity
    block, have a non-empty identity.
    """
    if not item:
        return False
    if is_base_record(record_type):
        identity = item.get(ID_ATTRIBUTE, {})
        if not identity.get("S"):
            return False
    return is_live(item)
