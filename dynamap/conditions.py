"""
Condition DSL for dynamap.

This module provides a DynCondition wrapper plus Attr and KeyAttr builders that
create key conditions and filter expressions for Query and Scan requests.
Expression building is delegated to boto3's ConditionExpressionBuilder, while
boto3 internals stay hidden from the public API.

Design:
- DynCondition wraps boto3 ConditionBase, stored in .raw attribute
- Attr wraps boto3 Attr (filters), KeyAttr wraps boto3 Key (key conditions)
- Operators &, |, ~ on DynCondition produce new DynCondition instances; a
  raw boto3 condition can only be combined on the right-hand side
- At compilation time, key condition and filter share one builder so their
  placeholders never collide

Attribute names may be document paths: Attr("aac[0].bba") == "x".

Usage:
    from dynamap import Attr, KeyAttr

    params = RequestParams(
        key_condition=KeyAttr("dId") == "D-1",
        filter=(Attr("age") >= 18) & (Attr("status") == "active"),
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Union

from boto3.dynamodb.conditions import And as Boto3And
from boto3.dynamodb.conditions import Attr as Boto3Attr
from boto3.dynamodb.conditions import ConditionBase as Boto3ConditionBase
from boto3.dynamodb.conditions import ConditionExpressionBuilder
from boto3.dynamodb.conditions import Key as Boto3Key
from boto3.dynamodb.conditions import Not as Boto3Not
from boto3.dynamodb.conditions import Or as Boto3Or

if TYPE_CHECKING:
    from .serializer import DynamoSerializer

# Type alias for condition parameter (DynCondition or raw boto3 for passthrough)
Condition = Union["DynCondition", Boto3ConditionBase]


class DynCondition:
    """
    dynamap-owned wrapper for DynamoDB condition expressions.

    Wraps a boto3 condition object (stored in .raw) and provides Python
    operators for composing conditions.

    Users typically don't instantiate this directly - use Attr() or KeyAttr().
    """

    __slots__ = ("raw",)

    def __init__(self, raw: Boto3ConditionBase) -> None:
        self.raw = raw

    def __and__(self, other: Condition) -> DynCondition:
        """
        Combine conditions with AND.

        Usage:
            condition = (Attr("age") >= 18) & (Attr("active") == True)
        """
        return DynCondition(Boto3And(self.raw, _extract_raw(other)))

    def __or__(self, other: Condition) -> DynCondition:
        """Combine conditions with OR."""
        return DynCondition(Boto3Or(self.raw, _extract_raw(other)))

    def __invert__(self) -> DynCondition:
        """Negate a condition with NOT."""
        return DynCondition(Boto3Not(self.raw))

    def __repr__(self) -> str:
        return f"DynCondition({self.raw!r})"


class Attr:
    """
    Represents a DynamoDB attribute (or document path) in a filter condition.

    Usage:
        Attr("age") >= 18
        Attr("status") == "active"
        Attr("aac[0].bba") == "x"
        Attr("deleted").not_exists()
        Attr("name").begins_with("A")
        Attr("tags").contains("premium")
        Attr("age").between(18, 65)
        Attr("status").is_in(["active", "pending"])
    """

    __slots__ = ("name", "_boto3_attr")

    def __init__(self, name: str) -> None:
        self.name = name
        self._boto3_attr = Boto3Attr(name)

    def __eq__(self, value: Any) -> DynCondition:  # type: ignore[override]
        return DynCondition(self._boto3_attr.eq(value))

    def __ne__(self, value: Any) -> DynCondition:  # type: ignore[override]
        return DynCondition(self._boto3_attr.ne(value))

    def __lt__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_attr.lt(value))

    def __le__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_attr.lte(value))

    def __gt__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_attr.gt(value))

    def __ge__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_attr.gte(value))

    def exists(self) -> DynCondition:
        return DynCondition(self._boto3_attr.exists())

    def not_exists(self) -> DynCondition:
        return DynCondition(self._boto3_attr.not_exists())

    def begins_with(self, prefix: str) -> DynCondition:
        return DynCondition(self._boto3_attr.begins_with(prefix))

    def contains(self, value: Any) -> DynCondition:
        """Substring match for strings, membership check for lists/sets."""
        return DynCondition(self._boto3_attr.contains(value))

    def between(self, low: Any, high: Any) -> DynCondition:
        """Inclusive on both ends."""
        return DynCondition(self._boto3_attr.between(low, high))

    def is_in(self, values: list[Any]) -> DynCondition:
        return DynCondition(self._boto3_attr.is_in(values))

    def __repr__(self) -> str:
        return f"Attr({self.name!r})"


class KeyAttr:
    """
    Represents a key attribute in a Query key condition.

    Only the operators DynamoDB allows on keys are offered: equality on the
    hash key, and comparisons, between and begins_with on the range key.

    Usage:
        (KeyAttr("dId") == "D-1") & KeyAttr("sort").between(1, 5)
    """

    __slots__ = ("name", "_boto3_key")

    def __init__(self, name: str) -> None:
        self.name = name
        self._boto3_key = Boto3Key(name)

    def __eq__(self, value: Any) -> DynCondition:  # type: ignore[override]
        return DynCondition(self._boto3_key.eq(value))

    def __lt__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_key.lt(value))

    def __le__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_key.lte(value))

    def __gt__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_key.gt(value))

    def __ge__(self, value: Any) -> DynCondition:
        return DynCondition(self._boto3_key.gte(value))

    def begins_with(self, prefix: str) -> DynCondition:
        return DynCondition(self._boto3_key.begins_with(prefix))

    def between(self, low: Any, high: Any) -> DynCondition:
        return DynCondition(self._boto3_key.between(low, high))

    def __repr__(self) -> str:
        return f"KeyAttr({self.name!r})"


def _extract_raw(condition: Condition) -> Boto3ConditionBase:
    """
    Extracts the boto3 condition from either DynCondition or raw boto3 condition.

    Raises:
        TypeError: If condition is neither DynCondition nor boto3 ConditionBase
    """
    if isinstance(condition, DynCondition):
        return condition.raw
    elif isinstance(condition, Boto3ConditionBase):
        return condition
    else:
        raise TypeError(
            f"Expected DynCondition or boto3 ConditionBase, got {type(condition).__name__}"
        )


def wrap_condition(condition: Condition) -> DynCondition:
    """Ensures a condition is wrapped in DynCondition."""
    if isinstance(condition, DynCondition):
        return condition
    return DynCondition(_extract_raw(condition))


def compile_expressions(
    serializer: DynamoSerializer,
    key_condition: Condition | None = None,
    filter_condition: Condition | None = None,
) -> dict[str, Any]:
    """
    Compiles a key condition and/or a filter into DynamoDB request parameters.

    Both go through the same boto3 ConditionExpressionBuilder, whose placeholder
    counters keep running between calls, so names and values from the two
    expressions merge without collisions.

    Returns:
        Dict with KeyConditionExpression and/or FilterExpression, and
        ExpressionAttributeNames / ExpressionAttributeValues when non-empty
    """
    builder = ConditionExpressionBuilder()
    result: dict[str, Any] = {}
    names: dict[str, str] = {}
    values: dict[str, Any] = {}

    parts = (
        ("KeyConditionExpression", key_condition, True),
        ("FilterExpression", filter_condition, False),
    )
    for param, condition, is_key_condition in parts:
        if condition is None:
            continue
        expression = builder.build_expression(
            _extract_raw(condition), is_key_condition=is_key_condition
        )
        result[param] = expression.condition_expression
        names.update(expression.attribute_name_placeholders)
        values.update(expression.attribute_value_placeholders)

    if names:
        result["ExpressionAttributeNames"] = names
    if values:
        # Values need the low-level format ({"S": "..."}, {"N": "..."}, etc.)
        result["ExpressionAttributeValues"] = {
            placeholder: serializer.to_dynamo_value(value) for placeholder, value in values.items()
        }
    return result
