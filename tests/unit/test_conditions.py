"""
Unit tests for the conditions DSL module.

These tests verify:
1. Attr and KeyAttr builders produce DynCondition instances (not raw boto3)
2. Condition composition with &, |, ~ returns DynCondition
3. Raw boto3 conditions are accepted (passthrough support)
4. compile_expressions merges key condition and filter placeholders without collisions
5. Document paths compile into one placeholder per path element
"""

import pytest
from boto3.dynamodb.conditions import Attr as Boto3Attr
from boto3.dynamodb.conditions import ConditionBase as Boto3ConditionBase
from boto3.exceptions import DynamoDBOperationNotSupportedError

from dynamap.conditions import Attr, DynCondition, KeyAttr, compile_expressions, wrap_condition
from dynamap.serializer import DynamoSerializer


@pytest.mark.unit
class TestAttrBuilder:
    """Test the Attr class for building filter conditions."""

    def test_attr_creation(self):
        assert Attr("cca").name == "cca"

    @pytest.mark.parametrize(
        "build",
        [
            lambda a: a == 1,
            lambda a: a != 1,
            lambda a: a < 1,
            lambda a: a <= 1,
            lambda a: a > 1,
            lambda a: a >= 1,
            lambda a: a.exists(),
            lambda a: a.not_exists(),
            lambda a: a.begins_with("x"),
            lambda a: a.contains("x"),
            lambda a: a.between(1, 2),
            lambda a: a.is_in([1, 2]),
        ],
    )
    def test_operators_return_dyncondition(self, build):
        condition = build(Attr("rank"))
        assert isinstance(condition, DynCondition)
        assert isinstance(condition.raw, Boto3ConditionBase)


@pytest.mark.unit
class TestKeyAttrBuilder:
    @pytest.mark.parametrize(
        "build",
        [
            lambda k: k == 1,
            lambda k: k < 1,
            lambda k: k <= 1,
            lambda k: k > 1,
            lambda k: k >= 1,
            lambda k: k.begins_with("x"),
            lambda k: k.between(1, 2),
        ],
    )
    def test_operators_return_dyncondition(self, build):
        assert isinstance(build(KeyAttr("rank")), DynCondition)

    def test_key_attr_has_no_filter_only_operators(self):
        assert not hasattr(KeyAttr("rank"), "contains")
        assert not hasattr(KeyAttr("rank"), "not_exists")


@pytest.mark.unit
class TestDynConditionComposition:
    def test_and_or_not_return_dyncondition(self):
        first = Attr("a") == 1
        second = Attr("b") == 2

        assert isinstance(first & second, DynCondition)
        assert isinstance(first | second, DynCondition)
        assert isinstance(~first, DynCondition)

    def test_raw_condition_on_the_right(self):
        both = (Attr("b") == 2) & Boto3Attr("a").eq(1)
        either = (Attr("b") == 2) | Boto3Attr("a").eq(1)

        assert isinstance(both, DynCondition)
        assert isinstance(either, DynCondition)
        compiled = compile_expressions(DynamoSerializer(), filter_condition=both)
        assert compiled["FilterExpression"] == "(#n0 = :v0 AND #n1 = :v1)"
        assert compiled["ExpressionAttributeNames"] == {"#n0": "b", "#n1": "a"}

    def test_raw_condition_on_the_left_is_rejected_by_boto3(self):
        with pytest.raises(DynamoDBOperationNotSupportedError):
            Boto3Attr("a").eq(1) & (Attr("b") == 2)
        with pytest.raises(DynamoDBOperationNotSupportedError):
            Boto3Attr("a").eq(1) | (Attr("b") == 2)

    def test_wrap_condition(self):
        wrapped = wrap_condition(Boto3Attr("a").eq(1))
        assert isinstance(wrapped, DynCondition)
        assert wrap_condition(wrapped) is wrapped

    def test_wrap_condition_rejects_other_types(self):
        with pytest.raises(TypeError, match="Expected DynCondition"):
            wrap_condition("a = 1")  # type: ignore[arg-type]


@pytest.mark.unit
class TestCompileExpressions:
    def setup_method(self):
        self.serializer = DynamoSerializer()

    def test_filter_only(self):
        result = compile_expressions(self.serializer, filter_condition=Attr("cca") == "x")

        assert result == {
            "FilterExpression": "#n0 = :v0",
            "ExpressionAttributeNames": {"#n0": "cca"},
            "ExpressionAttributeValues": {":v0": {"S": "x"}},
        }

    def test_key_condition_only(self):
        result = compile_expressions(self.serializer, key_condition=KeyAttr("dId") == "D-1")

        assert result["KeyConditionExpression"] == "#n0 = :v0"
        assert result["ExpressionAttributeNames"] == {"#n0": "dId"}
        assert result["ExpressionAttributeValues"] == {":v0": {"S": "D-1"}}
        assert "FilterExpression" not in result

    def test_key_condition_and_filter_do_not_collide(self):
        result = compile_expressions(
            self.serializer,
            key_condition=KeyAttr("dId") == "D-1",
            filter_condition=Attr("rank") > 2,
        )

        assert result["KeyConditionExpression"] == "#n0 = :v0"
        assert result["FilterExpression"] == "#n1 > :v1"
        assert result["ExpressionAttributeNames"] == {"#n0": "dId", "#n1": "rank"}
        assert result["ExpressionAttributeValues"] == {":v0": {"S": "D-1"}, ":v1": {"N": "2"}}

    def test_document_path(self):
        result = compile_expressions(self.serializer, filter_condition=Attr("aac[0].bba") == "x")

        assert result["FilterExpression"] == "#n0[0].#n1 = :v0"
        assert result["ExpressionAttributeNames"] == {"#n0": "aac", "#n1": "bba"}

    def test_no_values_for_existence_checks(self):
        result = compile_expressions(self.serializer, filter_condition=Attr("deleted").exists())

        assert result["FilterExpression"] == "attribute_exists(#n0)"
        assert "ExpressionAttributeValues" not in result

    def test_nothing_to_compile(self):
        assert compile_expressions(self.serializer) == {}

    def test_passthrough_raw_boto3(self):
        result = compile_expressions(self.serializer, filter_condition=Boto3Attr("cca").eq(1.5))

        assert result["ExpressionAttributeValues"] == {":v0": {"N": "1.5"}}
