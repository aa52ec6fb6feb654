"""
Unit tests for the soft-delete policy helpers.
"""

import pytest
from pydantic import BaseModel

from dynamap.conditions import Attr, DynCondition, compile_expressions
from dynamap.serializer import DynamoSerializer
from dynamap.soft_delete import exclude_deleted, is_live, is_present, not_deleted
from tests.records import Ccc


class Plain(BaseModel):
    name: str = ""


@pytest.mark.unit
class TestNotDeleted:
    def test_compiles_missing_or_zero_marker(self):
        result = compile_expressions(DynamoSerializer(), filter_condition=not_deleted())

        expression = result["FilterExpression"]
        assert "attribute_not_exists" in expression
        assert " OR " in expression
        assert set(result["ExpressionAttributeNames"].values()) == {"deleted"}
        assert result["ExpressionAttributeValues"] == {":v0": {"N": "0"}}

    def test_exclude_deleted_without_condition(self):
        assert isinstance(exclude_deleted(None), DynCondition)

    def test_exclude_deleted_ands_onto_condition(self):
        result = compile_expressions(
            DynamoSerializer(), filter_condition=exclude_deleted(Attr("dId") == "D-1")
        )

        assert " AND " in result["FilterExpression"]
        assert "dId" in result["ExpressionAttributeNames"].values()


@pytest.mark.unit
class TestIsLive:
    @pytest.mark.parametrize(
        "item",
        [{}, {"deleted": {"N": "0"}}, {"deleted": {"NULL": True}}, {"deleted": {"N": "0.0"}}],
    )
    def test_live(self, item):
        assert is_live(item)

    def test_stamped_marker_is_not_live(self):
        assert not is_live({"deleted": {"N": "1700000000"}})


@pytest.mark.unit
class TestIsPresent:
    def test_missing_item(self):
        assert not is_present(None, Ccc)
        assert not is_present({}, Ccc)

    def test_base_record_needs_identity(self):
        assert not is_present({"cca": {"S": "x"}}, Ccc)
        assert not is_present({"id": {"S": ""}}, Ccc)
        assert is_present({"id": {"S": "c-1"}}, Ccc)

    def test_soft_deleted_item_is_absent(self):
        assert not is_present({"id": {"S": "c-1"}, "deleted": {"N": "5"}}, Ccc)

    def test_plain_record_needs_no_identity(self):
        assert is_present({"name": {"S": "x"}}, Plain)
