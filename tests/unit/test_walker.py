"""
Unit tests for the type descriptor walker.
"""

import pytest
from pydantic import BaseModel

from dynamap import HASH, Attribute, Many, Model
from dynamap.exceptions import NilElementError, NotPointerError
from dynamap.walker import walk_fields
from tests.records import Bbb, Ccc


class Plain(BaseModel):
    key: str = Attribute("key", HASH)
    note: str = ""


@pytest.mark.unit
class TestWalkFields:
    def test_base_block_comes_first(self) -> None:
        names = [d.attribute_name for d in walk_fields(Ccc)]
        assert names == ["id", "created", "updated", "deleted", "cca", "dId", "rank"]

    def test_base_block_first_even_when_redeclared(self) -> None:
        class Reordered(Model):
            cca: str = Attribute("cca", default="")
            id: str | None = Attribute("id", HASH, default=None)

        names = [d.attribute_name for d in walk_fields(Reordered)]
        assert names[:4] == ["id", "created", "updated", "deleted"]

    def test_descriptor_carries_roles_and_annotation(self) -> None:
        d_id = next(d for d in walk_fields(Ccc) if d.attribute_name == "dId")

        assert d_id.name == "d_id"
        assert d_id.annotation is str
        assert d_id.roles == "global_secondary_index(dId-index:hash)"

    def test_fields_without_attribute_name_are_skipped(self) -> None:
        assert [d.name for d in walk_fields(Plain)] == ["key"]

    def test_plain_records_have_no_base_block(self) -> None:
        assert walk_fields(Plain)[0].attribute_name == "key"

    @pytest.mark.parametrize(
        "target",
        [Bbb, Bbb(), [Bbb()], Many(Bbb), list[Bbb], Many[Bbb], list[list[Bbb]]],
    )
    def test_accepts_every_record_shape(self, target) -> None:
        assert walk_fields(target)[0].attribute_name == "id"

    def test_rejects_non_records(self) -> None:
        with pytest.raises(NotPointerError):
            walk_fields(42)

    def test_rejects_nil(self) -> None:
        with pytest.raises(NilElementError):
            walk_fields(None)
