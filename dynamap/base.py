from collections.abc import Iterable, Mapping
from typing import Any, Generic, TypeVar, get_args, get_origin

from pydantic import BaseModel, ConfigDict

from .exceptions import NilElementError, NotPointerError
from .fields import HASH, Attribute

ID_ATTRIBUTE = "id"
CREATED_ATTRIBUTE = "created"
UPDATED_ATTRIBUTE = "updated"
DELETED_ATTRIBUTE = "deleted"

# Generic TypeVar to allow Many(User) to carry the correct record type
T = TypeVar("T", bound=BaseModel)


class Model(BaseModel):
    """
    The identity and timestamp block records inherit from.

    Usage:
        class User(Model):
            email: str = Attribute("email", gsi("email-index", HASH))

    Architectural Note:
    -------------------
    Records compose this block by inheritance. The schema walker asks the record
    for its block through base_fields() and always processes it before the
    record's own fields, so the identity registers as the primary hash key first.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Attribute(ID_ATTRIBUTE, HASH, default=None)
    created: int = Attribute(CREATED_ATTRIBUTE, default=0)
    updated: int = Attribute(UPDATED_ATTRIBUTE, default=0)
    deleted: int = Attribute(DELETED_ATTRIBUTE, default=0)

    @classmethod
    def base_fields(cls) -> type["Model"]:
        """Returns the type holding the identity/timestamp fields."""
        return Model

    @property
    def is_deleted(self) -> bool:
        return self.deleted != 0


class Many(list[T], Generic[T]):
    """
    A collection destination that knows its record type.

    A plain empty list cannot tell which table to read, so query/scan/bind
    destinations that may start empty are written as Many(User).

    Usage:
        users = Many(User)
        access.scan(users, RequestParams(filter=Attr("age") >= 18))
        for user in users:
            print(user.email)
    """

    def __init__(self, record_type: type[T] | None, items: Iterable[T] = ()) -> None:
        super().__init__(items)
        self.record_type = record_type

    def __repr__(self) -> str:
        name = self.record_type.__name__ if self.record_type else None
        return f"Many({name}, {list.__repr__(self)})"


def unwrap_record_type(target: Any) -> tuple[type[BaseModel], bool]:
    """
    Strips collection layers from a destination or type and returns the record type.

    Accepts record instances and classes, Many instances, non-empty lists of
    records, and list[...] / Many[...] types, nested to any depth.

    Returns:
        (record_type, is_collection) where is_collection is True if any
        collection layer was stripped.

    Raises:
        NilElementError: If the target references nothing (None, [], Many(None))
        NotPointerError: If the target is not record-shaped
    """
    is_collection = False
    current = target

    while True:
        if current is None:
            raise NilElementError()

        if isinstance(current, Many):
            is_collection = True
            current = current.record_type
            continue

        if isinstance(current, list):
            if not current:
                raise NilElementError(
                    "empty list does not reference a record type, use Many(RecordType)"
                )
            is_collection = True
            current = current[0]
            continue

        # Checked before the class test: list[X] passes isinstance(..., type) on some versions
        origin = get_origin(current)
        if origin is not None:
            if not (isinstance(origin, type) and issubclass(origin, list)):
                raise NotPointerError(target)
            args = get_args(current)
            if not args:
                raise NilElementError()
            is_collection = True
            current = args[0]
            continue

        if isinstance(current, BaseModel):
            return type(current), is_collection

        if isinstance(current, type) and issubclass(current, BaseModel):
            return current, is_collection

        raise NotPointerError(target)


def resolve_table(destination: Any, prefix: str = "") -> tuple[str, bool]:
    """
    Maps a destination to its table name and shape.

    Table name = prefix + unqualified record class name.

    Usage:
        resolve_table(Many(User), "prod_")  # ("prod_User", True)
        resolve_table(user)                 # ("User", False)
    """
    record_type, is_collection = unwrap_record_type(destination)
    return f"{prefix}{record_type.__name__}", is_collection


def is_base_record(record_type: type[BaseModel]) -> bool:
    """True if the record type carries the identity/timestamp block."""
    return issubclass(record_type, Model)


def assign(record: BaseModel, data: Mapping[str, Any]) -> None:
    """
    Binds plain attribute data into an existing record, in place.

    The data is validated into a fresh instance first, so a validation error
    leaves the caller's record untouched.
    """
    fresh = type(record).model_validate(data)
    for name in type(record).model_fields:
        setattr(record, name, getattr(fresh, name))


def ensure_bindable(destination: Any) -> tuple[type[BaseModel], bool]:
    """
    Like unwrap_record_type(), but also requires a value results can be bound into.

    Raises:
        NotPointerError: If the destination is a type (User, list[User]) rather than a value
    """
    record_type, is_collection = unwrap_record_type(destination)
    expected = list if is_collection else BaseModel
    if not isinstance(destination, expected):
        raise NotPointerError(destination)
    return record_type, is_collection


def bind_rows(destination: Any, rows: list[dict[str, Any]]) -> None:
    """
    Binds plain attribute rows into a destination.

    Collection destinations have their contents replaced with every row;
    single records receive the first row, and are left untouched if there is none.
    """
    record_type, is_collection = ensure_bindable(destination)

    if is_collection:
        destination[:] = [record_type.model_validate(row) for row in rows]
    elif rows:
        assign(destination, rows[0])
