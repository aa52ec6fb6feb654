from typing import Any, Literal

from pydantic import Field

ROLES_FLAG = "_dynamap_roles"

HASH = "hash"
RANGE = "range"

KeyRole = Literal["hash", "range"]


def Attribute(name: str, roles: str = "", default: Any = ..., **kwargs: Any) -> Any:
    """
    Declares a record field stored under attribute `name`, optionally with key roles.

    Usage:
        email: str = Attribute("email")
        d_id: str = Attribute("dId", "global_secondary_index(dId-index:hash)")
        sort: int = Attribute("sort", "range,local_secondary_index(by-sort:range)")

    Architectural Note:
    -------------------
    This function wraps the standard Pydantic Field. The attribute name becomes
    the field alias (so model_dump(by_alias=True) produces the stored names) and
    the raw, un-parsed role string is injected into 'json_schema_extra' under a
    hidden flag. The schema builder parses it only when a table is provisioned.

    Args:
        name: Attribute name in DynamoDB
        roles: Comma separated role tokens: hash, range,
               global_secondary_index(<index>:hash|range),
               local_secondary_index(<index>:hash|range)
        default: Default value for the field
        **kwargs: Additional Pydantic Field arguments
    """
    json_schema_extra = kwargs.pop("json_schema_extra", {})
    json_schema_extra[ROLES_FLAG] = roles

    if "default_factory" in kwargs:
        return Field(alias=name, json_schema_extra=json_schema_extra, **kwargs)

    # The '...' (Ellipsis) is Pydantic's way of saying "Required field" if no default is provided.
    return Field(default, alias=name, json_schema_extra=json_schema_extra, **kwargs)


def roles(*tokens: str) -> str:
    """Joins role tokens into an annotation string: roles(HASH, gsi("x", RANGE))."""
    return ",".join(tokens)


def gsi(index_name: str, role: KeyRole) -> str:
    """Builds a global secondary index role token."""
    return f"global_secondary_index({index_name}:{role})"


def lsi(index_name: str, role: KeyRole) -> str:
    """Builds a local secondary index role token."""
    return f"local_secondary_index({index_name}:{role})"
