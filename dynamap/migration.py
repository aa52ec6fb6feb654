"""
Table dump and restore helpers.

A dump is a JSON array of raw items in DynamoDB's typed-value format
({"id": {"S": "..."}, "created": {"N": "1700000000"}, ...}), with binary
values base64 encoded as on the DynamoDB wire. Binding a dump bypasses the
identity and soft-delete logic of the engine: rows are restored as they were.
"""

import base64
import json
from pathlib import Path
from typing import Any

from ._logging import logger


def items_to_json(items: list[dict[str, Any]]) -> str:
    """Serializes raw DynamoDB items to the dump format."""
    return json.dumps([_encode_item(item) for item in items])


def items_from_json(data: str | bytes) -> list[dict[str, Any]]:
    """
    Parses a dump back into raw DynamoDB items.

    Raises:
        ValueError: If the payload is not a JSON array of objects
    """
    payload = json.loads(data)
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise ValueError("dump payload must be a JSON array of item objects")
    return [_decode_item(item) for item in payload]


def write_dump(path: str | Path, data: str) -> None:
    """Writes a dump to `path` as UTF-8 text, replacing any existing file."""
    Path(path).write_text(data, encoding="utf-8")
    logger.info("Dump written", extra={"path": str(path), "bytes": len(data)})


def read_dump(path: str | Path) -> str:
    """Reads a dump written by write_dump()."""
    return Path(path).read_text(encoding="utf-8")


def _encode_item(item: dict[str, Any]) -> dict[str, Any]:
    return {name: _encode_value(value) for name, value in item.items()}


def _decode_item(item: dict[str, Any]) -> dict[str, Any]:
    return {name: _decode_value(value) for name, value in item.items()}


def _encode_value(value: dict[str, Any]) -> dict[str, Any]:
    if "B" in value:
        return {"B": base64.b64encode(bytes(value["B"])).decode("ascii")}
    if "BS" in value:
        return {"BS": [base64.b64encode(bytes(v)).decode("ascii") for v in value["BS"]]}
    if "L" in value:
        return {"L": [_encode_value(v) for v in value["L"]]}
    if "M" in value:
        return {"M": _encode_item(value["M"])}
    return value


def _decode_value(value: dict[str, Any]) -> dict[str, Any]:
    if "B" in value:
        return {"B": base64.b64decode(value["B"])}
    if "BS" in value:
        return {"BS": [base64.b64decode(v) for v in value["BS"]]}
    if "L" in value:
        return {"L": [_decode_value(v) for v in value["L"]]}
    if "M" in value:
        return {"M": _decode_item(value["M"])}
    return value
