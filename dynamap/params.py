"""
Request parameters and page results for Query and Scan.

The pagination cursor is the raw LastEvaluatedKey of the previous page,
handed back untouched. None means "first page"; there is no shared sentinel.
"""

from dataclasses import dataclass
from typing import Any

from .conditions import Condition


@dataclass(frozen=True)
class RequestParams:
    """
    Parameters of a single Query or Scan request.

    Attributes:
        key_condition: KeyAttr condition on the hash (and range) key. Query only.
        filter: Attr condition applied after the key lookup / scan
        index_name: Secondary index to read instead of the table
        limit: Maximum number of items to evaluate
        start_key: LastEvaluatedKey from the previous PageResult
        scan_forward: Ascending by range key when True (default). Query only.
    """

    key_condition: Condition | None = None
    filter: Condition | None = None
    index_name: str | None = None
    limit: int | None = None
    start_key: dict[str, Any] | None = None
    scan_forward: bool = True


@dataclass
class PageResult:
    """
    Outcome of a single Query or Scan request.

    The rows themselves are bound into the caller's destination.

    Attributes:
        count: Number of items returned in this page
        scanned_count: Number of items evaluated before the filter
        last_evaluated_key: Cursor for the next page (None if no more pages)
    """

    count: int
    scanned_count: int
    last_evaluated_key: dict[str, Any] | None

    @property
    def has_more(self) -> bool:
        """Returns True if there are more pages available."""
        return self.last_evaluated_key is not None

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "PageResult":
        """Reads the paging fields of a raw Query/Scan response."""
        count = len(response.get("Items", []))
        return cls(
            count=response.get("Count", count),
            scanned_count=response.get("ScannedCount", count),
            last_evaluated_key=response.get("LastEvaluatedKey"),
        )
