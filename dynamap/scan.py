"""
DynamoDB Scan requests.

Turns RequestParams into a single low-level Scan call. Scans take no key
condition and no sort direction; everything else matches QueryRequest.
"""

from collections.abc import Iterator
from typing import Any

from ._logging import log_context, logger
from .conditions import compile_expressions
from .exceptions import store_call
from .params import PageResult, RequestParams
from .serializer import DynamoSerializer


class ScanRequest:
    """
    One Scan of a table or one of its indexes.

    Usage:
        request = ScanRequest("Aaa", RequestParams(filter=Attr("aac[0].bba") == "x"), serializer)
        rows, page = request.execute(client)
    """

    def __init__(
        self, table_name: str, params: RequestParams, serializer: DynamoSerializer
    ) -> None:
        if params.key_condition is not None:
            raise ValueError("Scan does not take a key condition, use a filter instead")

        self.table_name = table_name
        self.params = params
        self.serializer = serializer

    def to_kwargs(self) -> dict[str, Any]:
        """Builds the boto3 client.scan() arguments."""
        params = self.params
        kwargs: dict[str, Any] = {
            "TableName": self.table_name,
            **compile_expressions(self.serializer, filter_condition=params.filter),
        }

        if params.index_name:
            kwargs["IndexName"] = params.index_name
        if params.limit:
            kwargs["Limit"] = params.limit
        if params.start_key:
            kwargs["ExclusiveStartKey"] = params.start_key

        return kwargs

    def execute(self, client: Any) -> tuple[list[dict[str, Any]], PageResult]:
        """Sends the request (one page, no paginator) and deserializes the rows."""
        kwargs = self.to_kwargs()

        logger.info(
            "Executing scan page",
            extra=log_context(
                self.table_name,
                "scan",
                index=self.params.index_name,
                has_filter=self.params.filter is not None,
                limit=self.params.limit,
                has_cursor=self.params.start_key is not None,
            ),
        )

        with store_call(self.table_name, "scan"):
            response = client.scan(**kwargs)

        rows = [self.serializer.from_dynamo(item) for item in response.get("Items", [])]
        return rows, PageResult.from_response(response)

    def iter_raw_items(self, client: Any) -> Iterator[dict[str, Any]]:
        """
        Yields every raw item of the scan, following LastEvaluatedKey.

        Items are left in DynamoDB JSON format. Used by table dumps.
        """
        kwargs = self.to_kwargs()

        logger.info(
            "Starting scan iteration",
            extra=log_context(self.table_name, "scan", index=self.params.index_name),
        )

        with store_call(self.table_name, "scan"):
            paginator = client.get_paginator("scan")
            for page in paginator.paginate(**kwargs):
                yield from page.get("Items", [])
