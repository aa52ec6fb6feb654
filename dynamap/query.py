"""
DynamoDB Query requests.

Turns RequestParams into a single low-level Query call and hands back the
deserialized rows with the page metadata.
"""

from typing import Any

from ._logging import log_context, logger
from .conditions import compile_expressions
from .exceptions import store_call
from .params import PageResult, RequestParams
from .serializer import DynamoSerializer


class QueryRequest:
    """
    One Query against a table or one of its indexes.

    Usage:
        request = QueryRequest("Ccc", RequestParams(key_condition=KeyAttr("dId") == "D-1"), serializer)
        rows, page = request.execute(client)
    """

    def __init__(
        self, table_name: str, params: RequestParams, serializer: DynamoSerializer
    ) -> None:
        if params.key_condition is None:
            raise ValueError("Query requires a key condition, use scan() to read without one")

        self.table_name = table_name
        self.params = params
        self.serializer = serializer

    def to_kwargs(self) -> dict[str, Any]:
        """Builds the boto3 client.query() arguments."""
        params = self.params
        kwargs: dict[str, Any] = {
            "TableName": self.table_name,
            "ScanIndexForward": params.scan_forward,
            **compile_expressions(self.serializer, params.key_condition, params.filter),
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
            "Executing query page",
            extra=log_context(
                self.table_name,
                "query",
                index=self.params.index_name,
                has_filter=self.params.filter is not None,
                limit=self.params.limit,
                scan_forward=self.params.scan_forward,
                has_cursor=self.params.start_key is not None,
            ),
        )
        logger.debug(
            "Query expressions",
            extra=log_context(
                self.table_name,
                "query",
                key_condition_expression=kwargs.get("KeyConditionExpression"),
                filter_expression=kwargs.get("FilterExpression"),
            ),
        )

        with store_call(self.table_name, "query"):
            response = client.query(**kwargs)

        rows = [self.serializer.from_dynamo(item) for item in response.get("Items", [])]
        return rows, PageResult.from_response(response)
