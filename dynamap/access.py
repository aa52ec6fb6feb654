import time
import uuid
from collections.abc import Callable
from functools import lru_cache
from typing import Any, TypeVar

from botocore.exceptions import ClientError
from pydantic import BaseModel

from ._logging import log_context, logger, redact_key
from .base import (
    CREATED_ATTRIBUTE,
    DELETED_ATTRIBUTE,
    ID_ATTRIBUTE,
    UPDATED_ATTRIBUTE,
    assign,
    bind_rows,
    ensure_bindable,
    is_base_record,
    unwrap_record_type,
)
from .conditions import Attr, KeyAttr
from .config import AccessConfig
from .exceptions import DynamapError, NotFoundError, SliceProhibitedError, store_call
from .migration import items_from_json, items_to_json
from .params import PageResult, RequestParams
from .query import QueryRequest
from .scan import ScanRequest
from .schema import TableSchema, build_table_schema
from .serializer import DynamoSerializer
from .soft_delete import exclude_deleted as with_live_filter
from .soft_delete import is_present, not_deleted

# Generic TypeVar so create()/get_item() return the caller's record type
R = TypeVar("R", bound=BaseModel)


def unix_now() -> int:
    return int(time.time())


def new_id() -> str:
    return str(uuid.uuid4())


@lru_cache(maxsize=256)
def cached_schema(record_type: type[BaseModel]) -> TableSchema:
    """
    Schema of a record type with default throughput, built once per type.

    Used to look up indexes at query time; table creation always rebuilds
    with the engine's configured capacities. Treat the result as read-only.
    """
    return build_table_schema(record_type)


class DynamoAccess:
    """
    Maps pydantic records onto DynamoDB tables named after their types.

    Every operation takes a destination: a record instance (single-shaped) or
    a Many(RecordType) / non-empty list of records (collection-shaped). The
    table is prefix + record class name.

    Usage:
        access = DynamoAccess(client, AccessConfig(table_prefix="prod_"))
        access.create_tables(User)

        user = User(email="a@b.c")
        access.create(user)          # user.id, user.created, user.updated are set

        found = User()
        access.get_item(found, "id", user.id)

        users = Many(User)
        access.query_by_attribute(users, "email", "a@b.c")

    Architectural Note:
    -------------------
    The instance holds only read-only configuration (client, prefix, clock,
    id factory), so one instance can be shared across threads. Each operation
    issues its store request directly: no batching, no retries. Store errors
    (botocore ClientError) reach the caller unmodified.
    """

    def __init__(
        self,
        client: Any | None = None,
        config: AccessConfig | None = None,
        clock: Callable[[], int] = unix_now,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.config = config or AccessConfig()
        self.client = client if client is not None else self.config.create_client()
        self.serializer = DynamoSerializer()
        self.clock = clock
        self.id_factory = id_factory

    @property
    def table_prefix(self) -> str:
        return self.config.table_prefix

    def table_name(self, target: Any) -> str:
        """Returns the table a record, collection or record type maps to."""
        record_type, _ = unwrap_record_type(target)
        return self.config.table_name(record_type.__name__)

    # --- TABLE PROVISIONING ---

    def table_schema(self, target: Any) -> TableSchema:
        """Derives the schema of `target` with the configured throughput."""
        return build_table_schema(
            target,
            read_capacity=self.config.read_capacity,
            write_capacity=self.config.write_capacity,
        )

    def create_tables(self, *targets: Any, wait: bool = False) -> list[Exception]:
        """
        Creates one table per record type.

        Every target is attempted; failures are collected rather than raised so
        one existing table does not stop the others from being created.

        Args:
            targets: Record types (or records / collections of them)
            wait: Block until each created table is ACTIVE

        Returns:
            The errors encountered, empty when every table was created
        """
        errors: list[Exception] = []
        for target in targets:
            try:
                table_name = self.table_name(target)
                request = self.table_schema(target).to_request(table_name)
            except DynamapError as e:
                errors.append(e)
                continue

            logger.info(
                "Creating table",
                extra=log_context(
                    table_name,
                    "create_table",
                    key_schema=request["KeySchema"],
                    indexes=len(request.get("GlobalSecondaryIndexes", []))
                    + len(request.get("LocalSecondaryIndexes", [])),
                ),
            )
            try:
                with store_call(table_name, "create_table"):
                    self.client.create_table(**request)
                    if wait:
                        self.client.get_waiter("table_exists").wait(TableName=table_name)
            except ClientError as e:
                errors.append(e)
        return errors

    def drop_tables(self, *targets: Any, wait: bool = False) -> list[Exception]:
        """
        Deletes one table per record type, collecting failures like create_tables().
        """
        errors: list[Exception] = []
        for target in targets:
            try:
                table_name = self.table_name(target)
            except DynamapError as e:
                errors.append(e)
                continue

            logger.info("Dropping table", extra=log_context(table_name, "delete_table"))
            try:
                with store_call(table_name, "delete_table"):
                    self.client.delete_table(TableName=table_name)
                    if wait:
                        self.client.get_waiter("table_not_exists").wait(TableName=table_name)
            except ClientError as e:
                errors.append(e)
        return errors

    # --- WRITES ---

    def create(self, record: R) -> R:
        """
        Writes a new record.

        Records carrying the identity block get a fresh uuid4 id when theirs is
        empty, and `created` == `updated` == now. The write is an unconditional
        put (last writer wins). The written item is bound back into `record`.

        Returns:
            The same record instance, for chaining
        """
        table_name = self._single_table(record, "create")
        item = self._to_item(record)

        if is_base_record(type(record)):
            if not item.get(ID_ATTRIBUTE, {}).get("S"):
                item[ID_ATTRIBUTE] = {"S": self.id_factory()}
            now = {"N": str(self.clock())}
            item[CREATED_ATTRIBUTE] = now
            item[UPDATED_ATTRIBUTE] = now

        self._put(table_name, item, "create")
        assign(record, self.serializer.from_dynamo(item))
        return record

    def update(self, record: R) -> R:
        """
        Overwrites a record, stamping `updated` with the current time.

        `id` and `created` are written as they are on the record; keeping them
        intact is the caller's job.
        """
        table_name = self._single_table(record, "update")
        item = self._to_item(record)

        if is_base_record(type(record)):
            item[UPDATED_ATTRIBUTE] = {"N": str(self.clock())}

        self._put(table_name, item, "update")
        assign(record, self.serializer.from_dynamo(item))
        return record

    def delete(self, target: Any, key: str, value: Any) -> None:
        """
        Hard-deletes the item whose `key` attribute equals `value`.

        No existence check: deleting a missing key is not an error.

        Usage:
            access.delete(User, "id", user_id)
        """
        table_name = self.table_name(target)
        dynamo_key = self.serializer.to_dynamo({key: value})

        logger.info(
            "Deleting item",
            extra=log_context(table_name, "delete", key_hash=redact_key({key: value})),
        )
        with store_call(table_name, "delete"):
            self.client.delete_item(TableName=table_name, Key=dynamo_key)
        logger.info("Delete successful", extra=log_context(table_name, "delete"))

    def soft_delete(self, record: R, key: str, value: Any) -> R:
        """
        Marks the item as deleted by stamping `deleted` with the current time.

        Reads the current item with get_item() (NotFoundError if it is missing
        or already soft-deleted), then writes it back in full.

        Warning: read-modify-write, not atomic. An update() landing between the
        read and the write is overwritten.
        """
        table_name = self._single_table(record, "soft_delete")
        self.get_item(record, key, value)

        item = self._to_item(record)
        item[DELETED_ATTRIBUTE] = {"N": str(self.clock())}

        self._put(table_name, item, "soft_delete")
        assign(record, self.serializer.from_dynamo(item))
        return record

    def _to_item(self, record: BaseModel) -> dict[str, Any]:
        """
        Serializes a record for a put.

        Empty strings are not valid index key values, so secondary index key
        attributes holding "" are left out and the item stays out of that index.
        """
        item = self.serializer.to_item(record)
        schema = self._schema_for(type(record))
        if schema is None:
            return item

        table_keys = {element.name for element in schema.key_schema}
        for index in schema.indexes:
            for element in index.key_schema:
                name = element.name
                if name not in table_keys and item.get(name) == {"S": ""}:
                    del item[name]
        return item

    def _put(self, table_name: str, item: dict[str, Any], operation: str) -> None:
        logger.info(
            "Saving item",
            extra=log_context(
                table_name, operation, id_hash=redact_key(str(item.get(ID_ATTRIBUTE, {})))
            ),
        )
        with store_call(table_name, operation):
            self.client.put_item(TableName=table_name, Item=item)
        logger.info("Save successful", extra=log_context(table_name, operation))

    # --- READS ---

    def get_item(self, record: R, key: str, value: Any) -> R:
        """
        Fetches the item whose `key` attribute equals `value` into `record`.

        Raises:
            SliceProhibitedError: If `record` is a collection
            NotFoundError: If the item is missing, has no identity, or is
                soft-deleted. `record` is left untouched in that case.
        """
        table_name = self._single_table(record, "get_item")
        key_dict = {key: value}
        dynamo_key = self.serializer.to_dynamo(key_dict)

        logger.debug(
            "Fetching item",
            extra=log_context(table_name, "get_item", key_hash=redact_key(key_dict)),
        )
        with store_call(table_name, "get_item"):
            response = self.client.get_item(TableName=table_name, Key=dynamo_key)

        item = response.get("Item")
        if not is_present(item, type(record)):
            logger.info(
                "Item not found",
                extra=log_context(table_name, "get_item", key_hash=redact_key(key_dict)),
            )
            raise NotFoundError(table_name, key_dict)

        logger.info(
            "Item found", extra=log_context(table_name, "get_item", key_hash=redact_key(key_dict))
        )
        assign(record, self.serializer.from_dynamo(item))
        return record

    def query(self, destination: Any, params: RequestParams) -> PageResult:
        """
        Runs one Query page and binds the rows into `destination`.

        Collection destinations receive every row; a single record receives the
        first row, if any. Soft-deleted rows are only excluded if the filter
        says so (see soft_delete.not_deleted()).

        Returns:
            PageResult with the cursor for the next page
        """
        ensure_bindable(destination)
        table_name = self.table_name(destination)

        rows, page = QueryRequest(table_name, params, self.serializer).execute(self.client)
        bind_rows(destination, rows)
        return page

    def scan(self, destination: Any, params: RequestParams | None = None) -> PageResult:
        """Runs one Scan page and binds the rows into `destination`, like query()."""
        ensure_bindable(destination)
        table_name = self.table_name(destination)

        rows, page = ScanRequest(table_name, params or RequestParams(), self.serializer).execute(
            self.client
        )
        bind_rows(destination, rows)
        return page

    def query_by_attribute(
        self,
        destination: Any,
        key: str,
        value: Any,
        index_name: str | None = None,
        exclude_deleted: bool = True,
    ) -> PageResult:
        """
        Queries the records whose key attribute `key` equals `value`.

        When `index_name` is omitted it is taken from the record's schema: no
        index if `key` is the table hash key, otherwise the first global index
        partitioned on `key`. Soft-deleted records are excluded by default.

        Usage:
            cccs = Many(Ccc)
            access.query_by_attribute(cccs, "dId", "D-1")
        """
        if index_name is None:
            index_name = self._index_for_hash_key(destination, key)

        params = RequestParams(
            key_condition=KeyAttr(key) == value,
            filter=not_deleted() if exclude_deleted else None,
            index_name=index_name,
        )
        return self.query(destination, params)

    def scan_by_attribute(
        self, destination: Any, key: str, value: Any, exclude_deleted: bool = False
    ) -> PageResult:
        """
        Scans for records whose attribute (or document path) `key` equals `value`.

        Unlike query_by_attribute(), soft-deleted records are kept unless
        `exclude_deleted` is set.
        """
        condition = Attr(key) == value
        params = RequestParams(filter=with_live_filter(condition) if exclude_deleted else condition)
        return self.scan(destination, params)

    def _index_for_hash_key(self, destination: Any, key: str) -> str | None:
        record_type, _ = unwrap_record_type(destination)
        schema = self._schema_for(record_type)
        if schema is None or schema.hash_key == key:
            return None
        index = schema.index_for_hash_key(key)
        return index.index_name if index else None

    @staticmethod
    def _schema_for(record_type: type[BaseModel]) -> TableSchema | None:
        # Records without key roles are still readable and writable
        try:
            return cached_schema(record_type)
        except DynamapError:
            return None

    def _single_table(self, record: Any, operation: str) -> str:
        _, is_collection = ensure_bindable(record)
        if is_collection:
            raise SliceProhibitedError(operation)
        return self.table_name(record)

    # --- DUMP / RESTORE ---

    def dump_table(self, target: Any) -> str:
        """
        Scans the whole table of `target` and returns its raw items as JSON.

        Soft-deleted items are included; the dump is a backup, not a read.
        """
        table_name = self.table_name(target)
        request = ScanRequest(table_name, RequestParams(), self.serializer)
        items = list(request.iter_raw_items(self.client))

        logger.info("Table dumped", extra=log_context(table_name, "dump", items=len(items)))
        return items_to_json(items)

    def bind(self, destination: Any, data: str | bytes) -> None:
        """
        Binds a dump produced by dump_table() into `destination`.

        No identity, timestamp or soft-delete logic is applied.
        """
        ensure_bindable(destination)
        rows = [self.serializer.from_dynamo(item) for item in items_from_json(data)]
        bind_rows(destination, rows)
