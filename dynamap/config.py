from dataclasses import dataclass
from typing import Any

import boto3

DEFAULT_READ_CAPACITY = 10
DEFAULT_WRITE_CAPACITY = 10


@dataclass(frozen=True)
class AccessConfig:
    """
    Static settings of a DynamoAccess instance.

    Read once at construction; nothing here changes while the engine runs,
    which is what makes one instance safe to share between threads.
    """

    table_prefix: str = ""
    region: str | None = None
    endpoint_url: str | None = None
    read_capacity: int = DEFAULT_READ_CAPACITY
    write_capacity: int = DEFAULT_WRITE_CAPACITY

    def table_name(self, record_name: str) -> str:
        """Returns the physical table name for a record type name."""
        return f"{self.table_prefix}{record_name}"

    def create_client(self) -> Any:
        """
        Builds a boto3 DynamoDB client from these settings.

        Credentials are resolved by boto3's own provider chain.
        """
        kwargs: dict[str, Any] = {}
        if self.region:
            kwargs["region_name"] = self.region
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        return boto3.client("dynamodb", **kwargs)
