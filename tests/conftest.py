"""
Shared pytest fixtures and configuration for dynamap tests.

This module provides common fixtures used across unit and integration tests,
including mocked boto3 clients, moto-backed clients, and test record definitions.
"""

from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

from dynamap import AccessConfig, DynamoAccess
from tests.records import Aaa, Bbb, Ccc, Ddd, Event


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against moto")


class FixedClock:
    """Deterministic clock; every call advances one second."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture
def mock_client():
    """
    Creates a fully mocked boto3 DynamoDB client.

    This fixture provides a mock client for unit tests that don't need
    real DynamoDB interactions.
    """
    client = MagicMock()
    client.get_paginator.return_value = MagicMock()
    return client


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def access(mock_client, clock) -> DynamoAccess:
    """DynamoAccess over the mocked client, with a fixed clock and id factory."""
    return DynamoAccess(
        mock_client,
        AccessConfig(table_prefix="test_"),
        clock=clock,
        id_factory=lambda: "generated-id",
    )


@pytest.fixture
def moto_client():
    """
    Creates a boto3 client backed by moto's in-memory DynamoDB.

    Tables exist only for the duration of the test.
    """
    with mock_aws():
        yield boto3.client(
            "dynamodb",
            region_name="us-east-1",
            aws_access_key_id="test",
            aws_secret_access_key="test",
        )


@pytest.fixture
def moto_access(moto_client) -> DynamoAccess:
    """DynamoAccess with every test table created."""
    access = DynamoAccess(moto_client, AccessConfig(table_prefix="it_"))
    errors = access.create_tables(Aaa, Bbb, Ccc, Ddd, Event)
    assert errors == []
    return access


@pytest.fixture
def sample_ccc_data() -> list[dict]:
    """Ccc rows spread over two dId partitions, ranks out of order."""
    return [
        {"cca": "first", "dId": "D-1", "rank": 3},
        {"cca": "second", "dId": "D-1", "rank": 1},
        {"cca": "third", "dId": "D-1", "rank": 2},
        {"cca": "other", "dId": "D-2", "rank": 1},
    ]
