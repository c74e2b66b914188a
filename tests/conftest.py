"""
Shared pytest fixtures and configuration for resource-spine tests.

This module provides:
- Location-based markers (unit / integration)
- A recording event sink and a fresh callback context
- Scripted RDS/EC2 proxies and DB instance payloads

Usage:
    Fixtures are auto-discovered by pytest; take them as test arguments.

    def test_something(rds, sink):
        ...
"""

import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure resource_spine is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from resource_spine.orchestration.progress import CallbackContext
from resource_spine.testing import RecordingSink, StubProxyClient


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path) or "_scenario" in item.name:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def context() -> CallbackContext:
    return CallbackContext()


# =============================================================================
# RDS Fixtures
# =============================================================================


def instance_payload(**overrides: Any) -> dict[str, Any]:
    """A DescribeDBInstances entry for an available MySQL instance."""
    payload = {
        "DBInstanceIdentifier": "db-1",
        "DBInstanceArn": "arn:aws:rds:us-east-1:123456789012:db:db-1",
        "DBInstanceStatus": "available",
        "Engine": "mysql",
        "EngineVersion": "8.0.35",
        "DBInstanceClass": "db.t3.micro",
        "AllocatedStorage": 20,
        "DBSubnetGroup": {"DBSubnetGroupName": "default", "VpcId": "vpc-123"},
        "DBParameterGroups": [
            {"DBParameterGroupName": "default.mysql8.0", "ParameterApplyStatus": "in-sync"}
        ],
        "VpcSecurityGroups": [{"VpcSecurityGroupId": "sg-live", "Status": "active"}],
        "Endpoint": {"Address": "db-1.example.rds.amazonaws.com", "Port": 3306},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def instance() -> dict[str, Any]:
    return instance_payload()


@pytest.fixture
def rds(instance: dict[str, Any]) -> StubProxyClient:
    return StubProxyClient({"describe_db_instances": {"DBInstances": [instance]}}, service="rds")


@pytest.fixture
def ec2() -> StubProxyClient:
    return StubProxyClient(
        {"describe_security_groups": {"SecurityGroups": [{"GroupId": "sg-default"}]}},
        service="ec2",
    )


@pytest.fixture
def make_instance():
    """Factory for DescribeDBInstances entries with overrides."""
    return instance_payload
