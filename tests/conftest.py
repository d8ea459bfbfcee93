"""
Shared test fixtures and configuration.
"""

import pytest

from scaledown.clients.base import InMemoryAuditStore, MockDeploymentClient, MockMonitoringClient
from scaledown.core.models import EngineConfig, Environment, Organization, Platform
from tests.factories import make_platform

# ============================================================================
# Host Object Graph Fixtures
# ============================================================================


@pytest.fixture
def organizations() -> dict[str, Organization]:
    """Organization lookup table."""
    return {"acme": Organization(name="acme", full_name="Acme Corp")}


@pytest.fixture
def platform() -> Platform:
    """A single platform."""
    return make_platform(101, "web")


@pytest.fixture
def environment() -> Environment:
    """Environment with two platforms."""
    platforms = [make_platform(101, "web"), make_platform(102, "db")]
    return Environment(
        id=1,
        name="prod",
        path="/acme/shop",
        platforms={p.id: p for p in platforms},
    )


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def enabled_config() -> EngineConfig:
    """Plugin enabled, scale down enabled, auditing enabled."""
    return EngineConfig(
        plugin_enabled=True,
        audit_enabled=True,
        index_name="ooscaledown-test",
        custom_configs={"scaleDownEnabled": "true"},
    )


@pytest.fixture
def dry_run_config() -> EngineConfig:
    """Plugin enabled, scale down disabled, auditing enabled."""
    return EngineConfig(
        plugin_enabled=True,
        audit_enabled=True,
        index_name="ooscaledown-test",
        custom_configs={"scaleDownEnabled": "false"},
    )


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def monitoring_client() -> MockMonitoringClient:
    """In-memory monitoring client."""
    return MockMonitoringClient()


@pytest.fixture
def deployment_client() -> MockDeploymentClient:
    """In-memory deployment client."""
    return MockDeploymentClient()


@pytest.fixture
def audit_store() -> InMemoryAuditStore:
    """In-memory audit store."""
    return InMemoryAuditStore()
