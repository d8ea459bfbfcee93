"""
Collaborator clients for the scale-down engine.

This module provides the monitoring, deployment and audit-store
interfaces, their HTTP implementations (Thanos, OneOps, Elasticsearch)
and in-memory implementations for tests and dry runs.
"""

from scaledown.clients.base import (
    AuditStore,
    DeploymentClient,
    InMemoryAuditStore,
    MockDeploymentClient,
    MockMonitoringClient,
    MonitoringClient,
)
from scaledown.clients.oneops import OneOpsClient
from scaledown.clients.search import SearchAuditStore
from scaledown.clients.thanos import ThanosClient

__all__ = [
    # Interfaces
    "AuditStore",
    "DeploymentClient",
    "MonitoringClient",
    # In-memory
    "InMemoryAuditStore",
    "MockDeploymentClient",
    "MockMonitoringClient",
    # HTTP
    "OneOpsClient",
    "SearchAuditStore",
    "ThanosClient",
]
