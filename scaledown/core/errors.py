"""
Exception hierarchy for the scale-down engine.

Collaborator clients raise these; the execution and processing layers
convert them into per-platform result values.
"""


class ScaleDownError(Exception):
    """Base class for all scale-down engine errors."""


class CollaboratorError(ScaleDownError):
    """A remote collaborator call failed."""


class MonitoringError(CollaboratorError):
    """Utilization stats could not be fetched."""


class DeploymentError(CollaboratorError):
    """The deployment backend rejected or failed a scale-down submission."""


class AuditStoreError(CollaboratorError):
    """The audit/search store could not be reached or rejected a request."""


class IndexProvisioningError(ScaleDownError):
    """The audit index could not be created while auditing is enabled."""
