"""
Application-level exception hierarchy for the system model.

Coordinators are the only components with a view across several stores, so
they are the only place consistency faults are detected and raised.
"""

from typing import Any

from .interfaces.exceptions import DuplicateMembershipError


class ApplicationException(Exception):
    """Base exception for all application-level errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class ConsistencyError(ApplicationException):
    """
    Raised when stores have drifted apart or a saga left a partial effect.

    Carries every identifier involved so operators can reconcile the stores
    by hand.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        identifiers: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.operation = operation
        self.identifiers = identifiers or {}
        self.cause = cause
        super().__init__(
            f"{operation}: {message}",
            {"operation": operation, **self.identifiers},
        )

    @property
    def identifiers_text(self) -> str:
        return ", ".join(f"{key}={value}" for key, value in self.identifiers.items())


class NodeAlreadyAttachedError(DuplicateMembershipError):
    """Raised when attaching a node that is already attached to another cluster."""

    def __init__(self, node_id: str, current_cluster_id: str, requested_cluster_id: str) -> None:
        super().__init__("Cluster", current_cluster_id, "Node", node_id)
        self.args = (
            f"Node '{node_id}' is already attached to cluster '{current_cluster_id}'; "
            f"detach it before attaching to '{requested_cluster_id}'",
        )
        self.requested_cluster_id = requested_cluster_id
        self.identifiers["requested_cluster_id"] = requested_cluster_id
