"""
OEE Floor Dashboard - Custom Exception Classes

This module defines the exception hierarchy raised by the dashboard engine.
Each exception carries an error code and HTTP status code so the API layer
can translate it into a structured response without inspecting messages.

Data sparsity (empty record sets, zero denominators) is never an error;
only structural or precondition violations raise.
"""

from typing import Any, Dict, Optional
from fastapi import status


class DashboardError(Exception):
    """Base exception class for the OEE Floor Dashboard."""

    def __init__(
        self,
        message: str,
        error_code: str = "DASHBOARD_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DashboardError):
    """Exception raised when mutation input fails validation."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details
        )


class InvalidRecordError(DashboardError):
    """Exception raised when a record violates numeric preconditions."""

    def __init__(self, message: str = "Invalid record", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="INVALID_RECORD",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details
        )


class InvalidRangeError(DashboardError):
    """Exception raised when a date range starts after it ends."""

    def __init__(self, date_from: Any, date_to: Any):
        super().__init__(
            message=f"dateFrom {date_from} is after dateTo {date_to}",
            error_code="INVALID_RANGE",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"date_from": str(date_from), "date_to": str(date_to)}
        )


class NotFoundError(DashboardError):
    """Exception raised when an operation references an unknown entity."""

    def __init__(self, resource: str = "Resource", resource_id: Optional[Any] = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message += f" with ID: {resource_id}"

        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "resource_id": resource_id}
        )


class InconsistentScopeError(DashboardError):
    """Exception raised when a scope references a machine absent from master data."""

    def __init__(self, machine_id: str, message: str = "Machine missing from master data"):
        super().__init__(
            message=f"Machine {machine_id}: {message}",
            error_code="INCONSISTENT_SCOPE",
            status_code=status.HTTP_409_CONFLICT,
            details={"machine_id": machine_id}
        )
