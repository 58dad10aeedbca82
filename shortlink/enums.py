"""Shared enums for the short link service.

Using enums instead of string literals provides type safety and prevents typos
in metric labels and health payloads.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "StoreBackend"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Outcome labels for metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    ERROR = "error"


class StoreBackend(StrEnum):
    """Which pair of store adapters the service container wires up."""

    REDIS_POSTGRES = "redis_postgres"
    MEMORY = "memory"
