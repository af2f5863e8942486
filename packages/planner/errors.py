"""Error taxonomy shared by the planner services and HTTP layer."""

from __future__ import annotations

from typing import Any

__all__ = [
    "PlannerError",
    "UnauthorizedError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ConfigurationError",
]


class PlannerError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.message, **self.extra}


class UnauthorizedError(PlannerError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized", **extra: Any) -> None:
        super().__init__(message, **extra)


class ValidationError(PlannerError):
    status_code = 400


class NotFoundError(PlannerError):
    status_code = 404


class ConflictError(PlannerError):
    status_code = 409


class ConfigurationError(PlannerError):
    status_code = 500
