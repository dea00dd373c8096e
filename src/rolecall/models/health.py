"""Response model for the health check route."""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field

__all__ = [
    "HealthCheck",
    "HealthStatus",
]


class HealthStatus(str, Enum):
    """Result of checking the LDAP server.

    An unreachable LDAP server produces a 500 plain-text error rather than a
    status, so a successful response is always healthy.
    """

    HEALTHY = "healthy"


class HealthCheck(BaseModel):
    """Outcome of a health check of Rolecall and its LDAP server."""

    status: Annotated[
        HealthStatus,
        Field(
            title="Health status",
            description="Whether the LDAP server answered a query",
            examples=[HealthStatus.HEALTHY],
        ),
    ]
