"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer methods return ServiceResult.
The CLI, the action surface, and the MCP adapter consume this type.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    """Failure classes a setup operation can report."""

    BAD_REQUEST = "BAD_REQUEST"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    ALREADY_CONFIGURED = "ALREADY_CONFIGURED"
    INVALID_PATH = "INVALID_PATH"
    NOT_FOUND = "NOT_FOUND"
    RECOVERABLE = "RECOVERABLE"
    NETWORK_ERROR = "NETWORK_ERROR"
    FORMAT_ERROR = "FORMAT_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    SPAWN_ERROR = "SPAWN_ERROR"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"validate_data_folder"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: ErrorCode,
        message: str,
        *,
        warnings: list[str] | None = None,
        **detail: Any,
    ) -> ServiceResult:
        """Shorthand for an ``ok=False`` result."""
        return cls(
            ok=False,
            op=op,
            warnings=warnings or [],
            error=ServiceError(code=code.value, message=message, detail=detail),
        )
