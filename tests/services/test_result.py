"""Tests for ServiceResult and ServiceError."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from setupctl.services.result import ErrorCode, ServiceError, ServiceResult


class TestServiceResult:
    def test_success(self) -> None:
        result = ServiceResult(ok=True, op="validate_data_folder", data={"data_folder": "/x/"})
        assert result.ok
        assert result.error is None
        assert result.warnings == []

    def test_failure_helper(self) -> None:
        result = ServiceResult.failure(
            "validate_data_folder", ErrorCode.RECOVERABLE, "msg", suggestion="/srv/gta/"
        )
        assert result.ok is False
        assert result.error == ServiceError(
            code="RECOVERABLE", message="msg", detail={"suggestion": "/srv/gta/"}
        )

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="x")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_json_round_trip(self) -> None:
        result = ServiceResult.failure("save_local", ErrorCode.SPAWN_ERROR, "boom", warnings=["w"])
        restored = ServiceResult.model_validate_json(result.model_dump_json())
        assert restored == result
