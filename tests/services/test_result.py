"""Tests for ServiceResult and ServiceError."""

import json

import pytest
from pydantic import ValidationError

from towboat.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="deploy", data={"package": "shell"})
        assert result.ok is True
        assert result.op == "deploy"
        assert result.data == {"package": "shell"}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_error_construction(self) -> None:
        error = ServiceError(
            code="MODIFIED_TARGET",
            message="Target was modified",
            detail={"path": "/home/me/.profile", "phase": "write"},
        )
        result = ServiceResult(ok=False, op="deploy", error=error)
        assert result.ok is False
        assert result.error is not None
        assert result.error.code == "MODIFIED_TARGET"
        assert result.error.detail["phase"] == "write"

    def test_actions_property(self) -> None:
        actions = [{"action": "link", "target": "/h/.vimrc"}]
        result = ServiceResult(ok=True, op="deploy", data={"actions": actions})
        assert result.actions == actions
        assert ServiceResult(ok=True, op="deploy").actions == []

    def test_json_serialization(self) -> None:
        result = ServiceResult(
            ok=True,
            op="remove",
            data={"summary": {"remove": 2}},
            warnings=["Skipped /h/x: no deployment record"],
        )
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["data"]["summary"] == {"remove": 2}
        assert parsed["warnings"] == ["Skipped /h/x: no deployment record"]

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="deploy")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]
