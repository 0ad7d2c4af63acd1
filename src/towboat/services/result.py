"""ServiceResult and ServiceError — what every towboat operation returns.

INVARIANT: Service entry points never raise for an expected failure.
Deployment errors are caught at the run boundary and come back as
``ok=False`` with a stable ``error.code``; the CLI decides exit codes.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult.

    ``detail`` always carries ``phase`` and, when known, ``path``.
    """

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of a deploy or remove run.

    Attributes:
        ok: Whether the run completed.
        op: ``"deploy"`` or ``"remove"``.
        data: Run summary and the ``actions`` list (planned or applied).
        warnings: Non-fatal issues (unparseable configs, empty result set).
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing spans in verbose mode).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @property
    def actions(self) -> list[dict[str, Any]]:
        return list(self.data.get("actions", []))
