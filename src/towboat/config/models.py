"""Pydantic models for ``boat.toml`` with code-baked defaults.

Sparse TOML contract: an empty ``boat.toml`` is valid and means "no
explicit targets, exclude everything unconfigured". Models are frozen
after parsing; one :class:`PackageConfig` exists per declaring directory.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


def normalize_key(key: str) -> str:
    """Canonical form of a path key: forward slashes, no ``./``, no trailing ``/``."""
    key = key.replace("\\", "/").strip()
    while key.startswith("./"):
        key = key[2:]
    return key.rstrip("/")


class TargetRule(BaseModel):
    """One ``[targets]`` entry — a file or directory with its tags."""

    model_config = {"frozen": True, "extra": "forbid"}

    key: str
    target: str | None = None
    tags: frozenset[str] = frozenset()

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if isinstance(value, str):
            return frozenset({value})
        return value

    @field_validator("target")
    @classmethod
    def _relative_target(cls, value: str | None) -> str | None:
        if value is None:
            return None
        parts = PurePosixPath(normalize_key(value)).parts
        if not parts or value.startswith(("/", "~")) or ".." in parts:
            msg = f"target must be a relative path inside the target directory: {value!r}"
            raise ValueError(msg)
        return value

    @property
    def target_path(self) -> str:
        """Where the path lands, relative to the declaring directory."""
        return normalize_key(self.target) if self.target else self.key

    def matches(self, tag: str) -> bool:
        return tag in self.tags


class DefaultPolicy(BaseModel):
    """[default] section — governs paths without an explicit entry."""

    model_config = {"frozen": True, "extra": "forbid"}

    include_all: bool = False
    default_tag: str | None = None


class PackageConfig(BaseModel):
    """A parsed ``boat.toml``.

    ``targets`` keeps file order. The TOML table form ``{ tags = [...] }``
    is accepted as-is; the entry key is copied into each rule.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    targets: dict[str, TargetRule] = Field(default_factory=dict)
    default: DefaultPolicy | None = None
    target_dir: str | None = None
    build_tags: tuple[str, ...] | None = None

    @model_validator(mode="before")
    @classmethod
    def _key_targets(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("targets"), dict):
            return data
        keyed: dict[str, Any] = {}
        for raw_key, rule in data["targets"].items():
            key = normalize_key(str(raw_key))
            if key in keyed:
                msg = f"Duplicate target key after normalisation: {raw_key!r}"
                raise ValueError(msg)
            if isinstance(rule, dict):
                rule = {**rule, "key": key}
            keyed[key] = rule
        return {**data, "targets": keyed}

    @property
    def default_build_tag(self) -> str | None:
        """First declared build tag, used when no tag is given on the CLI."""
        if self.build_tags:
            return self.build_tags[0]
        return None
