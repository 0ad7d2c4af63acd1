"""Config file loading.

Each ``boat.toml`` is parsed with tomllib and validated against
:class:`PackageConfig`. The classifier finds the files during its walk, so
there is no walk-up search here.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from towboat.config.models import PackageConfig
from towboat.domain.errors import ConfigParseError

CONFIG_FILENAME = "boat.toml"


def load_config(path: Path) -> PackageConfig:
    """Load and validate one ``boat.toml``.

    Raises:
        ConfigParseError: the file is unreadable, not TOML, or does not
            match the schema. Callers treat the directory as unconfigured.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read {path}: {exc}"
        raise ConfigParseError(msg, path=path) from exc

    try:
        data: dict[str, Any] = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigParseError(msg, path=path) from exc

    try:
        return PackageConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid configuration in {path}: {exc.error_count()} error(s)"
        raise ConfigParseError(msg, path=path) from exc
