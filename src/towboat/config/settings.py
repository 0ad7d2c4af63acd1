"""Unified run settings — CLI flags, env vars, and the package's boat.toml.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click (unset flags are omitted)
  2. Env vars     — ``TOWBOAT_*`` prefix
  3. TOML file    — ``target_dir`` and the first of ``build_tags`` from the
                    package root's ``boat.toml``
  4. Code defaults — stow dir ``.``, target ``~``, build tag ``default``

Uses Pydantic Settings v2 with a custom :class:`PackageTomlSource`. A
``boat.toml`` that fails to parse contributes nothing; the same file is
reported again (as a warning) when the classifier walks the package.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from towboat.config.discovery import CONFIG_FILENAME, load_config
from towboat.domain.errors import ConfigParseError

logger = logging.getLogger(__name__)

DEFAULT_BUILD_TAG = "default"
DEFAULT_TARGET_DIR = "~"


class PackageTomlSource(PydanticBaseSettingsSource):
    """Read run defaults from the package root's ``boat.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path is None or not toml_path.is_file():
            return
        try:
            config = load_config(toml_path)
        except ConfigParseError as exc:
            logger.warning("Ignoring run defaults from %s: %s", toml_path, exc.message)
            return
        if config.target_dir:
            self._data["target_dir"] = config.target_dir
        if config.default_build_tag:
            self._data["build_tag"] = config.default_build_tag

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for the TOML path during construction.
_tls = threading.local()


class TowSettings(BaseSettings):
    """Everything one ``deploy``/``remove`` invocation needs, frozen.

    Attributes:
        stow_dir: Directory holding packages (and the checksum cache).
        package: Package directory name inside *stow_dir*.
        target_dir: Raw target directory; see :attr:`resolved_target_dir`.
        build_tag: Active build tag.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "TOWBOAT_",
    }

    stow_dir: Path = Field(default_factory=lambda: Path("."))
    package: str | None = None
    target_dir: str = DEFAULT_TARGET_DIR
    build_tag: str = Field(default=DEFAULT_BUILD_TAG, min_length=1)

    # --- run flags ---
    dry_run: bool = False
    force: bool = False
    adopt: bool = False

    # --- output flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the package TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            PackageTomlSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        package: str | None = None,
        stow_dir: Path | str | None = None,
        **cli_flags: Any,
    ) -> TowSettings:
        """Construct settings from a CLI invocation.

        Flags passed as None are dropped so env vars and ``boat.toml``
        can fill them.
        """
        flags = {k: v for k, v in cli_flags.items() if v is not None}
        if stow_dir is not None:
            flags["stow_dir"] = Path(stow_dir)
        if package is not None:
            flags["package"] = package

        base = Path(flags.get("stow_dir") or os.environ.get("TOWBOAT_STOW_DIR", "."))
        toml_path = base / package / CONFIG_FILENAME if package else None

        _tls.toml_path = toml_path
        try:
            return cls(**flags)
        finally:
            _tls.toml_path = None

    @property
    def package_dir(self) -> Path:
        """Absolute path of the package being deployed."""
        if self.package is None:
            msg = "No package selected"
            raise ValueError(msg)
        return (self.stow_dir / self.package).absolute()

    @property
    def resolved_target_dir(self) -> Path:
        """Target directory with ``~`` expanded, made absolute against the CWD."""
        return Path(self.target_dir).expanduser().absolute()
