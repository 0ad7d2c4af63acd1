"""Shared pytest fixtures and test helpers for towboat tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass
from pathlib import Path

import pytest
from click.testing import CliRunner

from towboat.services.telemetry import _current_span, disable_telemetry


@dataclass
class StowLayout:
    """A stow directory with one package and an empty target directory."""

    stow_dir: Path
    package_dir: Path
    target_dir: Path

    def add(self, rel: str, text: str = "") -> Path:
        """Create a package file at *rel* with *text*."""
        return write_file(self.package_dir, rel, text)

    def config(self, text: str, rel_dir: str = ".") -> Path:
        """Write a ``boat.toml`` in *rel_dir* of the package."""
        return write_file(self.package_dir / rel_dir, "boat.toml", text)

    def target(self, rel: str) -> Path:
        return self.target_dir / rel


def write_file(root: Path, rel: str, text: str = "") -> Path:
    """Write *text* to ``root/rel``, creating parent directories."""
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))
    return path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def layout(tmp_path: Path) -> StowLayout:
    """``stow/shell`` package plus an empty ``home`` target directory."""
    stow = tmp_path / "stow"
    package = stow / "shell"
    home = tmp_path / "home"
    package.mkdir(parents=True)
    home.mkdir()
    return StowLayout(stow_dir=stow, package_dir=package, target_dir=home)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's ``TOWBOAT_*`` variables out of every test."""
    for name in (
        "TOWBOAT_STOW_DIR",
        "TOWBOAT_PACKAGE",
        "TOWBOAT_TARGET_DIR",
        "TOWBOAT_BUILD_TAG",
        "TOWBOAT_DRY_RUN",
        "TOWBOAT_FORCE",
        "TOWBOAT_ADOPT",
        "TOWBOAT_JSON_OUTPUT",
        "TOWBOAT_QUIET",
        "TOWBOAT_VERBOSE",
        "TOWBOAT_LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_global_state() -> Generator[None]:
    """Undo what a CLI invocation configures process-wide."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    tow = logging.getLogger("towboat")
    tow_level = tow.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    tow.setLevel(tow_level)
    disable_telemetry()
    _current_span.set(None)
