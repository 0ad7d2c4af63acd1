"""Tests for PathClassifier — one walk, one decision per file."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import pytest

from tests.conftest import StowLayout
from towboat.domain.errors import DeployIOError
from towboat.infrastructure.filesystem import Filesystem
from towboat.services.classify import PathClassifier


def _classify(layout: StowLayout, tag: str) -> dict[str, str]:
    """Map package-relative source -> target-relative destination."""
    result = PathClassifier(Filesystem(), layout.package_dir, tag).classify(layout.target_dir)
    return {
        e.source.relative_to(layout.package_dir).as_posix(): e.target.relative_to(
            layout.target_dir
        ).as_posix()
        for e in result.entries
    }


class TestClassify:
    def test_legacy_package(self, layout: StowLayout) -> None:
        layout.add(".bashrc.linux", "alias ls='ls --color'\n")
        layout.add(".bashrc.macos", "alias ls='ls -G'\n")
        layout.add(".profile", "# {linux-\nexport A=1\n# -linux}\n")
        layout.add("README", "plain\n")

        assert _classify(layout, "linux") == {".bashrc.linux": ".bashrc", ".profile": ".profile"}
        assert _classify(layout, "macos") == {".bashrc.macos": ".bashrc"}

    def test_config_file_never_deployed(self, layout: StowLayout) -> None:
        layout.config("[default]\ninclude_all = true\n")
        layout.add(".vimrc", "set nu\n")
        assert _classify(layout, "any") == {".vimrc": ".vimrc"}

    def test_directory_inheritance(self, layout: StowLayout) -> None:
        layout.config('[targets]\n"scripts" = { tags = ["a"] }\n')
        layout.add("scripts/sub/file.txt", "x\n")
        layout.add("other.txt", "y\n")
        assert _classify(layout, "a") == {"scripts/sub/file.txt": "scripts/sub/file.txt"}
        assert _classify(layout, "b") == {}

    def test_nested_config_registered_before_its_files(self, layout: StowLayout) -> None:
        layout.config('[targets]\n"scripts" = { tags = ["a"] }\n')
        layout.config('[targets]\n"run.sh" = { tags = ["b"], target = "go" }\n', "scripts")
        layout.add("scripts/run.sh", "#!/bin/sh\n")
        assert _classify(layout, "a") == {}
        assert _classify(layout, "b") == {"scripts/run.sh": "scripts/go"}

    def test_nested_config_without_root_config(self, layout: StowLayout) -> None:
        layout.config("[default]\ninclude_all = true\n", "vim")
        layout.add("vim/.vimrc", "set nu\n")
        layout.add(".bashrc.linux", "x\n")
        assert _classify(layout, "linux") == {"vim/.vimrc": "vim/.vimrc", ".bashrc.linux": ".bashrc"}

    def test_target_override_with_subdirectory(self, layout: StowLayout) -> None:
        layout.config('[targets]\n"nvim" = { target = ".config/nvim", tags = ["a"] }\n')
        layout.add("nvim/init.lua", "-- lua\n")
        assert _classify(layout, "a") == {"nvim/init.lua": ".config/nvim/init.lua"}

    def test_unparseable_config_warns_and_falls_back(self, layout: StowLayout) -> None:
        layout.config("[targets\n")
        layout.add(".bashrc.linux", "x\n")
        result = PathClassifier(Filesystem(), layout.package_dir, "linux").classify(
            layout.target_dir
        )
        assert [e.target for e in result.entries] == [layout.target(".bashrc")]
        assert len(result.warnings) == 1
        assert "Ignored invalid configuration" in result.warnings[0]

    def test_resolved_includes_directories(self, layout: StowLayout) -> None:
        layout.config('[targets]\n"scripts" = { tags = ["a"] }\n')
        layout.add("scripts/x", "")
        result = PathClassifier(Filesystem(), layout.package_dir, "a").classify(layout.target_dir)
        dirs = [r for r in result.resolved if r.is_dir]
        assert [(r.target, r.included) for r in dirs] == [(PurePosixPath("scripts"), True)]

    def test_config_dirs_reported(self, layout: StowLayout) -> None:
        layout.config("")
        layout.config("", "sub")
        layout.add("sub/x", "")
        result = PathClassifier(Filesystem(), layout.package_dir, "a").classify(layout.target_dir)
        assert result.config_dirs == [".", "sub"]

    def test_duplicate_targets_warn(self, layout: StowLayout) -> None:
        layout.add(".bashrc.linux", "a\n")
        layout.add(".bashrc", "# {linux-\nb\n# -linux}\n")
        result = PathClassifier(Filesystem(), layout.package_dir, "linux").classify(
            layout.target_dir
        )
        assert len(result.entries) == 2
        assert any("both deploy to" in w for w in result.warnings)

    def test_binary_files_in_legacy_mode_excluded(self, layout: StowLayout) -> None:
        (layout.package_dir / "logo.png").write_bytes(b"\x89PNG\xff\xfe")
        assert _classify(layout, "linux") == {}

    def test_walk_failure_is_io_error(self, tmp_path: Path) -> None:
        classifier = PathClassifier(Filesystem(), tmp_path / "missing", "a")
        with pytest.raises(DeployIOError) as info:
            classifier.classify(tmp_path)
        assert info.value.phase == "classify"
