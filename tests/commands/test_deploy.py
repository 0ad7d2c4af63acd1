"""Tests for the deploy CLI command."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from tests.conftest import StowLayout
from towboat.cli import cli

TAGGED = "common\n# {linux-\nlinux only\n# -linux}\n"


def _args(layout: StowLayout, *extra: str) -> list[str]:
    return ["-d", str(layout.stow_dir), "-t", str(layout.target_dir), *extra]


@pytest.fixture
def package(layout: StowLayout) -> StowLayout:
    layout.add(".bashrc.linux", "alias ll='ls -l'\n")
    layout.add(".profile", TAGGED)
    return layout


class TestDeployCommand:
    def test_deploy_json(self, cli_runner: CliRunner, package: StowLayout) -> None:
        result = cli_runner.invoke(cli, ["--json", "deploy", "shell", *_args(package, "-b", "linux")])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["op"] == "deploy"
        assert data["data"]["summary"] == {"link": 1, "write": 1}
        assert package.target(".bashrc").is_symlink()
        assert package.target(".profile").read_text() == "common\nlinux only\n"

    def test_deploy_human(self, cli_runner: CliRunner, package: StowLayout) -> None:
        result = cli_runner.invoke(cli, ["deploy", "shell", *_args(package, "-b", "linux")])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("OK")
        assert ".bashrc" in result.output

    def test_quiet(self, cli_runner: CliRunner, package: StowLayout) -> None:
        result = cli_runner.invoke(cli, ["-q", "deploy", "shell", *_args(package, "-b", "linux")])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert f"link {package.target('.bashrc')}" in lines
        assert f"write {package.target('.profile')}" in lines

    def test_dry_run(self, cli_runner: CliRunner, package: StowLayout) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "deploy", "shell", *_args(package, "-b", "linux", "--dry-run")]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["data"]["dry_run"] is True
        assert list(package.target_dir.iterdir()) == []

    def test_build_tag_from_env(
        self, cli_runner: CliRunner, package: StowLayout, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TOWBOAT_BUILD_TAG", "linux")
        result = cli_runner.invoke(cli, ["--json", "deploy", "shell", *_args(package)])
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["build_tag"] == "linux"

    def test_build_tag_from_package_config(self, cli_runner: CliRunner, package: StowLayout) -> None:
        package.config('build_tags = ["linux"]\n[default]\ninclude_all = true\n')
        result = cli_runner.invoke(cli, ["--json", "deploy", "shell", *_args(package)])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data"]["build_tag"] == "linux"

    def test_stow_dir_defaults_to_cwd(
        self, cli_runner: CliRunner, package: StowLayout, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(package.stow_dir)
        result = cli_runner.invoke(
            cli, ["--json", "deploy", "shell", "-t", str(package.target_dir), "-b", "linux"]
        )
        assert result.exit_code == 0, result.output
        assert package.target(".bashrc").is_symlink()

    def test_missing_package_fails(self, cli_runner: CliRunner, layout: StowLayout) -> None:
        result = cli_runner.invoke(cli, ["--json", "deploy", "nope", *_args(layout)])
        assert result.exit_code == 1
        assert "MISSING_SOURCE" in result.output

    def test_collision_then_adopt(self, cli_runner: CliRunner, package: StowLayout) -> None:
        package.target(".bashrc").write_text("my local edits\n")
        args = ["deploy", "shell", *_args(package, "-b", "linux")]

        failed = cli_runner.invoke(cli, args)
        assert failed.exit_code == 1
        assert "ERROR" in failed.output

        adopted = cli_runner.invoke(cli, [*args, "--adopt"])
        assert adopted.exit_code == 0, adopted.output
        assert package.target(".bashrc").is_symlink()
        assert (package.package_dir / ".bashrc.linux").read_text() == "my local edits\n"

    def test_modified_target_then_force(self, cli_runner: CliRunner, package: StowLayout) -> None:
        args = ["--json", "deploy", "shell", *_args(package, "-b", "linux")]
        assert cli_runner.invoke(cli, args).exit_code == 0
        package.target(".profile").write_text("hand edited\n")

        refused = cli_runner.invoke(cli, args)
        assert refused.exit_code == 1
        assert "MODIFIED_TARGET" in refused.output

        forced = cli_runner.invoke(cli, [*args, "--force"])
        assert forced.exit_code == 0
        assert package.target(".profile").read_text() == "common\nlinux only\n"

    def test_empty_build_tag_is_usage_error(self, cli_runner: CliRunner, package: StowLayout) -> None:
        result = cli_runner.invoke(cli, ["deploy", "shell", *_args(package, "-b", "")])
        assert result.exit_code == 2
        assert "Invalid settings" in result.output

    def test_warnings_go_to_stderr(self, cli_runner: CliRunner, layout: StowLayout) -> None:
        layout.add("README", "plain\n")
        result = cli_runner.invoke(cli, ["deploy", "shell", *_args(layout, "-b", "linux")])
        assert result.exit_code == 0
        assert "WARNING: No files found matching build tag 'linux'" in result.output

    def test_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["deploy", "--examples"])
        assert result.exit_code == 0
        assert "towboat deploy shell -b linux" in result.output

    def test_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["deploy", "--help"])
        assert result.exit_code == 0
        for flag in ("PACKAGE", "--dir", "--target", "--build", "--dry-run", "--force", "--adopt"):
            assert flag in result.output
