from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest
from typer.testing import CliRunner

from craft import __version__
from craft.cli.app import app
from craft.cli.context import CONFIG_ENV, DRY_RUN_ENV, NO_INPUT_ENV
from craft.core.errors import ErrorCode

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # The root callback exports global flags; setenv makes monkeypatch restore them.
    for name in (CONFIG_ENV, DRY_RUN_ENV, NO_INPUT_ENV):
        monkeypatch.setenv(name, "")
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)


def _git(path: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", "-C", str(path), *args], capture_output=True, text=True, check=True
    )
    return proc.stdout


def _init_repo(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
    _git(path, "init", "-q", "-b", "main")
    _git(path, "config", "user.name", "Release Bot")
    _git(path, "config", "user.email", "release@example.com")
    _git(path, "config", "commit.gpgsign", "false")
    (path / "README.md").write_text("# project\n", encoding="utf-8")
    _git(path, "add", "README.md")
    _git(path, "commit", "-q", "-m", "chore: init")


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_missing_config_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["--config", str(tmp_path / "nope.toml"), "targets"])
    assert result.exit_code == int(ErrorCode.CONFIG_ERROR)
    assert "does not exist" in result.output


def test_invalid_config_file(tmp_path: Path) -> None:
    config = tmp_path / ".craft.toml"
    config.write_text("targets = [\n", encoding="utf-8")

    result = runner.invoke(app, ["--config", str(config), "targets"])

    assert result.exit_code == int(ErrorCode.CONFIG_ERROR)
    assert "Invalid TOML syntax" in result.output


def test_targets_lists_configured_targets(tmp_path: Path) -> None:
    config = tmp_path / ".craft.toml"
    config.write_text(
        '[[targets]]\nname = "mirror"\npath = "out"\ntag_prefix = "v"\n\n'
        '[[targets]]\nname = "github"\nid = "releases"\n',
        encoding="utf-8",
    )

    result = runner.invoke(app, ["--config", str(config), "targets"])

    assert result.exit_code == 0
    assert "mirror" in result.output
    assert "tag prefix: v" in result.output
    assert "releases" in result.output


def test_workspaces_in_publish_order(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "package.json").write_text(
        json.dumps({"name": "root", "private": True, "workspaces": ["packages/*"]}),
        encoding="utf-8",
    )
    for name, manifest in {
        "app": {"name": "app", "dependencies": {"lib": "*"}},
        "lib": {"name": "lib"},
    }.items():
        (tmp_path / "packages" / name).mkdir(parents=True)
        (tmp_path / "packages" / name / "package.json").write_text(
            json.dumps(manifest), encoding="utf-8"
        )
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["workspaces"])

    assert result.exit_code == 0
    assert result.output.index("lib") < result.output.index("app")


def test_publish_without_targets_is_a_config_error(tmp_path: Path) -> None:
    _init_repo(tmp_path)
    config = tmp_path / ".craft.toml"
    config.write_text('release_branch_prefix = "release"\n', encoding="utf-8")

    result = runner.invoke(app, ["--config", str(config), "publish", "1.0.0", "--rev", "HEAD"])

    assert result.exit_code == int(ErrorCode.CONFIG_ERROR)
    assert "No publish targets configured" in result.output


def test_prepare_dry_run_leaves_repository_untouched(tmp_path: Path) -> None:
    _init_repo(tmp_path)
    config = tmp_path / ".craft.toml"
    config.write_text('[versioning]\npolicy = "manual"\n', encoding="utf-8")
    _git(tmp_path, "add", ".craft.toml")
    _git(tmp_path, "commit", "-q", "-m", "chore: config")

    result = runner.invoke(
        app,
        ["--config", str(config), "--dry-run", "--no-input", "prepare", "1.1.0", "--no-push"],
    )

    assert result.exit_code == 0, result.output
    assert "version: 1.1.0" in result.output
    assert _git(tmp_path, "branch", "--list", "release/1.1.0").strip() == ""
    assert _git(tmp_path, "rev-parse", "--abbrev-ref", "HEAD").strip() == "main"
