"""Tests for craft.publish.targets.mirror module."""

from __future__ import annotations

from pathlib import Path

from craft.core.config import GithubConfig, TargetConfig
from craft.core.context import ExecutionContext
from craft.core.errors import CraftError
from craft.core.result import Err, Ok, Result
from craft.output.console import MockConsole
from craft.publish.artifacts import LocalArtifactSource
from craft.publish.orchestrator import PublishReport, publish_release
from craft.publish.targets import TargetEnv
from craft.publish.targets.mirror import MirrorTarget, mirror_target


def _project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    dist = root / "dist"
    dist.mkdir(parents=True)
    (dist / "craft-1.2.0.tar.gz").write_bytes(b"sdist")
    (dist / "craft-1.2.0-py3-none-any.whl").write_bytes(b"wheel")
    return root


def _publish(
    root: Path, mirror: Path, console: MockConsole, *, dry_run: bool = False, **options: object
) -> Result[PublishReport, CraftError]:
    ctx = ExecutionContext(console=console, dry_run=dry_run)
    target = TargetConfig(name="mirror", options={"path": str(mirror), **options})
    return publish_release(
        ctx,
        "1.2.0",
        "abc123",
        [target],
        root=root,
        artifact_source=LocalArtifactSource(root),
    )


class TestMirrorPublish:
    def test_publishes_all_artifacts(self, tmp_path: Path) -> None:
        root = _project(tmp_path)
        mirror = tmp_path / "mirror"
        console = MockConsole()

        result = _publish(root, mirror, console)

        assert isinstance(result, Ok)
        release = mirror / "1.2.0"
        assert sorted(p.name for p in release.iterdir()) == [
            "craft-1.2.0-py3-none-any.whl",
            "craft-1.2.0.tar.gz",
        ]
        assert (release / "craft-1.2.0.tar.gz").read_bytes() == b"sdist"
        assert not (mirror / ".1.2.0.draft").exists()
        assert console.find("mirror: published 1.2.0")

    def test_tag_prefix(self, tmp_path: Path) -> None:
        root = _project(tmp_path)
        mirror = tmp_path / "mirror"

        result = _publish(root, mirror, MockConsole(), tag_prefix="v")

        assert isinstance(result, Ok)
        assert (mirror / "v1.2.0").is_dir()

    def test_include_names_filters_artifacts(self, tmp_path: Path) -> None:
        root = _project(tmp_path)
        mirror = tmp_path / "mirror"

        result = _publish(root, mirror, MockConsole(), include_names="*.whl")

        assert isinstance(result, Ok)
        assert [p.name for p in (mirror / "1.2.0").iterdir()] == ["craft-1.2.0-py3-none-any.whl"]

    def test_draft_option_keeps_draft_directory(self, tmp_path: Path) -> None:
        root = _project(tmp_path)
        mirror = tmp_path / "mirror"

        result = _publish(root, mirror, MockConsole(), draft=True)

        assert isinstance(result, Ok)
        assert (mirror / ".1.2.0.draft").is_dir()
        assert not (mirror / "1.2.0").exists()

    def test_existing_release_is_refreshed(self, tmp_path: Path) -> None:
        root = _project(tmp_path)
        mirror = tmp_path / "mirror"
        stale = mirror / "1.2.0"
        stale.mkdir(parents=True)
        (stale / "old.txt").write_text("stale", encoding="utf-8")
        console = MockConsole()

        result = _publish(root, mirror, console)

        assert isinstance(result, Ok)
        assert not (stale / "old.txt").exists()
        assert (stale / "craft-1.2.0.tar.gz").is_file()
        assert console.find("reusing release 1.2.0")

    def test_dry_run_creates_nothing(self, tmp_path: Path) -> None:
        root = _project(tmp_path)
        mirror = tmp_path / "mirror"
        console = MockConsole()

        result = _publish(root, mirror, console, dry_run=True)

        assert isinstance(result, Ok)
        assert not mirror.exists()
        assert console.find("[dry-run] create draft release 1.2.0")
        assert console.find("[dry-run] copy craft-1.2.0.tar.gz")

    def test_no_artifacts(self, tmp_path: Path) -> None:
        root = tmp_path / "project"
        root.mkdir()
        mirror = tmp_path / "mirror"
        console = MockConsole()

        result = _publish(root, mirror, console)

        assert isinstance(result, Ok)
        assert list((mirror / "1.2.0").iterdir()) == []
        assert console.find("no artifacts for abc123")


class TestMirrorTargetFactory:
    def _env(self, root: Path) -> TargetEnv:
        return TargetEnv(
            root=root, github=GithubConfig(), artifact_source=LocalArtifactSource(root)
        )

    def test_missing_path(self, tmp_path: Path) -> None:
        result = mirror_target(TargetConfig(name="mirror"), self._env(tmp_path))
        assert isinstance(result, Err)
        assert "missing 'path'" in result.error.message

    def test_relative_path_resolves_against_project_root(self, tmp_path: Path) -> None:
        result = mirror_target(
            TargetConfig(name="mirror", options={"path": "public/releases"}), self._env(tmp_path)
        )
        assert isinstance(result, Ok)
        assert isinstance(result.value, MirrorTarget)
        assert result.value.root == tmp_path / "public" / "releases"

    def test_finalize_refuses_to_overwrite(self, tmp_path: Path) -> None:
        target = MirrorTarget(TargetConfig(name="mirror"), self._env(tmp_path), tmp_path / "m")
        ctx = ExecutionContext(console=MockConsole())
        draft = target.get_or_create_release(ctx, "1.0.0", "abc", None)
        assert isinstance(draft, Ok)
        (tmp_path / "m" / "1.0.0").mkdir()

        result = target.finalize_release(ctx, draft.value)

        assert isinstance(result, Err)
        assert result.error.message == f"Release 1.0.0 already exists in {tmp_path / 'm'}"
