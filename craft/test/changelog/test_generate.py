"""Tests for craft.changelog.generate module."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

import pytest

from craft.changelog.generate import generate_from_history, render_changelog
from craft.changelog.markdown import Changeset, find_changeset, list_changesets, prepend_changeset
from craft.core.result import Err, Ok
from craft.git.repository import Commit, Repository
from craft.versioning.commits import BumpType, classify_commit


def _classified(subject: str, fill: str, body: str = ""):  # type: ignore[no-untyped-def]
    return classify_commit(Commit(hash=fill * 40, subject=subject, body=body))


class TestRenderChangelog:
    def test_buckets_in_order(self) -> None:
        commits = [
            _classified("feat(cli): add x", "a"),
            _classified("fix: crash (#12)", "b"),
            _classified("chore: deps", "f", body="#skip-changelog"),
            _classified("feat!: drop y", "c"),
            _classified("Update readme", "d"),
        ]

        assert render_changelog(commits) == (
            "### Breaking Changes\n\n- drop y (cccccccc)\n\n"
            "### New Features\n\n- **cli**: add x (aaaaaaaa)\n\n"
            "### Bug Fixes\n\n- crash (#12)\n\n"
            "### Other\n\n- Update readme (dddddddd)"
        )

    def test_group_by_scope(self) -> None:
        commits = [_classified("feat(cli): add x", "a"), _classified("feat: plain", "e")]

        assert render_changelog(commits, group_by_scope=True) == (
            "### New Features\n\n- plain (eeeeeeee)\n\n#### cli\n\n- add x (aaaaaaaa)"
        )

    def test_escapes_leading_underscores(self) -> None:
        text = render_changelog([_classified("fix: handle _private names", "a")])
        assert "- handle \\_private names" in text

    def test_body_in_changelog(self) -> None:
        commit = _classified("feat: x", "a", body="first line\n#body-in-changelog")
        assert render_changelog([commit]) == "### New Features\n\n- x (aaaaaaaa)\n    first line"

    @pytest.mark.parametrize(
        "body", ["## Migration\nRename foo to bar.", "Migration\n---\nRename foo to bar."]
    )
    def test_body_headings_stay_inside_the_release(self, body: str) -> None:
        commit = _classified("feat: rename foo", "a", body=f"{body}\n#body-in-changelog")
        notes = render_changelog([commit])

        text = prepend_changeset("## 1.0.0\n\n- first\n", Changeset(name="1.1.0", body=notes))

        assert [c.name for c in list_changesets(text)] == ["1.1.0", "1.0.0"]
        found = find_changeset(text, "1.1.0")
        assert found is not None
        assert found.body == notes
        assert "Rename foo to bar." in found.body

    def test_summary_folds_listing(self) -> None:
        def summarizer(items: Sequence[str]) -> str | None:
            return "Two fixes." if len(items) > 1 else None

        commits = [
            _classified("fix: a", "a"),
            _classified("fix: b", "b"),
            _classified("feat: c", "c"),
        ]
        text = render_changelog(commits, summarizer=summarizer)

        assert "### Bug Fixes\n\nTwo fixes.\n\n<details>\n<summary>All 2 changes</summary>" in text
        assert "### New Features\n\n- c (cccccccc)" in text

    def test_empty(self) -> None:
        assert render_changelog([]) == ""


def _git(path: Path, *args: str) -> None:
    subprocess.run(["git", "-C", str(path), *args], capture_output=True, text=True, check=True)


class TestGenerateFromHistory:
    def test_commits_since_tag(self, tmp_path: Path) -> None:
        _git(tmp_path, "init", "-q", "-b", "main")
        _git(tmp_path, "config", "user.name", "Release Bot")
        _git(tmp_path, "config", "user.email", "release@example.com")
        _git(tmp_path, "config", "commit.gpgsign", "false")
        _git(tmp_path, "commit", "-q", "--allow-empty", "-m", "feat: old")
        _git(tmp_path, "tag", "1.0.0")
        _git(tmp_path, "commit", "-q", "--allow-empty", "-m", "fix: new")

        result = generate_from_history(Repository(tmp_path), "1.0.0")

        assert isinstance(result, Ok)
        assert result.value.commit_count == 1
        assert result.value.bump is BumpType.PATCH
        assert result.value.text.startswith("### Bug Fixes\n\n- new (")

    def test_unknown_tag(self, tmp_path: Path) -> None:
        _git(tmp_path, "init", "-q", "-b", "main")
        _git(
            tmp_path,
            "-c",
            "user.name=Bot",
            "-c",
            "user.email=bot@example.com",
            "commit",
            "-q",
            "--allow-empty",
            "-m",
            "feat: x",
        )

        result = generate_from_history(Repository(tmp_path), "9.9.9")

        assert isinstance(result, Err)
        assert "9.9.9" in result.error.message
