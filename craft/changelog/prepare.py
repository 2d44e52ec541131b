"""Changelog update during `craft prepare`."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from craft.changelog.generate import ChangelogBody
from craft.changelog.markdown import Changeset, find_changeset, prepend_changeset, remove_changeset
from craft.core.config import ChangelogConfig, ChangelogPolicy
from craft.core.context import ExecutionContext
from craft.core.errors import ConfigurationError, CraftError
from craft.core.result import Err, Ok, Result
from craft.git.repository import Repository
from craft.output.console import Style

__all__ = ["NEW_CHANGELOG_TEXT", "BodyGenerator", "changelog_file", "prepare_changelog"]

NEW_CHANGELOG_TEXT = "# Changelog\n"

BodyGenerator = Callable[[str], Result[ChangelogBody, CraftError]]


def changelog_file(repo_root: Path, configured: str) -> Result[Path, ConfigurationError]:
    """Resolve the changelog path; it must stay inside the repository."""
    root = repo_root.resolve()
    candidate = Path(configured)
    resolved = (candidate if candidate.is_absolute() else root / candidate).resolve()
    if not resolved.is_relative_to(root):
        return Err(
            ConfigurationError(
                message=f"Invalid changelog path: {configured}",
                hint="use a path inside the repository, e.g. CHANGELOG.md",
            )
        )
    return Ok(resolved)


def prepare_changelog(
    ctx: ExecutionContext,
    repo: Repository,
    config: ChangelogConfig,
    previous_tag: str,
    new_version: str,
    generator: BodyGenerator,
) -> Result[str | None, CraftError]:
    """Make sure the changelog has a section for `new_version`.

    Returns the section body, or None when the policy is `none`.
    """
    if config.policy is ChangelogPolicy.NONE:
        ctx.console.print("changelog: policy is none, not updating", Style.DIM)
        return Ok(None)

    path_result = changelog_file(repo.path, config.path)
    if isinstance(path_result, Err):
        return path_result
    path = path_result.value

    if path.exists():
        original = path.read_text(encoding="utf-8")
    elif config.policy is ChangelogPolicy.SIMPLE:
        return Err(
            ConfigurationError(
                message=f"Changelog does not exist: {config.path}",
                hint=f'create it with a "## {new_version}" section',
            )
        )
    else:
        ctx.console.info(f"creating {config.path}")
        original = ""

    text = original or NEW_CHANGELOG_TEXT
    found = find_changeset(text, new_version, fuzzy=True)

    if config.policy is ChangelogPolicy.SIMPLE:
        if found is None or not found.body.strip():
            return Err(
                ConfigurationError(
                    message=f"No changelog entry found for version {new_version}",
                    hint=(
                        f'add a non-empty "## {new_version}" or "## Unreleased" section '
                        f"to {config.path}"
                    ),
                )
            )
        body = found.body
        source_name = found.name
    else:
        source_name = found.name if found is not None else new_version
        body = found.body if found is not None else ""
        if body.strip():
            ctx.console.print(f"changelog: keeping curated entry for {new_version}", Style.DIM)
        else:
            generated = generator(previous_tag)
            if isinstance(generated, Err):
                return generated
            body = generated.value.text

    if found is not None and not found.is_unreleased and found.body == body and original:
        return Ok(body)

    updated = prepend_changeset(
        remove_changeset(text, source_name), Changeset(name=new_version, body=body)
    )
    if updated != original:
        if repo.isolated or not ctx.skip_mutation(f"update {config.path}"):
            path.write_text(updated, encoding="utf-8")
            ctx.console.success(f"changelog: {config.path} updated for {new_version}")

    return Ok(body)
