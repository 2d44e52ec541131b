"""`craft publish`: everything around the orchestrator.

Resolves the revision to publish (the release branch pushed by `craft
prepare` unless `--rev` is given), checks its CI status, reads the
changeset for the release notes, publishes, and finally merges the release
branch back and deletes it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from craft.changelog.markdown import Changeset, find_changeset
from craft.core.config import ChangelogPolicy, ProjectConfig, TargetConfig
from craft.core.context import ExecutionContext
from craft.core.errors import (
    ConfigurationError,
    CraftError,
    RemoteOperationError,
    RepositoryStateError,
)
from craft.core.result import Err, Ok, Result
from craft.git.repository import Repository
from craft.github.gh import delete_branch, detect_repo_slug, get_commit_status, merge_branch
from craft.output.console import Style
from craft.publish.artifacts import make_artifact_source
from craft.publish.orchestrator import PublishReport, publish_release
from craft.publish.targets import TARGETS, TargetFactory

__all__ = ["PublishOptions", "run_publish", "select_targets"]


@dataclass(frozen=True, slots=True)
class PublishOptions:
    """Command-line knobs of `craft publish`.

    Attributes:
        targets: Only these target names (or display ids); all when empty.
    """

    version: str
    rev: str | None = None
    remote: str = "origin"
    targets: tuple[str, ...] = ()
    no_status_check: bool = False
    no_merge: bool = False
    keep_branch: bool = False


def run_publish(
    ctx: ExecutionContext,
    repo: Repository,
    config: ProjectConfig,
    options: PublishOptions,
    *,
    registry: Mapping[str, TargetFactory] = TARGETS,
) -> Result[PublishReport, CraftError]:
    targets = select_targets(config.targets, options.targets)
    if isinstance(targets, Err):
        return targets

    branch = f"{config.release_branch_prefix}/{options.version}"
    revision = _resolve_revision(ctx, repo, options, branch)
    if isinstance(revision, Err):
        return revision
    ctx.console.info(f"Publishing {options.version} from {revision.value}")

    slug = config.github.slug
    needs_remote = not options.no_merge and options.rev is None
    if config.publish.status_check and not options.no_status_check:
        needs_remote = True
    if slug is None and needs_remote:
        detected = detect_repo_slug(cwd=repo.path)
        if isinstance(detected, Err):
            return Err(
                ConfigurationError(
                    message="GitHub repository is not configured",
                    hint="set owner and repo under [github] in .craft.toml",
                )
            )
        slug = detected.value

    if config.publish.status_check and not options.no_status_check and slug is not None:
        checked = _check_status(ctx, repo, slug, revision.value)
        if isinstance(checked, Err):
            return checked

    changeset = _read_changeset(ctx, repo, config, revision.value, options.version)
    if isinstance(changeset, Err):
        return changeset

    source = make_artifact_source(config.artifacts, repo.path)
    if isinstance(source, Err):
        return source

    report = publish_release(
        ctx,
        options.version,
        revision.value,
        targets.value,
        root=repo.path,
        artifact_source=source.value,
        github=config.github,
        registry=registry,
        changeset=changeset.value,
        max_concurrency=config.publish.max_concurrency,
    )
    if isinstance(report, Err):
        return report

    if options.rev is None and not options.no_merge and slug is not None:
        merged = _merge_release_branch(ctx, repo, slug, branch, options)
        if isinstance(merged, Err):
            return merged

    return report


def select_targets(
    configured: tuple[TargetConfig, ...], wanted: tuple[str, ...]
) -> Result[list[TargetConfig], ConfigurationError]:
    if not configured:
        return Err(
            ConfigurationError(
                message="No publish targets configured",
                hint="add a [[targets]] table to .craft.toml",
            )
        )
    if not wanted or "all" in wanted:
        return Ok(list(configured))

    selected = [t for t in configured if t.name in wanted or t.display_id in wanted]
    known = {t.name for t in configured} | {t.display_id for t in configured}
    unknown = [w for w in wanted if w not in known]
    if unknown:
        return Err(
            ConfigurationError(
                message=f"Unknown target(s): {', '.join(unknown)}",
                hint=f"configured targets: {', '.join(sorted(known))}",
            )
        )
    return Ok(selected)


def _resolve_revision(
    ctx: ExecutionContext, repo: Repository, options: PublishOptions, branch: str
) -> Result[str, CraftError]:
    if options.rev is not None:
        resolved = repo.rev_parse(options.rev)
        if isinstance(resolved, Err):
            return Err(RepositoryStateError(message=f"Unknown revision: {options.rev}"))
        return Ok(resolved.value)

    fetched = repo.fetch(options.remote, branch)
    if isinstance(fetched, Err):
        ctx.console.warning(f"could not fetch {options.remote}/{branch}: {fetched.error.message}")

    resolved = repo.rev_parse(f"{options.remote}/{branch}")
    if isinstance(resolved, Err):
        return Err(
            RepositoryStateError(
                message=f"Release branch not found: {options.remote}/{branch}",
                hint=f"run `craft prepare {options.version}` first, or pass --rev",
            )
        )
    return Ok(resolved.value)


def _check_status(
    ctx: ExecutionContext, repo: Repository, slug: str, revision: str
) -> Result[None, CraftError]:
    status = get_commit_status(cwd=repo.path, repo=slug, rev=revision)
    if isinstance(status, Err):
        return status
    if status.value.total == 0:
        ctx.console.warning(f"no status checks reported for {revision}")
        return Ok(None)
    if not status.value.is_success:
        return Err(
            RemoteOperationError(
                operation="status",
                message=f"Revision {revision} has status '{status.value.state}'",
                hint="wait for CI to pass, or pass --no-status-check",
            )
        )
    ctx.console.print(f"status checks passed for {revision}", Style.DIM)
    return Ok(None)


def _read_changeset(
    ctx: ExecutionContext,
    repo: Repository,
    config: ProjectConfig,
    revision: str,
    version: str,
) -> Result[Changeset | None, CraftError]:
    if config.changelog.policy is ChangelogPolicy.NONE:
        return Ok(None)

    text = repo.show_file(revision, config.changelog.path)
    if isinstance(text, Err):
        return Err(RepositoryStateError(message=text.error.message))
    if text.value is None:
        ctx.console.warning(f"{config.changelog.path} not found at {revision}")
        return Ok(None)

    changeset = find_changeset(text.value, version)
    if changeset is None:
        ctx.console.warning(f"no changelog entry for {version}; releasing without notes")
    return Ok(changeset)


def _merge_release_branch(
    ctx: ExecutionContext,
    repo: Repository,
    slug: str,
    branch: str,
    options: PublishOptions,
) -> Result[None, CraftError]:
    base = repo.default_branch(options.remote)
    if ctx.skip_mutation(f"merge {branch} into {base}"):
        return Ok(None)

    merged = merge_branch(
        cwd=repo.path, repo=slug, base=base, head=branch, message=f"Merge branch '{branch}'"
    )
    if isinstance(merged, Err):
        return merged
    ctx.console.success(f"merged {branch} into {base}")

    if options.keep_branch:
        return Ok(None)
    deleted = delete_branch(cwd=repo.path, repo=slug, branch=branch)
    if isinstance(deleted, Err):
        ctx.console.warning(f"could not delete {branch}: {deleted.error.message}")
    return Ok(None)
