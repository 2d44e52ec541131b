"""`craft prepare`: cut a release branch for a new version.

The work is a linear sequence of checkpoints driven by
`craft.release.fsm.run_state_machine`:

    idle -> git_state_checked -> branch_created -> changelog_updated
         -> pre_release_hook_run -> committed -> pushed -> publish_chained

Under dry-run the branch, changelog, hook and commit happen in a throwaway
worktree of the starting revision; nothing is ever pushed.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass, replace
from datetime import date
from enum import StrEnum

from craft.changelog.generate import ChangelogBody, Summarizer, generate_from_history
from craft.changelog.prepare import BodyGenerator, prepare_changelog
from craft.core.config import ProjectConfig
from craft.core.context import DRY_RUN_PREFIX, ExecutionContext, report_error
from craft.core.errors import (
    ConfigurationError,
    CraftError,
    RemoteOperationError,
    RepositoryStateError,
)
from craft.core.result import Err, Ok, Result
from craft.git.repository import Repository
from craft.git.worktree import isolated_worktree
from craft.output.console import Style
from craft.platform.actions import set_output
from craft.release.fsm import (
    FINISH,
    CheckpointLog,
    StepHandler,
    StepOutcome,
    advance,
    run_state_machine,
)
from craft.release.hook import run_pre_release_command
from craft.versioning.resolver import resolve_version

__all__ = [
    "PrepareOptions",
    "PrepareOutcome",
    "PrepareSession",
    "PrepareStep",
    "PublishChain",
    "prepare_release",
]

DIRTY_REPOSITORY_MESSAGE = (
    "Your repository is in a dirty state. Please stash or commit the pending changes."
)
NOTHING_TO_COMMIT_MESSAGE = "Nothing to commit: has the pre-release command done its job?"

PublishChain = Callable[[str], Result[object, CraftError]]


class PrepareStep(StrEnum):
    IDLE = "idle"
    GIT_STATE_CHECKED = "git_state_checked"
    BRANCH_CREATED = "branch_created"
    CHANGELOG_UPDATED = "changelog_updated"
    PRE_RELEASE_HOOK_RUN = "pre_release_hook_run"
    COMMITTED = "committed"
    PUSHED = "pushed"
    PUBLISH_CHAINED = "publish_chained"


@dataclass(frozen=True, slots=True)
class PrepareOptions:
    """Command-line knobs of `craft prepare`.

    Attributes:
        new_version: Explicit version, "auto", "calver", or None for the
            configured policy.
        rev: Revision to release from; current branch when None.
        calver_offset: Overrides the configured CalVer offset.
        today: Reference date for CalVer (tests pin it).
    """

    new_version: str | None = None
    rev: str | None = None
    remote: str = "origin"
    no_push: bool = False
    no_git_checks: bool = False
    no_changelog: bool = False
    calver_offset: int | None = None
    today: date | None = None


@dataclass(frozen=True, slots=True)
class PrepareSession:
    """State carried between checkpoints.

    `repo` is the repository mutations go to; under dry-run it becomes the
    isolated worktree once the branch step has run.
    """

    step: PrepareStep
    repo: Repository
    rev: str = ""
    start: str = ""
    previous_tag: str = ""
    version: str = ""
    branch: str = ""
    changelog: str | None = None
    hook_ran: bool = False


@dataclass(frozen=True, slots=True)
class PrepareOutcome:
    version: str
    branch: str
    previous_tag: str
    sha: str
    changelog: str | None
    isolated: bool
    checkpoints: tuple[str, ...]


def _session_step(session: PrepareSession) -> str:
    return session.step


def prepare_release(
    ctx: ExecutionContext,
    repo: Repository,
    config: ProjectConfig,
    options: PrepareOptions,
    *,
    publish_chain: PublishChain | None = None,
    generator: BodyGenerator | None = None,
    summarizer: Summarizer | None = None,
) -> Result[PrepareOutcome, CraftError]:
    """Prepare a release branch; optionally chain into publishing.

    Args:
        generator: Changelog body generator; defaults to the commit history
            of the repository being mutated.
        summarizer: Passed to the default generator.
    """
    if not repo.exists():
        return Err(
            RepositoryStateError(
                message=f"Not a git repository: {repo.path}",
                hint="run craft from the repository root",
            )
        )

    default_branch = repo.default_branch(options.remote)
    checkpoints = CheckpointLog[PrepareSession](ctx.console, _session_step)

    with ExitStack() as stack:
        handlers: dict[str, StepHandler[PrepareSession]] = {
            PrepareStep.IDLE: lambda s: _check_git_state(ctx, s, config, options, default_branch),
            PrepareStep.GIT_STATE_CHECKED: lambda s: _create_branch(ctx, s, config, options, stack),
            PrepareStep.BRANCH_CREATED: lambda s: _update_changelog(
                ctx, s, config, options, generator, summarizer
            ),
            PrepareStep.CHANGELOG_UPDATED: lambda s: _run_hook(ctx, s, config),
            PrepareStep.PRE_RELEASE_HOOK_RUN: lambda s: _commit(ctx, s),
            PrepareStep.COMMITTED: lambda s: _push(ctx, s, options),
            PrepareStep.PUSHED: lambda s: _chain_publish(ctx, s, publish_chain),
            PrepareStep.PUBLISH_CHAINED: lambda _: Ok(FINISH),
        }

        final = run_state_machine(
            initial_state=PrepareSession(step=PrepareStep.IDLE, repo=repo),
            get_step=_session_step,
            handlers=handlers,
            save_state=checkpoints.save,
        )
        if isinstance(final, Err):
            return final
        session = final.value

        head = session.repo.rev_parse("HEAD")
        sha = head.value if isinstance(head, Ok) else session.start

        set_output("branch", session.branch)
        set_output("sha", sha)
        set_output("previous_tag", session.previous_tag)
        if session.changelog:
            set_output("changelog", session.changelog)

        if options.rev is None and not ctx.dry_run:
            _switch_to_default_branch(ctx, repo, default_branch)

        return Ok(
            PrepareOutcome(
                version=session.version,
                branch=session.branch,
                previous_tag=session.previous_tag,
                sha=sha,
                changelog=session.changelog,
                isolated=session.repo.isolated,
                checkpoints=tuple(checkpoints.steps),
            )
        )


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------


type _Step = Result[StepOutcome[PrepareSession], CraftError]


def _check_git_state(
    ctx: ExecutionContext,
    session: PrepareSession,
    config: ProjectConfig,
    options: PrepareOptions,
    default_branch: str,
) -> _Step:
    repo = session.repo
    current = repo.current_branch()
    rev = options.rev or current or default_branch

    if options.no_git_checks:
        ctx.console.print("not checking the status of the local repository", Style.DIM)
    else:
        status = repo.status()
        if isinstance(status, Err):
            return Err(RepositoryStateError(message=status.error.message))
        if status.value.is_dirty:
            return Err(RepositoryStateError(message=DIRTY_REPOSITORY_MESSAGE, hint="git stash"))
        if rev != current:
            ctx.console.warning(
                f"You are releasing from '{rev}', not '{current}' which you are currently on."
            )

    start = repo.rev_parse(rev)
    if isinstance(start, Err):
        return Err(
            RepositoryStateError(
                message=f"Unknown revision: {rev}",
                hint="pass an existing branch, tag or commit with --rev",
            )
        )

    previous = repo.latest_tag(start.value)
    if isinstance(previous, Err):
        return Err(RepositoryStateError(message=previous.error.message))

    commits = repo.log(previous.value or None, until=start.value)
    if isinstance(commits, Err):
        return Err(RepositoryStateError(message=commits.error.message))

    tags = repo.tags()
    if isinstance(tags, Err):
        return Err(RepositoryStateError(message=tags.error.message))

    calver = config.calver
    if options.calver_offset is not None:
        calver = replace(calver, offset=options.calver_offset)

    version = resolve_version(
        config.versioning,
        commits.value,
        previous.value,
        options.new_version,
        tags=tags.value,
        today=options.today,
        calver=calver,
        tag_prefix=_tag_prefix(config),
    )
    if isinstance(version, Err):
        return version

    set_output("version", version.value)
    ctx.console.info(f"Releasing version {version.value} from {rev}")

    if options.rev is None and rev != default_branch:
        ctx.console.warning(f"You are not on your default branch ({default_branch}).")
        if not ctx.ask(f"Release {version.value} from '{rev}' anyway?"):
            return Err(
                ConfigurationError(
                    message="Release cancelled",
                    hint=f"switch to {default_branch} or pass --rev explicitly",
                )
            )

    return Ok(
        advance(
            replace(
                session,
                step=PrepareStep.GIT_STATE_CHECKED,
                rev=rev,
                start=start.value,
                previous_tag=previous.value,
                version=version.value,
            )
        )
    )


def _create_branch(
    ctx: ExecutionContext,
    session: PrepareSession,
    config: ProjectConfig,
    options: PrepareOptions,
    stack: ExitStack,
) -> _Step:
    branch = f"{config.release_branch_prefix}/{session.version}"
    repo = session.repo

    if repo.branch_exists(branch):
        return Err(
            RepositoryStateError(
                message=f"Branch already exists: {branch}",
                hint=f"git branch -D {branch}; git push {options.remote} --delete {branch}",
            )
        )

    if ctx.dry_run:
        # Worktrees share refs with the main checkout: drop the branch after
        # the worktree is gone.
        stack.callback(_drop_branch, ctx, repo, branch)
        created = stack.enter_context(isolated_worktree(ctx, repo, session.start))
        if isinstance(created, Err):
            ctx.console.warning(f"could not create an isolated worktree: {created.error.message}")
        else:
            repo = created.value

    made = repo.create_branch(ctx, branch, session.start)
    if isinstance(made, Err):
        return Err(
            RepositoryStateError(
                message=f"Could not create branch {branch}",
                hint=made.error.message,
            )
        )
    ctx.console.info(f'Created a new release branch: "{branch}"')

    return Ok(advance(replace(session, step=PrepareStep.BRANCH_CREATED, repo=repo, branch=branch)))


def _update_changelog(
    ctx: ExecutionContext,
    session: PrepareSession,
    config: ProjectConfig,
    options: PrepareOptions,
    generator: BodyGenerator | None,
    summarizer: Summarizer | None,
) -> _Step:
    if options.no_changelog:
        ctx.console.print("changelog: skipped (--no-changelog)", Style.DIM)
        return Ok(advance(replace(session, step=PrepareStep.CHANGELOG_UPDATED)))

    def from_history(previous_tag: str) -> Result[ChangelogBody, CraftError]:
        return generate_from_history(
            session.repo,
            previous_tag,
            group_by_scope=config.changelog.group_by_scope,
            summarizer=summarizer,
        )

    body = prepare_changelog(
        ctx,
        session.repo,
        config.changelog,
        session.previous_tag,
        session.version,
        generator or from_history,
    )
    if isinstance(body, Err):
        return body

    return Ok(
        advance(replace(session, step=PrepareStep.CHANGELOG_UPDATED, changelog=body.value))
    )


def _run_hook(ctx: ExecutionContext, session: PrepareSession, config: ProjectConfig) -> _Step:
    ran = run_pre_release_command(
        ctx,
        session.repo,
        config.pre_release_command,
        session.previous_tag,
        session.version,
    )
    if isinstance(ran, Err):
        return ran
    return Ok(
        advance(replace(session, step=PrepareStep.PRE_RELEASE_HOOK_RUN, hook_ran=ran.value))
    )


def _commit(ctx: ExecutionContext, session: PrepareSession) -> _Step:
    done = replace(session, step=PrepareStep.COMMITTED)
    if not session.hook_ran:
        ctx.console.print("not committing: the pre-release command did not run", Style.DIM)
        return Ok(advance(done))

    if not session.repo.has_changes():
        reported = report_error(
            ctx, RepositoryStateError(message=NOTHING_TO_COMMIT_MESSAGE), NOTHING_TO_COMMIT_MESSAGE
        )
        if isinstance(reported, Err):
            return reported
        return Ok(advance(done))

    committed = session.repo.commit_all(ctx, f"release: {session.version}")
    if isinstance(committed, Err):
        return Err(
            RepositoryStateError(
                message=f"Could not commit release {session.version}",
                hint=committed.error.message,
            )
        )
    return Ok(advance(done))


def _push(ctx: ExecutionContext, session: PrepareSession, options: PrepareOptions) -> _Step:
    if ctx.dry_run and session.repo.isolated:
        diff = session.repo.diff_stat(session.start)
        if isinstance(diff, Ok):
            summary = diff.value or "no changes"
            ctx.console.print(
                f"{DRY_RUN_PREFIX}changes against {session.rev}:\n{summary}", Style.DIM
            )

    if options.no_push:
        ctx.console.info("Not pushing the release branch. Push it later with:")
        ctx.console.print(f'  git push -u {options.remote} "{session.branch}"')
    else:
        pushed = session.repo.push(ctx, options.remote, session.branch)
        if isinstance(pushed, Err):
            return Err(
                RemoteOperationError(
                    operation="push",
                    message=f"Could not push {session.branch} to {options.remote}",
                    hint=pushed.error.message,
                )
            )

    return Ok(advance(replace(session, step=PrepareStep.PUSHED)))


def _chain_publish(
    ctx: ExecutionContext, session: PrepareSession, publish_chain: PublishChain | None
) -> _Step:
    done = replace(session, step=PrepareStep.PUBLISH_CHAINED)
    if publish_chain is None:
        ctx.console.success(
            f'Done. Do not forget to run "craft publish {session.version}" '
            "to publish the artifacts."
        )
        return Ok(advance(done))

    if ctx.dry_run:
        ctx.console.print(f"{DRY_RUN_PREFIX}would run: craft publish {session.version}", Style.DIM)
        return Ok(advance(done))

    published = publish_chain(session.version)
    if isinstance(published, Err):
        ctx.console.error(f"publishing failed; retry with: craft publish {session.version}")
        return published
    return Ok(advance(done))


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _tag_prefix(config: ProjectConfig) -> str:
    for target in config.targets:
        if target.name == "github":
            return target.option_str("tag_prefix")
    return ""


def _drop_branch(ctx: ExecutionContext, repo: Repository, branch: str) -> None:
    if not repo.branch_exists(branch):
        return
    deleted = repo.run_git(["branch", "-D", branch])
    if isinstance(deleted, Err):
        ctx.console.warning(f"could not delete dry-run branch {branch}: {deleted.error.detail}")


def _switch_to_default_branch(ctx: ExecutionContext, repo: Repository, default_branch: str) -> None:
    if repo.current_branch() == default_branch:
        return
    ctx.console.info(f"Switching back to the default branch ({default_branch})...")
    switched = repo.checkout(ctx, default_branch)
    if isinstance(switched, Err):
        ctx.console.warning(f"could not switch back to {default_branch}: {switched.error.message}")
