from __future__ import annotations

import typer

from craft.changelog.generate import Summarizer
from craft.changelog.summarize import default_tiers, make_summarizer
from craft.cli.commands._common import exit_on_error
from craft.cli.context import CLIContext, build_context
from craft.core.errors import CraftError
from craft.core.result import Result
from craft.github.gh import auth_token
from craft.output.console import Style
from craft.publish.flow import PublishOptions, run_publish
from craft.publish.orchestrator import PublishReport
from craft.release.prepare import PrepareOptions, PublishChain, prepare_release


def prepare(
    new_version: str | None = typer.Argument(
        None, help='Version to release: "1.2.3", "auto" or "calver" (default: configured policy)'
    ),
    rev: str | None = typer.Option(None, "--rev", "-r", help="Revision to release from"),
    no_push: bool = typer.Option(False, "--no-push", help="Do not push the release branch"),
    no_git_checks: bool = typer.Option(
        False, "--no-git-checks", help="Skip the working tree checks"
    ),
    no_changelog: bool = typer.Option(False, "--no-changelog", help="Do not touch the changelog"),
    publish: bool = typer.Option(False, "--publish", help="Run `craft publish` afterwards"),
    remote: str = typer.Option("origin", "--remote", help="Git remote to push to"),
    calver_offset: int | None = typer.Option(
        None, "--calver-offset", help="Days to go back for CalVer (overrides config)"
    ),
) -> None:
    """Create a release branch with the changelog and version bump."""
    cli = build_context()

    options = PrepareOptions(
        new_version=new_version,
        rev=rev,
        remote=remote,
        no_push=no_push,
        no_git_checks=no_git_checks,
        no_changelog=no_changelog,
        calver_offset=calver_offset,
    )
    chain = _publish_chain(cli, remote) if publish else None

    result = prepare_release(
        cli.execution,
        cli.repo,
        cli.config,
        options,
        publish_chain=chain,
        summarizer=_summarizer(cli),
    )
    outcome = exit_on_error(result, cli)

    cli.console.print(f"version: {outcome.version}", Style.DIM)
    cli.console.print(f"branch: {outcome.branch}", Style.DIM)
    cli.console.print(f"sha: {outcome.sha}", Style.DIM)
    if cli.config.github.slug:
        cli.console.print(
            f"diff: https://github.com/{cli.config.github.slug}/compare/{outcome.branch}", Style.DIM
        )


def _summarizer(cli: CLIContext) -> Summarizer | None:
    summaries = cli.config.changelog.summaries
    if not summaries.enabled:
        return None
    tiers = default_tiers(summaries, token=auth_token(cwd=cli.root))
    return make_summarizer(summaries, tiers, cli.console)


def _publish_chain(cli: CLIContext, remote: str) -> PublishChain:
    def chain(version: str) -> Result[PublishReport, CraftError]:
        return run_publish(
            cli.execution,
            cli.repo,
            cli.config,
            PublishOptions(version=version, remote=remote),
        )

    return chain
