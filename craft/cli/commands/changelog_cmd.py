from __future__ import annotations

import typer

from craft.changelog.generate import generate_from_history
from craft.changelog.summarize import default_tiers, make_summarizer
from craft.cli.commands._common import exit_on_error, exit_with
from craft.cli.context import build_context
from craft.core.errors import ErrorCode
from craft.core.result import Err
from craft.github.gh import auth_token


def changelog(
    since: str | None = typer.Option(
        None, "--since", "-s", help="Start after this revision (default: latest tag)"
    ),
) -> None:
    """Print the changelog generated from commit history."""
    cli = build_context(stderr=True)

    if since is None:
        latest = cli.repo.latest_tag()
        if isinstance(latest, Err):
            exit_with(latest.error.message, code=ErrorCode.REPOSITORY_ERROR)
        since = latest.value

    summaries = cli.config.changelog.summaries
    summarizer = None
    if summaries.enabled:
        tiers = default_tiers(summaries, token=auth_token(cwd=cli.root))
        summarizer = make_summarizer(summaries, tiers, cli.console)

    body = exit_on_error(
        generate_from_history(
            cli.repo,
            since or "",
            group_by_scope=cli.config.changelog.group_by_scope,
            summarizer=summarizer,
        ),
        cli,
    )
    typer.echo(body.text)
