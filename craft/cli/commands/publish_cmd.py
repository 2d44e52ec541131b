from __future__ import annotations

import typer

from craft.cli.commands._common import exit_on_error
from craft.cli.context import build_context
from craft.output.console import Style
from craft.publish.flow import PublishOptions, run_publish


def publish(
    version: str = typer.Argument(..., help="Version to publish"),
    rev: str | None = typer.Option(
        None, "--rev", "-r", help="Revision to publish (default: the release branch)"
    ),
    target: list[str] = typer.Option(
        [], "--target", "-t", help="Publish to this target only (repeatable)"
    ),
    remote: str = typer.Option("origin", "--remote", help="Git remote of the release branch"),
    no_status_check: bool = typer.Option(
        False, "--no-status-check", help="Do not require green status checks"
    ),
    no_merge: bool = typer.Option(False, "--no-merge", help="Do not merge the release branch"),
    keep_branch: bool = typer.Option(
        False, "--keep-branch", help="Do not delete the release branch after merging"
    ),
) -> None:
    """Publish a prepared release to the configured targets."""
    cli = build_context()

    options = PublishOptions(
        version=version,
        rev=rev,
        remote=remote,
        targets=tuple(target),
        no_status_check=no_status_check,
        no_merge=no_merge,
        keep_branch=keep_branch,
    )
    report = exit_on_error(run_publish(cli.execution, cli.repo, cli.config, options), cli)

    for outcome in report.outcomes:
        uploaded = ", ".join(outcome.uploaded) or "no assets"
        cli.console.print(f"{outcome.target}: {uploaded}", Style.DIM)
    cli.console.success(f"Version {version} published")
