"""Tests for craft.core.context module."""

from __future__ import annotations

from craft.core.context import ExecutionContext, report_error
from craft.core.errors import RepositoryStateError
from craft.core.result import Err, Ok
from craft.output.console import MockConsole, Style


class TestSkipMutation:
    def test_live_run_does_not_skip(self) -> None:
        console = MockConsole()
        ctx = ExecutionContext(console=console)
        assert ctx.skip_mutation("git push origin main") is False
        assert console.outputs == []

    def test_dry_run_logs_and_skips(self) -> None:
        console = MockConsole()
        ctx = ExecutionContext(console=console, dry_run=True)
        assert ctx.skip_mutation("git push origin main") is True
        assert console.messages == ["[dry-run] git push origin main"]
        assert console.outputs[0].style is Style.DIM


class TestAsk:
    def test_no_input_answers_yes(self) -> None:
        asked: list[str] = []

        def confirm(question: str) -> bool:
            asked.append(question)
            return False

        ctx = ExecutionContext(console=MockConsole(), no_input=True, confirm=confirm)
        assert ctx.ask("Continue?") is True
        assert asked == []

    def test_delegates_to_confirm(self) -> None:
        ctx = ExecutionContext(console=MockConsole(), confirm=lambda _: False)
        assert ctx.ask("Continue?") is False

    def test_without_confirm_answers_yes(self) -> None:
        assert ExecutionContext(console=MockConsole()).ask("Continue?") is True


class TestReportError:
    def test_live_run_returns_error(self) -> None:
        error = RepositoryStateError(message="Nothing to commit")
        ctx = ExecutionContext(console=MockConsole())
        assert report_error(ctx, error, "Nothing to commit") == Err(error)

    def test_dry_run_logs_and_continues(self) -> None:
        console = MockConsole()
        ctx = ExecutionContext(console=console, dry_run=True)
        result = report_error(ctx, RepositoryStateError(message="x"), "Nothing to commit")
        assert result == Ok(None)
        assert console.messages == ["[dry-run] Nothing to commit"]
