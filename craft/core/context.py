"""Execution context threaded through every mutating or prompting call.

There is no global dry-run or no-input flag: each call that could change the
repository, the filesystem or a remote system receives the context and asks
it whether to proceed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from craft.core.result import Err, Ok, Result
from craft.output.console import ConsoleProtocol, Style

__all__ = ["ExecutionContext", "report_error"]

DRY_RUN_PREFIX = "[dry-run] "


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Per-invocation settings.

    Attributes:
        console: Where progress, warnings and dry-run notices go.
        dry_run: Perform reads and validation only; log mutations instead.
        no_input: Never prompt; confirmations are answered "yes".
        confirm: Prompt callable used when input is allowed.
    """

    console: ConsoleProtocol
    dry_run: bool = False
    no_input: bool = False
    confirm: Callable[[str], bool] | None = None

    def skip_mutation(self, description: str) -> bool:
        """Return True (after logging) when a mutation must not happen."""
        if not self.dry_run:
            return False
        self.console.print(f"{DRY_RUN_PREFIX}{description}", Style.DIM)
        return True

    def ask(self, question: str) -> bool:
        if self.no_input or self.confirm is None:
            return True
        return self.confirm(question)


def report_error[E](ctx: ExecutionContext, error: E, message: str) -> Result[None, E]:
    """Fail, or under dry-run log the failure and carry on.

    Only for error conditions of mutating steps; validation failures are
    returned directly so a dry run rehearses them faithfully.
    """
    if ctx.dry_run:
        ctx.console.print(f"{DRY_RUN_PREFIX}{message}", Style.DIM)
        return Ok(None)
    return Err(error)
