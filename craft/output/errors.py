"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from craft.core.errors import (
    AssetIntegrityError,
    ConfigurationError,
    CraftError,
    DependencyGraphError,
    ErrorCode,
    InvalidVersionError,
    RemoteOperationError,
    RepositoryStateError,
)
from craft.output.console import Style

if TYPE_CHECKING:
    from craft.output.console import ConsoleProtocol

__all__ = ["print_error", "error_exit_code"]


def print_error(error: CraftError, console: ConsoleProtocol) -> None:
    """Print an error and, on its own line, the remediation hint."""
    match error:
        case InvalidVersionError(value=value, message=message):
            console.error(f"{message}: {value!r}" if value not in message else message)
        case DependencyGraphError(cycle=cycle, message=message):
            console.error(message)
            console.print(f"cycle: {' -> '.join(cycle)}", Style.DIM)
        case AssetIntegrityError():
            console.error(error.message)
        case _:
            console.error(error.message)

    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def error_exit_code(error: CraftError) -> int:
    """Get the exit code for an error."""
    match error:
        case ConfigurationError() | InvalidVersionError():
            return int(ErrorCode.CONFIG_ERROR)
        case RepositoryStateError():
            return int(ErrorCode.REPOSITORY_ERROR)
        case DependencyGraphError():
            return int(ErrorCode.DEPENDENCY_ERROR)
        case RemoteOperationError() | AssetIntegrityError():
            return int(ErrorCode.REMOTE_ERROR)
    return int(ErrorCode.IO_ERROR)
