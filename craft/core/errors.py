"""Error taxonomy and exit codes.

Errors are plain frozen values returned inside `Err`. The CLI maps them to a
stable process exit code and prints the message together with its hint.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

__all__ = [
    "AssetIntegrityError",
    "ConfigurationError",
    "CraftError",
    "DependencyGraphError",
    "ErrorCode",
    "InvalidVersionError",
    "RemoteOperationError",
    "RepositoryStateError",
    "describe",
]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: Configuration or input error (bad version, bad policy, missing changelog)
    - 2: Repository state error (dirty tree, branch exists, nothing to commit)
    - 3: Workspace dependency error (cycle)
    - 4: Remote error (release API, upload, integrity)
    - 5: I/O error (file not found, permission denied)
    """

    OK = 0
    CONFIG_ERROR = 1
    REPOSITORY_ERROR = 2
    DEPENDENCY_ERROR = 3
    REMOTE_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


@dataclass(frozen=True, slots=True)
class ConfigurationError:
    """User must fix configuration or input."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class InvalidVersionError:
    """A version string that is not valid semver.

    Attributes:
        value: The offending string, verbatim.
    """

    value: str
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class RepositoryStateError:
    """User must fix the working tree or branch state."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class DependencyGraphError:
    """Workspace dependency graph is not a DAG.

    Attributes:
        cycle: Package names along the cycle; the first name is repeated last.
    """

    cycle: tuple[str, ...]
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class RemoteOperationError:
    """A call to a remote system failed.

    Attributes:
        operation: Short name of the failed call (e.g. "create_release").
    """

    operation: str
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class AssetIntegrityError:
    """Uploaded bytes do not match the local artifact."""

    asset: str
    check: Literal["size", "digest", "source digest"]
    expected: str
    actual: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return (
            f"Integrity check failed for {self.asset}: "
            f"{self.check} expected {self.expected}, got {self.actual}"
        )


type CraftError = (
    ConfigurationError
    | InvalidVersionError
    | RepositoryStateError
    | DependencyGraphError
    | RemoteOperationError
    | AssetIntegrityError
)


def describe(error: CraftError) -> str:
    """One-line rendering: message plus hint when present."""
    if error.hint:
        return f"{error.message} (hint: {error.hint})"
    return error.message
