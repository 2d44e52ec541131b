"""Tests for craft.core.errors and craft.output.errors."""

from __future__ import annotations

from craft.core.errors import (
    AssetIntegrityError,
    ConfigurationError,
    DependencyGraphError,
    ErrorCode,
    InvalidVersionError,
    RemoteOperationError,
    RepositoryStateError,
    describe,
)
from craft.output.console import MockConsole
from craft.output.errors import error_exit_code, print_error


class TestErrorCode:
    def test_stable_values(self) -> None:
        assert ErrorCode.OK == 0
        assert ErrorCode.CONFIG_ERROR == 1
        assert ErrorCode.REPOSITORY_ERROR == 2
        assert ErrorCode.DEPENDENCY_ERROR == 3
        assert ErrorCode.REMOTE_ERROR == 4
        assert ErrorCode.IO_ERROR == 5

    def test_str_and_success(self) -> None:
        assert str(ErrorCode.REPOSITORY_ERROR) == "repository error"
        assert ErrorCode.OK.is_success
        assert not ErrorCode.REMOTE_ERROR.is_success


class TestDescribe:
    def test_with_hint(self) -> None:
        error = RepositoryStateError(message="Branch already exists", hint="git branch -D x")
        assert describe(error) == "Branch already exists (hint: git branch -D x)"

    def test_without_hint(self) -> None:
        assert describe(ConfigurationError(message="bad")) == "bad"

    def test_integrity_message(self) -> None:
        error = AssetIntegrityError(asset="a.tgz", check="size", expected="10", actual="9")
        assert describe(error) == "Integrity check failed for a.tgz: size expected 10, got 9"


class TestExitCodes:
    def test_mapping(self) -> None:
        assert error_exit_code(ConfigurationError(message="x")) == 1
        assert error_exit_code(InvalidVersionError(value="v1", message="x")) == 1
        assert error_exit_code(RepositoryStateError(message="x")) == 2
        assert error_exit_code(DependencyGraphError(cycle=("a", "a"), message="x")) == 3
        assert error_exit_code(RemoteOperationError(operation="o", message="x")) == 4
        error = AssetIntegrityError(asset="a", check="digest", expected="1", actual="2")
        assert error_exit_code(error) == 4


class TestPrintError:
    def test_prints_message_and_hint(self) -> None:
        console = MockConsole()
        print_error(RepositoryStateError(message="dirty", hint="git stash"), console)
        assert console.has_error()
        assert "error: dirty" in console.text
        assert "hint: git stash" in console.text

    def test_prints_cycle(self) -> None:
        console = MockConsole()
        error = DependencyGraphError(cycle=("a", "b", "a"), message="Circular dependency")
        print_error(error, console)
        assert "cycle: a -> b -> a" in console.text
