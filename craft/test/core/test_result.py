"""Tests for craft.core.result module."""

import pytest

from craft.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    """Tests for Ok type."""

    def test_ok_accessors(self) -> None:
        result = Ok(42)
        assert result.value == 42
        assert result.is_ok() is True
        assert result.is_err() is False
        assert result.unwrap() == 42
        assert result.unwrap_or(0) == 42

    def test_ok_map(self) -> None:
        """Ok.map() transforms the value."""
        assert Ok(21).map(lambda x: x * 2) == Ok(42)

    def test_ok_map_err_is_identity(self) -> None:
        result = Ok(42)
        assert result.map_err(lambda e: f"error: {e}") is result

    def test_ok_repr(self) -> None:
        assert repr(Ok("1.2.3")) == "Ok('1.2.3')"

    def test_ok_frozen(self) -> None:
        """Ok is immutable."""
        result = Ok(42)
        with pytest.raises(AttributeError):
            result.value = 0  # type: ignore[misc]


class TestErr:
    """Tests for Err type."""

    def test_err_accessors(self) -> None:
        result = Err("boom")
        assert result.error == "boom"
        assert result.is_ok() is False
        assert result.is_err() is True
        assert result.unwrap_or(7) == 7

    def test_err_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err: boom"):
            Err("boom").unwrap()

    def test_err_map_is_identity(self) -> None:
        result = Err("boom")
        assert result.map(lambda x: x) is result

    def test_err_map_err(self) -> None:
        """map_err translates errors between layers."""
        assert Err(404).map_err(lambda code: f"HTTP {code}") == Err("HTTP 404")


class TestTypeGuards:
    def test_is_ok_is_err(self) -> None:
        ok: Result[int, str] = Ok(1)
        err: Result[int, str] = Err("no")
        assert is_ok(ok) and not is_err(ok)
        assert is_err(err) and not is_ok(err)

    def test_match_on_result(self) -> None:
        """Results destructure with structural pattern matching."""
        result: Result[int, str] = Err("nope")
        match result:
            case Ok(value):
                seen = f"ok {value}"
            case Err(error):
                seen = f"err {error}"
        assert seen == "err nope"
