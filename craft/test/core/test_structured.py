"""Tests for craft.core.structured module."""

from __future__ import annotations

from craft.core.structured import (
    as_obj_list,
    as_str_dict,
    get_bool,
    get_int,
    get_str,
    get_str_list,
    get_table,
)


def test_as_str_dict_rejects_non_string_keys() -> None:
    assert as_str_dict({"a": 1}) == {"a": 1}
    assert as_str_dict({1: "a"}) is None
    assert as_str_dict([1]) is None


def test_as_obj_list() -> None:
    assert as_obj_list([1, "a"]) == [1, "a"]
    assert as_obj_list("a") is None


def test_get_str_strips_and_drops_empty() -> None:
    table: dict[str, object] = {"a": "  x ", "b": "   ", "c": 3}
    assert get_str(table, "a") == "x"
    assert get_str(table, "b") is None
    assert get_str(table, "c") is None


def test_get_int_rejects_bool() -> None:
    table: dict[str, object] = {"n": 3, "flag": True}
    assert get_int(table, "n") == 3
    assert get_int(table, "flag") is None
    assert get_int(table, "missing") is None


def test_get_bool_default() -> None:
    table: dict[str, object] = {"on": True, "text": "yes"}
    assert get_bool(table, "on") is True
    assert get_bool(table, "text", True) is True
    assert get_bool(table, "missing") is False


def test_get_table_and_str_list() -> None:
    table: dict[str, object] = {"t": {"k": 1}, "l": ["a", 2, "b"]}
    assert get_table(table, "t") == {"k": 1}
    assert get_table(table, "l") is None
    assert get_str_list(table, "l") == ["a", "b"]
    assert get_str_list(table, "missing") == []
