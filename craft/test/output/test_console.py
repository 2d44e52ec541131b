"""Tests for craft.output.console module."""

from __future__ import annotations

from craft.output.console import (
    ConsoleProtocol,
    MockConsole,
    OutputRecord,
    RichConsole,
    Style,
)


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DIM) == "dim"
        assert str(Style.DEFAULT) == "default"


class TestMockConsole:
    """Test MockConsole for testing purposes."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("checkpoint: branch_created", Style.DIM)
        assert console.outputs == [OutputRecord("checkpoint: branch_created", Style.DIM)]

    def test_prefixed_levels(self) -> None:
        console = MockConsole()
        console.success("pushed")
        console.error("push rejected")
        console.warning("no status checks")
        console.info("reusing release")
        assert console.messages == [
            "OK pushed",
            "error: push rejected",
            "warning: no status checks",
            "info: reusing release",
        ]

    def test_header_and_newline(self) -> None:
        console = MockConsole()
        console.header("Publishing 1.0.0")
        console.newline()
        assert console.outputs[0].style == Style.HEADER
        assert console.text == "Publishing 1.0.0\n"

    def test_has_error_and_warning(self) -> None:
        console = MockConsole()
        assert console.has_error() is False
        assert console.has_warning() is False
        console.warning("hmm")
        assert console.has_warning() is True
        assert console.has_error() is False
        console.error("oops")
        assert console.has_error() is True

    def test_find(self) -> None:
        console = MockConsole()
        console.print("github: uploaded 2 assets")
        console.print("mirror: uploaded 2 assets")
        console.print("done")
        assert len(console.find("uploaded")) == 2


class TestConsoleProtocol:
    def test_mock_satisfies_protocol(self) -> None:
        def use_console(c: ConsoleProtocol) -> None:
            c.print("test")
            c.success("ok")
            c.error("err")
            c.warning("warn")
            c.info("info")
            c.header("hdr")
            c.newline()

        mock = MockConsole()
        use_console(mock)
        assert len(mock.outputs) == 7


class TestRichConsole:
    def test_markup_in_messages_is_literal(self, capsys) -> None:  # type: ignore[no-untyped-def]
        console = RichConsole()
        console.print("- [core] fix parser")
        console.warning("[bold]not markup[/bold]")
        out = capsys.readouterr().out
        assert "- [core] fix parser" in out
        assert "[bold]not markup[/bold]" in out

    def test_stderr_console(self, capsys) -> None:  # type: ignore[no-untyped-def]
        RichConsole(stderr=True).print("to stderr")
        captured = capsys.readouterr()
        assert "to stderr" in captured.err
        assert captured.out == ""
