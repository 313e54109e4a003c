"""
Unit Tests for Console-Call Tagging

Tests for passing the physical line number to the console shim.
"""

from inline_repl.rewriter.console import join_lines, split_lines, tag_console_calls

SHIM = "global['`console`']"


class TestTagConsoleCalls:
    """Tests for tag_console_calls()."""

    def test_tag_when_call_on_second_line_then_line_two(self):
        result = tag_console_calls("let x = 1;\nconsole.log(x);")
        assert result == f"let x = 1;\n{SHIM}.log(2, x);"

    def test_tag_when_two_calls_on_one_line_then_same_line_number(self):
        result = tag_console_calls("a;\nb;\nconsole.log(1); console.error(2);")
        assert result.splitlines()[2] == f"{SHIM}.log(3, 1); {SHIM}.error(3, 2);"

    def test_tag_when_spaced_call_then_normalized(self):
        assert tag_console_calls("console . info ('x')") == f"{SHIM}.info(1, 'x')"

    def test_tag_when_crlf_endings_then_endings_kept(self):
        result = tag_console_calls("x\r\nconsole.log(x)\r\n")
        assert result == f"x\r\n{SHIM}.log(2, x)\r\n"

    def test_tag_when_function_not_configured_then_unchanged(self):
        source = "console.table(rows);\nconsole.warn('w');"
        result = tag_console_calls(source, functions=("log",))
        assert result == source

    def test_tag_when_identifier_only_ends_with_console_then_unchanged(self):
        source = "myconsole.log(1); $console.log(2);"
        assert tag_console_calls(source) == source

    def test_tag_when_run_twice_then_same_result(self):
        once = tag_console_calls("for (const i of [1, 2]) {\n  console.log(i);\n}")
        assert tag_console_calls(once) == once


class TestSplitLines:
    """Tests for split_lines() / join_lines()."""

    def test_split_when_mixed_endings_then_round_trips(self):
        source = "a\nb\r\nc"
        lines, endings = split_lines(source)
        assert lines == ["a", "b", "c"]
        assert endings == ["\n", "\r\n"]
        assert join_lines(lines, endings) == source
