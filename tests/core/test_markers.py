"""
Unit Tests for Marker Formats

Tests for the line-delta marker and console tag helpers shared by the
rewriter, driver and classification rules.
"""

import pytest

from inline_repl.core.markers import (
    console_wrapper_call,
    line_delta_marker,
    scan_line_deltas,
    split_console_tag,
)


class TestLineDeltaMarker:
    """Tests for line_delta_marker / scan_line_deltas."""

    def test_marker_when_delta_given_then_encodes_count(self):
        assert line_delta_marker(3) == "/*`3`*/"

    def test_marker_when_negative_then_raises_error(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            line_delta_marker(-1)

    def test_scan_when_no_markers_then_zero(self):
        assert scan_line_deltas("let x = 1; /* plain comment */") == 0

    def test_scan_when_several_markers_then_sums_them(self):
        text = f"a {line_delta_marker(1)}.b() {line_delta_marker(2)}.c()"
        assert scan_line_deltas(text) == 3


class TestConsoleTag:
    """Tests for console tag formatting and parsing."""

    def test_wrapper_call_when_built_then_passes_line_first(self):
        assert console_wrapper_call("log", 7) == "global['`console`'].log(7, "

    def test_split_when_tagged_then_returns_line_and_message(self):
        assert split_console_tag("`{12}`hello world") == (12, "hello world")

    def test_split_when_message_spans_lines_then_keeps_all_text(self):
        assert split_console_tag("`{4}`first\nsecond") == (4, "first\nsecond")

    def test_split_when_empty_message_then_empty_string(self):
        assert split_console_tag("`{4}`") == (4, "")

    def test_split_when_not_at_start_then_none(self):
        assert split_console_tag("prefix `{4}`hello") is None

    def test_split_when_plain_text_then_none(self):
        assert split_console_tag("hello") is None
