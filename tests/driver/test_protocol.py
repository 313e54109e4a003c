"""
Unit Tests for the Host Protocol

Tests for encoding commands and decoding / converting host messages.
"""

import json

import pytest

from inline_repl.core.models import OutputKind
from inline_repl.driver.protocol import (
    decode_message,
    encode_command,
    message_to_event,
)
from inline_repl.errors import TransportError


class TestEncodeCommand:
    """Tests for encode_command()."""

    def test_encode_when_eval_then_single_json_line(self):
        raw = encode_command("eval", line=3, code="x + 1;")
        assert raw.endswith("\n")
        assert raw.count("\n") == 1
        assert json.loads(raw) == {"op": "eval", "line": 3, "code": "x + 1;"}

    def test_encode_when_code_has_newline_then_escaped(self):
        raw = encode_command("eval", line=1, code="a\nb")
        assert raw.count("\n") == 1


class TestDecodeMessage:
    """Tests for decode_message()."""

    def test_decode_when_valid_result_then_dict(self):
        message = decode_message('{"type": "result", "line": 2, "value": {"text": "2"}}')
        assert message["line"] == 2

    def test_decode_when_drained_then_no_line_needed(self):
        assert decode_message('{"type": "drained"}') == {"type": "drained"}

    @pytest.mark.parametrize(
        "raw, match",
        [
            ("not json", "Undecodable"),
            ("[1, 2]", "not an object"),
            ('{"type": "bogus"}', "Unknown message type"),
            ('{"type": "result", "value": {}}', "Invalid line"),
            ('{"type": "output", "line": -1, "text": ""}', "Invalid line"),
            ('{"type": "error", "line": true, "error": {}}', "Invalid line"),
        ],
    )
    def test_decode_when_malformed_then_raises_transport_error(self, raw, match):
        with pytest.raises(TransportError, match=match):
            decode_message(raw)


class TestMessageToEvent:
    """Tests for message_to_event()."""

    def test_convert_when_result_then_expression_event(self):
        event = message_to_event(
            {"type": "result", "line": 2, "value": {"text": "2", "detail": "2", "type": "number"}},
            run_id=5,
        )
        assert event.kind is OutputKind.EXPRESSION
        assert event.value.text == "2"
        assert event.value.type_name == "number"
        assert event.run_id == 5

    def test_convert_when_error_without_name_then_defaults_to_error(self):
        event = message_to_event({"type": "error", "line": 1, "error": {"message": "boom"}})
        assert event.kind is OutputKind.ERROR
        assert event.value.summary == "Error: boom"

    def test_convert_when_output_then_raw_event(self):
        event = message_to_event({"type": "output", "line": 4, "text": "`{2}`hi\n"})
        assert event.kind is None
        assert event.line == 4

    def test_convert_when_control_message_then_none(self):
        assert message_to_event({"type": "drained"}) is None

    def test_convert_when_result_payload_not_object_then_raises(self):
        with pytest.raises(TransportError):
            message_to_event({"type": "result", "line": 1, "value": "2"})
