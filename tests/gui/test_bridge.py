"""Unit tests for SessionBridge (Qt signals fed from worker-thread queues)."""

import logging

import pytest

from inline_repl.config import ReplConfig
from inline_repl.core.models import OutputKind
from inline_repl.driver import InterpreterDriver
from inline_repl.gui.bridge import SessionBridge
from inline_repl.logging_utils import ROOT_LOGGER_NAME
from inline_repl.session import ReplSession


@pytest.fixture
def restore_logger():
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    saved = (list(logger.handlers), logger.level)
    yield
    logger.handlers, logger.level = saved


@pytest.fixture
def bridge(qtbot, fake_processes, restore_logger, tmp_path):
    def factory(sink, **kwargs):
        return InterpreterDriver(sink, process_factory=fake_processes, **kwargs)

    session = ReplSession(ReplConfig(drain_timeout=1.0), base_path=tmp_path, driver_factory=factory)
    b = SessionBridge(session=session)
    b.processes = fake_processes.created
    yield b
    b.close()


class TestSessionBridge:
    """Tests for SessionBridge."""

    def test_drain_when_results_arrive_then_latest_table_emitted(self, qtbot, bridge):
        bridge.submit("1 + 1;\nconsole.log('x');")
        process = bridge.processes[-1]
        process.emit("result", line=1, value={"text": "2", "detail": "2", "type": "number"})
        process.emit("output", line=2, text="`{2}`x\n")
        process.emit("drained")
        assert bridge.session.wait_drained(1.0)

        with qtbot.waitSignal(bridge.annotationsChanged, timeout=1000) as blocker:
            bridge.drain()
        table = blocker.args[0]
        assert [(a.line, a.kind) for a in table] == [(1, OutputKind.EXPRESSION), (2, OutputKind.TERMINAL)]

    def test_timer_when_running_then_drains_without_manual_call(self, qtbot, bridge):
        bridge.submit("1;")
        process = bridge.processes[-1]
        process.emit("result", line=1, value={"text": "1", "detail": "1", "type": "number"})
        process.emit("drained")
        bridge.session.wait_drained(1.0)

        with qtbot.waitSignal(bridge.annotationsChanged, timeout=2000):
            pass

    def test_crash_when_run_live_then_run_failed_emitted(self, qtbot, bridge):
        bridge.submit("while (true) {}")
        bridge.processes[-1].crash(returncode=1)
        with qtbot.waitSignal(bridge.runFailed, timeout=1000) as blocker:
            bridge.drain()
        assert "exited unexpectedly" in blocker.args[0]

    def test_submit_when_start_fails_then_none_and_failure_emitted(self, qtbot, failing_processes, restore_logger):
        def factory(sink, **kwargs):
            return InterpreterDriver(sink, process_factory=failing_processes, **kwargs)

        b = SessionBridge(session=ReplSession(driver_factory=factory))
        try:
            assert b.submit("1;") is None
            with qtbot.waitSignal(b.runFailed, timeout=1000):
                b.drain()
        finally:
            b.close()

    def test_log_when_session_logs_then_log_message_emitted(self, qtbot, bridge):
        messages = []
        bridge.logMessage.connect(lambda level, text: messages.append((level, text)))
        bridge.submit("1;")
        bridge.drain()
        assert any("Starting to interpret" in text for level, text in messages)

    def test_log_when_console_output_arrives_then_echoed_as_log_message(self, bridge):
        messages = []
        bridge.logMessage.connect(lambda level, text: messages.append((level, text)))
        bridge.submit("console.log('hello');")
        process = bridge.processes[-1]
        process.emit("output", line=1, text="`{1}`hello\n")
        process.emit("drained")
        bridge.session.wait_drained(1.0)
        bridge.drain()
        assert any("hello" in text for level, text in messages)

    def test_annotations_except_when_called_then_delegates(self, bridge):
        bridge.submit("1;\n2;")
        process = bridge.processes[-1]
        for line in (1, 2):
            process.emit("result", line=line, value={"text": str(line), "detail": "", "type": "number"})
        process.emit("drained")
        bridge.session.wait_drained(1.0)
        assert [a.line for a in bridge.annotations_except(2)] == [1]
