"""
Unit Tests for ReplSession

Tests for run isolation, rewriting before feeding and failure reporting,
with a fake process behind a real InterpreterDriver.
"""

import logging
from pathlib import Path

import pytest

from inline_repl.config import ReplConfig
from inline_repl.core.models import ExpressionValue, OutputEvent, OutputKind
from inline_repl.driver import DriverState, InterpreterDriver
from inline_repl.errors import InlineReplError, ProcessExitedError, ProcessStartError
from inline_repl.session import ReplSession


def _value(text):
    return {"text": text, "detail": text, "type": "number"}


@pytest.fixture
def driver_factory(fake_processes):
    def factory(sink, **kwargs):
        # A new run's process may only be created once every older one is gone
        assert all(p.terminated for p in fake_processes.created)
        return InterpreterDriver(sink, process_factory=fake_processes, **kwargs)

    factory.processes = fake_processes.created
    return factory


@pytest.fixture
def session(driver_factory, tmp_path: Path):
    s = ReplSession(
        ReplConfig(drain_timeout=1.0),
        base_path=tmp_path,
        driver_factory=driver_factory,
    )
    yield s
    s.close()


class TestSessionRuns:
    """Tests for submit() / wait_drained()."""

    def test_submit_when_called_then_rewritten_source_fed(self, session, driver_factory):
        run_id = session.submit("let x = 1;\nconsole.log(x);")
        process = driver_factory.processes[-1]
        assert run_id == 1
        assert process.evals == [(1, "let x = 1;"), (2, "global['`console`'].log(2, x);")]
        assert session.state is DriverState.DRAINING

    def test_submit_when_events_arrive_then_annotations_built(self, session, driver_factory):
        session.submit("let x = 1;\nx + 1;\nconsole.log(x);")
        process = driver_factory.processes[-1]
        process.emit("result", line=2, value=_value("2"))
        process.emit("output", line=3, text="`{3}`1\n")
        process.emit("drained")

        assert session.wait_drained(1.0)
        table = [(a.line, a.kind, a.short_text) for a in session.annotations()]
        assert table == [(2, OutputKind.EXPRESSION, "2"), (3, OutputKind.TERMINAL, "1")]

    def test_submit_when_previous_run_live_then_old_process_terminated_first(self, session, driver_factory):
        session.submit("setInterval(tick, 5);")
        first = driver_factory.processes[-1]
        session.submit("1 + 1;")
        assert first.terminated
        assert len(driver_factory.processes) == 2
        assert not driver_factory.processes[-1].terminated

    def test_submit_when_old_run_emits_late_then_not_in_new_table(self, session, driver_factory):
        session.submit("setInterval(tick, 5);")
        first = driver_factory.processes[-1]
        session.submit("1 + 1;")
        second = driver_factory.processes[-1]

        first.emit("output", line=1, text="`{1}`old\n")
        second.emit("result", line=1, value=_value("2"))
        second.emit("drained")

        assert session.wait_drained(1.0)
        assert [(a.line, a.short_text) for a in session.annotations()] == [(1, "2")]

    def test_apply_when_event_from_stale_run_then_dropped(self, session):
        session.submit("1;")
        session.submit("2;")
        session._apply(OutputEvent.expression(1, ExpressionValue("stale"), run_id=1))
        assert session.annotations() == []

    def test_submit_when_new_run_then_table_reset(self, session, driver_factory):
        session.submit("1;")
        driver_factory.processes[-1].emit("result", line=1, value=_value("1"))
        driver_factory.processes[-1].emit("drained")
        session.wait_drained(1.0)
        assert len(session.annotations()) == 1

        session.submit("")
        assert session.annotations() == []

    def test_wait_drained_when_nothing_submitted_then_true(self, session):
        assert session.wait_drained(0.01)

    def test_annotations_except_when_line_given_then_omitted(self, session, driver_factory):
        session.submit("1;\n2;")
        process = driver_factory.processes[-1]
        process.emit("result", line=1, value=_value("1"))
        process.emit("result", line=2, value=_value("2"))
        process.emit("drained")
        session.wait_drained(1.0)
        assert [a.line for a in session.annotations_except(1)] == [2]


class TestSessionContext:
    """Tests for base path / file path handling."""

    def test_set_context_when_only_file_then_base_is_parent(self, driver_factory, tmp_path: Path):
        document = tmp_path / "src" / "main.js"
        with ReplSession(file_path=document, driver_factory=driver_factory) as s:
            assert s.base_path == tmp_path / "src"
            assert s.file_path == document

    def test_submit_when_base_path_given_then_driver_cwd_set(self, session, driver_factory, tmp_path: Path):
        other = tmp_path / "other"
        session.submit("1;", base_path=other)
        assert driver_factory.processes[-1].cwd == other

    def test_init_when_created_then_rerun_warning_logged(self, driver_factory, caplog):
        with caplog.at_level(logging.WARNING, logger="inline_repl"):
            ReplSession(driver_factory=driver_factory).close()
        assert "runs again on every submission" in caplog.text


class TestSessionFailures:
    """Tests for process-level failures and closing."""

    def test_submit_when_process_fails_to_start_then_logged_and_raised(self, failing_processes, caplog):
        def factory(sink, **kwargs):
            return InterpreterDriver(sink, process_factory=failing_processes, **kwargs)

        seen = []
        s = ReplSession(driver_factory=factory)
        s.add_failure_listener(seen.append)
        with caplog.at_level(logging.ERROR, logger="inline_repl"):
            with pytest.raises(ProcessStartError):
                s.submit("1;")
        assert isinstance(s.last_failure, ProcessStartError)
        assert seen == [s.last_failure]
        assert "[Repl Server]" in caplog.text
        assert s.annotations() == []
        s.close()

    def test_crash_when_run_live_then_failure_listeners_notified(self, session, driver_factory, caplog):
        seen = []
        session.add_failure_listener(seen.append)
        session.submit("while (true) {}")
        with caplog.at_level(logging.ERROR, logger="inline_repl"):
            driver_factory.processes[-1].crash(returncode=9, stderr="Killed")
        assert len(seen) == 1
        assert isinstance(seen[0], ProcessExitedError)
        assert "Killed" in caplog.text
        assert session.annotations() == []

    def test_crash_when_run_superseded_then_ignored(self, session, driver_factory):
        seen = []
        session.add_failure_listener(seen.append)
        session.submit("1;")
        first = driver_factory.processes[-1]
        session.submit("2;")
        first.crash()
        assert seen == []

    def test_close_when_called_then_process_terminated_and_submit_refused(self, session, driver_factory):
        session.submit("1;")
        session.close()
        assert driver_factory.processes[-1].terminated
        assert session.is_closed
        with pytest.raises(InlineReplError, match="closed"):
            session.submit("2;")
