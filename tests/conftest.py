import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Run Qt headless unless the caller chose a platform explicitly
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Add src to sys.path so we can import inline_repl
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from inline_repl.errors import ProcessStartError, TransportError  # noqa: E402


class FakeReplProcess:
    """Stands in for ReplProcess: records commands, replays host messages on demand."""

    def __init__(self, on_message, on_exit, *, config=None, cwd=None):
        self.on_message = on_message
        self.on_exit = on_exit
        self.config = config
        self.cwd = cwd
        self.sent: List[Dict[str, Any]] = []
        self.started = False
        self.terminated = False
        self.start_error: Optional[Exception] = None
        self.fail_send_after: Optional[int] = None
        self.stderr_tail = ""

    def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    def send(self, op, **fields):
        if self.fail_send_after is not None and len(self.sent) >= self.fail_send_after:
            raise TransportError("pipe closed")
        self.sent.append({"op": op, **fields})

    def terminate(self):
        self.terminated = True

    # Test helpers

    @property
    def evals(self):
        return [(c["line"], c["code"]) for c in self.sent if c["op"] == "eval"]

    def emit(self, message_type, **fields):
        self.on_message({"type": message_type, **fields})

    def crash(self, returncode=1, stderr="boom"):
        self.stderr_tail = stderr
        self.on_exit(returncode, False)


@pytest.fixture
def fake_processes():
    """Factory for InterpreterDriver(process_factory=...); keeps every instance created."""
    created: List[FakeReplProcess] = []

    def factory(on_message, on_exit, **kwargs):
        process = FakeReplProcess(on_message, on_exit, **kwargs)
        created.append(process)
        return process

    factory.created = created
    return factory


@pytest.fixture
def failing_processes():
    """Process factory whose processes fail to start."""

    def factory(on_message, on_exit, **kwargs):
        process = FakeReplProcess(on_message, on_exit, **kwargs)
        process.start_error = ProcessStartError("Could not start 'node': not found")
        return process

    return factory


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project root with an installed package and a local module."""
    (tmp_path / "node_modules" / "lodash").mkdir(parents=True)
    (tmp_path / "node_modules" / "lodash" / "index.js").write_text("module.exports = {};\n")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "util.js").write_text("module.exports = { two: 2 };\n")
    (tmp_path / "src" / "main.js").write_text("")
    (tmp_path / "lib").mkdir()
    (tmp_path / "lib" / "shared.js").write_text("module.exports = 1;\n")
    return tmp_path
