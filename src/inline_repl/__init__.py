"""Top-level package for inline-repl.

Runs a JavaScript document line by line in a persistent Node.js REPL and
reports, per source line, the evaluated value, console output or error.

Provides subpackages:
- inline_repl.rewriter – source transforms for line-oriented feeding
- inline_repl.driver – Node child process and line-tracking driver
- inline_repl.correlator – per-line annotation table
- inline_repl.gui – optional PySide6 bridge for the annotation table
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    try:
        from importlib.metadata import version as pkg_version
        return pkg_version("inline-repl")
    except Exception:
        return "0.0.0"


__version__ = _get_version()

from .config import ReplConfig
from .session import ReplSession

__all__: list[str] = ["__version__", "ReplConfig", "ReplSession"]
