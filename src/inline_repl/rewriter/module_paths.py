"""
Module: rewriter.module_paths

Purpose:
    Point ``require()`` calls at absolute paths. The REPL process runs with
    the project root as working directory, but relative requires in a
    document should resolve against the document's own directory and
    installed packages should come from the project's node_modules.

    For ``require('name')`` where name is not a Node builtin and not
    already absolute, the first existing candidate wins:
        1. <base_path>/node_modules/<name>
        2. <dir of file_path>/<name>     (names containing a separator)
        3. <base_path>/<name>            (names containing a separator)
    A bare name that is not installed is left alone so Node can resolve it.
    No existing candidate leaves the call unchanged.

Key Functions:
    - resolve_module_paths(): Rewrite every require call in a document
    - resolve_module_name(): Resolve a single module name

Dependencies:
    - pathlib (std): existence checks
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path, PureWindowsPath
from typing import Iterable, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

REQUIRE_CALL = re.compile(
    r"(?<![\w$.])require\s*\(\s*(?P<quote>['\"])(?P<name>[\w@~\\/.\-:]+)(?P=quote)\s*\)"
)

# Extensions Node tries when a required path has none
RESOLVABLE_EXTENSIONS = (".js", ".json", ".node", ".cjs", ".mjs")

NODE_BUILTIN_MODULES = frozenset({
    "assert", "assert/strict", "async_hooks", "buffer", "child_process",
    "cluster", "console", "constants", "crypto", "dgram",
    "diagnostics_channel", "dns", "dns/promises", "domain", "events", "fs",
    "fs/promises", "http", "http2", "https", "inspector", "module", "net",
    "os", "path", "path/posix", "path/win32", "perf_hooks", "process",
    "punycode", "querystring", "readline", "readline/promises", "repl",
    "stream", "stream/consumers", "stream/promises", "stream/web",
    "string_decoder", "sys", "timers", "timers/promises", "tls",
    "trace_events", "tty", "url", "util", "util/types", "v8", "vm",
    "wasi", "worker_threads", "zlib",
})


def is_builtin_module(name: str) -> bool:
    """True for Node core modules, with or without the ``node:`` scheme."""
    return name.startswith("node:") or name in NODE_BUILTIN_MODULES


def _is_absolute(name: str) -> bool:
    return os.path.isabs(name) or PureWindowsPath(name).is_absolute()


def _exists(candidate: Path) -> bool:
    if candidate.exists():
        return True
    return any(Path(f"{candidate}{ext}").exists() for ext in RESOLVABLE_EXTENSIONS)


def _candidates(
    name: str,
    base_path: Optional[Path],
    file_path: Optional[Path],
) -> Iterable[Path]:
    if base_path is not None:
        yield base_path / "node_modules" / name

    if "/" not in name and "\\" not in name:
        return

    if file_path is not None:
        yield file_path.parent / name
    if base_path is not None:
        yield base_path / name


def resolve_module_name(
    name: str,
    base_path: Optional[PathLike] = None,
    file_path: Optional[PathLike] = None,
) -> Optional[str]:
    """
    Resolve one module name to an absolute path.

    Args:
        name: Module name as written in the source (JS escapes undone).
        base_path: Project root; the REPL's working directory.
        file_path: Path of the document being evaluated, if saved.

    Returns:
        Normalized path of the first existing candidate, or None when the
        name should stay as written.
    """
    if is_builtin_module(name) or _is_absolute(name):
        return None

    base = Path(base_path) if base_path else None
    file = Path(file_path) if file_path else None

    for candidate in _candidates(name, base, file):
        if _exists(candidate):
            return os.path.normpath(str(candidate))
    return None


def resolve_module_paths(
    source: str,
    base_path: Optional[PathLike] = None,
    file_path: Optional[PathLike] = None,
) -> str:
    """
    Rewrite ``require('name')`` arguments to resolved absolute paths.

    Backslashes in resolved paths are escaped for the JavaScript string
    literal; the original quote character is kept.
    """

    def _rewrite(match: re.Match) -> str:
        quote = match.group("quote")
        name = match.group("name").replace("\\\\", "\\")
        resolved = resolve_module_name(name, base_path, file_path)
        if resolved is None:
            return match.group(0)
        logger.debug(f"Resolved require('{name}') -> {resolved}")
        escaped = resolved.replace("\\", "\\\\")
        return f"require({quote}{escaped}{quote})"

    return REQUIRE_CALL.sub(_rewrite, source)
