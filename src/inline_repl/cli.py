"""
Module: cli

Purpose:
    Command line runner. Evaluates one JavaScript file in a single session,
    waits for async results, and prints each source line with its
    annotation (or the annotation table as JSON).

        $ inline-repl examples/demo.js
        let x = 1;
        x + 1;              // 2
        console.log(x);     // > 1

Key Functions:
    - main(): Entry point (``inline-repl`` console script)
    - render_annotated(): Source + annotations as text
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from . import __version__
from .config import ReplConfig
from .core.models.annotations import LineAnnotation
from .core.models.events import OutputKind
from .errors import ConfigError, DriverError
from .logging_utils import configure_cli_logging
from .session import ReplSession

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_PROCESS_FAILURE = 2

KIND_PREFIX = {
    OutputKind.EXPRESSION: "",
    OutputKind.TERMINAL: "> ",
    OutputKind.ERROR: "! ",
}


def render_annotated(source: str, annotations: Sequence[LineAnnotation]) -> str:
    """
    Append ``// <annotation>`` to every annotated source line.

    Example:
        >>> a = [LineAnnotation(2, OutputKind.EXPRESSION, "2", "2")]
        >>> print(render_annotated("let x = 1;\\nx + 1;", a))
        let x = 1;
        x + 1;  // 2
    """
    lines = source.splitlines()
    by_line = {a.line: a for a in annotations}
    width = max((len(line) for line in lines), default=0)
    out: List[str] = []
    for number, line in enumerate(lines, start=1):
        annotation = by_line.get(number)
        if annotation is None:
            out.append(line)
        else:
            prefix = KIND_PREFIX[annotation.kind]
            out.append(f"{line.ljust(width)}  // {prefix}{annotation.short_text}")
    return "\n".join(out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inline-repl",
        description="Evaluate a JavaScript file line by line and show each line's result.",
    )
    parser.add_argument("path", type=Path, help="JavaScript file to evaluate")
    parser.add_argument(
        "--base-path",
        type=Path,
        default=None,
        help="Project root for module resolution and working directory (default: file's folder)",
    )
    parser.add_argument("--node", default=None, help="Node.js executable (default: $INLINE_REPL_NODE or 'node')")
    parser.add_argument("--drain-timeout", type=float, default=None, help="Seconds to wait for async results")
    parser.add_argument("--json", action="store_true", help="Print the annotation table as JSON")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None, stdout: Optional[TextIO] = None) -> int:
    stdout = stdout or sys.stdout
    args = build_parser().parse_args(argv)
    configure_cli_logging(args.verbose)

    path: Path = args.path
    if not path.is_file():
        logger.error(f"File not found: {path}")
        return EXIT_USAGE

    try:
        config = ReplConfig.from_env().with_overrides(
            node_executable=args.node,
            drain_timeout=args.drain_timeout,
        )
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_USAGE

    source = path.read_text(encoding="utf-8")
    base_path = (args.base_path or path.parent).resolve()

    with ReplSession(config, base_path=base_path, file_path=path.resolve()) as session:
        try:
            session.submit(source)
        except DriverError as e:
            logger.error(f"Could not run {path}: {e}")
            return EXIT_PROCESS_FAILURE

        if not session.wait_drained():
            logger.warning(f"Async results still pending after {config.drain_timeout}s")
        annotations = session.annotations()
        failure = session.last_failure

    if args.json:
        json.dump([a.to_dict() for a in annotations], stdout, indent=2)
        stdout.write("\n")
    else:
        stdout.write(render_annotated(source, annotations) + "\n")

    return EXIT_PROCESS_FAILURE if failure is not None else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
