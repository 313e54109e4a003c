"""Allow ``python -m inline_repl``."""

from inline_repl.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
