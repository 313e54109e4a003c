"""
Module: config

Purpose:
    Configuration dataclass for a REPL session. Immutable settings for the
    Node executable, console functions to tag, timeouts and display limits,
    validated on construction.

Key Classes:
    - ReplConfig: Settings shared by rewriter, driver and correlator

Dependencies:
    - dataclasses (std)
    - os (std): environment overrides

Used By:
    - inline_repl.rewriter.pipeline: console function names
    - inline_repl.driver.process: executable and timeouts
    - inline_repl.correlator.formatting: short text limit
    - inline_repl.session: passes config through a run
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Tuple

from .errors import ConfigError

NODE_ENV_VAR = "INLINE_REPL_NODE"

DEFAULT_CONSOLE_FUNCTIONS: Tuple[str, ...] = ("log", "debug", "info", "warn", "error")


@dataclass(frozen=True)
class ReplConfig:
    """
    Configuration for a REPL session (immutable).

    Attributes:
        node_executable: Command used to start Node.js.
        console_functions: Console methods rewritten to carry a line tag.
        startup_timeout: Seconds to wait for the host script's ready message.
        drain_timeout: Seconds ``wait_drained`` waits for pending async results.
        terminate_timeout: Seconds to wait for a clean exit before killing.
        inspect_depth: Depth passed to ``util.inspect`` for expression detail.
        max_short_text: Longest inline text before truncation with an ellipsis.
        extra_node_args: Extra arguments placed before the host script path.

    Invariants:
        - all timeouts > 0
        - inspect_depth >= 0
        - max_short_text >= 4
        - console_functions are non-empty identifiers

    Example:
        >>> config = ReplConfig(drain_timeout=1.0)
        >>> config.node_executable
        'node'
    """

    node_executable: str = "node"
    console_functions: Tuple[str, ...] = DEFAULT_CONSOLE_FUNCTIONS
    startup_timeout: float = 5.0
    drain_timeout: float = 5.0
    terminate_timeout: float = 2.0
    inspect_depth: int = 2
    max_short_text: int = 120
    extra_node_args: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.node_executable:
            raise ConfigError("node_executable must not be empty")
        if not self.console_functions:
            raise ConfigError("console_functions must not be empty")
        for name in self.console_functions:
            if not name.isidentifier():
                raise ConfigError(f"Invalid console function name: {name!r}")
        for field_name in ("startup_timeout", "drain_timeout", "terminate_timeout"):
            if getattr(self, field_name) <= 0:
                raise ConfigError(f"{field_name} must be positive")
        if self.inspect_depth < 0:
            raise ConfigError("inspect_depth must be non-negative")
        if self.max_short_text < 4:
            raise ConfigError("max_short_text must be at least 4")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides,
    ) -> "ReplConfig":
        """
        Build a config, taking the Node executable from ``INLINE_REPL_NODE``.

        Explicit keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        values = dict(overrides)
        node = env.get(NODE_ENV_VAR, "").strip()
        if node and "node_executable" not in values:
            values["node_executable"] = node
        return cls(**values)

    def with_overrides(self, **changes) -> "ReplConfig":
        """Return a copy with the given fields replaced (None values ignored)."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes) if changes else self
