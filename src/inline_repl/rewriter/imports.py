"""
Module: rewriter.imports

Purpose:
    Rewrite ES module import declarations into CommonJS ``require`` calls the
    REPL can evaluate one line at a time.

        import X, { a, b as c } from "m"   ->  const { default: X, a, b: c } = require('m')
        import * as ns from "m"            ->  const ns = require('m')
        import "m"                         ->  require('m')

    Pattern match only. No scope tracking, no nested braces, TypeScript
    ``import type`` is left alone. Text that does not match passes through.
    A declaration spanning several lines is replaced by the one-line form
    followed by the same number of newlines so later line numbers hold.

Key Functions:
    - normalize_imports(): Apply the rewrite to a whole document
"""

from __future__ import annotations

import re
from typing import List

IMPORT_DECLARATION = re.compile(
    r"(?<![\w$.])import(?=[\s{*])\s*"
    r"(?!type\b)"
    r"(?:(?P<default>[A-Za-z_$][\w$]*)\s*,?\s*)?"
    r"(?:\*\s*as\s+(?P<namespace>[A-Za-z_$][\w$]*)\s*)?"
    r"(?:\{(?P<named>[^{}]*)\}\s*)?"
    r"from\s*(?P<quote>[\"'])(?P<module>[^\"'\r\n]+)(?P=quote)"
)

SIDE_EFFECT_IMPORT = re.compile(
    r"(?<![\w$.])import\s*(?P<quote>[\"'])(?P<module>[^\"'\r\n]+)(?P=quote)"
)

NAMED_SPECIFIER = re.compile(
    r"^(?P<name>[A-Za-z_$][\w$]*)(?:\s+as\s+(?P<alias>[A-Za-z_$][\w$]*))?$"
)


def _named_bindings(clause: str) -> List[str]:
    """Turn ``a, b as c`` into destructuring entries ``a``, ``b: c``."""
    bindings = []
    for specifier in clause.split(","):
        specifier = " ".join(specifier.split())
        if not specifier:
            continue
        match = NAMED_SPECIFIER.match(specifier)
        if match is None:
            # Leave odd specifiers in place; the REPL reports the syntax error.
            bindings.append(specifier)
        elif match.group("alias"):
            bindings.append(f"{match.group('name')}: {match.group('alias')}")
        else:
            bindings.append(match.group("name"))
    return bindings


def _rewrite_declaration(match: re.Match) -> str:
    default = match.group("default")
    namespace = match.group("namespace")
    named = match.group("named")
    module = match.group("module")
    require = f"require('{module}')"

    if default == "from" and not (namespace or named):
        # `import from "m"` is not an import declaration we understand
        return match.group(0)

    if namespace and not default and named is None:
        statement = f"const {namespace} = {require}"
    else:
        entries = []
        if default:
            entries.append(f"default: {default}")
        if named is not None:
            entries.extend(_named_bindings(named))
        if namespace:
            # `import X, * as ns` binds the whole module to ns as well
            statement = f"const {namespace} = {require}"
            if entries:
                statement += f", {{ {', '.join(entries)} }} = {namespace}"
        elif entries:
            statement = f"const {{ {', '.join(entries)} }} = {require}"
        else:
            statement = require

    return statement + "\n" * match.group(0).count("\n")


def normalize_imports(source: str) -> str:
    """
    Rewrite every recognised import declaration in ``source``.

    Idempotent: the ``require`` form never matches the import pattern.

    Example:
        >>> normalize_imports("import fs, { readFile as rf } from 'fs';")
        "const { default: fs, readFile: rf } = require('fs');"
    """
    source = IMPORT_DECLARATION.sub(_rewrite_declaration, source)
    return SIDE_EFFECT_IMPORT.sub(
        lambda m: f"require('{m.group('module')}')", source
    )
