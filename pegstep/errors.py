# pegstep/errors.py
"""Exception types.

Grammar problems are configuration errors: they are raised immediately and
never resolved by backtracking. Ordinary match failures stay inside the
engine and only surface through `ParseError` from `runtime.parse_string`.
"""

from __future__ import annotations
from typing import Iterable, Tuple


class GrammarError(SyntaxError):
    """Malformed grammar."""


class UndefinedRuleError(GrammarError):
    def __init__(self, name: str):
        super().__init__(f"PEG: undefined rule '{name}'")
        self.name = name


class ParseError(SyntaxError):
    def __init__(self, message: str, pos: int, expected: Iterable[str]):
        super().__init__(message)
        self.pos = pos
        self.expected: Tuple[str, ...] = tuple(sorted(expected))
