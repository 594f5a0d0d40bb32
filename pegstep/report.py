# pegstep/report.py
"""Human-readable failure messages.

`format_failure` produces the furthest-failure diagnostic:

    Parse error at 1:3 (offset 2): expected one of {expected match of 'b'}
    aac
      ^
"""

from __future__ import annotations
from typing import Iterable, Tuple


def _line_bounds(src: str, pos: int) -> Tuple[int, int]:
    """[start, end) of the line containing pos."""
    start = src.rfind("\n", 0, pos)
    start = 0 if start < 0 else start + 1
    end = src.find("\n", pos)
    end = len(src) if end < 0 else end
    return start, end


def line_col(src: str, pos: int) -> Tuple[int, int]:
    """1-based line and column of offset pos."""
    start, _ = _line_bounds(src, pos)
    return src.count("\n", 0, pos) + 1, (pos - start) + 1


def caret_snippet(src: str, pos: int) -> str:
    start, end = _line_bounds(src, pos)
    line = src[start:end]
    caret = " " * (pos - start) + "^"
    return f"{line}\n{caret}"


def format_failure(src: str, pos: int, expected: Iterable[str]) -> str:
    expected_sorted = ", ".join(sorted(set(expected)))
    if pos >= len(src):
        where = "EOF"
    else:
        line, col = line_col(src, pos)
        where = f"{line}:{col}"
    return (
        f"Parse error at {where} (offset {pos}): expected one of {{{expected_sorted}}}\n"
        + caret_snippet(src, pos)
    )
