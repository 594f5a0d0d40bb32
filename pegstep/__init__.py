# pegstep/__init__.py
"""Iterative PEG interpreter.

This package provides:
- Rule expressions for a grammar (references, terminals, composites)
- A step machine that evaluates them on an explicit stack, with
  backtracking, ordered-choice resumption and furthest-failure diagnostics
- Small runtime wrappers (PegProgram / PegRunner / parse_string)
"""

from .ast import (
    Literal, Regex, CharClass, AnyChar,
    Alternation, ALT, Reference, Terminal, Composite,
    ref, lit, rx, seq, choice,
    PegGrammar,
)
from .errors import GrammarError, UndefinedRuleError, ParseError
from .failures import FurthestFailure
from .engine import Step, Frame, StepEngine, EOF_MESSAGE
from .report import format_failure, caret_snippet, line_col
from .runtime import PegProgram, PegRunner, ParseResult, parse_string
