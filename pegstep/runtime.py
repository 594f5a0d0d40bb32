# pegstep/runtime.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from .ast import PegGrammar, Rule
from .engine import Frame, StepEngine
from .errors import ParseError
from .report import format_failure


@dataclass
class PegProgram:
    """Checked grammar, ready to run.

    Undefined references are reported here, before any input is parsed.
    """
    grammar: PegGrammar

    def __post_init__(self):
        self.grammar.check()

    @classmethod
    def from_rules(cls, rules: Dict[str, Rule], start: str) -> "PegProgram":
        return cls(PegGrammar(dict(rules), start))


@dataclass(frozen=True)
class ParseResult:
    ok: bool
    text: str
    error_pos: int
    expected: FrozenSet[str]
    frames: Tuple[Frame, ...]
    steps_taken: int

    def describe(self) -> str:
        if self.ok:
            return "ok"
        return format_failure(self.text, self.error_pos, self.expected)


class PegRunner:
    """Execute a PEG program on input text."""
    def __init__(self, program: PegProgram, trace: bool = False):
        self.program = program
        self.trace = trace

    def run(self, text: str, start: Optional[str] = None) -> ParseResult:
        if start is not None:
            self.program.grammar.require_rule(start)
        engine = StepEngine.parse(self.program.grammar, text, start, trace=self.trace)
        return ParseResult(
            ok=engine.ok,
            text=text,
            error_pos=engine.error_pos,
            expected=engine.errors,
            frames=engine.frames(),
            steps_taken=engine.steps_taken,
        )


def parse_string(text: str, program: PegProgram, start: Optional[str] = None) -> ParseResult:
    """Parse text, raising ParseError (with the expected set) on failure."""
    res = PegRunner(program).run(text, start)
    if not res.ok:
        raise ParseError(res.describe(), res.error_pos, res.expected)
    return res
