# pegstep/engine.py
from __future__ import annotations
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple
import sys

from .ast import ALT, Composite, PegGrammar, Reference, Rule, Terminal
from .failures import FurthestFailure

# Step machine:
# - No Python recursion: every in-flight rule application is a Step on an
#   explicit stack. advance() performs exactly one transition.
# - Completed frames stay on the stack, so after a successful run the stack
#   is the derivation (rule, pos, value per frame, bottom to top).
# - A composite frame keeps a cursor (index) into its immutable element
#   tuple; the element under the cursor is the one being evaluated.
# - Left recursion is not supported (plain PEG restriction).
# - No memoization.

EOF_MESSAGE = "expected end of input"


def _eprint(*args, **kw) -> None:
    print(*args, file=sys.stderr, **kw)


@dataclass
class Step:
    rule: Rule
    pos: int
    index: int = 0                # cursor into rule.elements (composites only)
    value: Optional[str] = None   # matched text; None also marks a zero-width hand-off
    settled: bool = False         # choice whose current branch already succeeded

    def __str__(self) -> str:
        rule = self.rule
        if isinstance(rule, Composite):
            rest = rule.elements[self.index:]
            shown = "(" + " ".join(repr(e) for e in rest) + ")"
        else:
            shown = repr(rule)
        return shown + "@" + str(self.pos) + (("=" + repr(self.value)) if self.value is not None else "")


@dataclass(frozen=True)
class Frame:
    """Read-only snapshot of one step, handed out to callers."""
    rule: Rule
    pos: int
    value: Optional[str]
    index: int = 0


class StepEngine:
    def __init__(self, grammar: PegGrammar, text: str, start: Optional[str] = None, trace: bool = False):
        self.grammar = grammar
        self.text = text
        self.trace = trace
        self.start = start if start is not None else grammar.start
        self.steps: List[Step] = [Step(Reference(self.start), 0)]
        self.failures = FurthestFailure()
        self.done = False
        self.ok = False
        self.steps_taken = 0

    @classmethod
    def parse(cls, grammar: PegGrammar, text: str, start: Optional[str] = None,
              trace: bool = False) -> "StepEngine":
        return cls(grammar, text, start, trace).run()

    # ---- driver ----

    def run(self) -> "StepEngine":
        while not self.done:
            self.advance()
        return self

    def advance(self) -> None:
        if self.done:
            raise RuntimeError("PEG: advance() called on a finished engine")
        self.steps_taken += 1
        top = self.steps[-1]
        rule = top.rule

        if isinstance(rule, Composite):
            self._push(rule.elements[top.index], top.pos)
        elif isinstance(rule, Reference):
            # UndefinedRuleError propagates: configuration errors are fatal
            self._push(self.grammar.require_rule(rule.name), top.pos)
        elif isinstance(rule, Terminal):
            end = rule.matcher.match(self.text, top.pos)
            if end is None:
                self._backward(rule.failure_message())
            else:
                self._forward(self.text[top.pos:end])
        else:
            raise AssertionError(f"unknown rule: {rule!r}")

    # ---- transitions ----

    def _push(self, rule: Rule, pos: int) -> None:
        if self.trace:
            _eprint(f"[TRACE] push {rule!r} @{pos} (depth={len(self.steps)})")
        self.steps.append(Step(rule, pos))

    def _forward(self, value: Optional[str]) -> None:
        top = self.steps[-1]
        top.value = value
        new_pos = top.pos + len(value) if value is not None else top.pos
        if self.trace:
            _eprint(f"[TRACE] match {value!r} @{top.pos} -> {new_pos}")

        # nearest composite still in sequence mode; a composite whose next
        # element is ALT was a choice that just succeeded: settle it and
        # walk past it
        for step in reversed(self.steps):
            rule = step.rule
            if not isinstance(rule, Composite):
                continue
            nxt = step.index + 1
            if nxt >= len(rule.elements):
                continue
            if rule.elements[nxt] is ALT:
                step.settled = True
                continue
            step.index = nxt
            self._push(rule.elements[nxt], new_pos)
            return

        if new_pos == len(self.text):
            self.failures.clear()
            self.ok = True
            self.done = True
            if self.trace:
                _eprint(f"[TRACE] finish ok after {self.steps_taken} steps")
        else:
            # recorded where the unconsumed input starts, not at the start of
            # the last terminal
            self._backward(EOF_MESSAGE, at=new_pos)

    def _backward(self, message: str, at: Optional[int] = None) -> None:
        pos = self.steps[-1].pos if at is None else at
        self.failures.record(pos, message)
        if self.trace:
            _eprint(f"[TRACE] fail @{pos}: {message}")

        while self.steps:
            step = self.steps[-1]
            rule = step.rule
            # a settled choice is never reopened
            if isinstance(rule, Composite) and not step.settled:
                marker = _next_marker(rule, step.index)
                if marker is not None:
                    # earlier branches are never retried; the next branch
                    # starts at the choice's own position
                    step.index = marker
                    if self.trace:
                        _eprint(f"[TRACE] resume choice {step}")
                    self._forward(None)
                    return
            self.steps.pop()

        self.done = True
        if self.trace:
            _eprint(f"[TRACE] finish failed after {self.steps_taken} steps "
                    f"{sorted(self.failures.messages)}@{self.failures.pos}")

    # ---- results ----

    @property
    def error_pos(self) -> int:
        return self.failures.pos

    @property
    def errors(self) -> FrozenSet[str]:
        return self.failures.messages

    def frames(self) -> Tuple[Frame, ...]:
        return tuple(Frame(s.rule, s.pos, s.value, s.index) for s in self.steps)

    def __repr__(self) -> str:
        steps = "[" + ", ".join(str(s) for s in self.steps) + "]"
        return f"[StepEngine: steps={steps} errors={sorted(self.errors)}@{self.error_pos}]"


def _next_marker(rule: Composite, index: int) -> Optional[int]:
    elems = rule.elements
    for k in range(index + 1, len(elems)):
        if elems[k] is ALT:
            return k
    return None
