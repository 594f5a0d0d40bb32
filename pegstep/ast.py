# pegstep/ast.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

import regex as re

from .errors import GrammarError, UndefinedRuleError

# ---- Terminal matchers ----
# Every matcher answers "where does a match anchored exactly at pos end?"
# (None when there is no match). Zero-length matches are legal.

@dataclass(frozen=True)
class Literal:
    text: str  # unescaped text

    def match(self, text: str, pos: int) -> Optional[int]:
        if text.startswith(self.text, pos):
            return pos + len(self.text)
        return None

    def describe(self) -> str:
        # escaped so control characters keep the message on one line
        return repr(self.text)[1:-1]


# Same letters lepta's lexer accepts after a /regex/
_FLAG_MAP = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
    'x': re.VERBOSE,
    'A': re.ASCII,
}

@dataclass(frozen=True)
class Regex:
    pattern: str
    flags: str = ""
    _compiled: "re.Pattern" = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        f = 0
        for ch in self.flags:
            if ch not in _FLAG_MAP:
                raise GrammarError(f"PEG: unknown regex flag {ch!r} in /{self.pattern}/{self.flags}")
            f |= _FLAG_MAP[ch]
        try:
            compiled = re.compile(self.pattern, f)
        except re.error as e:
            raise GrammarError(f"PEG: invalid regex /{self.pattern}/: {e}") from None
        object.__setattr__(self, "_compiled", compiled)

    def match(self, text: str, pos: int) -> Optional[int]:
        m = self._compiled.match(text, pos)
        return m.end() if m is not None else None

    def describe(self) -> str:
        return self.pattern


@dataclass(frozen=True)
class CharClass:
    negated: bool
    # ranges are inclusive (lo..hi). singles is a tuple of single codepoints (as str of length 1)
    ranges: Tuple[Tuple[int, int], ...] = ()
    singles: Tuple[str, ...] = ()

    def _contains(self, ch: str) -> bool:
        cp = ord(ch)
        ok = any(lo <= cp <= hi for (lo, hi) in self.ranges) or ch in self.singles
        return (not ok) if self.negated else ok

    def match(self, text: str, pos: int) -> Optional[int]:
        if pos < len(text) and self._contains(text[pos]):
            return pos + 1
        return None

    def describe(self) -> str:
        body = "".join(f"{chr(lo)}-{chr(hi)}" for (lo, hi) in self.ranges) + "".join(self.singles)
        return ("[^" if self.negated else "[") + body + "]"


@dataclass(frozen=True)
class AnyChar:
    def match(self, text: str, pos: int) -> Optional[int]:
        return pos + 1 if pos < len(text) else None

    def describe(self) -> str:
        return "."


Matcher = Union[Literal, Regex, CharClass, AnyChar]

# ---- Rule expressions ----

class Alternation(Enum):
    """Splits a composite into ordered-choice branches."""
    MARKER = "/"

    def __repr__(self) -> str:
        return "ALT"


ALT = Alternation.MARKER


@dataclass(frozen=True)
class Reference:
    name: str

@dataclass(frozen=True)
class Terminal:
    matcher: Matcher

    def failure_message(self) -> str:
        return f"expected match of '{self.matcher.describe()}'"

@dataclass(frozen=True)
class Composite:
    """Sequence of elements, or ordered choice when ALT markers are present.

    A choice composite alternates strictly: ``rule ALT rule ALT ... rule``.
    Multi-element branches are expressed by nesting a sequence composite.
    """
    elements: Tuple[Union["Rule", Alternation], ...]

    def __post_init__(self):
        elems = tuple(self.elements)
        object.__setattr__(self, "elements", elems)
        if not elems:
            raise GrammarError("PEG: empty composite")
        for el in elems:
            if not isinstance(el, (Reference, Terminal, Composite, Alternation)):
                raise GrammarError(f"PEG: not a rule expression: {el!r}")
        if ALT not in elems:
            return
        for i, el in enumerate(elems):
            want_marker = (i % 2 == 1)
            if (el is ALT) != want_marker:
                raise GrammarError(
                    f"PEG: malformed choice {self!r}: branches must be single elements "
                    f"separated by ALT (offending element #{i})"
                )
        if len(elems) % 2 == 0:
            raise GrammarError(f"PEG: choice {self!r} ends with ALT")

    @property
    def is_choice(self) -> bool:
        return ALT in self.elements

    def __repr__(self) -> str:
        return "(" + " ".join(repr(e) for e in self.elements) + ")"


Rule = Union[Reference, Terminal, Composite]

# ---- Builders ----

def ref(name: str) -> Reference:
    return Reference(name)

def lit(text: str) -> Terminal:
    return Terminal(Literal(text))

def rx(pattern: str, flags: str = "") -> Terminal:
    return Terminal(Regex(pattern, flags))

def seq(*rules: Rule) -> Rule:
    if len(rules) == 1:
        return rules[0]
    return Composite(tuple(rules))

def choice(*alts: Rule) -> Rule:
    if len(alts) == 1:
        return alts[0]
    elems: List[Union[Rule, Alternation]] = []
    for i, alt in enumerate(alts):
        if i:
            elems.append(ALT)
        elems.append(alt)
    return Composite(tuple(elems))

# ---- Grammar ----

def _walk_refs(rule: Rule) -> Iterator[str]:
    pending: List[Union[Rule, Alternation]] = [rule]
    while pending:
        node = pending.pop()
        if isinstance(node, Reference):
            yield node.name
        elif isinstance(node, Composite):
            pending.extend(reversed(node.elements))


@dataclass
class PegGrammar:
    rules: Dict[str, Rule]
    start: str

    def require_rule(self, name: str) -> Rule:
        try:
            return self.rules[name]
        except KeyError:
            raise UndefinedRuleError(name) from None

    def references(self) -> Iterator[str]:
        for rule in self.rules.values():
            yield from _walk_refs(rule)

    def undefined_refs(self) -> Set[str]:
        missing = {name for name in self.references() if name not in self.rules}
        if self.start not in self.rules:
            missing.add(self.start)
        return missing

    def check(self) -> None:
        """Raise UndefinedRuleError for the first missing rule, if any."""
        missing = self.undefined_refs()
        if missing:
            raise UndefinedRuleError(sorted(missing)[0])
