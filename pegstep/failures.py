# pegstep/failures.py
from __future__ import annotations
from typing import FrozenSet, Set


class FurthestFailure:
    """Keeps only the failures recorded at the greatest input offset.

    - deeper failure  -> replaces everything recorded so far
    - same offset     -> message is added (deduplicated)
    - shallower       -> ignored
    """

    def __init__(self) -> None:
        self.pos: int = -1
        self._messages: Set[str] = set()

    def record(self, pos: int, message: str) -> None:
        if pos < self.pos:
            return
        if pos > self.pos:
            self._messages.clear()
            self.pos = pos
        self._messages.add(message)

    def clear(self) -> None:
        self._messages.clear()
        self.pos = -1

    @property
    def messages(self) -> FrozenSet[str]:
        return frozenset(self._messages)

    def __bool__(self) -> bool:
        return bool(self._messages)

    def __repr__(self) -> str:
        return f"FurthestFailure({sorted(self._messages)}@{self.pos})"
