"""turlang/tape.py – A bi-infinite tape stored as two growable lists."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Tuple


class Tape:
    """Logically infinite in both directions; only visited cells are stored.

    Position ``0`` is the first symbol of the initial contents.  Cells at
    non-negative positions live in ``_right``; cells at negative positions
    live in ``_left`` in reverse order (``-1`` is ``_left[0]``).  Reading
    or writing an unmaterialized cell fills the gap with ``blank``.
    """

    __slots__ = ("blank", "_left", "_right")

    def __init__(self, contents: Iterable[str] = (), blank: str = " ") -> None:
        self.blank = blank
        self._left: List[str] = []
        self._right: List[str] = list(contents)

    def _ensure(self, position: int) -> None:
        if position >= 0:
            missing = position + 1 - len(self._right)
            if missing > 0:
                self._right.extend(self.blank * missing)
        else:
            missing = -position - len(self._left)
            if missing > 0:
                self._left.extend(self.blank * missing)

    def __getitem__(self, position: int) -> str:
        self._ensure(position)
        if position >= 0:
            return self._right[position]
        return self._left[-position - 1]

    def __setitem__(self, position: int, symbol: str) -> None:
        self._ensure(position)
        if position >= 0:
            self._right[position] = symbol
        else:
            self._left[-position - 1] = symbol

    def peek(self, position: int) -> str:
        """Read without materializing the cell."""
        if position >= 0:
            return self._right[position] if position < len(self._right) else self.blank
        index = -position - 1
        return self._left[index] if index < len(self._left) else self.blank

    @property
    def offset(self) -> int:
        """Absolute position of the leftmost materialized cell."""
        return -len(self._left)

    @property
    def bounds(self) -> Tuple[int, int]:
        """Half-open range ``[start, end)`` of materialized positions."""
        return -len(self._left), len(self._right)

    def __len__(self) -> int:
        return len(self._left) + len(self._right)

    def __iter__(self) -> Iterator[str]:
        yield from reversed(self._left)
        yield from self._right

    def symbols(self) -> Tuple[str, ...]:
        """Materialized cells, left to right."""
        return tuple(self)

    def count(self, symbol: str) -> int:
        return self._left.count(symbol) + self._right.count(symbol)

    def non_blank(self) -> int:
        return len(self) - self.count(self.blank)

    def __str__(self) -> str:
        return "".join(self)

    def __repr__(self) -> str:
        return f"Tape({str(self)!r}, offset={self.offset}, blank={self.blank!r})"
