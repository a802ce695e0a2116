"""Board contract consumed by the search, plus a dense-grid implementation.

The search only ever talks to ``BoardState``: it reads cells, asks for the
game status, clones, and places pieces on its own clones. ``GridBoard`` is the
reference implementation: a column-major grid with incremental Zobrist hashing
so positions can be used directly as transposition table keys.

Coordinates are ``(col, row)`` with column 0 on the left and row 0 at the
bottom (the first row gravity fills).
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

EMPTY = 0
PLAYER_ONE = 1
PLAYER_TWO = 2

# winner() results besides a player id
NOT_OVER = -1
DRAW = 0

SYMBOLS = {EMPTY: ".", PLAYER_ONE: "X", PLAYER_TWO: "O"}
_PARSE = {".": EMPTY, "0": EMPTY, "_": EMPTY,
          "X": PLAYER_ONE, "x": PLAYER_ONE, "1": PLAYER_ONE,
          "O": PLAYER_TWO, "o": PLAYER_TWO, "2": PLAYER_TWO}

# Directions scanned for lines: horizontal, vertical, diagonal /, diagonal \
DIRECTIONS: Tuple[Tuple[int, int], ...] = ((1, 0), (0, 1), (1, 1), (-1, 1))


class Move(NamedTuple):
    col: int
    row: int


def opponent(player: int) -> int:
    return PLAYER_TWO if player == PLAYER_ONE else PLAYER_ONE


class BoardState(ABC):
    """Read/clone/place capability set the search depends on.

    Implementations must hash and compare by full cell contents. A board used
    as a table key must not be mutated afterwards.
    """

    width: int
    height: int
    k_length: int
    gravity: bool

    @property
    @abstractmethod
    def move_count(self) -> int: ...

    @property
    @abstractmethod
    def last_move(self) -> Optional[Move]: ...

    @abstractmethod
    def piece_at(self, col: int, row: int) -> int: ...

    @abstractmethod
    def winner(self) -> int:
        """NOT_OVER, DRAW, or the winning player's id."""

    @abstractmethod
    def clone(self) -> "BoardState": ...

    @abstractmethod
    def place(self, move: Move, player: int) -> "BoardState":
        """Put ``player``'s piece at ``move`` in place and return self."""

    def is_terminal(self) -> bool:
        return self.winner() != NOT_OVER


@lru_cache(maxsize=32)
def zobrist_keys(width: int, height: int) -> Tuple[Tuple[Tuple[int, int], ...], ...]:
    """Per-geometry Zobrist table: keys[col * height + row][player - 1].

    Seeded from the geometry so every board of the same size agrees on keys.
    """
    rng = random.Random(width * 1000 + height)
    return tuple(
        (rng.getrandbits(64), rng.getrandbits(64)) for _ in range(width * height)
    )


class GridBoard(BoardState):
    def __init__(self, width: int = 7, height: int = 6, k_length: int = 4,
                 gravity: bool = True):
        if width <= 0 or height <= 0:
            raise ValueError(f"Board must be at least 1x1, got {width}x{height}")
        if k_length <= 0 or k_length > max(width, height):
            raise ValueError(f"Win length {k_length} does not fit a {width}x{height} board")
        self.width = width
        self.height = height
        self.k_length = k_length
        self.gravity = gravity
        # column-major: cells[col * height + row]
        self.cells: List[int] = [EMPTY] * (width * height)
        self._keys = zobrist_keys(width, height)
        self._hash = 0
        self._move_count = 0
        self._last_move: Optional[Move] = None
        self._winner = NOT_OVER

    @classmethod
    def from_rows(cls, rows: Sequence[str], k_length: int, gravity: bool = False) -> "GridBoard":
        """Build a board from text rows, top row first.

        ``.``/``X``/``O`` (or ``0``/``1``/``2``) per cell; whitespace is ignored.
        The status is computed from the final layout.
        """
        grid = [[c for c in r if not c.isspace()] for r in rows]
        if not grid or any(len(r) != len(grid[0]) for r in grid):
            raise ValueError("Rows must be non-empty and of equal length")
        height, width = len(grid), len(grid[0])
        board = cls(width, height, k_length, gravity)
        for i, line in enumerate(grid):
            row = height - 1 - i
            for col, ch in enumerate(line):
                if ch not in _PARSE:
                    raise ValueError(f"Unknown cell symbol {ch!r}")
                piece = _PARSE[ch]
                if piece != EMPTY:
                    board._set(col, row, piece)
                    board._move_count += 1
        board._winner = board._scan_winner()
        return board

    # ── queries ──────────────────────────────────────────────────────────

    @property
    def move_count(self) -> int:
        return self._move_count

    @property
    def last_move(self) -> Optional[Move]:
        return self._last_move

    def piece_at(self, col: int, row: int) -> int:
        return self.cells[col * self.height + row]

    def winner(self) -> int:
        return self._winner

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.width and 0 <= row < self.height

    def drop_row(self, col: int) -> Optional[int]:
        """Lowest empty row of ``col``, or None when the column is full."""
        base = col * self.height
        for row in range(self.height):
            if self.cells[base + row] == EMPTY:
                return row
        return None

    def is_legal(self, move: Move) -> bool:
        col, row = move
        if self._winner != NOT_OVER or not self.in_bounds(col, row):
            return False
        if self.piece_at(col, row) != EMPTY:
            return False
        return not self.gravity or row == 0 or self.piece_at(col, row - 1) != EMPTY

    # ── mutation ─────────────────────────────────────────────────────────

    def clone(self) -> "GridBoard":
        other = GridBoard.__new__(GridBoard)
        other.width = self.width
        other.height = self.height
        other.k_length = self.k_length
        other.gravity = self.gravity
        other.cells = self.cells[:]
        other._keys = self._keys
        other._hash = self._hash
        other._move_count = self._move_count
        other._last_move = self._last_move
        other._winner = self._winner
        return other

    def place(self, move: Move, player: int) -> "GridBoard":
        if player not in (PLAYER_ONE, PLAYER_TWO):
            raise ValueError(f"Unknown player {player}")
        if self._winner != NOT_OVER:
            raise ValueError("Game is already over")
        col, row = move
        if not self.in_bounds(col, row):
            raise ValueError(f"Move {tuple(move)} is off the board")
        if self.piece_at(col, row) != EMPTY:
            raise ValueError(f"Cell {tuple(move)} is occupied")
        if self.gravity and row > 0 and self.piece_at(col, row - 1) == EMPTY:
            raise ValueError(f"Cell {tuple(move)} is not supported")

        self._set(col, row, player)
        self._move_count += 1
        self._last_move = Move(col, row)
        if self._completes_line(col, row, player):
            self._winner = player
        elif self._move_count == self.width * self.height:
            self._winner = DRAW
        return self

    def _set(self, col: int, row: int, player: int):
        idx = col * self.height + row
        self.cells[idx] = player
        self._hash ^= self._keys[idx][player - 1]

    # ── win detection ────────────────────────────────────────────────────

    def _completes_line(self, col: int, row: int, player: int) -> bool:
        k = self.k_length
        for dc, dr in DIRECTIONS:
            count = 1
            for sign in (1, -1):
                c, r = col + dc * sign, row + dr * sign
                while self.in_bounds(c, r) and self.piece_at(c, r) == player:
                    count += 1
                    if count >= k:
                        return True
                    c += dc * sign
                    r += dr * sign
            if count >= k:
                return True
        return False

    def _scan_winner(self) -> int:
        found = set()
        for col in range(self.width):
            for row in range(self.height):
                p = self.piece_at(col, row)
                if p != EMPTY and p not in found and self._completes_line(col, row, p):
                    found.add(p)
        if len(found) > 1:
            raise ValueError("Both players have a completed line")
        if found:
            return found.pop()
        if self._move_count == self.width * self.height:
            return DRAW
        return NOT_OVER

    # ── hashing / display ────────────────────────────────────────────────

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other) -> bool:
        if not isinstance(other, GridBoard):
            return NotImplemented
        return (self._hash == other._hash
                and self.width == other.width
                and self.height == other.height
                and self.cells == other.cells)

    def to_rows(self) -> List[str]:
        """Text rows, top row first (inverse of from_rows)."""
        return [
            "".join(SYMBOLS[self.piece_at(col, row)] for col in range(self.width))
            for row in range(self.height - 1, -1, -1)
        ]

    def __str__(self) -> str:
        return "\n".join(self.to_rows())

    def __repr__(self) -> str:
        return (f"GridBoard({self.width}x{self.height}, k={self.k_length}, "
                f"gravity={self.gravity}, moves={self._move_count})")


def empty_cells(board: BoardState) -> Iterable[Move]:
    for row in range(board.height):
        for col in range(board.width):
            if board.piece_at(col, row) == EMPTY:
                yield Move(col, row)
