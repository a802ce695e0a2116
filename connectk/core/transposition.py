"""Transposition table for the k-in-a-row search.

Maps a position to the value the search last backed up for it. Boards hash by
their Zobrist key and compare by cells, so a plain dict gives collision-safe
lookups.

Entries also record the depth limit of the pass that produced them and
whether the value was exact or a bound. The search uses entries only to order
moves; a stored value never stands in for searching a node, since bounds from
a shallower pass are not trustworthy answers at a deeper one.

Usage (example):

    from connectk.core.transposition import TranspositionTable, TT_EXACT

    tt = TranspositionTable()
    tt.store(board, depth=3, value=12.0, flag=TT_EXACT)
    entry = tt.get(board)
    if entry is not None:
        print(entry.value, entry.depth, entry.flag)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from connectk.core.board import BoardState, Move

TT_EXACT = 0
TT_LOWER = 1  # max node cut off: true value >= stored
TT_UPPER = 2  # min node cut off: true value <= stored


@dataclass
class TTEntry:
    value: float
    depth: int
    flag: int
    best_move: Optional[Move] = None

    def __iter__(self):
        return iter((self.value, self.depth, self.flag, self.best_move))


class TranspositionTable:
    """Position -> TTEntry store owned by a single search call.

    Methods:
      - get(board) -> Optional[TTEntry]
      - value(board, default) -> float
      - store(board, depth, value, flag, best_move)
      - clear()
      - stats() -> dict
    """

    def __init__(self):
        self._table: Dict[BoardState, TTEntry] = {}
        self.hits = 0
        self.probes = 0
        self.stores = 0

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, board: BoardState) -> bool:
        return board in self._table

    def get(self, board: BoardState) -> Optional[TTEntry]:
        self.probes += 1
        entry = self._table.get(board)
        if entry is not None:
            self.hits += 1
        return entry

    def value(self, board: BoardState, default: float) -> float:
        entry = self.get(board)
        return default if entry is None else entry.value

    def store(self, board: BoardState, depth: int, value: float, flag: int = TT_EXACT,
              best_move: Optional[Move] = None):
        # latest pass wins; the board must not be mutated after this
        self._table[board] = TTEntry(value, depth, flag, best_move)
        self.stores += 1

    def clear(self):
        self._table.clear()
        self.hits = 0
        self.probes = 0
        self.stores = 0

    def stats(self) -> dict:
        return {
            "entries": len(self._table),
            "probes": self.probes,
            "hits": self.hits,
            "stores": self.stores,
            "hit_rate": self.hits / self.probes if self.probes else 0.0,
        }
