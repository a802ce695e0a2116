"""Legal placement generation for k-in-a-row boards."""

from dataclasses import dataclass
from operator import attrgetter
from typing import List

from connectk.core.board import EMPTY, BoardState, Move, empty_cells


def generate_moves(board: BoardState) -> List[Move]:
    """All legal placements, independent of whose turn it is.

    Gravity boards yield the lowest empty cell of each non-full column, left to
    right. Free-placement boards yield every empty cell in row-major order.
    A finished game has no moves.
    """
    if board.is_terminal():
        return []

    if not board.gravity:
        return list(empty_cells(board))

    moves = []
    for col in range(board.width):
        for row in range(board.height):
            if board.piece_at(col, row) == EMPTY:
                moves.append(Move(col, row))
                break
    return moves


@dataclass(frozen=True)
class Candidate:
    """A move paired with the score used to order it."""
    move: Move
    score: float


def sort_candidates(candidates: List[Candidate], maximizing: bool) -> List[Candidate]:
    """Best-first for the side choosing: highest first when maximizing.

    Stable, so equal scores keep generator order.
    """
    return sorted(candidates, key=attrgetter("score"), reverse=maximizing)
