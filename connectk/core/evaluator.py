"""
Line Evaluator
==============

Static evaluation for k-in-a-row positions.

Every window of exactly ``k`` consecutive cells (horizontal, vertical and both
diagonals) is scored on its own. A window holding pieces of only one side adds
``n ** 3`` to that side, where ``n`` is its piece count; a completed window
adds the win sentinel instead. Windows holding both colours are dead and score
nothing. The result is the perspective player's total minus the opponent's.

While scanning, the evaluator also notes whether the opponent owns an open
window one piece short of completion. Such positions are "non-quiet": the
static score hides an immediate threat.
"""

from functools import lru_cache
from typing import NamedTuple, Tuple

from connectk.config import CONFIG
from connectk.core.board import DIRECTIONS, BoardState, opponent

INF = float("inf")


class Evaluation(NamedTuple):
    score: float
    quiet: bool


@lru_cache(maxsize=32)
def line_windows(width: int, height: int, k: int) -> Tuple[Tuple[int, ...], ...]:
    """Flat (column-major) cell indices of every k-long window on the board."""
    windows = []
    for dc, dr in DIRECTIONS:
        for col in range(width):
            for row in range(height):
                end_c = col + dc * (k - 1)
                end_r = row + dr * (k - 1)
                if not (0 <= end_c < width and 0 <= end_r < height):
                    continue
                windows.append(tuple(
                    (col + dc * i) * height + (row + dr * i) for i in range(k)
                ))
    return tuple(windows)


class LineEvaluator:
    """Scores positions by open lines. Stateless apart from config."""

    def __init__(self, cfg=None) -> None:
        self.cfg = cfg or CONFIG.eval

    def weight(self, n: int, k: int) -> float:
        if n == k:
            return self.cfg.win_weight
        return float(n ** self.cfg.line_exponent)

    def evaluate(self, board: BoardState, player: int) -> float:
        """Score from ``player``'s point of view; positive favors ``player``."""
        return self.analyze(board, player).score

    def analyze(self, board: BoardState, player: int) -> Evaluation:
        enemy = opponent(player)
        winner = board.winner()
        if winner == player:
            return Evaluation(INF, True)
        if winner == enemy:
            return Evaluation(-INF, True)

        w, h, k = board.width, board.height, board.k_length
        cells = [board.piece_at(c, r) for c in range(w) for r in range(h)]

        # weights indexed by piece count, computed once per call
        weights = [self.weight(n, k) for n in range(k + 1)]
        threat = k - 1

        p_score = 0.0
        e_score = 0.0
        quiet = True
        for window in line_windows(w, h, k):
            p_count = 0
            e_count = 0
            for idx in window:
                piece = cells[idx]
                if piece == player:
                    p_count += 1
                elif piece == enemy:
                    e_count += 1
            if p_count and not e_count:
                p_score += weights[p_count]
            elif e_count and not p_count:
                e_score += weights[e_count]
                if e_count == threat:
                    quiet = False

        return Evaluation(p_score - e_score, quiet)

    def is_quiet(self, board: BoardState, player: int) -> bool:
        return self.analyze(board, player).quiet
