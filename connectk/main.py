import logging
from typing import List, Optional

from connectk.config import CONFIG
from connectk.core.board import NOT_OVER, PLAYER_ONE, GridBoard, Move, opponent
from connectk.core.evaluator import LineEvaluator
from connectk.core.movegen import generate_moves
from connectk.core.search import SearchEngine, SearchResult

logger = logging.getLogger(__name__)


class Engine:
    """A game session: one board, the side to move, and a search engine."""

    def __init__(self, width=None, height=None, k_length=None, gravity=None):
        cfg = CONFIG.board
        self.width = cfg.width if width is None else width
        self.height = cfg.height if height is None else height
        self.k_length = cfg.k_length if k_length is None else k_length
        self.gravity = cfg.gravity if gravity is None else gravity
        self.board = GridBoard(self.width, self.height, self.k_length, self.gravity)
        self.to_move = PLAYER_ONE
        self.move_history: List[Move] = []
        self.search = SearchEngine(LineEvaluator())

    def new_game(self, width: int, height: int, k_length: int, gravity: bool):
        """Switch to a new geometry. Raises ValueError if it is invalid."""
        board = GridBoard(width, height, k_length, gravity)
        self.width, self.height, self.k_length, self.gravity = width, height, k_length, gravity
        self.board = board
        self.to_move = PLAYER_ONE
        self.move_history.clear()

    def reset(self):
        """Empty board, same geometry."""
        self.board = GridBoard(self.width, self.height, self.k_length, self.gravity)
        self.to_move = PLAYER_ONE
        self.move_history.clear()

    def get_best_move(self, time_limit_ms: Optional[int] = None,
                      max_depth: Optional[int] = None) -> SearchResult:
        return self.search.search(self.board, self.to_move, time_limit_ms, max_depth)

    def make_move(self, col: int, row: Optional[int] = None) -> bool:
        """Play for the side to move. Row may be omitted on gravity boards.

        Returns True if the move was legal.
        """
        if row is None:
            if not self.gravity or not 0 <= col < self.width:
                return False
            row = self.board.drop_row(col)
            if row is None:
                return False
        move = Move(col, row)
        try:
            self.board.place(move, self.to_move)
        except ValueError as e:
            logger.debug("Rejected move %s: %s", tuple(move), e)
            return False
        self.move_history.append(move)
        self.to_move = opponent(self.to_move)
        return True

    def undo_move(self):
        """Take back the last move by replaying the rest."""
        if not self.move_history:
            return
        moves = self.move_history[:-1]
        self.reset()
        for move in moves:
            self.make_move(move.col, move.row)

    def get_legal_moves(self) -> List[Move]:
        return generate_moves(self.board)

    def is_game_over(self) -> bool:
        return self.board.winner() != NOT_OVER

    def print_board(self):
        print(self.board)
