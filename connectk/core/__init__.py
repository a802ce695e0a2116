"""Core engine components: board, evaluator, move generation, search, and transposition table."""

from .board import BoardState, GridBoard, Move
from .evaluator import LineEvaluator
from .movegen import generate_moves
from .search import SearchEngine, SearchResult
from .transposition import TranspositionTable
