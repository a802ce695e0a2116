import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from connectk.config import CONFIG, SearchConfig
from connectk.core.board import BoardState, Move, opponent
from connectk.core.evaluator import LineEvaluator
from connectk.core.movegen import Candidate, generate_moves, sort_candidates
from connectk.core.transposition import TT_EXACT, TT_LOWER, TT_UPPER, TranspositionTable
from connectk.core.utils import format_info, format_score

logger = logging.getLogger(__name__)

INF = float("inf")


@dataclass
class SearchResult:
    """Outcome of one move decision."""
    move: Optional[Move]
    score: float
    depth: int  # deepest depth limit that produced the answer, -1 if no search pass did
    nodes: int = 0
    time_ms: int = 0
    completed: bool = True  # False when the answering iteration was cut short
    pv: List[Move] = field(default_factory=list)
    tt_stats: Dict = field(default_factory=dict)


class _SearchContext:
    """Per-call search state: who we are, when to stop, what we have seen."""

    def __init__(self, player: int, deadline: float, tt: TranspositionTable):
        self.player = player
        self.opponent = opponent(player)
        self.deadline = deadline
        self.tt = tt
        self.depth_limit = 0
        self.nodes = 0
        self.expired = False

    def time_up(self) -> bool:
        if not self.expired and time.monotonic() >= self.deadline:
            self.expired = True
        return self.expired


def opening_move(board: BoardState) -> Move:
    """Centre column on gravity boards, centre cell otherwise."""
    if board.gravity:
        return Move(board.width // 2, 0)
    return Move(board.width // 2, board.height // 2)


class SearchEngine:
    """Iterative-deepening alpha-beta over k-in-a-row positions.

    All scores are from the root player's point of view: ``_max_value`` picks
    among the root player's moves, ``_min_value`` among the opponent's.
    """

    def __init__(self, evaluator: Optional[LineEvaluator] = None,
                 cfg: Optional[SearchConfig] = None):
        self.evaluator = evaluator or LineEvaluator()
        self.cfg = cfg or CONFIG.search
        self.tt = TranspositionTable()
        self.nodes = 0

    # ── public API ───────────────────────────────────────────────────────

    def choose_move(self, board: BoardState, player: int,
                    time_limit_ms: Optional[int] = None) -> Optional[Move]:
        """Best move for ``player`` within the budget, None if the game is over."""
        return self.search(board, player, time_limit_ms).move

    def search(self, board: BoardState, player: int,
               time_limit_ms: Optional[int] = None,
               max_depth: Optional[int] = None) -> SearchResult:
        start = time.monotonic()
        budget = self.cfg.time_limit_ms if time_limit_ms is None else time_limit_ms
        if max_depth is None:
            max_depth = self.cfg.max_depth
        self.nodes = 0

        moves = generate_moves(board)
        if not moves:
            logger.info("No legal moves: game is over")
            return SearchResult(None, self.evaluator.evaluate(board, player), -1)

        if board.move_count == 0:
            move = opening_move(board)
            logger.info("Opening move %s", tuple(move))
            return SearchResult(move, 0.0, -1, pv=[move])

        deadline = start + self._usable_budget_ms(budget) / 1000.0
        self.tt.clear()
        ctx = _SearchContext(player, deadline, self.tt)

        # Until some iteration finishes a root move, fall back to the first one
        best_move, best_score = moves[0], -INF
        depth_reached = -1
        completed = False
        pv = [best_move]
        # past this depth limit every line has reached a full board
        exhaustive_depth = board.width * board.height - board.move_count

        depth_limit = 0
        while not ctx.time_up():
            if max_depth is not None and depth_limit > max_depth:
                break
            ctx.depth_limit = depth_limit
            found = self._search_root(board, moves, ctx)
            if found is not None:
                best_move, best_score = found
                depth_reached = depth_limit
                completed = not ctx.expired
                pv = self._get_pv_line(board, best_move, player, depth_limit)
                elapsed = time.monotonic() - start
                logger.debug(format_info(depth_limit, best_score, ctx.nodes, elapsed, pv))

            if ctx.expired:
                break
            if abs(best_score) == INF or depth_limit >= exhaustive_depth:
                # proven result, deeper passes cannot change it
                break
            depth_limit += 1

        self.nodes = ctx.nodes
        time_ms = int((time.monotonic() - start) * 1000)
        logger.info("Chose %s score %s depth %d nodes %d in %d ms",
                    tuple(best_move), format_score(best_score), depth_reached,
                    ctx.nodes, time_ms)
        return SearchResult(
            move=best_move,
            score=best_score,
            depth=depth_reached,
            nodes=ctx.nodes,
            time_ms=time_ms,
            completed=completed,
            pv=pv,
            tt_stats=self.tt.stats(),
        )

    def search_depth(self, board: BoardState, player: int, depth_limit: int) -> SearchResult:
        """One uninterrupted pass at a fixed depth limit with a fresh table."""
        start = time.monotonic()
        moves = generate_moves(board)
        if not moves:
            return SearchResult(None, self.evaluator.evaluate(board, player), -1)

        self.tt.clear()
        ctx = _SearchContext(player, INF, self.tt)
        ctx.depth_limit = depth_limit
        best_move, best_score = self._search_root(board, moves, ctx)
        self.nodes = ctx.nodes
        return SearchResult(
            move=best_move,
            score=best_score,
            depth=depth_limit,
            nodes=ctx.nodes,
            time_ms=int((time.monotonic() - start) * 1000),
            pv=self._get_pv_line(board, best_move, player, depth_limit),
            tt_stats=self.tt.stats(),
        )

    # ── internals ────────────────────────────────────────────────────────

    def _usable_budget_ms(self, budget_ms: float) -> float:
        margin = self.cfg.safety_margin_ms
        if budget_ms > 2 * margin:
            return budget_ms - margin
        return max(budget_ms, 0) / 2

    def _search_root(self, board: BoardState, moves: List[Move],
                     ctx: _SearchContext) -> Optional[Tuple[Move, float]]:
        """Score every root move with a full window.

        Returns the best (move, score) among root moves whose subtree finished
        before the deadline, or None if none did.
        """
        best_move = None
        best_score = -INF
        for move, child in self._ordered_children(board, moves, ctx.player, True, ctx):
            if ctx.time_up():
                break
            score = self._min_value(child, 1, -INF, INF, ctx)
            if ctx.expired:
                # subtree was cut short; its value is not comparable
                break
            if best_move is None or score > best_score:
                best_move, best_score = move, score

        if best_move is None:
            return None
        return best_move, best_score

    def _ordered_children(self, board: BoardState, moves: List[Move], mover: int,
                          maximizing: bool, ctx: _SearchContext):
        """Yield (move, child) pairs, best-known first once the table is warm.

        The table counts as warm for this node when it holds the first child.
        Children it has never seen sort last.
        """
        first = board.clone().place(moves[0], mover)
        if first not in ctx.tt:
            yield moves[0], first
            for move in moves[1:]:
                yield move, board.clone().place(move, mover)
            return

        unknown = -INF if maximizing else INF
        children = {moves[0]: first}
        candidates = [Candidate(moves[0], ctx.tt.value(first, unknown))]
        for move in moves[1:]:
            child = board.clone().place(move, mover)
            children[move] = child
            candidates.append(Candidate(move, ctx.tt.value(child, unknown)))

        for cand in sort_candidates(candidates, maximizing):
            yield cand.move, children[cand.move]

    def _static_value(self, board: BoardState, ply: int, ctx: _SearchContext) -> Optional[float]:
        """Evaluate and cache a leaf; None when the node must be expanded."""
        if not ctx.time_up() and ply < ctx.depth_limit and not board.is_terminal():
            return None

        ev = self.evaluator.analyze(board, ctx.player)
        if (not ev.quiet and self.cfg.use_quiescence and not ctx.expired
                and not board.is_terminal()
                and ply < ctx.depth_limit + self.cfg.q_max_depth):
            # opponent threatens to complete a line: look one ply further
            return None

        ctx.tt.store(board, ctx.depth_limit, ev.score, TT_EXACT)
        return ev.score

    def _min_value(self, board: BoardState, ply: int, alpha: float, beta: float,
                   ctx: _SearchContext) -> float:
        ctx.nodes += 1
        value = self._static_value(board, ply, ctx)
        if value is not None:
            return value

        alpha_orig, beta_orig = alpha, beta
        best_score = INF
        best_move = None
        moves = generate_moves(board)
        for move, child in self._ordered_children(board, moves, ctx.opponent, False, ctx):
            score = self._max_value(child, ply + 1, alpha, beta, ctx)
            if best_move is None or score < best_score:
                best_score = score
                best_move = move
                beta = min(beta, best_score)
                if self.cfg.prune and alpha >= beta:
                    break
            if ctx.time_up():
                break

        ctx.tt.store(board, ctx.depth_limit, best_score,
                     self._bound_flag(best_score, alpha_orig, beta_orig), best_move)
        return best_score

    def _max_value(self, board: BoardState, ply: int, alpha: float, beta: float,
                   ctx: _SearchContext) -> float:
        ctx.nodes += 1
        value = self._static_value(board, ply, ctx)
        if value is not None:
            return value

        alpha_orig, beta_orig = alpha, beta
        best_score = -INF
        best_move = None
        moves = generate_moves(board)
        for move, child in self._ordered_children(board, moves, ctx.player, True, ctx):
            score = self._min_value(child, ply + 1, alpha, beta, ctx)
            if best_move is None or score > best_score:
                best_score = score
                best_move = move
                alpha = max(alpha, best_score)
                if self.cfg.prune and alpha >= beta:
                    break
            if ctx.time_up():
                break

        ctx.tt.store(board, ctx.depth_limit, best_score,
                     self._bound_flag(best_score, alpha_orig, beta_orig), best_move)
        return best_score

    @staticmethod
    def _bound_flag(score: float, alpha: float, beta: float) -> int:
        if score <= alpha:
            return TT_UPPER
        if score >= beta:
            return TT_LOWER
        return TT_EXACT

    def _get_pv_line(self, board: BoardState, root_move: Move, player: int,
                     depth: int) -> List[Move]:
        """Follow stored best moves from the root. Approximate: entries are
        overwritten by transpositions reached at other plies."""
        pv = [root_move]
        pos = board.clone().place(root_move, player)
        mover = opponent(player)
        for _ in range(max(depth - 1, 0)):
            entry = self.tt.get(pos)
            if entry is None or entry.best_move is None:
                break
            if entry.best_move not in generate_moves(pos):
                break
            pv.append(entry.best_move)
            pos = pos.clone().place(entry.best_move, mover)
            mover = opponent(mover)
        return pv
