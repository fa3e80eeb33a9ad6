"""Chessagon AI engine: iterative-deepening negamax with alpha-beta pruning."""

import logging
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple, TYPE_CHECKING

from .board import PIECE_VALUES, Board, Move, PieceType
from .config import EvalConfig, SearchConfig
from .coordinate import index
from .errors import NoLegalMoves
from .evaluator import Evaluator
from .transposition import TT_EXACT, TT_LOWER, TT_UPPER, TranspositionTable

if TYPE_CHECKING:
    from .game import Game

logger = logging.getLogger(__name__)

MATE_SCORE = 1_000_000
INFINITY = MATE_SCORE + 1
MAX_PLY = 128
# Nodes between two looks at the clock
NODE_CHECK_INTERVAL = 1024


def is_mate_score(score: int) -> bool:
    return abs(score) >= MATE_SCORE - MAX_PLY


def _score_to_tt(score: int, ply: int) -> int:
    # Mate scores are stored relative to the node, not the root
    if score >= MATE_SCORE - MAX_PLY:
        return score + ply
    if score <= -(MATE_SCORE - MAX_PLY):
        return score - ply
    return score


def _score_from_tt(score: int, ply: int) -> int:
    if score >= MATE_SCORE - MAX_PLY:
        return score - ply
    if score <= -(MATE_SCORE - MAX_PLY):
        return score + ply
    return score


class _SearchTimeout(Exception):
    """Raised inside the search when the deadline passes."""


@dataclass
class SearchResult:
    move: Move
    score: int
    depth: int
    nodes: int
    tt_hits: int
    elapsed: float

    @property
    def is_mate(self) -> bool:
        return is_mate_score(self.score)


class _Searcher:
    """Per-worker search state: node count, killer moves and history."""

    def __init__(self, evaluator: Evaluator, tt: Optional[TranspositionTable],
                 deadline: Optional[float]):
        self.evaluator = evaluator
        self.tt = tt
        self.deadline = deadline
        self.nodes = 0
        self.killers: List[List[Optional[Move]]] = [[None, None] for _ in range(MAX_PLY + 1)]
        self.history = defaultdict(int)

    def check_time(self):
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise _SearchTimeout()

    def negamax(self, board: Board, depth: int, alpha: int, beta: int, ply: int) -> int:
        self.nodes += 1
        if self.nodes % NODE_CHECK_INTERVAL == 0:
            self.check_time()

        if board.is_fifty_move_draw() or board.is_draw_by_repetition():
            return 0

        alpha_orig = alpha
        key = board.get_zobrist_hash()
        tt_move = None
        if self.tt is not None:
            entry = self.tt.get(key)
            if entry is not None:
                tt_move = entry.move
                if entry.depth >= depth:
                    score = _score_from_tt(entry.score, ply)
                    if entry.flag == TT_EXACT:
                        return score
                    if entry.flag == TT_LOWER:
                        alpha = max(alpha, score)
                    elif entry.flag == TT_UPPER:
                        beta = min(beta, score)
                    if alpha >= beta:
                        return score

        if depth <= 0:
            # A mated or stalemated leaf is scored as such, not as material
            if not board.has_legal_move():
                if board.is_in_check():
                    return -(MATE_SCORE - ply)
                return 0
            return self.evaluator.evaluate(board)

        moves = board.generate_moves()
        if not moves:
            if board.is_in_check():
                return -(MATE_SCORE - ply)
            return 0

        best_score = -INFINITY
        best_move = None
        for move in self.order_moves(board, moves, tt_move, ply):
            quiet = board.squares[index(move.target)] is None and not move.en_passant
            token = board.apply(move)
            try:
                score = -self.negamax(board, depth - 1, -beta, -alpha, ply + 1)
            finally:
                board.undo(token)

            if score > best_score:
                best_score = score
                best_move = move
            if score > alpha:
                alpha = score
            if alpha >= beta:
                if quiet and move.promotion is None:
                    self._record_cutoff(move, depth, ply)
                break

        if self.tt is not None:
            if best_score <= alpha_orig:
                flag = TT_UPPER
            elif best_score >= beta:
                flag = TT_LOWER
            else:
                flag = TT_EXACT
            self.tt.store(key, depth, _score_to_tt(best_score, ply), flag, best_move)
        return best_score

    def _record_cutoff(self, move: Move, depth: int, ply: int):
        self.history[(move.origin, move.target)] += depth * depth
        killers = self.killers[min(ply, MAX_PLY)]
        if move != killers[0]:
            killers[1] = killers[0]
            killers[0] = move

    def order_moves(self, board: Board, moves: List[Move], tt_move: Optional[Move],
                    ply: int) -> List[Move]:
        """Transposition move, captures (MVV-LVA), promotions, killers, history."""
        killers = self.killers[min(ply, MAX_PLY)]
        squares = board.squares

        def score(move: Move) -> int:
            if move == tt_move:
                return 3_000_000
            victim = squares[index(move.target)]
            if victim is not None or move.en_passant:
                victim_type = victim.piece_type if victim is not None else PieceType.PAWN
                attacker = squares[index(move.origin)]
                return 2_000_000 + PIECE_VALUES[victim_type] * 10 - attacker.piece_type.value
            if move.promotion is not None:
                return 1_500_000 + PIECE_VALUES[move.promotion]
            if move == killers[0]:
                return 1_000_000
            if move == killers[1]:
                return 900_000
            return self.history[(move.origin, move.target)]

        return sorted(moves, key=score, reverse=True)


class Engine:
    """Chessagon AI engine."""

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        evaluator: Optional[Evaluator] = None,
        eval_config: Optional[EvalConfig] = None,
    ):
        """Initialize engine.

        Args:
            config: Search settings (depth, time limit, threads, table size)
            evaluator: Static evaluator; built from ``eval_config`` when omitted
            eval_config: Evaluation weights for the default evaluator
        """
        self.config = config or SearchConfig()
        self.evaluator = evaluator or Evaluator(eval_config)
        self.tt = (
            TranspositionTable(self.config.tt_entries)
            if self.config.use_transposition_table
            else None
        )
        self.nodes_searched = 0
        self.last_result: Optional[SearchResult] = None

    def new_game(self):
        """Forget everything learned from previous positions."""
        if self.tt is not None:
            self.tt.clear()

    def search(
        self,
        board: Board,
        max_depth: Optional[int] = None,
        time_limit: Optional[float] = None,
    ) -> SearchResult:
        """Search for the best move with iterative deepening.

        Depth 1 always runs to completion. Deeper iterations stop when
        ``time_limit`` seconds have passed, and an interrupted iteration is
        discarded.

        Raises:
            NoLegalMoves: If the side to move is checkmated or stalemated.
        """
        max_depth = max_depth or self.config.max_depth
        if time_limit is None:
            time_limit = self.config.time_limit

        moves = board.generate_moves()
        if not moves:
            raise NoLegalMoves(board.is_in_check())

        start = time.monotonic()
        deadline = start + time_limit if time_limit is not None else None
        root = board.copy()
        hits_before = self.tt.hits if self.tt is not None else 0
        searcher = _Searcher(self.evaluator, self.tt, None)
        nodes = 0
        result: Optional[SearchResult] = None

        for depth in range(1, max_depth + 1):
            if depth > 1 and deadline is not None and time.monotonic() >= deadline:
                break
            searcher.deadline = deadline if depth > 1 else None
            nodes_before = searcher.nodes
            try:
                score, best, worker_nodes = self._search_root(root, moves, depth, searcher)
            except _SearchTimeout:
                logger.debug("Depth %d interrupted by the clock", depth)
                break
            nodes += searcher.nodes - nodes_before + worker_nodes

            # Best move first at the next depth
            moves = [best] + [m for m in moves if m != best]
            elapsed = time.monotonic() - start
            tt_hits = (self.tt.hits - hits_before) if self.tt is not None else 0
            result = SearchResult(best, score, depth, nodes, tt_hits, elapsed)
            logger.info(
                "depth %d score %d move %s nodes %d tt_hits %d time %.3fs",
                depth, score, best, nodes, tt_hits, elapsed,
            )
            if score >= MATE_SCORE - MAX_PLY:
                break

        self.nodes_searched = result.nodes
        self.last_result = result
        return result

    def best_move(self, board: Board, time_limit: Optional[float] = None) -> Move:
        return self.search(board, time_limit=time_limit).move

    def choose_move(self, game: "Game") -> Move:
        """Pick a move for the side to move in a timed game."""
        budget = game.move_budget()
        return self.search(game.board, time_limit=budget).move

    def _search_root(self, board: Board, moves: List[Move], depth: int,
                     searcher: _Searcher) -> Tuple[int, Move, int]:
        if self.config.threads > 1 and len(moves) > 1:
            return self._search_root_parallel(board, moves, depth, searcher.deadline)

        alpha = -INFINITY
        best_move = moves[0]
        for move in moves:
            searcher.check_time()
            token = board.apply(move)
            try:
                score = -searcher.negamax(board, depth - 1, -INFINITY, -alpha, 1)
            finally:
                board.undo(token)
            if score > alpha:
                alpha = score
                best_move = move
        if self.tt is not None:
            self.tt.store(board.get_zobrist_hash(), depth, alpha, TT_EXACT, best_move)
        return alpha, best_move, 0

    def _search_root_parallel(self, board: Board, moves: List[Move], depth: int,
                              deadline: Optional[float]) -> Tuple[int, Move, int]:
        """Search every root move on its own board copy, sharing the table."""

        def search_one(move: Move) -> Tuple[int, int]:
            worker = _Searcher(self.evaluator, self.tt, deadline)
            worker.check_time()
            local = board.copy()
            local.apply(move)
            score = -worker.negamax(local, depth - 1, -INFINITY, INFINITY, 1)
            return score, worker.nodes

        with ThreadPoolExecutor(max_workers=self.config.threads) as executor:
            futures = [executor.submit(search_one, move) for move in moves]
            results = [future.result() for future in futures]

        best_score = -INFINITY
        best_move = moves[0]
        nodes = 0
        for move, (score, worker_nodes) in zip(moves, results):
            nodes += worker_nodes
            if score > best_score:
                best_score = score
                best_move = move
        if self.tt is not None:
            self.tt.store(board.get_zobrist_hash(), depth, best_score, TT_EXACT, best_move)
        return best_score, best_move, nodes
