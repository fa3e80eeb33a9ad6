"""Gliński hexagonal chess engine."""

from .board import Board, Move, Color, PieceType, Piece, UndoToken
from .coordinate import Position, index, position_of, is_valid, hex_distance
from .engine import Engine, SearchResult, MATE_SCORE
from .evaluator import Evaluator
from .transposition import TranspositionTable
from .zobrist import ZobristHash, get_zobrist
from .config import SearchConfig, EvalConfig, EngineConfig, load_config, configure_logging
from .game import Game, GameResult, GameStatus, TimeControl, WinReason, DrawReason
from .matcher import match_engines
from .errors import (
    ChessagonError, OutOfRange, IllegalMove, NoLegalMoves, InvariantViolation,
    GameActionError, NotYourTurn, GameIsFinished, DrawNotOffered,
)

__all__ = [
    # Board and geometry
    'Board', 'Move', 'Color', 'PieceType', 'Piece', 'UndoToken',
    'Position', 'index', 'position_of', 'is_valid', 'hex_distance',
    # Search and evaluation
    'Engine', 'SearchResult', 'MATE_SCORE', 'Evaluator', 'TranspositionTable',
    # Zobrist hashing
    'ZobristHash', 'get_zobrist',
    # Configuration
    'SearchConfig', 'EvalConfig', 'EngineConfig', 'load_config', 'configure_logging',
    # Games
    'Game', 'GameResult', 'GameStatus', 'TimeControl', 'WinReason', 'DrawReason',
    'match_engines',
    # Errors
    'ChessagonError', 'OutOfRange', 'IllegalMove', 'NoLegalMoves', 'InvariantViolation',
    'GameActionError', 'NotYourTurn', 'GameIsFinished', 'DrawNotOffered',
]
