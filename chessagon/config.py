"""Engine configuration and logging setup."""

import logging
import os
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

ENV_SEARCH_DEPTH = "CHESSAGON_SEARCH_DEPTH"
ENV_THREADS = "CHESSAGON_THREADS"
ENV_TIME_LIMIT = "CHESSAGON_TIME_LIMIT"
ENV_LOG_LEVEL = "CHESSAGON_LOG_LEVEL"


class SearchConfig(BaseModel):
    """Settings for :class:`chessagon.engine.Engine`."""

    max_depth: int = Field(default=3, ge=1, le=64)
    # Seconds per move when no time control is given; None searches to max_depth
    time_limit: Optional[float] = Field(default=None, gt=0)
    threads: int = Field(default=1, ge=1, le=64)
    tt_entries: int = Field(default=1 << 18, ge=1)
    use_transposition_table: bool = True


class EvalConfig(BaseModel):
    """Weights for the static evaluation, in centipawns."""

    pawn: int = 100
    knight: int = 300
    bishop: int = 300
    rook: int = 500
    queen: int = 900
    centrality_weight: int = Field(default=4, ge=0)
    pawn_advance_weight: int = Field(default=3, ge=0)

    def piece_values(self) -> Dict[str, int]:
        return {
            "PAWN": self.pawn,
            "KNIGHT": self.knight,
            "BISHOP": self.bishop,
            "ROOK": self.rook,
            "QUEEN": self.queen,
            "KING": 0,
        }


class EngineConfig(BaseModel):
    search: SearchConfig = Field(default_factory=SearchConfig)
    evaluation: EvalConfig = Field(default_factory=EvalConfig)


def load_config(env: Optional[Mapping[str, str]] = None, **overrides) -> EngineConfig:
    """Build the engine configuration.

    Values come from the defaults, then the ``CHESSAGON_*`` environment
    variables, then ``overrides`` (keyword arguments named after
    :class:`SearchConfig` fields).

    Raises:
        pydantic.ValidationError: If a value is out of range or malformed.
    """
    env = os.environ if env is None else env
    search: Dict[str, object] = {}
    if env.get(ENV_SEARCH_DEPTH):
        search["max_depth"] = env[ENV_SEARCH_DEPTH]
    if env.get(ENV_THREADS):
        search["threads"] = env[ENV_THREADS]
    if env.get(ENV_TIME_LIMIT):
        search["time_limit"] = env[ENV_TIME_LIMIT]
    search.update({k: v for k, v in overrides.items() if v is not None})
    return EngineConfig(search=SearchConfig.model_validate(search))


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once for command line use."""
    level = (level or os.environ.get(ENV_LOG_LEVEL) or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
