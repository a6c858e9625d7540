"""Battle Core - Turn engine and rules for AI battle debate"""

from .types import (
    Agent,
    TurnRecord,
    ReasoningResult,
    MatchPhase,
    MatchState,
    MatchSnapshot,
)
from .config import INITIAL_AGENTS, TOPICS_BY_LANG, make_initial_agents
from .errors import BattleError, MatchInProgressError, InvalidTopicError, ReasoningError
from .rules import resolve_turn, compute_damage, fallback_result
from .engine import TurnEngine

__all__ = [
    "Agent",
    "TurnRecord",
    "ReasoningResult",
    "MatchPhase",
    "MatchState",
    "MatchSnapshot",
    "INITIAL_AGENTS",
    "TOPICS_BY_LANG",
    "make_initial_agents",
    "BattleError",
    "MatchInProgressError",
    "InvalidTopicError",
    "ReasoningError",
    "resolve_turn",
    "compute_damage",
    "fallback_result",
    "TurnEngine",
]
