"""Data classes for AI battle debate"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Literal
import time


Side = Literal["PRO", "CON"]
Language = Literal["KO", "EN"]
Action = Literal["idle", "move", "attack", "defend", "wait"]
Emotion = Literal[
    "neutral", "angry", "confident", "confused", "happy", "injured", "triumphant"
]
Item = Literal["HEAL_MODULE", "LOGIC_AMPLIFIER", "FACT_CHECKER", "NONE"]

SIDES: tuple[str, ...] = ("PRO", "CON")
LANGUAGES: tuple[str, ...] = ("KO", "EN")
ITEMS: tuple[str, ...] = ("HEAL_MODULE", "LOGIC_AMPLIFIER", "FACT_CHECKER", "NONE")
EMOTIONS: tuple[str, ...] = (
    "neutral", "angry", "confident", "confused", "happy", "injured", "triumphant"
)


class MatchPhase(str, Enum):
    """Lifecycle of a match"""
    IDLE = "idle"
    RUNNING = "running"
    AWAITING_REASONING = "awaiting_reasoning"
    FINISHED = "finished"

    @property
    def is_live(self) -> bool:
        return self in (MatchPhase.RUNNING, MatchPhase.AWAITING_REASONING)


@dataclass
class Agent:
    """One debater in the arena"""
    id: str
    side: Side
    name: str
    x: float = 50
    y: float = 50
    hp: int = 100
    emotion: Emotion = "neutral"
    last_action: Action = "idle"
    color: str = "#888888"
    inventory: list[Item] = field(default_factory=list)

    @property
    def is_eliminated(self) -> bool:
        return self.hp <= 0

    def copy(self) -> "Agent":
        return replace(self, inventory=list(self.inventory))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "side": self.side,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "hp": self.hp,
            "emotion": self.emotion,
            "last_action": self.last_action,
            "color": self.color,
            "inventory": list(self.inventory),
        }


@dataclass(frozen=True)
class TurnRecord:
    """A resolved turn, as it appears in the transcript"""
    agent_id: str
    message: str
    logic_score: float
    judge_comment: str
    damage_dealt: int
    item_used: Item = "NONE"
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "message": self.message,
            "timestamp": self.timestamp,
            "logic_score": self.logic_score,
            "judge_comment": self.judge_comment,
            "damage_dealt": self.damage_dealt,
            "item_used": self.item_used,
        }


@dataclass
class ReasoningResult:
    """What the reasoning service decided for one turn"""
    message: str
    action: Action
    emotion: Emotion
    item_used: Item
    logic_score: float
    judge_comment: str
    target_x: Optional[float] = None
    target_y: Optional[float] = None


@dataclass
class MatchState:
    """Mutable match state, owned by a TurnEngine"""
    agents: list[Agent]
    topic: str = ""
    language: Language = "KO"
    phase: MatchPhase = MatchPhase.IDLE
    transcript: list[TurnRecord] = field(default_factory=list)
    turn_index: int = 0
    opening: int = 0
    winner: Optional[Side] = None
    summary: Optional[str] = None
    stopped_by_user: bool = False
    last_turn: Optional[TurnRecord] = None

    def acting_index(self) -> int:
        return (self.opening + self.turn_index) % 2

    @property
    def active(self) -> Agent:
        return self.agents[self.acting_index()]

    @property
    def opponent(self) -> Agent:
        return self.agents[(self.acting_index() + 1) % 2]


@dataclass(frozen=True)
class MatchSnapshot:
    """Read-only copy of a match handed to observers"""
    phase: MatchPhase
    topic: str
    language: Language
    agents: tuple[Agent, ...]
    transcript: tuple[TurnRecord, ...]
    turn_index: int
    winner: Optional[Side]
    summary: Optional[str]
    stopped_by_user: bool
    active_agent_id: Optional[str]
    last_turn: Optional[TurnRecord]

    @classmethod
    def of(cls, state: MatchState) -> "MatchSnapshot":
        return cls(
            phase=state.phase,
            topic=state.topic,
            language=state.language,
            agents=tuple(agent.copy() for agent in state.agents),
            transcript=tuple(state.transcript),
            turn_index=state.turn_index,
            winner=state.winner,
            summary=state.summary,
            stopped_by_user=state.stopped_by_user,
            active_agent_id=(
                state.active.id
                if state.phase is MatchPhase.AWAITING_REASONING
                else None
            ),
            last_turn=state.last_turn,
        )

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "topic": self.topic,
            "language": self.language,
            "agents": [agent.to_dict() for agent in self.agents],
            "transcript": [turn.to_dict() for turn in self.transcript],
            "turn_index": self.turn_index,
            "winner": self.winner,
            "summary": self.summary,
            "stopped_by_user": self.stopped_by_user,
            "active_agent_id": self.active_agent_id,
            "last_turn": self.last_turn.to_dict() if self.last_turn else None,
        }
