"""Combat resolution rules

Everything here is deterministic. The reasoning service decides what an agent
says, how it acts and how good the argument was; these functions turn that
decision into item usage, damage and movement.
"""

import math
import time
from typing import Optional

from .config import (
    MAX_HP,
    HEAL_AMOUNT,
    FACT_CHECK_FLOOR,
    WEAK_ARGUMENT_THRESHOLD,
    BASE_DAMAGE,
    CRITICAL_THRESHOLD,
    CRITICAL_BONUS,
    AMPLIFIER_MULTIPLIER,
    X_BOUNDS,
    Y_BOUNDS,
    FALLBACK_MESSAGE,
    FALLBACK_JUDGE_COMMENT,
    FALLBACK_LOGIC_SCORE,
)
from .types import Agent, Item, ReasoningResult, TurnRecord


def consume_item(inventory: list[Item], item: Item) -> Item:
    """Remove one instance of item from inventory

    Args:
        inventory: The owning agent's inventory, modified in place
        item: The item the reasoning service asked for

    Returns:
        The item actually used, or "NONE" when it was not in the inventory
    """
    if item == "NONE" or item not in inventory:
        return "NONE"
    inventory.remove(item)
    return item


def effective_score(raw_score: float, item: Item) -> float:
    """Logic score after item adjustment"""
    if item == "FACT_CHECKER":
        return max(raw_score, FACT_CHECK_FLOOR)
    return raw_score


def compute_damage(score: float, amplified: bool = False) -> int:
    """Damage dealt by an argument with the given logic score

    Args:
        score: Effective logic score
        amplified: Whether a LOGIC_AMPLIFIER was used this turn

    Returns:
        Damage, never negative. Weak arguments deal nothing.
    """
    if score <= WEAK_ARGUMENT_THRESHOLD:
        return 0

    damage = math.floor(score * BASE_DAMAGE / 100)
    if score > CRITICAL_THRESHOLD:
        damage += CRITICAL_BONUS
    if amplified:
        damage = math.floor(damage * AMPLIFIER_MULTIPLIER)
    return damage


def _clamp(value: float, bounds: tuple[int, int]) -> float:
    low, high = bounds
    return max(low, min(high, value))


def clamp_position(
    agent: Agent,
    target_x: Optional[float],
    target_y: Optional[float],
) -> None:
    """Move agent towards the requested target, keeping it inside the arena"""
    if target_x is not None:
        agent.x = _clamp(target_x, X_BOUNDS)
    if target_y is not None:
        agent.y = _clamp(target_y, Y_BOUNDS)


def resolve_turn(
    active: Agent,
    opponent: Agent,
    result: ReasoningResult,
    now: Optional[float] = None,
) -> TurnRecord:
    """Apply a reasoning result to both agents

    Args:
        active: The acting agent, modified in place
        opponent: The other agent, modified in place
        result: Output of the reasoning service for this turn
        now: Timestamp for the record (defaults to the current time)

    Returns:
        The transcript entry for the turn
    """
    item = consume_item(active.inventory, result.item_used)

    if item == "HEAL_MODULE":
        active.hp = min(MAX_HP, active.hp + HEAL_AMOUNT)
    score = effective_score(result.logic_score, item)
    damage = compute_damage(score, amplified=item == "LOGIC_AMPLIFIER")

    active.last_action = result.action
    active.emotion = result.emotion

    # Only an attack lands; other actions keep the damage as potential
    if result.action == "attack" and damage > 0:
        opponent.hp = max(0, opponent.hp - damage)
        opponent.last_action = "defend"
        opponent.emotion = "injured"

    clamp_position(active, result.target_x, result.target_y)

    return TurnRecord(
        agent_id=active.id,
        message=result.message,
        logic_score=score,
        judge_comment=result.judge_comment,
        damage_dealt=damage,
        item_used=item,
        timestamp=now if now is not None else time.time(),
    )


def fallback_result(agent: Agent) -> ReasoningResult:
    """Neutral filler turn used when the reasoning call fails"""
    return ReasoningResult(
        message=FALLBACK_MESSAGE,
        action="idle",
        emotion="confused",
        item_used="NONE",
        logic_score=FALLBACK_LOGIC_SCORE,
        judge_comment=FALLBACK_JUDGE_COMMENT,
        target_x=agent.x,
        target_y=agent.y,
    )
