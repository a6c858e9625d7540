"""Prompt generation for AI battle debate"""

from typing import Sequence

from .types import Agent, TurnRecord


LANGUAGE_RULES = {
    "KO": "YOU MUST SPEAK IN KOREAN ONLY.",
    "EN": "YOU MUST SPEAK IN ENGLISH ONLY.",
}

SUMMARY_LANGUAGE_RULES = {
    "KO": "Write the summary in KOREAN.",
    "EN": "Write the summary in ENGLISH.",
}

# Shape of the JSON object the model must answer with
TURN_RESPONSE_FORMAT = """Answer with a single JSON object and nothing else:
{
  "message": "argument or counter-argument, under 30 words",
  "action": "idle" | "move" | "attack" | "defend",
  "targetX": number 0-100,
  "targetY": number 0-100,
  "emotion": "neutral" | "angry" | "confident" | "confused" | "happy" | "triumphant",
  "itemUsed": "HEAL_MODULE" | "LOGIC_AMPLIFIER" | "FACT_CHECKER" | "NONE",
  "logicScore": number 0-100,
  "judgeComment": "short verdict from the Hidden Judge"
}"""

TURN_USER_PROMPT = (
    "Your turn. Make your argument, choose action, and Judge yourself honestly."
)


def format_history(history: Sequence[TurnRecord], agent_id: str) -> str:
    """Render the transcript from one agent's point of view"""
    lines = []
    for turn in history:
        speaker = "ME" if turn.agent_id == agent_id else "OPPONENT"
        lines.append(f"{speaker} [Logic:{turn.logic_score:g}]: {turn.message}")
    return "\n".join(lines)


def create_turn_prompt(
    active: Agent,
    opponent: Agent,
    topic: str,
    history: Sequence[TurnRecord],
    language: str,
) -> str:
    """Create the system prompt for the acting agent

    Args:
        active: The agent taking the turn
        opponent: The other agent
        topic: The debate topic
        history: Transcript so far
        language: "KO" or "EN"

    Returns:
        System prompt string
    """
    stance = (
        "PROPONENT (Argue FOR)" if active.side == "PRO" else "OPPONENT (Argue AGAINST)"
    )
    inventory = ", ".join(active.inventory) or "NONE"

    return f"""You are controlling an AI agent in a 2D physical debate arena (fighting game style).

**LANGUAGE RULE**:
{LANGUAGE_RULES[language]}
The topic is: "{topic}".

Role: {stance}.
Name: {active.name}.
HP: {active.hp} (Max 100).
Inventory: {inventory}.
Opponent: {opponent.name}, HP {opponent.hp}.

**THE HIDDEN JUDGE MECHANIC**:
You must also act as an impartial Hidden Judge.
- If the argument is a logical fallacy, ad hominem, or weak: assign a LOW logicScore (0-40).
- If the argument is sound and relevant: assign a MEDIUM logicScore (41-75).
- If the argument is a brilliant counter, uses facts, or exposes a contradiction: assign a HIGH logicScore (76-100).
- DAMAGE IS CALCULATED BASED ON LOGIC SCORE. Weak arguments do 0 damage.

**MOVEMENT & ACTION**:
- Act like a fighting game character.
- If your logic is strong, choose 'attack' to lunge at the opponent.
- If you are losing, 'defend' or 'move' away.
- Don't just stand still. Move x/y coordinates to simulate pacing or dodging.

**ITEMS**:
- Use 'HEAL_MODULE' if HP < 40 to recover health.
- Use 'LOGIC_AMPLIFIER' if you are about to deliver a crushing argument (boosts damage).
- Use 'FACT_CHECKER' to guarantee a logicScore > 80 (simulated).
- ONLY use an item if you have it in your Inventory. Otherwise use 'NONE'.

{TURN_RESPONSE_FORMAT}

Context:
{format_history(history, active.id)}"""


def create_summary_prompt(
    history: Sequence[TurnRecord], topic: str, language: str
) -> str:
    """Create the prompt for the post-match analysis"""
    transcript = "\n".join(f"{turn.agent_id}: {turn.message}" for turn in history)

    return f"""Analyze this debate transcript on the topic: "{topic}".
{SUMMARY_LANGUAGE_RULES[language]}

Transcript:
{transcript}

Please provide a structured summary in Markdown format:
1. **Winner**: Declare who won based on logical consistency.
2. **Key Arguments**: Bullet points of the best points made.
3. **Critical Failures**: Point out any major logical fallacies used.
4. **Conclusion**: A brief wrap-up of the discussion."""


# Summary system prompt
SUMMARY_SYSTEM_PROMPT = """You are an impartial debate analyst.
Judge only the logical consistency of the arguments, not the speakers."""
