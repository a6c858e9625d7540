"""Default configuration for AI battle debate"""

import os

from .types import Agent

# Starting template, copied fresh for every match
INITIAL_AGENTS = (
    Agent(
        id="agent-pro",
        side="PRO",
        name="Proponent Bot",
        x=20,
        y=50,
        color="#3B82F6",  # Blue
        inventory=["HEAL_MODULE", "LOGIC_AMPLIFIER", "FACT_CHECKER"],
    ),
    Agent(
        id="agent-con",
        side="CON",
        name="Opponent Bot",
        x=80,
        y=50,
        color="#EF4444",  # Red
        inventory=["HEAL_MODULE", "LOGIC_AMPLIFIER", "FACT_CHECKER"],
    ),
)


def make_initial_agents() -> list[Agent]:
    """Fresh copies of the starting agents, PRO first"""
    return [agent.copy() for agent in INITIAL_AGENTS]


DEFAULT_LANGUAGE = "KO"

AGENT_NAMES = {
    "KO": {"PRO": "찬성 봇", "CON": "반대 봇"},
    "EN": {"PRO": "Proponent Bot", "CON": "Opponent Bot"},
}

TOPICS_BY_LANG = {
    "KO": [
        "AI는 인류에게 위험한가?",
        "하와이안 피자는 범죄인가?",
        "고양이가 개보다 더 나은 반려동물이다.",
        "비디오 게임은 폭력을 유발하는가?",
        "보편적 기본소득은 필요한가?",
        "학교 내 스마트폰 사용을 금지해야 한다.",
        "마블 영화가 DC보다 낫다.",
        "인류는 화성을 식민지화해야 한다.",
        "재택근무가 사무실 근무보다 낫다.",
        "SNS는 득보다 실이 많다.",
    ],
    "EN": [
        "Is AI dangerous for humanity?",
        "Pineapple on pizza is a crime.",
        "Cats are better pets than dogs.",
        "Video games cause violence.",
        "Universal Basic Income is necessary.",
        "Mobile phones should be banned in schools.",
        "Marvel movies are better than DC.",
        "Humanity should colonize Mars.",
        "Remote work is better than office work.",
        "Social media does more harm than good.",
    ],
}

# Combat rules
MAX_HP = 100
HEAL_AMOUNT = 25
FACT_CHECK_FLOOR = 85
WEAK_ARGUMENT_THRESHOLD = 45
BASE_DAMAGE = 20
CRITICAL_THRESHOLD = 80
CRITICAL_BONUS = 10
AMPLIFIER_MULTIPLIER = 1.5

# Arena bounds (percent of the arena)
X_BOUNDS = (10, 90)
Y_BOUNDS = (20, 80)

# Pause before each reasoning call, for pacing only
TURN_DELAY_SECONDS = float(os.getenv("TURN_DELAY_SECONDS", "2.5"))

# LLM settings
LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.3-70b-versatile")
LLM_MAX_TOKENS_TURN = 400
LLM_MAX_TOKENS_SUMMARY = 1000
LLM_TEMPERATURE_TURN = 0.9

# Substituted when the reasoning or summary call fails
FALLBACK_MESSAGE = "Processing error..."
FALLBACK_JUDGE_COMMENT = "System Error"
FALLBACK_LOGIC_SCORE = 10
SUMMARY_EMPTY_TEXT = "Could not generate summary."
SUMMARY_FAILED_TEXT = "Summary generation failed."
