"""Shared fixtures for the battle tests"""

from typing import Callable

import pytest

from battle_core import ReasoningResult, TurnEngine


class ScriptedReasoner:
    """Reasoning collaborator that replays prepared results.

    Items may be ReasoningResult instances, exceptions (raised), or callables
    taking (active, opponent) and returning a ReasoningResult. Once the script
    runs out, ``default`` is returned for every further turn.
    """

    def __init__(self, *results, default=None):
        self._results = list(results)
        self.default = default
        self.calls: list[dict] = []

    async def __call__(self, active, opponent, topic, transcript, language):
        self.calls.append(
            {
                "active": active,
                "opponent": opponent,
                "topic": topic,
                "transcript": transcript,
                "language": language,
            }
        )
        if self._results:
            item = self._results.pop(0)
        elif self.default is not None:
            item = self.default
        else:
            raise AssertionError("No scripted results left")
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(active, opponent)
        return item


class RecordingSummarizer:
    """Summary collaborator that records its calls"""

    def __init__(self, text: str = "## Summary"):
        self.text = text
        self.calls: list[tuple] = []

    async def __call__(self, transcript, topic, language):
        self.calls.append((transcript, topic, language))
        return self.text


class FixedRandom:
    """Stand-in for random.Random with a fixed draw"""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def make_result() -> Callable[..., ReasoningResult]:
    """Build a ReasoningResult with overridable defaults"""

    def _make(**overrides) -> ReasoningResult:
        values = {
            "message": "Evidence shows the opposite.",
            "action": "attack",
            "emotion": "confident",
            "item_used": "NONE",
            "logic_score": 50,
            "judge_comment": "Sound point.",
        }
        values.update(overrides)
        return ReasoningResult(**values)

    return _make


@pytest.fixture
def summarizer() -> RecordingSummarizer:
    return RecordingSummarizer()


@pytest.fixture
def make_engine(summarizer: RecordingSummarizer) -> Callable[..., TurnEngine]:
    """Engine factory with no pacing delay and a recording summarizer"""

    def _make(reasoner, **kwargs) -> TurnEngine:
        kwargs.setdefault("turn_delay", 0)
        kwargs.setdefault("summarizer", summarizer)
        return TurnEngine(reasoner=reasoner, **kwargs)

    return _make


@pytest.fixture
def sample_topic() -> str:
    return "Cats are better pets than dogs."
