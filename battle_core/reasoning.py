"""Reasoning and summary collaborators backed by the LLM client"""

import json
import logging
import re
from typing import Optional, Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from llm_client import GroqClient, LLMError

from .config import (
    LLM_MODEL,
    LLM_MAX_TOKENS_TURN,
    LLM_MAX_TOKENS_SUMMARY,
    LLM_TEMPERATURE_TURN,
    SUMMARY_EMPTY_TEXT,
    SUMMARY_FAILED_TEXT,
)
from .errors import ReasoningError
from .prompts import (
    create_turn_prompt,
    create_summary_prompt,
    TURN_USER_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
)
from .types import Agent, EMOTIONS, ReasoningResult, TurnRecord

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^```(?:json|JSON)?\s*(.*?)\s*```$", re.DOTALL)

_default_client: Optional[GroqClient] = None


class TurnPayload(BaseModel):
    """JSON object returned by the model for one turn

    Numbers must be finite: ``json.loads`` accepts ``NaN``, ``Infinity`` and
    overflowing literals such as ``1e400``, which the damage formula cannot use.
    """
    model_config = ConfigDict(allow_inf_nan=False)

    message: str
    action: Literal["idle", "move", "attack", "defend"]
    emotion: str = "neutral"
    item_used: Literal["HEAL_MODULE", "LOGIC_AMPLIFIER", "FACT_CHECKER", "NONE"] = Field(
        alias="itemUsed"
    )
    logic_score: float = Field(alias="logicScore")
    judge_comment: str = Field(alias="judgeComment")
    target_x: Optional[float] = Field(default=None, alias="targetX")
    target_y: Optional[float] = Field(default=None, alias="targetY")

    @field_validator("emotion", mode="before")
    @classmethod
    def known_emotion(cls, value):
        # Emotion is cosmetic, so an unknown one must not cost the turn
        return value if value in EMOTIONS else "neutral"

    def to_result(self) -> ReasoningResult:
        return ReasoningResult(
            message=self.message,
            action=self.action,
            emotion=self.emotion,
            item_used=self.item_used,
            logic_score=self.logic_score,
            judge_comment=self.judge_comment,
            target_x=self.target_x,
            target_y=self.target_y,
        )


def get_default_client() -> GroqClient:
    """Shared LLM client, created on first use"""
    global _default_client
    if _default_client is None:
        _default_client = GroqClient(model=LLM_MODEL)
    return _default_client


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    match = _CODE_FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_reasoning_payload(text: str) -> ReasoningResult:
    """Parse the model's JSON answer into a ReasoningResult

    Raises:
        ReasoningError: If the text is not a valid turn object
    """
    body = _strip_code_fence(text)
    if not body:
        raise ReasoningError("No response from AI", raw=text)

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ReasoningError(f"Response is not JSON: {e}", raw=text) from e

    try:
        return TurnPayload.model_validate(data).to_result()
    except ValidationError as e:
        raise ReasoningError(f"Response does not match turn schema: {e}", raw=text) from e


async def take_turn(
    active: Agent,
    opponent: Agent,
    topic: str,
    transcript: Sequence[TurnRecord],
    language: str,
    client: Optional[GroqClient] = None,
) -> ReasoningResult:
    """Ask the model for the acting agent's next move

    Raises:
        LLMError: If the API call fails
        ReasoningError: If the answer cannot be parsed
    """
    client = client or get_default_client()
    system_prompt = create_turn_prompt(active, opponent, topic, transcript, language)

    text = await client.get_response(
        prompt=TURN_USER_PROMPT,
        system_prompt=system_prompt,
        max_tokens=LLM_MAX_TOKENS_TURN,
        temperature=LLM_TEMPERATURE_TURN,
        json_mode=True,
    )
    return parse_reasoning_payload(text)


async def summarize(
    transcript: Sequence[TurnRecord],
    topic: str,
    language: str,
    client: Optional[GroqClient] = None,
) -> str:
    """Post-match analysis in Markdown. Never raises for API failures."""
    try:
        client = client or get_default_client()
        text = await client.get_response(
            prompt=create_summary_prompt(transcript, topic, language),
            system_prompt=SUMMARY_SYSTEM_PROMPT,
            max_tokens=LLM_MAX_TOKENS_SUMMARY,
        )
    except LLMError as e:
        logger.warning("Summary generation failed: %s", e)
        return SUMMARY_FAILED_TEXT

    return text.strip() or SUMMARY_EMPTY_TEXT
