"""Battle API endpoints"""

import os
from functools import partial
from typing import Optional, Literal
from fastapi import APIRouter, Depends, HTTPException, Request, Header
from pydantic import BaseModel, Field

from battle_core import TurnEngine, MatchInProgressError, InvalidTopicError
from battle_core.reasoning import take_turn, summarize
from llm_client import GroqClient, APIKeyError
from api_server.middleware.rate_limit import limiter, get_rate_limit_string

router = APIRouter(prefix="/battle", tags=["battle"])

# Global engine, one match per process
engine = TurnEngine()


def get_engine() -> TurnEngine:
    """Engine dependency (overridden in tests)"""
    return engine


def match_collaborators(match_engine: TurnEngine, api_key: Optional[str]) -> tuple:
    """LLM collaborators for one match

    Args:
        match_engine: Engine about to start a match
        api_key: API key from request header (takes priority) or env var

    Returns:
        (reasoner, summarizer) bound to the header key, or (None, None) to use
        the engine defaults
    """
    if api_key:
        try:
            client = GroqClient(api_key=api_key)
        except APIKeyError:
            raise HTTPException(status_code=401, detail="Invalid API key header.")
        return partial(take_turn, client=client), partial(summarize, client=client)

    if match_engine.reasoner is take_turn and not os.getenv("GROQ_API_KEY"):
        raise HTTPException(
            status_code=401,
            detail="An API key is required. Provide a Groq API key.",
        )
    return None, None


# Request/Response models
class StartRequest(BaseModel):
    """Request to start a battle"""
    topic: str = Field(..., min_length=1, max_length=200)
    first_side: Optional[Literal["PRO", "CON"]] = None


class LanguageRequest(BaseModel):
    """Request to change the debate language"""
    language: Literal["KO", "EN"]


class TopicResponse(BaseModel):
    """A suggested topic"""
    topic: str
    language: str


class SummaryResponse(BaseModel):
    """Post-match analysis"""
    summary: str


@router.get("/state")
async def get_state(match_engine: TurnEngine = Depends(get_engine)):
    """Current match snapshot"""
    return match_engine.snapshot().to_dict()


@router.post("/start", status_code=201)
@limiter.limit(get_rate_limit_string())
async def start_battle(
    request: Request,
    body: StartRequest,
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    match_engine: TurnEngine = Depends(get_engine),
):
    """Start a new battle and run it in the background

    API key can be provided via X-API-Key header or GROQ_API_KEY env var.
    """
    if match_engine.phase.is_live:
        raise HTTPException(status_code=409, detail="A match is already in progress")
    reasoner, summarizer = match_collaborators(match_engine, x_api_key)

    try:
        snapshot = match_engine.start(
            body.topic,
            first_side=body.first_side,
            reasoner=reasoner,
            summarizer=summarizer,
        )
    except InvalidTopicError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MatchInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    match_engine.launch()
    return snapshot.to_dict()


@router.post("/stop")
async def stop_battle(match_engine: TurnEngine = Depends(get_engine)):
    """Stop the running battle and generate its summary"""
    if not match_engine.stop():
        raise HTTPException(status_code=409, detail="No match is running")
    await match_engine.generate_summary()
    return match_engine.snapshot().to_dict()


@router.post("/reset")
async def reset_battle(match_engine: TurnEngine = Depends(get_engine)):
    """Discard the current match"""
    return match_engine.reset().to_dict()


@router.get("/topic", response_model=TopicResponse)
async def suggest_topic(match_engine: TurnEngine = Depends(get_engine)):
    """Random topic in the current language"""
    return TopicResponse(
        topic=match_engine.suggest_topic(),
        language=match_engine.language,
    )


@router.put("/language")
async def set_language(
    body: LanguageRequest,
    match_engine: TurnEngine = Depends(get_engine),
):
    """Change the debate language (not allowed during a match)"""
    try:
        match_engine.set_language(body.language)
    except MatchInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return match_engine.snapshot().to_dict()


@router.post("/summary", response_model=SummaryResponse)
@limiter.limit(get_rate_limit_string())
async def get_summary(
    request: Request,
    match_engine: TurnEngine = Depends(get_engine),
):
    """Post-match analysis, generated on first request"""
    snapshot = match_engine.snapshot()
    if snapshot.summary:
        return SummaryResponse(summary=snapshot.summary)

    summary = await match_engine.generate_summary()
    if summary is None:
        raise HTTPException(
            status_code=400,
            detail="At least 2 turns required for a summary",
        )
    return SummaryResponse(summary=summary)
