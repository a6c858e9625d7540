"""Turn engine for AI battle debate

The engine owns one match at a time and advances it turn by turn. Each turn
asks the reasoning collaborator for the acting agent's move, then applies the
combat rules from ``rules`` and appends the result to the transcript.

Phases::

    IDLE --start--> RUNNING --step--> AWAITING_REASONING --response--> RUNNING
    RUNNING / AWAITING_REASONING --stop or knockout--> FINISHED
    any --reset--> IDLE

Only one reasoning call can be in flight: ``step`` does nothing unless the
match is RUNNING, and it moves the match to AWAITING_REASONING before its
first await. Every start, stop and reset bumps a generation counter, so a
response that arrives after the match moved on is dropped.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, Sequence

from .config import (
    DEFAULT_LANGUAGE,
    TOPICS_BY_LANG,
    TURN_DELAY_SECONDS,
    SUMMARY_FAILED_TEXT,
    make_initial_agents,
)
from .errors import InvalidTopicError, MatchInProgressError
from .reasoning import take_turn, summarize
from .rules import resolve_turn, fallback_result
from .types import (
    Agent,
    Language,
    LANGUAGES,
    MatchPhase,
    MatchSnapshot,
    MatchState,
    ReasoningResult,
    Side,
    SIDES,
    TurnRecord,
)

logger = logging.getLogger(__name__)

Reasoner = Callable[
    [Agent, Agent, str, Sequence[TurnRecord], str], Awaitable[ReasoningResult]
]
Summarizer = Callable[[Sequence[TurnRecord], str, str], Awaitable[str]]
Listener = Callable[[MatchSnapshot], None]


class TurnEngine:
    """Drives a single two-agent match to completion"""

    def __init__(
        self,
        reasoner: Optional[Reasoner] = None,
        summarizer: Optional[Summarizer] = None,
        turn_delay: Optional[float] = None,
        rng: Optional[random.Random] = None,
        language: Language = DEFAULT_LANGUAGE,
        max_turns: Optional[int] = None,
    ):
        """Create an idle engine

        Args:
            reasoner: Async reasoning collaborator (defaults to the LLM one)
            summarizer: Async summary collaborator (defaults to the LLM one)
            turn_delay: Seconds to pause before each reasoning call
            rng: Random source for the opening side and topic suggestions
            language: Initial language, "KO" or "EN"
            max_turns: Stop the match after this many turns (None = no limit)
        """
        if language not in LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        self.reasoner = reasoner or take_turn
        self.summarizer = summarizer or summarize
        self.turn_delay = TURN_DELAY_SECONDS if turn_delay is None else turn_delay
        self.max_turns = max_turns
        self._rng = rng or random.Random()
        self._state = MatchState(agents=make_initial_agents(), language=language)
        # Collaborators for the current match; start() may override the defaults
        self._reasoner: Reasoner = self.reasoner
        self._summarizer: Summarizer = self.summarizer
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._settled: Optional[asyncio.Event] = None
        self._listeners: list[Listener] = []

    # -- read side -----------------------------------------------------------

    @property
    def phase(self) -> MatchPhase:
        return self._state.phase

    @property
    def language(self) -> Language:
        return self._state.language

    def snapshot(self) -> MatchSnapshot:
        """Read-only copy of the current match"""
        return MatchSnapshot.of(self._state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with a fresh snapshot after every state change

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Match listener %r failed", listener)

    # -- controls ------------------------------------------------------------

    def start(
        self,
        topic: str,
        first_side: Optional[Side] = None,
        reasoner: Optional[Reasoner] = None,
        summarizer: Optional[Summarizer] = None,
    ) -> MatchSnapshot:
        """Begin a new match on topic

        Args:
            topic: The debate topic
            first_side: Side that acts first; chosen at random if None
            reasoner: Reasoning collaborator for this match only
            summarizer: Summary collaborator for this match only

        Raises:
            InvalidTopicError: If the topic is blank
            MatchInProgressError: If a match is already running
        """
        topic = (topic or "").strip()
        if not topic:
            raise InvalidTopicError()
        if self._state.phase.is_live:
            raise MatchInProgressError()
        if first_side is not None and first_side not in SIDES:
            raise ValueError(f"Unknown side: {first_side}")

        self._cancel_driver()
        if first_side is None:
            opening = 0 if self._rng.random() < 0.5 else 1
        else:
            opening = SIDES.index(first_side)

        self._generation += 1
        self._reasoner = reasoner or self.reasoner
        self._summarizer = summarizer or self.summarizer
        self._state = MatchState(
            agents=make_initial_agents(),
            topic=topic,
            language=self._state.language,
            phase=MatchPhase.RUNNING,
            opening=opening,
        )
        logger.info(
            "Match started: topic=%r language=%s opening=%s",
            topic, self._state.language, SIDES[opening],
        )
        self._notify()
        return self.snapshot()

    def stop(self) -> bool:
        """Stop a running match; returns False if there was nothing to stop"""
        if not self._state.phase.is_live:
            return False

        self._generation += 1
        self._state.phase = MatchPhase.FINISHED
        self._state.stopped_by_user = True
        self._cancel_driver()
        self._release_waiters()
        logger.info("Match stopped after %d turns", len(self._state.transcript))
        self._notify()
        return True

    def reset(self) -> MatchSnapshot:
        """Discard the match and return to IDLE"""
        self._cancel_driver()
        self._generation += 1
        self._release_waiters()
        self._reasoner = self.reasoner
        self._summarizer = self.summarizer
        self._state = MatchState(
            agents=make_initial_agents(), language=self._state.language
        )
        logger.info("Match reset")
        self._notify()
        return self.snapshot()

    def set_language(self, language: Language) -> None:
        """Switch the debate language

        Raises:
            MatchInProgressError: If a match is running
            ValueError: If the language is not supported
        """
        if language not in LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        if self._state.phase.is_live:
            raise MatchInProgressError("Cannot change language during a match")
        self._state.language = language
        self._notify()

    def suggest_topic(self) -> str:
        """Random topic in the current language"""
        return self._rng.choice(TOPICS_BY_LANG[self._state.language])

    # -- turn loop -----------------------------------------------------------

    async def step(self) -> Optional[TurnRecord]:
        """Advance the match by one turn

        Returns:
            The new transcript entry, or None if no turn was taken (match not
            running, a call already in flight, knockout, or a stale response)
        """
        state = self._state
        if state.phase is not MatchPhase.RUNNING:
            return None

        active, opponent = state.active, state.opponent

        # Knockouts are detected when the fallen agent would act next
        if active.is_eliminated:
            self._finish(opponent.side)
            await self.generate_summary()
            return None

        generation = self._generation
        state.phase = MatchPhase.AWAITING_REASONING
        settled = self._settled = asyncio.Event()
        self._notify()

        try:
            return await self._play_turn(state, active, opponent, generation)
        finally:
            settled.set()

    async def _play_turn(
        self,
        state: MatchState,
        active: Agent,
        opponent: Agent,
        generation: int,
    ) -> Optional[TurnRecord]:
        try:
            # Always yields to the loop, even with no delay
            await asyncio.sleep(self.turn_delay)
            if generation != self._generation:
                return None
            try:
                result = await self._reasoner(
                    active.copy(),
                    opponent.copy(),
                    state.topic,
                    tuple(state.transcript),
                    state.language,
                )
            except Exception:
                logger.exception(
                    "Reasoning failed for %s on turn %d, using filler turn",
                    active.id, state.turn_index,
                )
                result = fallback_result(active)
        except asyncio.CancelledError:
            if generation == self._generation:
                state.phase = MatchPhase.RUNNING
            raise

        if generation != self._generation:
            logger.info(
                "Discarding stale response for %s on turn %d",
                active.id, state.turn_index,
            )
            return None

        try:
            record = self._resolve(state, result)
        except Exception:
            logger.exception(
                "Could not apply result for %s on turn %d, using filler turn",
                active.id, state.turn_index,
            )
            record = self._resolve(state, fallback_result(active))
        state.transcript.append(record)
        state.last_turn = record
        state.turn_index += 1
        state.phase = MatchPhase.RUNNING
        logger.info(
            "Turn %d: %s score=%g damage=%d item=%s hp=%d/%d",
            state.turn_index, active.id, record.logic_score, record.damage_dealt,
            record.item_used, state.agents[0].hp, state.agents[1].hp,
        )
        self._notify()
        return record

    @staticmethod
    def _resolve(state: MatchState, result: ReasoningResult) -> TurnRecord:
        """Resolve the turn on copies and commit both agents only on success"""
        acting = state.acting_index()
        other = (acting + 1) % 2
        active, opponent = state.agents[acting].copy(), state.agents[other].copy()
        record = resolve_turn(active, opponent, result)
        state.agents[acting], state.agents[other] = active, opponent
        return record

    def _finish(self, winner: Side) -> None:
        self._state.phase = MatchPhase.FINISHED
        self._state.winner = winner
        logger.info(
            "Match finished: %s wins after %d turns",
            winner, len(self._state.transcript),
        )
        self._notify()

    async def run(self) -> MatchSnapshot:
        """Take turns until the match finishes or is stopped"""
        generation = self._generation
        while self._generation == generation and self._state.phase.is_live:
            if self._state.phase is MatchPhase.AWAITING_REASONING:
                # Another caller's step is in flight
                await self._settled.wait()
                continue
            if self.max_turns is not None and self._state.turn_index >= self.max_turns:
                self.stop()
                await self.generate_summary()
                break
            await self.step()
        return self.snapshot()

    def launch(self) -> asyncio.Task:
        """Run the match in a background task on the current event loop"""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    def _cancel_driver(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        # A listener may stop the match from inside the driver itself
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    def _release_waiters(self) -> None:
        if self._settled is not None:
            self._settled.set()

    # -- summary -------------------------------------------------------------

    async def generate_summary(self) -> Optional[str]:
        """Ask the summary collaborator for a post-match analysis

        Returns:
            The summary text, or None if fewer than two turns were played
        """
        state = self._state
        if len(state.transcript) < 2:
            return None

        try:
            text = await self._summarizer(
                tuple(state.transcript), state.topic, state.language
            )
        except Exception:
            logger.exception("Summary collaborator failed")
            text = SUMMARY_FAILED_TEXT

        if self._state is state:
            state.summary = text
            self._notify()
        return text
