"""Tests for the turn engine state machine."""

import asyncio

import pytest

from battle_core import (
    InvalidTopicError,
    MatchInProgressError,
    MatchPhase,
    TurnEngine,
)
from battle_core.config import SUMMARY_FAILED_TEXT, TOPICS_BY_LANG

from conftest import FixedRandom, RecordingSummarizer, ScriptedReasoner


def test_new_engine_is_idle(make_engine) -> None:
    engine = make_engine(ScriptedReasoner())
    snapshot = engine.snapshot()

    assert snapshot.phase is MatchPhase.IDLE
    assert [agent.hp for agent in snapshot.agents] == [100, 100]
    assert snapshot.transcript == ()
    assert snapshot.winner is None


def test_start_rejects_blank_topic(make_engine) -> None:
    engine = make_engine(ScriptedReasoner())

    with pytest.raises(InvalidTopicError):
        engine.start("   ")
    assert engine.phase is MatchPhase.IDLE


def test_start_rejects_running_match(make_engine, sample_topic) -> None:
    engine = make_engine(ScriptedReasoner())
    engine.start(sample_topic)

    with pytest.raises(MatchInProgressError):
        engine.start(sample_topic)


def test_start_picks_opening_side_at_random(make_engine, make_result, sample_topic) -> None:
    low = make_engine(ScriptedReasoner(default=make_result()), rng=FixedRandom(0.2))
    high = make_engine(ScriptedReasoner(default=make_result()), rng=FixedRandom(0.7))
    low.start(sample_topic)
    high.start(sample_topic)

    first_low = asyncio.run(low.step())
    first_high = asyncio.run(high.step())

    assert low.snapshot().turn_index == high.snapshot().turn_index == 1
    assert first_low.agent_id == "agent-pro"
    assert first_high.agent_id == "agent-con"


def test_turns_alternate(make_engine, make_result, sample_topic) -> None:
    reasoner = ScriptedReasoner(default=make_result(action="move"))
    engine = make_engine(reasoner)
    engine.start(sample_topic, first_side="CON")

    async def play(turns: int):
        return [await engine.step() for _ in range(turns)]

    records = asyncio.run(play(5))

    assert [r.agent_id for r in records] == [
        "agent-con", "agent-pro", "agent-con", "agent-pro", "agent-con",
    ]
    assert engine.snapshot().turn_index == 5
    assert [call["active"].id for call in reasoner.calls] == [
        r.agent_id for r in records
    ]


def test_reasoner_gets_match_context(make_engine, make_result, sample_topic) -> None:
    reasoner = ScriptedReasoner(default=make_result())
    engine = make_engine(reasoner, language="EN")
    engine.start(sample_topic, first_side="PRO")

    async def play():
        await engine.step()
        await engine.step()

    asyncio.run(play())

    second = reasoner.calls[1]
    assert second["topic"] == sample_topic
    assert second["language"] == "EN"
    assert second["active"].id == "agent-con"
    assert second["opponent"].id == "agent-pro"
    assert len(second["transcript"]) == 1
    assert second["active"].hp == 90


def test_reasoner_receives_copies(make_engine, make_result, sample_topic) -> None:
    def tamper(active, opponent):
        active.hp = 1
        active.inventory.clear()
        opponent.hp = 1
        return make_result(action="idle")

    engine = make_engine(ScriptedReasoner(tamper))
    engine.start(sample_topic, first_side="PRO")
    asyncio.run(engine.step())

    pro, con = engine.snapshot().agents
    assert pro.hp == con.hp == 100
    assert len(pro.inventory) == 3


def test_items_are_consumed_once(make_engine, make_result, sample_topic) -> None:
    heal = make_result(action="defend", item_used="HEAL_MODULE")
    idle = make_result(action="idle")
    engine = make_engine(ScriptedReasoner(heal, idle, heal, idle))
    engine.start(sample_topic, first_side="PRO")

    async def play():
        return [await engine.step() for _ in range(4)]

    records = asyncio.run(play())
    pro = engine.snapshot().agents[0]

    assert records[0].item_used == "HEAL_MODULE"
    assert records[2].item_used == "NONE"
    assert pro.inventory == ["LOGIC_AMPLIFIER", "FACT_CHECKER"]
    assert pro.hp == 100


def test_match_ends_when_knocked_out_agent_would_act(
    make_engine, make_result, summarizer, sample_topic
) -> None:
    engine = make_engine(ScriptedReasoner(default=make_result(logic_score=90)))
    snapshots = []
    engine.subscribe(snapshots.append)
    engine.start(sample_topic, first_side="PRO")

    final = asyncio.run(engine.run())

    assert final.phase is MatchPhase.FINISHED
    assert final.winner == "PRO"
    assert not final.stopped_by_user
    assert len(final.transcript) == 7
    assert final.turn_index == 7
    assert [agent.hp for agent in final.agents] == [16, 0]
    assert final.summary == "## Summary"
    assert len(summarizer.calls) == 1
    for snapshot in snapshots:
        assert all(0 <= agent.hp <= 100 for agent in snapshot.agents)


def test_knockout_is_declared_lazily(make_engine, make_result, sample_topic) -> None:
    engine = make_engine(ScriptedReasoner(default=make_result(logic_score=90)))
    engine.start(sample_topic, first_side="PRO")

    async def play(turns: int):
        for _ in range(turns):
            await engine.step()

    asyncio.run(play(7))
    snapshot = engine.snapshot()
    assert snapshot.agents[1].hp == 0
    assert snapshot.phase is MatchPhase.RUNNING
    assert snapshot.winner is None

    assert asyncio.run(engine.step()) is None
    snapshot = engine.snapshot()
    assert snapshot.phase is MatchPhase.FINISHED
    assert snapshot.winner == "PRO"
    assert len(snapshot.transcript) == 7


def test_single_flight(make_engine, make_result, sample_topic) -> None:
    async def scenario():
        gate = asyncio.Event()

        async def slow(active, opponent, topic, transcript, language):
            await gate.wait()
            return make_result()

        engine = make_engine(slow)
        engine.start(sample_topic, first_side="PRO")
        first = asyncio.create_task(engine.step())
        await asyncio.sleep(0)
        assert engine.phase is MatchPhase.AWAITING_REASONING
        assert engine.snapshot().active_agent_id == "agent-pro"

        second = await engine.step()
        gate.set()
        record = await first
        return engine, second, record

    engine, second, record = asyncio.run(scenario())

    assert second is None
    assert record is not None
    snapshot = engine.snapshot()
    assert len(snapshot.transcript) == 1
    assert snapshot.turn_index == 1
    assert snapshot.phase is MatchPhase.RUNNING


def test_stop_discards_in_flight_response(
    make_engine, make_result, summarizer, sample_topic
) -> None:
    async def scenario():
        gate = asyncio.Event()

        async def slow(active, opponent, topic, transcript, language):
            await gate.wait()
            return make_result(logic_score=100)

        engine = make_engine(slow)
        engine.start(sample_topic, first_side="PRO")
        pending = asyncio.create_task(engine.step())
        await asyncio.sleep(0)

        assert engine.stop() is True
        gate.set()
        return engine, await pending

    engine, record = asyncio.run(scenario())

    assert record is None
    snapshot = engine.snapshot()
    assert snapshot.phase is MatchPhase.FINISHED
    assert snapshot.stopped_by_user
    assert snapshot.transcript == ()
    assert snapshot.turn_index == 0
    assert [agent.hp for agent in snapshot.agents] == [100, 100]
    assert summarizer.calls == []


def test_reset_discards_in_flight_response(make_engine, make_result, sample_topic) -> None:
    async def scenario():
        gate = asyncio.Event()

        async def slow(active, opponent, topic, transcript, language):
            await gate.wait()
            return make_result()

        engine = make_engine(slow)
        engine.start(sample_topic)
        pending = asyncio.create_task(engine.step())
        await asyncio.sleep(0)

        engine.reset()
        gate.set()
        return engine, await pending

    engine, record = asyncio.run(scenario())

    assert record is None
    snapshot = engine.snapshot()
    assert snapshot.phase is MatchPhase.IDLE
    assert snapshot.transcript == ()
    assert snapshot.topic == ""


def test_stop_cancels_driver_task(make_engine, sample_topic) -> None:
    async def scenario():
        async def stalled(*args):
            await asyncio.sleep(3600)

        engine = make_engine(stalled)
        engine.start(sample_topic)
        task = engine.launch()
        await asyncio.sleep(0.01)
        assert engine.phase is MatchPhase.AWAITING_REASONING

        engine.stop()
        await asyncio.gather(task, return_exceptions=True)
        return engine, task

    engine, task = asyncio.run(scenario())

    assert task.cancelled()
    assert engine.phase is MatchPhase.FINISHED


def test_reasoner_failure_becomes_filler_turn(make_engine, make_result, sample_topic) -> None:
    engine = make_engine(
        ScriptedReasoner(RuntimeError("network down"), make_result(action="idle"))
    )
    engine.start(sample_topic, first_side="PRO")

    async def play():
        return [await engine.step(), await engine.step()]

    filler, normal = asyncio.run(play())

    assert filler.agent_id == "agent-pro"
    assert filler.message == "Processing error..."
    assert filler.judge_comment == "System Error"
    assert filler.logic_score == 10
    assert filler.damage_dealt == 0
    assert filler.item_used == "NONE"
    assert normal.agent_id == "agent-con"
    snapshot = engine.snapshot()
    assert snapshot.turn_index == 2
    assert snapshot.phase is MatchPhase.RUNNING
    assert snapshot.agents[0].emotion == "confused"


@pytest.mark.parametrize("score", [float("inf"), float("nan")])
def test_unusable_score_becomes_filler_turn(
    make_engine, make_result, summarizer, score, sample_topic
) -> None:
    engine = make_engine(
        ScriptedReasoner(
            make_result(logic_score=score, item_used="HEAL_MODULE"),
            default=make_result(action="idle"),
        ),
        max_turns=2,
    )
    engine.start(sample_topic, first_side="PRO")

    final = asyncio.run(engine.run())

    filler = final.transcript[0]
    assert filler.agent_id == "agent-pro"
    assert filler.message == "Processing error..."
    assert filler.logic_score == 10
    assert filler.damage_dealt == 0
    assert filler.item_used == "NONE"
    assert final.turn_index == 2
    assert final.phase is MatchPhase.FINISHED
    assert [agent.hp for agent in final.agents] == [100, 100]
    # The failed resolution must not leave a consumed item behind
    assert len(final.agents[0].inventory) == 3
    assert len(summarizer.calls) == 1


def test_out_of_range_score_is_not_clamped(make_engine, make_result, sample_topic) -> None:
    engine = make_engine(ScriptedReasoner(make_result(logic_score=140)))
    engine.start(sample_topic, first_side="PRO")

    record = asyncio.run(engine.step())

    assert record.logic_score == 140
    assert record.damage_dealt == 38
    snapshot = engine.snapshot()
    assert snapshot.agents[1].hp == 62
    assert snapshot.phase is MatchPhase.RUNNING


def test_run_waits_for_step_in_flight(make_engine, make_result, sample_topic) -> None:
    async def scenario():
        gate = asyncio.Event()

        async def slow(active, opponent, topic, transcript, language):
            await gate.wait()
            return make_result(action="idle")

        engine = make_engine(slow, max_turns=3)
        engine.start(sample_topic, first_side="PRO")
        outside = asyncio.create_task(engine.step())
        await asyncio.sleep(0)
        assert engine.phase is MatchPhase.AWAITING_REASONING

        driver = asyncio.create_task(engine.run())
        await asyncio.sleep(0)
        assert not driver.done()

        gate.set()
        record = await outside
        final = await asyncio.wait_for(driver, timeout=5)
        return record, final

    record, final = asyncio.run(scenario())

    assert record.agent_id == "agent-pro"
    assert final.turn_index == 3
    assert [turn.agent_id for turn in final.transcript] == [
        "agent-pro", "agent-con", "agent-pro"
    ]
    assert final.phase is MatchPhase.FINISHED


def test_start_collaborators_last_for_one_match(
    make_engine, make_result, summarizer, sample_topic
) -> None:
    default = ScriptedReasoner(default=make_result(action="idle"))
    override = ScriptedReasoner(default=make_result(action="idle"))
    override_summarizer = RecordingSummarizer("## Override")
    engine = make_engine(default)

    async def two_turns():
        await engine.step()
        await engine.step()
        return await engine.generate_summary()

    engine.start(sample_topic, reasoner=override, summarizer=override_summarizer)
    assert asyncio.run(two_turns()) == "## Override"
    engine.reset()
    engine.start(sample_topic)
    assert asyncio.run(two_turns()) == "## Summary"

    assert len(override.calls) == 2
    assert len(default.calls) == 2
    assert len(override_summarizer.calls) == 1
    assert len(summarizer.calls) == 1


def test_max_turns_stops_the_match(make_engine, make_result, summarizer, sample_topic) -> None:
    engine = make_engine(
        ScriptedReasoner(default=make_result(action="idle")), max_turns=3
    )
    engine.start(sample_topic)

    final = asyncio.run(engine.run())

    assert final.phase is MatchPhase.FINISHED
    assert final.stopped_by_user
    assert final.winner is None
    assert len(final.transcript) == 3
    assert final.summary == "## Summary"


def test_language_is_locked_during_match(make_engine, sample_topic) -> None:
    engine = make_engine(ScriptedReasoner())
    engine.set_language("EN")
    assert engine.language == "EN"

    engine.start(sample_topic)
    with pytest.raises(MatchInProgressError):
        engine.set_language("KO")

    engine.stop()
    engine.set_language("KO")
    assert engine.language == "KO"

    with pytest.raises(ValueError):
        engine.set_language("FR")


def test_reset_restores_template_and_keeps_language(
    make_engine, make_result, sample_topic
) -> None:
    engine = make_engine(ScriptedReasoner(default=make_result(logic_score=90)), language="EN")
    engine.start(sample_topic, first_side="PRO")
    asyncio.run(engine.step())
    engine.stop()

    snapshot = engine.reset()

    assert snapshot.phase is MatchPhase.IDLE
    assert snapshot.language == "EN"
    assert snapshot.transcript == ()
    assert snapshot.turn_index == 0
    assert snapshot.winner is None
    assert snapshot.summary is None
    assert [agent.hp for agent in snapshot.agents] == [100, 100]
    assert [agent.x for agent in snapshot.agents] == [20, 80]
    assert all(len(agent.inventory) == 3 for agent in snapshot.agents)


def test_suggest_topic_uses_current_language(make_engine) -> None:
    engine = make_engine(ScriptedReasoner(), language="EN")
    assert engine.suggest_topic() in TOPICS_BY_LANG["EN"]

    engine.set_language("KO")
    assert engine.suggest_topic() in TOPICS_BY_LANG["KO"]


def test_summary_needs_two_turns(make_engine, make_result, summarizer, sample_topic) -> None:
    engine = make_engine(ScriptedReasoner(default=make_result()))
    engine.start(sample_topic)
    asyncio.run(engine.step())
    engine.stop()

    assert asyncio.run(engine.generate_summary()) is None
    assert summarizer.calls == []


def test_summary_failure_uses_fallback_text(make_result, sample_topic) -> None:
    async def broken(transcript, topic, language):
        raise RuntimeError("quota exhausted")

    engine = TurnEngine(
        reasoner=ScriptedReasoner(default=make_result()),
        summarizer=broken,
        turn_delay=0,
    )
    engine.start(sample_topic)

    async def play():
        await engine.step()
        await engine.step()
        engine.stop()
        return await engine.generate_summary()

    assert asyncio.run(play()) == SUMMARY_FAILED_TEXT
    snapshot = engine.snapshot()
    assert snapshot.summary == SUMMARY_FAILED_TEXT
    assert len(snapshot.transcript) == 2


def test_listener_errors_do_not_break_engine(make_engine, make_result, sample_topic) -> None:
    def broken(snapshot):
        raise ValueError("render failed")

    seen = []
    engine = make_engine(ScriptedReasoner(default=make_result()))
    engine.subscribe(broken)
    unsubscribe = engine.subscribe(seen.append)

    engine.start(sample_topic)
    asyncio.run(engine.step())
    count = len(seen)
    unsubscribe()
    engine.stop()

    assert engine.snapshot().turn_index == 1
    assert [s.phase for s in seen[:3]] == [
        MatchPhase.RUNNING,
        MatchPhase.AWAITING_REASONING,
        MatchPhase.RUNNING,
    ]
    assert len(seen) == count


def test_snapshot_is_detached(make_engine, sample_topic) -> None:
    engine = make_engine(ScriptedReasoner())
    engine.start(sample_topic)

    snapshot = engine.snapshot()
    snapshot.agents[0].hp = 0
    snapshot.agents[0].inventory.clear()

    fresh = engine.snapshot()
    assert fresh.agents[0].hp == 100
    assert len(fresh.agents[0].inventory) == 3
    data = fresh.to_dict()
    assert data["phase"] == "running"
    assert data["topic"] == sample_topic
