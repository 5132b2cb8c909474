"""
Tests for the tick orchestrator.

Covers:
- tick counter, TickProcessed and phase ordering
- paused worlds and control intents
- player intents (claims, abandon, diplomacy, gateways)
- determinism over long runs, including concurrent ones
"""

import threading
from dataclasses import replace

from nexus.helper.world_helpers import add_connection, generate_world, queue_events
from nexus.models import ClaimAction, GameSpeed, NodeStatus, Producer, ResourceCost
from nexus.models.events import GameEventType, NodeDiscovered, create_event
from nexus.models.intents import (
    AbandonNode,
    ActivateGateway,
    ClaimNode,
    DeclareWar,
    OfferAlliance,
    Pause,
    Resume,
    SetSpeed,
)
from nexus.systems.connectivity import create_gateway
from nexus.systems.diplomacy import are_at_war
from nexus.systems.handlers import HandlerResult
from nexus.systems.resources import get_resource_amount
from nexus.world import advance_many, advance_world, apply_control_intents


def types_of(result):
    return [e.type for e in result.events]


class TestAdvanceWorld:
    def test_tick_increments_and_reports(self, two_player_world) -> None:
        result = advance_world(two_player_world)

        assert result.advanced
        assert result.tick == 1
        assert result.world.current_tick == 1
        assert two_player_world.current_tick == 0
        assert types_of(result)[-1] == GameEventType.TICK_PROCESSED
        assert result.events[-1].entity_id == "duel"
        assert result.events[-1].data.previous_tick == 0

    def test_phase_order(self, two_player_world) -> None:
        world = replace(
            two_player_world,
            nodes={
                **two_player_world.nodes,
                "middle": replace(two_player_world.nodes["middle"], control_points=95),
            },
        )
        claims = [ClaimAction("P1", "middle", 1)]

        result = advance_world(
            world,
            intents=[OfferAlliance("P1", "P2")],
            claims=claims,
            producers={"home-1": [Producer("mine", "energy", 10)]},
        )

        assert types_of(result) == [
            GameEventType.ALLIANCE_OFFERED,
            GameEventType.RESOURCE_PRODUCED,
            GameEventType.RESOURCE_PRODUCED,
            GameEventType.NODE_CLAIMED,
            GameEventType.TICK_PROCESSED,
        ]
        assert get_resource_amount(result.world.nodes["home-1"], "energy") == 111
        assert result.world.nodes["middle"].owner_id == "P1"

    def test_claim_completion_emits_one_claim_and_no_loss(self, two_player_world) -> None:
        world = replace(
            two_player_world,
            nodes={
                **two_player_world.nodes,
                "middle": replace(two_player_world.nodes["middle"], control_points=95),
            },
        )

        result = advance_world(world, claims=[ClaimAction("P1", "middle", 1)])

        assert types_of(result).count(GameEventType.NODE_CLAIMED) == 1
        assert GameEventType.NODE_LOST not in types_of(result)
        assert result.world.nodes["middle"].control_points == 100
        assert result.world.nodes["middle"].status == NodeStatus.CLAIMED

    def test_queued_events_run_first(self, two_player_world) -> None:
        pending = create_event(0, "middle", NodeDiscovered("middle", "P1"))
        world = queue_events(two_player_world, [pending])

        result = advance_world(world)

        assert result.events[0] == pending
        assert result.world.event_queue == ()

    def test_handlers_receive_events(self, two_player_world, registry) -> None:
        seen = []

        def on_tick(world, event):
            seen.append(event.tick)
            return HandlerResult(world)

        registry.register(GameEventType.TICK_PROCESSED, on_tick)

        advance_many(two_player_world, 3, registry=registry)

        assert seen == [1, 2, 3]


class TestPausing:
    def test_paused_world_does_not_advance(self, two_player_world) -> None:
        world = replace(two_player_world, is_paused=True)

        result = advance_world(world, intents=[DeclareWar("P1", "P2")])

        assert not result.advanced
        assert result.is_paused
        assert result.world is world
        assert result.events == ()

    def test_pause_intent_takes_effect_before_phases(self, two_player_world) -> None:
        result = advance_world(two_player_world, intents=[Pause("P1")])

        assert not result.advanced
        assert result.world.current_tick == 0
        assert result.world.is_paused

    def test_resume_intent_advances_same_call(self, two_player_world) -> None:
        world = replace(two_player_world, is_paused=True)

        result = advance_world(world, intents=[Resume("P2")])

        assert result.advanced
        assert result.world.current_tick == 1

    def test_set_speed(self, two_player_world) -> None:
        fast = apply_control_intents(two_player_world, [SetSpeed("P1", GameSpeed.VERY_FAST)])
        stopped = apply_control_intents(two_player_world, [SetSpeed("P1", GameSpeed.PAUSED)])
        bogus = apply_control_intents(two_player_world, [SetSpeed("P1", 3)])

        assert fast.speed == GameSpeed.VERY_FAST
        assert stopped.is_paused
        assert bogus == two_player_world

    def test_unknown_player_control_is_ignored(self, two_player_world) -> None:
        assert apply_control_intents(two_player_world, [Pause("P9")]) == two_player_world

    def test_advance_many_stops_when_paused(self, two_player_world) -> None:
        result = advance_many(two_player_world, 10, intent_batches=[[], [], [Pause("P1")]])

        assert result.ticks_processed == 2
        assert result.world.current_tick == 2
        assert len(result.results) == 3


class TestIntents:
    def test_claim_intent_is_one_tick_claim(self, two_player_world) -> None:
        result = advance_world(two_player_world, intents=[ClaimNode("P1", "middle")])

        assert result.world.nodes["middle"].control_points == 10

        idle = advance_world(result.world)
        assert idle.world.nodes["middle"].control_points == 10

    def test_invalid_claim_is_ignored(self, two_player_world) -> None:
        result = advance_world(
            two_player_world,
            intents=[ClaimNode("P1", "home-1"), ClaimNode("P1", "ghost"), ClaimNode("P9", "middle")],
        )

        assert result.world.nodes == advance_world(two_player_world).world.nodes

    def test_abandon_requires_ownership(self, two_player_world) -> None:
        rejected = advance_world(two_player_world, intents=[AbandonNode("P2", "home-1")])
        assert rejected.world.nodes["home-1"].owner_id == "P1"

        abandoned = advance_world(two_player_world, intents=[AbandonNode("P1", "home-1")])
        node = abandoned.world.nodes["home-1"]
        assert node.owner_id is None
        assert node.status == NodeStatus.NEUTRAL
        assert types_of(abandoned)[0] == GameEventType.NODE_LOST

    def test_diplomatic_intent(self, two_player_world) -> None:
        result = advance_world(two_player_world, intents=[DeclareWar("P1", "P2")])

        assert are_at_war(result.world, "P1", "P2")
        assert result.events[0].tick == 1

    def test_gateway_intent_pays_from_owned_endpoint(self, two_player_world) -> None:
        gateway = create_gateway(
            "gate",
            "home-2",
            "home-1",
            travel_time=1,
            activation_cost=(ResourceCost("energy", 30),),
            activation_time=2,
        )
        world = add_connection(two_player_world, gateway)

        first = advance_world(world, intents=[ActivateGateway("P1", "gate")])
        assert types_of(first)[0] == GameEventType.GATEWAY_ACTIVATED
        # 100 - 30, then regen +1
        assert get_resource_amount(first.world.nodes["home-1"], "energy") == 71
        assert get_resource_amount(first.world.nodes["home-2"], "energy") == 101
        assert first.world.connections["gate"].is_cooling_down

        blocked = advance_world(first.world, intents=[ActivateGateway("P1", "gate")])
        assert GameEventType.GATEWAY_ACTIVATED not in types_of(blocked)
        assert GameEventType.GATEWAY_READY not in types_of(blocked)

        ready = advance_world(blocked.world)
        assert GameEventType.GATEWAY_READY in types_of(ready)
        assert not ready.world.connections["gate"].is_cooling_down

    def test_gateway_intent_without_owned_endpoint(self, two_player_world) -> None:
        gateway = create_gateway("gate", "home-2", "middle", 1, (), 2)
        world = add_connection(two_player_world, gateway)

        result = advance_world(world, intents=[ActivateGateway("P1", "gate")])

        assert GameEventType.GATEWAY_ACTIVATED not in types_of(result)


    def test_non_intents_are_skipped(self, two_player_world) -> None:
        assert apply_control_intents(two_player_world, [object(), "pause"]) == two_player_world

        result = advance_world(
            two_player_world, intents=[object(), "junk", ClaimNode("P1", "middle")]
        )

        assert result.advanced
        assert result.world.nodes["middle"].control_points == 10


class TestDeterminism:
    def _run(self, seed, ticks=120):
        world = replace(
            generate_world(num_nodes=16, seed=seed, player_ids=["P1", "P2", "P3"]),
            is_paused=False,
        )
        targets = sorted(n.id for n in world.nodes.values() if n.owner_id is None)[:3]
        claims = [
            ClaimAction("P1", targets[0], 0),
            ClaimAction("P2", targets[0], 0),
            ClaimAction("P3", targets[1], 0),
            ClaimAction("P1", targets[2], 0),
        ]
        batches = [[DeclareWar("P1", "P2")]] + [[] for _ in range(ticks - 1)]
        return advance_many(world, ticks, intent_batches=batches, claims=claims)

    def test_same_inputs_same_outputs(self) -> None:
        first = self._run(42)
        second = self._run(42)

        assert first.world == second.world
        assert first.events == second.events
        assert first.ticks_processed == 120

    def test_concurrent_runs_match(self) -> None:
        expected = self._run(7)
        outcomes = []

        def worker():
            outcomes.append(self._run(7))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(outcomes) == 4
        for outcome in outcomes:
            assert outcome.world == expected.world
            assert outcome.events == expected.events
