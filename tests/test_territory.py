"""
Tests for territory control.

Covers:
- neutral claims accumulating to ownership
- contested drains and ownership flips
- the multi-claimant freeze on neutral nodes
- owner reinforcement, abandonment and claim validation
"""

from dataclasses import replace

import pytest

from nexus.helper.world_helpers import add_node, create_world
from nexus.models import ClaimAction, NodeStatus
from nexus.models.events import GameEventType
from nexus.systems.territory import (
    CONTESTED_DRAIN_RATE,
    NEUTRAL_CLAIM_RATE,
    abandon_node,
    can_claim,
    get_claim_progress,
    process_node_claim,
    process_territory_claims,
)

from conftest import make_node


def world_with(*nodes):
    world = create_world("territory", paused=False)
    for node in nodes:
        world = add_node(world, node)
    return world


def claims(tick, *pairs):
    return [ClaimAction(player_id=p, node_id=n, tick=tick) for p, n in pairs]


def event_types(events):
    return [e.type for e in events]


class TestNeutralClaims:
    def test_single_claimant_accumulates(self) -> None:
        world = world_with(make_node("n"))

        result = process_territory_claims(world, claims(1, ("P1", "n")), 1)
        node = result.world.nodes["n"]

        assert node.control_points == NEUTRAL_CLAIM_RATE
        assert node.owner_id is None
        assert node.status == NodeStatus.NEUTRAL
        assert result.events == ()

    def test_ninety_five_to_claimed(self) -> None:
        world = world_with(replace(make_node("n"), control_points=95))

        result = process_territory_claims(world, claims(3, ("P1", "n")), 3)
        node = result.world.nodes["n"]

        assert node.owner_id == "P1"
        assert node.status == NodeStatus.CLAIMED
        assert node.control_points == 100
        assert event_types(result.events) == [GameEventType.NODE_CLAIMED]
        event = result.events[0]
        assert event.tick == 3
        assert event.entity_id == "n"
        assert event.data.player_id == "P1"
        assert event.data.node_name == "Node n"

    def test_duplicate_claims_count_once(self) -> None:
        world = world_with(make_node("n"))

        result = process_territory_claims(
            world, claims(1, ("P1", "n"), ("P1", "n"), ("P1", "n")), 1
        )

        assert result.world.nodes["n"].control_points == NEUTRAL_CLAIM_RATE

    def test_unknown_nodes_are_skipped(self) -> None:
        world = world_with(make_node("n"))

        result = process_territory_claims(world, claims(1, ("P1", "ghost")), 1)

        assert result.world.nodes == world.nodes
        assert result.events == ()


class TestContested:
    def test_attacker_drains_and_flips(self) -> None:
        node = replace(make_node("n", owner="P1"), control_points=CONTESTED_DRAIN_RATE * 2)
        world = world_with(node)

        first = process_territory_claims(world, claims(1, ("P2", "n")), 1)
        contested = first.world.nodes["n"]
        assert contested.status == NodeStatus.CONTESTED
        assert contested.owner_id == "P1"
        assert contested.control_points == CONTESTED_DRAIN_RATE
        assert event_types(first.events) == [GameEventType.NODE_CONTESTED]
        assert first.events[0].data.defender_id == "P1"
        assert first.events[0].data.attacker_id == "P2"

        second = process_territory_claims(first.world, claims(2, ("P2", "n")), 2)
        flipped = second.world.nodes["n"]
        assert flipped.owner_id == "P2"
        assert flipped.status == NodeStatus.CLAIMED
        assert flipped.control_points == flipped.max_control_points
        # already contested: no second node_contested
        assert event_types(second.events) == [
            GameEventType.NODE_LOST,
            GameEventType.NODE_CLAIMED,
        ]
        lost = second.events[0].data
        assert lost.previous_owner == "P1"
        assert lost.new_owner == "P2"

    def test_contest_ends_when_attacker_stops(self) -> None:
        world = world_with(make_node("n", owner="P1"))

        pressed = process_territory_claims(world, claims(1, ("P2", "n")), 1)
        assert pressed.world.nodes["n"].status == NodeStatus.CONTESTED

        idle = process_territory_claims(pressed.world, [], 2)
        node = idle.world.nodes["n"]
        assert node.status == NodeStatus.CLAIMED
        assert node.owner_id == "P1"
        assert idle.events == ()

    def test_owned_with_several_claimants_is_unchanged(self) -> None:
        # rival attackers cancel out; the owner keeps the node as is
        node = make_node("n", owner="P1")

        result = process_node_claim(node, ["P2", "P3"], 1)

        assert result.node == node
        assert result.events == ()


class TestNeutralFreeze:
    def test_two_claimants_freeze_progress(self) -> None:
        world = world_with(replace(make_node("n"), control_points=40))

        result = process_territory_claims(world, claims(1, ("P1", "n"), ("P2", "n")), 1)
        node = result.world.nodes["n"]

        assert node.control_points == 40
        assert node.owner_id is None
        assert node.status == NodeStatus.CONTESTED
        assert event_types(result.events) == [GameEventType.NODE_CONTESTED]
        assert result.events[0].data.claimants == ("P1", "P2")

    def test_freeze_does_not_repeat_the_event(self) -> None:
        world = world_with(make_node("n"))
        both = claims(1, ("P1", "n"), ("P2", "n"))

        first = process_territory_claims(world, both, 1)
        second = process_territory_claims(first.world, both, 2)

        assert second.events == ()
        assert second.world.nodes["n"].status == NodeStatus.CONTESTED

    def test_freeze_reverts_to_neutral(self) -> None:
        world = world_with(make_node("n"))
        frozen = process_territory_claims(world, claims(1, ("P1", "n"), ("P2", "n")), 1)

        after = process_territory_claims(frozen.world, [], 2)

        assert after.world.nodes["n"].status == NodeStatus.NEUTRAL

    def test_single_claimant_resumes_progress(self) -> None:
        world = world_with(make_node("n"))
        frozen = process_territory_claims(world, claims(1, ("P1", "n"), ("P2", "n")), 1)

        resumed = process_territory_claims(frozen.world, claims(2, ("P1", "n")), 2)
        node = resumed.world.nodes["n"]

        assert node.status == NodeStatus.NEUTRAL
        assert node.control_points == NEUTRAL_CLAIM_RATE


class TestReinforcement:
    def test_owner_reinforces_to_max(self) -> None:
        node = replace(make_node("n", owner="P1"), control_points=93)

        result = process_node_claim(node, ["P1"], 1)

        assert result.node.control_points == 100
        assert result.node.status == NodeStatus.CLAIMED
        assert result.events == ()

    def test_reinforcing_full_node_is_idempotent(self) -> None:
        node = make_node("n", owner="P1")

        once = process_node_claim(node, ["P1"], 1).node
        twice = process_node_claim(once, ["P1"], 2).node

        assert once == node
        assert twice == node


class TestValidation:
    def test_can_claim(self) -> None:
        world = world_with(make_node("n", owner="P1"), make_node("m"))

        assert can_claim(world, "P2", "n")
        assert can_claim(world, "P1", "m")

        missing = can_claim(world, "P1", "ghost")
        assert not missing.valid
        assert missing.reason == "Node does not exist"

        owned = can_claim(world, "P1", "n")
        assert not owned.valid
        assert owned.reason == "Already owned by player"

    @pytest.mark.parametrize("points, expected", [(0, 0.0), (50, 0.5), (100, 1.0)])
    def test_claim_progress(self, points, expected) -> None:
        node = replace(make_node("n"), control_points=points)

        assert get_claim_progress(node) == expected

    def test_abandon(self) -> None:
        node = make_node("n", owner="P1")

        result = abandon_node(node, 4)

        assert result.node.owner_id is None
        assert result.node.status == NodeStatus.NEUTRAL
        assert result.node.control_points == 0
        assert event_types(result.events) == [GameEventType.NODE_LOST]
        assert result.events[0].data.abandoned
        assert result.events[0].data.previous_owner == "P1"

    def test_abandon_unowned_emits_nothing(self) -> None:
        assert abandon_node(make_node("n"), 1).events == ()
