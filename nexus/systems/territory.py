#!/usr/bin/env python3
"""
Territory: control-point contention over nodes.

Each tick every node with at least one ClaimAction is stepped through a small
state machine (neutral / claimed / contested). A contested node whose
claimants all stopped reverts to claimed (owned) or neutral (unowned).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Sequence, Tuple

from nexus.models import SIM_CONFIG
from nexus.models import ClaimAction, Node, NodeStatus, ValidationResult, World
from nexus.models.events import (
    GameEvent,
    NodeClaimed,
    NodeContested,
    NodeLost,
    create_event,
)

logger = logging.getLogger(__name__)

MAX_CONTROL_POINTS = SIM_CONFIG.territory.max_control_points
NEUTRAL_CLAIM_RATE = SIM_CONFIG.territory.neutral_claim_rate  # per tick, single claimant
CONTESTED_DRAIN_RATE = SIM_CONFIG.territory.contested_drain_rate  # per tick, attacker


@dataclass(frozen=True)
class TerritoryResult:
    world: World
    events: Tuple[GameEvent, ...]


@dataclass(frozen=True)
class NodeClaimResult:
    node: Node
    events: Tuple[GameEvent, ...]


def process_territory_claims(
    world: World, claims: Sequence[ClaimAction], tick: int
) -> TerritoryResult:
    """Group claims by node and resolve each node once. Unknown nodes are skipped."""
    claimants_by_node: Dict[str, List[str]] = {}
    for claim in claims:
        players = claimants_by_node.setdefault(claim.node_id, [])
        if claim.player_id not in players:
            players.append(claim.player_id)

    nodes = dict(world.nodes)
    events: List[GameEvent] = []

    for node_id in sorted(claimants_by_node):
        node = nodes.get(node_id)
        if node is None:
            continue
        result = process_node_claim(node, claimants_by_node[node_id], tick)
        nodes[node_id] = result.node
        events.extend(result.events)

    # contention ends as soon as nobody presses a claim
    for node_id in sorted(nodes):
        node = nodes[node_id]
        if node.status == NodeStatus.CONTESTED and node_id not in claimants_by_node:
            settled = NodeStatus.CLAIMED if node.owner_id else NodeStatus.NEUTRAL
            nodes[node_id] = replace(node, status=settled)

    if events:
        logger.debug("[nexus] tick=%s territory events=%d", tick, len(events))
    return TerritoryResult(world=replace(world, nodes=nodes), events=tuple(events))


def process_node_claim(
    node: Node, claimants: Sequence[str], tick: int
) -> NodeClaimResult:
    """Step one node given the distinct players claiming it this tick."""
    unique = list(dict.fromkeys(claimants))
    owner = node.owner_id
    single = unique[0] if len(unique) == 1 else None
    events: List[GameEvent] = []

    # neutral, exactly one claimant
    if owner is None and single is not None:
        points = min(node.max_control_points, node.control_points + NEUTRAL_CLAIM_RATE)
        if points >= node.max_control_points:
            events.append(_claimed_event(node, single, tick))
            return NodeClaimResult(
                replace(
                    node,
                    owner_id=single,
                    status=NodeStatus.CLAIMED,
                    control_points=node.max_control_points,
                ),
                tuple(events),
            )
        return NodeClaimResult(
            replace(node, status=NodeStatus.NEUTRAL, control_points=points), ()
        )

    # owned, one claimant who is not the owner
    if owner is not None and single is not None and single != owner:
        if node.status != NodeStatus.CONTESTED:
            events.append(
                create_event(
                    tick,
                    node.id,
                    NodeContested(
                        node_id=node.id,
                        node_name=node.name,
                        defender_id=owner,
                        attacker_id=single,
                    ),
                )
            )
        points = max(0, node.control_points - CONTESTED_DRAIN_RATE)
        if points == 0:
            events.append(
                create_event(
                    tick,
                    node.id,
                    NodeLost(
                        node_id=node.id,
                        node_name=node.name,
                        previous_owner=owner,
                        new_owner=single,
                    ),
                )
            )
            events.append(_claimed_event(node, single, tick))
            return NodeClaimResult(
                replace(
                    node,
                    owner_id=single,
                    status=NodeStatus.CLAIMED,
                    control_points=node.max_control_points,
                ),
                tuple(events),
            )
        return NodeClaimResult(
            replace(node, status=NodeStatus.CONTESTED, control_points=points),
            tuple(events),
        )

    # neutral, two or more claimants: frozen until only one remains
    if owner is None and len(unique) > 1:
        if node.status != NodeStatus.CONTESTED:
            events.append(
                create_event(
                    tick,
                    node.id,
                    NodeContested(
                        node_id=node.id, node_name=node.name, claimants=tuple(unique)
                    ),
                )
            )
        return NodeClaimResult(replace(node, status=NodeStatus.CONTESTED), tuple(events))

    # owner reinforcing
    if owner is not None and single == owner:
        points = min(node.max_control_points, node.control_points + NEUTRAL_CLAIM_RATE)
        return NodeClaimResult(
            replace(node, status=NodeStatus.CLAIMED, control_points=points), ()
        )

    # owned with several claimants: left as is
    return NodeClaimResult(node, ())


def _claimed_event(node: Node, player_id: str, tick: int) -> GameEvent:
    return create_event(
        tick,
        node.id,
        NodeClaimed(player_id=player_id, node_id=node.id, node_name=node.name),
    )


def can_claim(world: World, player_id: str, node_id: str) -> ValidationResult:
    node = world.nodes.get(node_id)
    if node is None:
        return ValidationResult.reject("Node does not exist")
    if node.owner_id == player_id:
        return ValidationResult.reject("Already owned by player")
    return ValidationResult.ok()


def get_claim_progress(node: Node) -> float:
    if node.max_control_points <= 0:
        return 0.0
    return node.control_points / node.max_control_points


def abandon_node(node: Node, tick: int) -> NodeClaimResult:
    events: Tuple[GameEvent, ...] = ()
    if node.owner_id is not None:
        events = (
            create_event(
                tick,
                node.id,
                NodeLost(
                    node_id=node.id,
                    node_name=node.name,
                    previous_owner=node.owner_id,
                    abandoned=True,
                ),
            ),
        )
    return NodeClaimResult(
        replace(
            node,
            owner_id=None,
            status=NodeStatus.NEUTRAL,
            control_points=0,
            max_control_points=MAX_CONTROL_POINTS,
        ),
        events,
    )
