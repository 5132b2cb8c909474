#!/usr/bin/env python3
"""
Tick orchestrator: advances an immutable World by exactly one tick.

advance_world never mutates its input. Each call runs, in order:
  1. control intents (pause / resume / set-speed)
  2. player intents, in submission order
  3. resource processing over every node
  4. territory contention over claimed nodes
  5. gateway cooldown sweep
  6. event queue processing through the handler registry
and then commits the new World with current_tick + 1.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from nexus.helper.world_helpers import pause, resume, set_speed
from nexus.models import (
    ClaimAction,
    Consumer,
    GameSpeed,
    Gateway,
    Producer,
    World,
)
from nexus.models.events import GameEvent, TickProcessed, create_event
from nexus.models.intents import (
    AbandonNode,
    AcceptAlliance,
    AcceptPeace,
    ActivateGateway,
    ClaimNode,
    DeclareWar,
    Intent,
    OfferAlliance,
    Pause,
    ProposePeace,
    RejectAlliance,
    Resume,
    SetSpeed,
    is_control_intent,
    is_intent,
)
from nexus.systems.connectivity import (
    activate_gateway,
    is_gateway,
    is_gateway_ready,
    update_gateway_cooldown,
)
from nexus.systems.diplomacy import (
    DiplomaticAction,
    DiplomaticActionRequest,
    apply_diplomatic_action,
    is_known_player,
)
from nexus.systems.events import EventConfig, EventStats, process_event_queue
from nexus.systems.handlers import HandlerRegistry, create_default_registry
from nexus.systems.resources import process_node_resources
from nexus.systems.territory import abandon_node, can_claim, process_territory_claims

logger = logging.getLogger(__name__)

_DIPLOMATIC_ACTIONS = {
    OfferAlliance: DiplomaticAction.OFFER_ALLIANCE,
    AcceptAlliance: DiplomaticAction.ACCEPT_ALLIANCE,
    RejectAlliance: DiplomaticAction.REJECT_ALLIANCE,
    DeclareWar: DiplomaticAction.DECLARE_WAR,
    ProposePeace: DiplomaticAction.PROPOSE_PEACE,
    AcceptPeace: DiplomaticAction.ACCEPT_PEACE,
}


@dataclass(frozen=True)
class TickInput:
    """Everything a driver fed into one advance_world call, for replay."""

    intents: Tuple[Intent, ...] = ()
    claims: Tuple[ClaimAction, ...] = ()
    # clock state the tick started from; None when the caller did not record it
    speed: Optional[GameSpeed] = None


@dataclass(frozen=True)
class TickResult:
    """Outcome of one advance_world call, as handed to the transport layer."""

    world: World
    events: Tuple[GameEvent, ...]  # processed events, in processing order
    tick: int
    is_paused: bool
    speed: GameSpeed
    advanced: bool = True  # False when the world was paused
    dropped_events: Tuple[GameEvent, ...] = ()
    stats: EventStats = field(default_factory=EventStats)


@dataclass(frozen=True)
class IntentOutcome:
    world: World
    events: Tuple[GameEvent, ...]
    claims: Tuple[ClaimAction, ...]


@dataclass(frozen=True)
class MultiTickResult:
    world: World
    events: Tuple[GameEvent, ...]
    results: Tuple[TickResult, ...]

    @property
    def ticks_processed(self) -> int:
        return sum(1 for r in self.results if r.advanced)


# ---------- Intents ----------


def apply_control_intents(world: World, intents: Sequence[Intent]) -> World:
    for intent in intents:
        if not is_intent(intent) or not is_known_player(world, intent.player_id):
            continue
        if isinstance(intent, Pause):
            world = pause(world)
        elif isinstance(intent, Resume):
            world = resume(world)
        elif isinstance(intent, SetSpeed):
            try:
                speed = GameSpeed(intent.speed)
            except ValueError:
                logger.debug("[nexus] ignoring unknown speed %r", intent.speed)
                continue
            world = set_speed(world, speed)
    return world


def apply_intents(world: World, intents: Sequence[Intent], tick: int) -> IntentOutcome:
    """
    Apply player intents in order. Anything invalid (unknown ids, failed
    validation, wrong owner) is skipped without touching the world.
    """
    events: List[GameEvent] = []
    claims: List[ClaimAction] = []

    for intent in intents:
        if not is_intent(intent) or is_control_intent(intent):
            continue
        if not is_known_player(world, intent.player_id):
            continue

        if isinstance(intent, ClaimNode):
            if can_claim(world, intent.player_id, intent.node_id):
                claims.append(ClaimAction(intent.player_id, intent.node_id, tick))

        elif isinstance(intent, AbandonNode):
            node = world.nodes.get(intent.node_id)
            if node is None or node.owner_id != intent.player_id:
                continue
            result = abandon_node(node, tick)
            nodes = dict(world.nodes)
            nodes[node.id] = result.node
            world = replace(world, nodes=nodes)
            events.extend(result.events)

        elif type(intent) in _DIPLOMATIC_ACTIONS:
            request = DiplomaticActionRequest(
                player_id=intent.player_id,
                target_player_id=intent.target_player_id,  # type: ignore[union-attr]
                action=_DIPLOMATIC_ACTIONS[type(intent)],
                tick=tick,
            )
            outcome = apply_diplomatic_action(world, request)
            world = outcome.world
            events.extend(outcome.events)

        elif isinstance(intent, ActivateGateway):
            world, gateway_events = _activate_gateway_intent(world, intent, tick)
            events.extend(gateway_events)

    return IntentOutcome(world=world, events=tuple(events), claims=tuple(claims))


def _activate_gateway_intent(
    world: World, intent: ActivateGateway, tick: int
) -> Tuple[World, Tuple[GameEvent, ...]]:
    connection = world.connections.get(intent.connection_id)
    if connection is None or not is_gateway(connection):
        return world, ()
    gateway: Gateway = connection  # type: ignore[assignment]
    if not is_gateway_ready(gateway, tick):
        return world, ()

    # the acting player pays from an endpoint they own, preferring from_node
    payer = None
    for node_id in (gateway.from_node_id, gateway.to_node_id):
        node = world.nodes.get(node_id)
        if node is not None and node.owner_id == intent.player_id:
            payer = node
            break
    if payer is None:
        return world, ()

    activation = activate_gateway(gateway, payer, tick)
    nodes = dict(world.nodes)
    nodes[payer.id] = activation.node
    connections = dict(world.connections)
    connections[gateway.id] = activation.gateway
    return replace(world, nodes=nodes, connections=connections), activation.events


# ---------- Phases ----------


def _resource_phase(
    world: World,
    tick: int,
    producers: Mapping[str, Sequence[Producer]],
    consumers: Mapping[str, Sequence[Consumer]],
) -> Tuple[World, List[GameEvent]]:
    events: List[GameEvent] = []
    nodes = dict(world.nodes)
    for node_id in sorted(nodes):
        result = process_node_resources(
            nodes[node_id],
            tick,
            producers.get(node_id, ()),
            consumers.get(node_id, ()),
        )
        nodes[node_id] = result.node
        events.extend(result.events)
    return replace(world, nodes=nodes), events


def _cooldown_phase(world: World, tick: int) -> Tuple[World, List[GameEvent]]:
    events: List[GameEvent] = []
    connections = dict(world.connections)
    for connection_id in sorted(connections):
        connection = connections[connection_id]
        if not is_gateway(connection):
            continue
        result = update_gateway_cooldown(connection, tick)  # type: ignore[arg-type]
        connections[connection_id] = result.gateway
        events.extend(result.events)
    return replace(world, connections=connections), events


# ---------- Simulation ----------


def advance_world(
    world: World,
    intents: Sequence[Intent] = (),
    claims: Sequence[ClaimAction] = (),
    registry: Optional[HandlerRegistry] = None,
    producers: Optional[Mapping[str, Sequence[Producer]]] = None,
    consumers: Optional[Mapping[str, Sequence[Consumer]]] = None,
    event_config: Optional[EventConfig] = None,
) -> TickResult:
    """
    Advance world by one tick.

    claims are the driver's standing ClaimActions for this tick; ClaimNode
    intents add one-tick claims on top. While the world is paused (after
    control intents), nothing else happens and the tick does not advance.
    Exceptions from custom handlers propagate.
    """
    world = apply_control_intents(world, intents)
    if world.is_paused:
        return TickResult(
            world=world,
            events=(),
            tick=world.current_tick,
            is_paused=True,
            speed=world.speed,
            advanced=False,
        )

    if registry is None:
        registry = create_default_registry()
    next_tick = world.current_tick + 1

    queued = world.event_queue
    working = replace(world, event_queue=())

    outcome = apply_intents(working, intents, next_tick)
    working = outcome.world
    phase_events: List[GameEvent] = list(outcome.events)

    working, resource_events = _resource_phase(
        working, next_tick, producers or {}, consumers or {}
    )
    phase_events.extend(resource_events)

    standing = [c for c in claims if is_known_player(working, c.player_id)]
    territory = process_territory_claims(
        working, standing + list(outcome.claims), next_tick
    )
    working = territory.world
    phase_events.extend(territory.events)

    working, cooldown_events = _cooldown_phase(working, next_tick)
    phase_events.extend(cooldown_events)

    phase_events.append(
        create_event(next_tick, world.id, TickProcessed(previous_tick=world.current_tick))
    )

    processed = process_event_queue(
        working, list(queued) + phase_events, registry, event_config
    )
    committed = replace(processed.world, current_tick=next_tick)

    logger.debug(
        "[nexus] world=%s tick=%d events=%d dropped=%d",
        committed.id,
        next_tick,
        len(processed.processed_events),
        len(processed.dropped_events),
    )

    return TickResult(
        world=committed,
        events=processed.processed_events,
        tick=next_tick,
        is_paused=committed.is_paused,
        speed=committed.speed,
        dropped_events=processed.dropped_events,
        stats=processed.stats,
    )


def advance_many(
    world: World,
    count: int,
    intent_batches: Optional[Sequence[Sequence[Intent]]] = None,
    claims: Sequence[ClaimAction] = (),
    registry: Optional[HandlerRegistry] = None,
    producers: Optional[Mapping[str, Sequence[Producer]]] = None,
    consumers: Optional[Mapping[str, Sequence[Consumer]]] = None,
    event_config: Optional[EventConfig] = None,
) -> MultiTickResult:
    """
    Run up to count ticks back to back (catch-up / fast-forward).
    intent_batches[i] is applied on the i-th tick. Stops early if the world
    is paused.
    """
    if registry is None:
        registry = create_default_registry()
    results: List[TickResult] = []
    events: List[GameEvent] = []
    batches: Dict[int, Sequence[Intent]] = dict(enumerate(intent_batches or ()))

    for i in range(count):
        result = advance_world(
            world,
            intents=batches.get(i, ()),
            claims=claims,
            registry=registry,
            producers=producers,
            consumers=consumers,
            event_config=event_config,
        )
        results.append(result)
        world = result.world
        events.extend(result.events)
        if not result.advanced:
            break

    return MultiTickResult(world=world, events=tuple(events), results=tuple(results))
