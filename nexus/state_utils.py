#!/usr/bin/env python3
"""
Helpers for turning worlds and tick results into JSON-compatible payloads,
restoring worlds from those payloads, and replaying recorded tick inputs.
"""
from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from nexus.models import (
    Connection,
    ConnectionType,
    DiplomaticRelation,
    DiplomaticStatus,
    GameSpeed,
    Gateway,
    Node,
    NodeStatus,
    OfferType,
    PendingOffer,
    Position,
    Resource,
    ResourceCost,
    World,
)
from nexus.models.events import PAYLOAD_TYPES, GameEvent, GameEventType
from nexus.systems.events import EventConfig
from nexus.systems.handlers import HandlerRegistry, create_default_registry
from nexus.world import MultiTickResult, TickInput, TickResult, advance_world

SNAPSHOT_VERSION = 1


class SnapshotError(ValueError):
    pass


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


# ---------- Events ----------


def event_to_dict(event: GameEvent) -> dict:
    return {
        "type": event.type.value,
        "tick": event.tick,
        "entity_id": event.entity_id,
        "data": _plain(dataclasses.asdict(event.data)),
    }


def event_from_dict(payload: Mapping[str, Any]) -> GameEvent:
    payload_cls = PAYLOAD_TYPES[GameEventType(payload["type"])]
    data: Dict[str, Any] = {}
    for key, value in payload["data"].items():
        if key == "activation_cost":
            value = tuple(ResourceCost(**cost) for cost in value)
        elif isinstance(value, list):
            value = tuple(value)
        data[key] = value
    return GameEvent(
        tick=payload["tick"], entity_id=payload["entity_id"], data=payload_cls(**data)
    )


# ---------- Worlds ----------


def _node_payload(node: Node) -> dict:
    return {
        "id": node.id,
        "name": node.name,
        "x": node.position.x,
        "y": node.position.y,
        "status": node.status.value,
        "owner_id": node.owner_id,
        "control_points": node.control_points,
        "max_control_points": node.max_control_points,
        "resources": [
            {
                "type": _plain(r.type),
                "amount": r.amount,
                "regen_rate": r.regen_rate,
                "max_capacity": r.max_capacity,
            }
            for r in node.resources
        ],
        "connection_ids": list(node.connection_ids),
    }


def _connection_payload(connection: Connection) -> dict:
    payload = {
        "id": connection.id,
        "from_node_id": connection.from_node_id,
        "to_node_id": connection.to_node_id,
        "type": connection.type.value,
        "travel_time": connection.travel_time,
        "is_active": connection.is_active,
    }
    if isinstance(connection, Gateway):
        payload.update(
            {
                "activation_cost": [
                    {"type": _plain(c.type), "amount": c.amount}
                    for c in connection.activation_cost
                ],
                "activation_time": connection.activation_time,
                "last_activated_tick": connection.last_activated_tick,
                "is_cooling_down": connection.is_cooling_down,
            }
        )
    return payload


def snapshot_from_world(world: World) -> dict:
    """
    Full JSON-compatible snapshot. world_from_snapshot(snapshot_from_world(w))
    compares equal to w.
    """
    return {
        "version": SNAPSHOT_VERSION,
        "id": world.id,
        "current_tick": world.current_tick,
        "speed": int(world.speed),
        "is_paused": world.is_paused,
        "generator_seed": world.generator_seed,
        "players": list(world.players),
        "nodes": [_node_payload(n) for n in world.nodes.values()],
        "connections": [_connection_payload(c) for c in world.connections.values()],
        "relations": [
            {
                "player1_id": r.player1_id,
                "player2_id": r.player2_id,
                "status": r.status.value,
                "established_tick": r.established_tick,
            }
            for r in world.relations.values()
        ],
        "pending_offers": [
            {
                "from_player_id": o.from_player_id,
                "to_player_id": o.to_player_id,
                "type": o.type.value,
                "offered_tick": o.offered_tick,
            }
            for o in world.pending_offers
        ],
        "event_queue": [event_to_dict(e) for e in world.event_queue],
    }


def _node_from_payload(data: Mapping[str, Any]) -> Node:
    return Node(
        id=data["id"],
        name=data["name"],
        position=Position(data["x"], data["y"]),
        status=NodeStatus(data["status"]),
        owner_id=data["owner_id"],
        resources=tuple(Resource(**r) for r in data["resources"]),
        connection_ids=tuple(data["connection_ids"]),
        control_points=data["control_points"],
        max_control_points=data["max_control_points"],
    )


def _connection_from_payload(data: Mapping[str, Any]) -> Connection:
    kind = ConnectionType(data["type"])
    common = dict(
        id=data["id"],
        from_node_id=data["from_node_id"],
        to_node_id=data["to_node_id"],
        travel_time=data["travel_time"],
        is_active=data["is_active"],
    )
    if kind == ConnectionType.GATEWAY:
        return Gateway(
            **common,
            activation_cost=tuple(ResourceCost(**c) for c in data["activation_cost"]),
            activation_time=data["activation_time"],
            last_activated_tick=data["last_activated_tick"],
            is_cooling_down=data["is_cooling_down"],
        )
    return Connection(**common)


def world_from_snapshot(snapshot: Mapping[str, Any]) -> World:
    version = snapshot.get("version")
    if version != SNAPSHOT_VERSION:
        raise SnapshotError(
            f"unsupported snapshot version {version!r}, expected {SNAPSHOT_VERSION}"
        )
    try:
        nodes = {n["id"]: _node_from_payload(n) for n in snapshot["nodes"]}
        connections = {
            c["id"]: _connection_from_payload(c) for c in snapshot["connections"]
        }
        relations = {}
        for r in snapshot["relations"]:
            relation = DiplomaticRelation(
                player1_id=r["player1_id"],
                player2_id=r["player2_id"],
                status=DiplomaticStatus(r["status"]),
                established_tick=r["established_tick"],
            )
            relations[(relation.player1_id, relation.player2_id)] = relation
        offers = tuple(
            PendingOffer(
                from_player_id=o["from_player_id"],
                to_player_id=o["to_player_id"],
                type=OfferType(o["type"]),
                offered_tick=o["offered_tick"],
            )
            for o in snapshot["pending_offers"]
        )
        return World(
            id=snapshot["id"],
            current_tick=snapshot["current_tick"],
            speed=GameSpeed(snapshot["speed"]),
            is_paused=snapshot["is_paused"],
            nodes=nodes,
            connections=connections,
            event_queue=tuple(event_from_dict(e) for e in snapshot["event_queue"]),
            relations=relations,
            pending_offers=offers,
            players=tuple(snapshot["players"]),
            generator_seed=snapshot["generator_seed"],
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotError(f"malformed snapshot: {exc}") from exc


# ---------- Diffs & frames ----------


def changed_node_ids(before: World, after: World) -> List[str]:
    """Ids of nodes that were added, removed or changed, sorted."""
    ids = set(before.nodes) | set(after.nodes)
    return sorted(nid for nid in ids if before.nodes.get(nid) != after.nodes.get(nid))


def frame_from_result(result: TickResult, previous: Optional[World] = None) -> dict:
    """
    Outbound per-tick payload. With previous given only the changed node
    ids are listed; otherwise the full world snapshot is attached.
    """
    frame: Dict[str, Any] = {
        "tick": result.tick,
        "is_paused": result.is_paused,
        "speed": int(result.speed),
        "advanced": result.advanced,
        "events": [event_to_dict(e) for e in result.events],
        "dropped_events": len(result.dropped_events),
    }
    if previous is None:
        frame["world"] = snapshot_from_world(result.world)
    else:
        frame["changed_node_ids"] = changed_node_ids(previous, result.world)
    return frame


# ---------- Replay ----------


def replay(
    snapshot: Mapping[str, Any],
    inputs: Sequence[TickInput],
    registry: Optional[HandlerRegistry] = None,
    producers=None,
    consumers=None,
    event_config: Optional[EventConfig] = None,
) -> MultiTickResult:
    """
    Restore snapshot and feed it the recorded inputs, one tick each.

    Inputs that carry a speed were recorded on a running clock, so the world
    is resumed at that speed first; pause/resume/speed changes made between
    ticks are covered this way. Pass the registry and event_config the
    original run used.
    """
    world = world_from_snapshot(snapshot)
    if registry is None:
        registry = create_default_registry()
    results: List[TickResult] = []
    events: List[GameEvent] = []
    for tick_input in inputs:
        if tick_input.speed is not None:
            world = dataclasses.replace(world, is_paused=False, speed=tick_input.speed)
        result = advance_world(
            world,
            intents=tick_input.intents,
            claims=tick_input.claims,
            registry=registry,
            producers=producers,
            consumers=consumers,
            event_config=event_config,
        )
        results.append(result)
        events.extend(result.events)
        world = result.world
    return MultiTickResult(world=world, events=tuple(events), results=tuple(results))
