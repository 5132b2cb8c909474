#!/usr/bin/env python3
"""
Game events: the closed set of event types and one frozen payload class per
type. A GameEvent derives its type from its payload, so the two can never
disagree.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Optional, Tuple, Type, Union, get_args

from .world_config import ResourceCost


class GameEventType(str, Enum):
    # resources
    RESOURCE_DEPLETED = "resource_depleted"
    RESOURCE_CAP_REACHED = "resource_cap_reached"
    RESOURCE_PRODUCED = "resource_produced"
    # territory
    NODE_CLAIMED = "node_claimed"
    NODE_CONTESTED = "node_contested"
    NODE_LOST = "node_lost"
    NODE_DISCOVERED = "node_discovered"
    # connectivity
    CONNECTION_ESTABLISHED = "connection_established"
    CONNECTION_SEVERED = "connection_severed"
    GATEWAY_ACTIVATED = "gateway_activated"
    GATEWAY_READY = "gateway_ready"
    GATEWAY_COOLDOWN_EXPIRED = "gateway_cooldown_expired"
    # diplomacy
    ALLIANCE_OFFERED = "alliance_offered"
    ALLIANCE_FORMED = "alliance_formed"
    ALLIANCE_REJECTED = "alliance_rejected"
    WAR_DECLARED = "war_declared"
    PEACE_PROPOSED = "peace_proposed"
    PEACE_MADE = "peace_made"
    # clock
    TICK_PROCESSED = "tick_processed"


# ---------- Payloads ----------


@dataclass(frozen=True)
class ResourceDepleted:
    event_type: ClassVar[GameEventType] = GameEventType.RESOURCE_DEPLETED
    resource_type: str
    previous_amount: float


@dataclass(frozen=True)
class ResourceCapReached:
    event_type: ClassVar[GameEventType] = GameEventType.RESOURCE_CAP_REACHED
    resource_type: str
    capacity: float


@dataclass(frozen=True)
class ResourceProduced:
    event_type: ClassVar[GameEventType] = GameEventType.RESOURCE_PRODUCED
    resource_type: str
    produced: float
    new_amount: float


@dataclass(frozen=True)
class NodeClaimed:
    event_type: ClassVar[GameEventType] = GameEventType.NODE_CLAIMED
    player_id: str
    node_id: str
    node_name: str


@dataclass(frozen=True)
class NodeContested:
    """Either an owner under attack (defender/attacker) or a neutral node
    with several claimants."""

    event_type: ClassVar[GameEventType] = GameEventType.NODE_CONTESTED
    node_id: str
    node_name: str
    defender_id: Optional[str] = None
    attacker_id: Optional[str] = None
    claimants: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NodeLost:
    event_type: ClassVar[GameEventType] = GameEventType.NODE_LOST
    node_id: str
    node_name: str
    previous_owner: str
    new_owner: Optional[str] = None
    abandoned: bool = False


@dataclass(frozen=True)
class NodeDiscovered:
    event_type: ClassVar[GameEventType] = GameEventType.NODE_DISCOVERED
    node_id: str
    player_id: str


@dataclass(frozen=True)
class ConnectionEstablished:
    event_type: ClassVar[GameEventType] = GameEventType.CONNECTION_ESTABLISHED
    connection_id: str
    from_node_id: str
    to_node_id: str


@dataclass(frozen=True)
class ConnectionSevered:
    event_type: ClassVar[GameEventType] = GameEventType.CONNECTION_SEVERED
    connection_id: str
    from_node_id: str
    to_node_id: str


@dataclass(frozen=True)
class GatewayActivated:
    event_type: ClassVar[GameEventType] = GameEventType.GATEWAY_ACTIVATED
    from_node_id: str
    to_node_id: str
    activation_cost: Tuple[ResourceCost, ...]


@dataclass(frozen=True)
class GatewayReady:
    event_type: ClassVar[GameEventType] = GameEventType.GATEWAY_READY
    from_node_id: str
    to_node_id: str


@dataclass(frozen=True)
class GatewayCooldownExpired:
    event_type: ClassVar[GameEventType] = GameEventType.GATEWAY_COOLDOWN_EXPIRED
    from_node_id: str
    to_node_id: str


@dataclass(frozen=True)
class AllianceOffered:
    event_type: ClassVar[GameEventType] = GameEventType.ALLIANCE_OFFERED
    from_player_id: str
    to_player_id: str


@dataclass(frozen=True)
class AllianceFormed:
    event_type: ClassVar[GameEventType] = GameEventType.ALLIANCE_FORMED
    player1_id: str
    player2_id: str


@dataclass(frozen=True)
class AllianceRejected:
    event_type: ClassVar[GameEventType] = GameEventType.ALLIANCE_REJECTED
    from_player_id: str  # the player whose offer was rejected
    to_player_id: str


@dataclass(frozen=True)
class WarDeclared:
    event_type: ClassVar[GameEventType] = GameEventType.WAR_DECLARED
    declarer_id: str
    target_id: str


@dataclass(frozen=True)
class PeaceProposed:
    event_type: ClassVar[GameEventType] = GameEventType.PEACE_PROPOSED
    from_player_id: str
    to_player_id: str


@dataclass(frozen=True)
class PeaceMade:
    event_type: ClassVar[GameEventType] = GameEventType.PEACE_MADE
    player1_id: str
    player2_id: str


@dataclass(frozen=True)
class TickProcessed:
    event_type: ClassVar[GameEventType] = GameEventType.TICK_PROCESSED
    previous_tick: int


EventPayload = Union[
    ResourceDepleted,
    ResourceCapReached,
    ResourceProduced,
    NodeClaimed,
    NodeContested,
    NodeLost,
    NodeDiscovered,
    ConnectionEstablished,
    ConnectionSevered,
    GatewayActivated,
    GatewayReady,
    GatewayCooldownExpired,
    AllianceOffered,
    AllianceFormed,
    AllianceRejected,
    WarDeclared,
    PeaceProposed,
    PeaceMade,
    TickProcessed,
]

PAYLOAD_TYPES: Dict[GameEventType, Type] = {
    cls.event_type: cls
    for cls in get_args(EventPayload)
}


@dataclass(frozen=True)
class GameEvent:
    tick: int
    entity_id: str  # node, connection or player the event is about
    data: EventPayload

    @property
    def type(self) -> GameEventType:
        return self.data.event_type


def create_event(tick: int, entity_id: str, data: EventPayload) -> GameEvent:
    return GameEvent(tick=tick, entity_id=entity_id, data=data)
