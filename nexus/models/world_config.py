from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple

from .sim_config import SIM_CONFIG

if TYPE_CHECKING:
    from .events import GameEvent


class ResourceType(str, Enum):
    """Built-in resource kinds. Resource type fields accept any string."""

    MINERALS = "minerals"
    ENERGY = "energy"
    ALLOYS = "alloys"
    RESEARCH = "research"


class NodeStatus(str, Enum):
    NEUTRAL = "neutral"
    CLAIMED = "claimed"
    CONTESTED = "contested"


class ConnectionType(str, Enum):
    DIRECT = "direct"
    GATEWAY = "gateway"


class GameSpeed(int, Enum):
    PAUSED = 0
    NORMAL = 1
    FAST = 2
    VERY_FAST = 5


class DiplomaticStatus(str, Enum):
    NEUTRAL = "neutral"
    ALLIED = "allied"
    WAR = "war"


class OfferType(str, Enum):
    ALLIANCE = "alliance"
    PEACE = "peace"


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class Resource:
    type: str  # ResourceType value or a custom kind
    amount: float  # always within [0, max_capacity]
    regen_rate: float = 0.0  # per tick, may be negative
    max_capacity: float = SIM_CONFIG.resources.default_max_capacity

    def __post_init__(self) -> None:
        if self.max_capacity < 0:
            raise ValueError(
                f"max_capacity must be >= 0, got {self.max_capacity}"
            )


@dataclass(frozen=True)
class ResourceCost:
    type: str
    amount: float


@dataclass(frozen=True)
class Node:
    id: str
    name: str
    position: Position
    status: NodeStatus = NodeStatus.NEUTRAL
    owner_id: Optional[str] = None  # set only when status is CLAIMED or CONTESTED
    resources: Tuple[Resource, ...] = ()
    connection_ids: Tuple[str, ...] = ()  # order drives neighbour exploration
    control_points: float = 0  # 0..max_control_points
    max_control_points: float = SIM_CONFIG.territory.max_control_points


@dataclass(frozen=True)
class Connection:
    id: str
    from_node_id: str
    to_node_id: str
    type: ConnectionType = ConnectionType.DIRECT
    travel_time: float = 1
    is_active: bool = True

    def __post_init__(self) -> None:
        if self.travel_time < 0:
            raise ValueError(
                f"travel_time must be >= 0 for connection {self.id!r}, "
                f"got {self.travel_time}"
            )


@dataclass(frozen=True)
class Gateway(Connection):
    type: ConnectionType = ConnectionType.GATEWAY
    activation_cost: Tuple[ResourceCost, ...] = ()
    activation_time: int = 0  # cooldown length in ticks
    last_activated_tick: Optional[int] = None
    is_cooling_down: bool = False


@dataclass(frozen=True)
class DiplomaticRelation:
    player1_id: str  # lexicographically smaller id of the pair
    player2_id: str
    status: DiplomaticStatus = DiplomaticStatus.NEUTRAL
    established_tick: int = 0


@dataclass(frozen=True)
class PendingOffer:
    from_player_id: str
    to_player_id: str
    type: OfferType
    offered_tick: int


@dataclass(frozen=True)
class World:
    id: str
    current_tick: int = 0
    speed: GameSpeed = GameSpeed.NORMAL
    is_paused: bool = False
    nodes: Dict[str, Node] = field(default_factory=dict)
    connections: Dict[str, Connection] = field(default_factory=dict)
    event_queue: Tuple["GameEvent", ...] = ()  # queued for the next tick, FIFO
    relations: Dict[Tuple[str, str], DiplomaticRelation] = field(
        default_factory=dict
    )
    pending_offers: Tuple[PendingOffer, ...] = ()
    players: Tuple[str, ...] = ()  # empty means any player id is accepted
    generator_seed: Optional[int] = None


@dataclass(frozen=True)
class ClaimAction:
    """A player actively working to claim a node during one tick."""

    player_id: str
    node_id: str
    tick: int


@dataclass(frozen=True)
class Producer:
    id: str
    resource_type: str
    rate: float
    is_active: bool = True


@dataclass(frozen=True)
class Consumer:
    id: str
    resource_type: str
    rate: float
    is_active: bool = True


@dataclass(frozen=True)
class TraversalContext:
    traverser_id: str
    current_tick: int
    available_resources: Optional[Mapping[str, float]] = None


@dataclass(frozen=True)
class PathStep:
    node_id: str
    connection_id: str  # connection used to arrive at node_id
    cumulative_cost: float


@dataclass(frozen=True)
class Path:
    from_node_id: str
    to_node_id: str
    steps: Tuple[PathStep, ...]
    total_cost: float

    @property
    def node_ids(self) -> Tuple[str, ...]:
        return tuple(step.node_id for step in self.steps)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def reject(cls, reason: str) -> "ValidationResult":
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.valid
