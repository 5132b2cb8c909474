from .runtime_config import RUNTIME_SETTINGS, RuntimeSettings
from .sim_config import SIM_CONFIG, SimulationSettings, PlayerConfig
from .world_config import (
    ResourceType,
    NodeStatus,
    ConnectionType,
    GameSpeed,
    DiplomaticStatus,
    OfferType,
    Position,
    Resource,
    ResourceCost,
    Node,
    Connection,
    Gateway,
    DiplomaticRelation,
    PendingOffer,
    World,
    ClaimAction,
    Producer,
    Consumer,
    TraversalContext,
    PathStep,
    Path,
    ValidationResult,
)
from .events import GameEvent, GameEventType, EventPayload, create_event

__all__ = [
    "RUNTIME_SETTINGS",
    "RuntimeSettings",
    "SIM_CONFIG",
    "SimulationSettings",
    "PlayerConfig",
    "ResourceType",
    "NodeStatus",
    "ConnectionType",
    "GameSpeed",
    "DiplomaticStatus",
    "OfferType",
    "Position",
    "Resource",
    "ResourceCost",
    "Node",
    "Connection",
    "Gateway",
    "DiplomaticRelation",
    "PendingOffer",
    "World",
    "ClaimAction",
    "Producer",
    "Consumer",
    "TraversalContext",
    "PathStep",
    "Path",
    "ValidationResult",
    "GameEvent",
    "GameEventType",
    "EventPayload",
    "create_event",
]
