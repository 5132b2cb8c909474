from nexus.systems.resources import (
    ResourceResult,
    ResourceRates,
    process_node_resources,
    create_resource,
    build_resource_rates,
    has_resources,
    get_resource_amount,
    get_resource_capacity,
)
from nexus.systems.connectivity import (
    CostFunction,
    can_traverse,
    activate_gateway,
    update_gateway_cooldown,
    find_path,
    get_neighbors,
    get_neighbors_with_costs,
    get_reachable_nodes,
    are_nodes_connected,
    get_connections_between,
)
from nexus.systems.territory import (
    TerritoryResult,
    process_territory_claims,
    abandon_node,
    can_claim,
    get_claim_progress,
)
from nexus.systems.diplomacy import (
    DiplomaticAction,
    DiplomaticActionRequest,
    DiplomacyResult,
    relation_key,
    validate_diplomatic_action,
    apply_diplomatic_action,
    get_diplomatic_status,
    are_allied,
    are_at_war,
)
from nexus.systems.handlers import (
    HandlerRegistry,
    HandlerResult,
    EventHandler,
    create_default_registry,
)
from nexus.systems.events import (
    EventConfig,
    EventStats,
    EventQueueResult,
    EventHistory,
    process_event_queue,
)


__all__ = [
    "ResourceResult",
    "ResourceRates",
    "process_node_resources",
    "create_resource",
    "build_resource_rates",
    "has_resources",
    "get_resource_amount",
    "get_resource_capacity",
    "CostFunction",
    "can_traverse",
    "activate_gateway",
    "update_gateway_cooldown",
    "find_path",
    "get_neighbors",
    "get_neighbors_with_costs",
    "get_reachable_nodes",
    "are_nodes_connected",
    "get_connections_between",
    "TerritoryResult",
    "process_territory_claims",
    "abandon_node",
    "can_claim",
    "get_claim_progress",
    "DiplomaticAction",
    "DiplomaticActionRequest",
    "DiplomacyResult",
    "relation_key",
    "validate_diplomatic_action",
    "apply_diplomatic_action",
    "get_diplomatic_status",
    "are_allied",
    "are_at_war",
    "HandlerRegistry",
    "HandlerResult",
    "EventHandler",
    "create_default_registry",
    "EventConfig",
    "EventStats",
    "EventQueueResult",
    "EventHistory",
    "process_event_queue",
]
