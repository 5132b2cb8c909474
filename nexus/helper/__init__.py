from nexus.helper.world_helpers import (
    create_world,
    create_node,
    claim_node,
    add_node,
    update_node,
    set_nodes,
    add_connection,
    set_connection_active,
    queue_events,
    clear_event_queue,
    set_speed,
    pause,
    resume,
    get_node,
    get_all_nodes,
    get_all_connections,
    nodes_owned_by,
    normalize_seed,
    generate_world,
)
from nexus.helper.players_helper import load_players


__all__ = [
    "create_world",
    "create_node",
    "claim_node",
    "add_node",
    "update_node",
    "set_nodes",
    "add_connection",
    "set_connection_active",
    "queue_events",
    "clear_event_queue",
    "set_speed",
    "pause",
    "resume",
    "get_node",
    "get_all_nodes",
    "get_all_connections",
    "nodes_owned_by",
    "normalize_seed",
    "generate_world",
    "load_players",
]
