import hashlib
import logging
import math
import numpy as np
from dataclasses import replace
from typing import Tuple, Optional, Dict, List, Iterable, Sequence
import random

# Delaunay method + Edge pruning for placement generation
from scipy.spatial import Delaunay  # type: ignore

# simulation config import
from nexus.models import SIM_CONFIG
from nexus.models import (
    Connection,
    GameSpeed,
    Node,
    NodeStatus,
    Position,
    Resource,
    ResourceCost,
    ResourceType,
    World,
)
from nexus.models.events import (
    ConnectionEstablished,
    ConnectionSevered,
    GameEvent,
    create_event,
)
from nexus.systems.connectivity import create_connection, create_gateway
from nexus.systems.resources import create_resource

from .players_helper import load_players

logger = logging.getLogger(__name__)

DEFAULT_WORLD_ID = SIM_CONFIG.default_world_id
# World-level config from JSON
GEN = SIM_CONFIG.generator
NUM_NODES: int = GEN.number_of_nodes
LANES_PER_NODE: int = GEN.lanes_per_node
MIN_NODE_DISTANCE: float = GEN.minimum_node_distance
MAX_PLACEMENT_ATTEMPTS: int = GEN.maximum_placement_attempts
MAX_LANE_LENGTH: float = GEN.maximum_lane_length
COORDINATE_SCALE: int = GEN.coordinate_scale
DISTANCE_PER_TRAVEL_TICK: float = GEN.distance_per_travel_tick
GATEWAY_RATIO: float = GEN.gateway_ratio
GATEWAY_ACTIVATION_TIME: int = GEN.gateway_activation_time
GATEWAY_ACTIVATION_COST: Tuple[ResourceCost, ...] = tuple(
    ResourceCost(type=kind, amount=amount)
    for kind, amount in sorted(GEN.gateway_activation_cost.items())
)
# Optional deterministic seed for world generation
RAW_WORLD_SEED = SIM_CONFIG.world_seed
MAX_CONTROL_POINTS = SIM_CONFIG.territory.max_control_points


# ---------- World construction ----------


def create_world(
    world_id: str = DEFAULT_WORLD_ID,
    players: Sequence[str] = (),
    paused: bool = True,
) -> World:
    """New empty world. Worlds start paused at normal speed."""
    return World(
        id=world_id,
        current_tick=0,
        speed=GameSpeed.NORMAL,
        is_paused=paused,
        players=tuple(players),
    )


def create_node(
    node_id: str,
    name: str,
    x: float,
    y: float,
    resources: Iterable[Resource] = (),
    connection_ids: Iterable[str] = (),
) -> Node:
    return Node(
        id=node_id,
        name=name,
        position=Position(x, y),
        resources=tuple(resources),
        connection_ids=tuple(connection_ids),
        max_control_points=MAX_CONTROL_POINTS,
    )


def claim_node(node: Node, owner_id: str) -> Node:
    """Hand a node straight to owner_id with full control."""
    return replace(
        node,
        owner_id=owner_id,
        status=NodeStatus.CLAIMED,
        control_points=node.max_control_points,
    )


def add_node(world: World, node: Node) -> World:
    nodes = dict(world.nodes)
    nodes[node.id] = node
    return replace(world, nodes=nodes)


def update_node(world: World, node: Node) -> World:
    if node.id not in world.nodes:
        return world
    return add_node(world, node)


def set_nodes(world: World, nodes: Dict[str, Node]) -> World:
    return replace(world, nodes=dict(nodes))


def add_connection(world: World, connection: Connection) -> World:
    """
    Store connection and list its id on both endpoints. Endpoints that are
    not in the world are left alone.
    """
    nodes = dict(world.nodes)
    for node_id in (connection.from_node_id, connection.to_node_id):
        node = nodes.get(node_id)
        if node is not None and connection.id not in node.connection_ids:
            nodes[node_id] = replace(
                node, connection_ids=node.connection_ids + (connection.id,)
            )
    connections = dict(world.connections)
    connections[connection.id] = connection
    return replace(world, nodes=nodes, connections=connections)


def set_connection_active(
    world: World, connection_id: str, active: bool, tick: Optional[int] = None
) -> Tuple[World, Tuple[GameEvent, ...]]:
    """Open or close a connection; emits established/severed on a real change."""
    connection = world.connections.get(connection_id)
    if connection is None or connection.is_active == active:
        return world, ()
    connections = dict(world.connections)
    connections[connection_id] = replace(connection, is_active=active)
    payload_cls = ConnectionEstablished if active else ConnectionSevered
    event = create_event(
        world.current_tick if tick is None else tick,
        connection_id,
        payload_cls(
            connection_id=connection_id,
            from_node_id=connection.from_node_id,
            to_node_id=connection.to_node_id,
        ),
    )
    return replace(world, connections=connections), (event,)


def queue_events(world: World, events: Iterable[GameEvent]) -> World:
    return replace(world, event_queue=world.event_queue + tuple(events))


def clear_event_queue(world: World) -> World:
    return replace(world, event_queue=())


def set_speed(world: World, speed: GameSpeed) -> World:
    speed = GameSpeed(speed)
    return replace(world, speed=speed, is_paused=speed == GameSpeed.PAUSED)


def pause(world: World) -> World:
    return replace(world, is_paused=True)


def resume(world: World) -> World:
    speed = GameSpeed.NORMAL if world.speed == GameSpeed.PAUSED else world.speed
    return replace(world, is_paused=False, speed=speed)


def get_node(world: World, node_id: str) -> Optional[Node]:
    return world.nodes.get(node_id)


def get_all_nodes(world: World) -> List[Node]:
    return list(world.nodes.values())


def get_all_connections(world: World) -> List[Connection]:
    return list(world.connections.values())


def nodes_owned_by(world: World, player_id: str) -> List[Node]:
    return [world.nodes[nid] for nid in sorted(world.nodes) if world.nodes[nid].owner_id == player_id]


# ---------- World generation ----------

SEED_BITS = 48
SEED_MASK = (1 << SEED_BITS) - 1


def normalize_seed(value: Optional[object]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        try:
            return int(cleaned, 0) & SEED_MASK
        except ValueError:
            digest = hashlib.sha256(cleaned.encode("utf-8")).hexdigest()
            return int(digest, 16) & SEED_MASK
    if isinstance(value, (bytes, bytearray)):
        digest = hashlib.sha256(value).hexdigest()
        return int(digest, 16) & SEED_MASK
    try:
        return int(value) & SEED_MASK  # type: ignore[arg-type]
    except (TypeError, ValueError):
        digest = hashlib.sha256(str(value).encode("utf-8")).hexdigest()
        return int(digest, 16) & SEED_MASK


def _place_points(rng: random.Random, count: int) -> List[Tuple[float, float]]:
    # Random positions in the unit square, avoiding tight clustering
    min_dist2 = MIN_NODE_DISTANCE * MIN_NODE_DISTANCE
    positions: List[Tuple[float, float]] = []
    for _ in range(count):
        x = rng.random()
        y = rng.random()
        for _ in range(MAX_PLACEMENT_ATTEMPTS):
            if all((x - px) ** 2 + (y - py) ** 2 >= min_dist2 for px, py in positions):
                break
            x = rng.random()
            y = rng.random()
        positions.append((x, y))
    return positions


def _candidate_edges(points: List[Tuple[float, float]]) -> List[Tuple[float, int, int]]:
    """Delaunay edges as (squared length, a, b) with a < b, shortest first."""

    def dist2(a: int, b: int) -> float:
        dx = points[a][0] - points[b][0]
        dy = points[a][1] - points[b][1]
        return dx * dx + dy * dy

    count = len(points)
    if count < 3:
        edges = [(dist2(a, b), a, b) for a in range(count) for b in range(a + 1, count)]
        edges.sort()
        return edges

    tri = Delaunay(np.array(points))  # type: ignore
    edge_set: set[tuple[int, int]] = set()
    for simplex in tri.simplices:  # type: ignore
        a, b, c = (int(v) for v in simplex)
        for u, v in ((a, b), (b, c), (c, a)):
            edge_set.add((u, v) if u < v else (v, u))
    edges = [(dist2(a, b), a, b) for a, b in edge_set]
    edges.sort()
    return edges


def _build_backbone(
    count: int, base_edges: List[Tuple[float, int, int]], max_lane_len: float
) -> Optional[List[Tuple[int, int]]]:
    """Degree-capped spanning tree over edges no longer than max_lane_len."""
    max_lane_dist2 = max_lane_len * max_lane_len
    edges = [(d2, a, b) for (d2, a, b) in base_edges if d2 <= max_lane_dist2]
    if not edges and count > 1:
        return None

    parent = list(range(count))
    rank = [0] * count
    degree = [0] * count
    lanes: List[Tuple[int, int]] = []

    def find(x: int) -> int:
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def union(a: int, b: int) -> None:
        ra, rb = find(a), find(b)
        if ra == rb:
            return
        if rank[ra] < rank[rb]:
            parent[ra] = rb
        elif rank[ra] > rank[rb]:
            parent[rb] = ra
        else:
            parent[rb] = ra
            rank[ra] += 1

    for _, a, b in edges:
        if degree[a] >= LANES_PER_NODE or degree[b] >= LANES_PER_NODE:
            continue
        if find(a) != find(b):
            lanes.append((a, b))
            degree[a] += 1
            degree[b] += 1
            union(a, b)

    if len({find(i) for i in range(count)}) > 1:
        return None
    return sorted(lanes)


def _seed_resources(rng: random.Random) -> Tuple[Resource, ...]:
    kinds = sorted(kind.value for kind in ResourceType)
    picked = sorted(rng.sample(kinds, k=min(GEN.resource_types_per_node, len(kinds))))
    resources: List[Resource] = []
    for kind in picked:
        amount = round(
            rng.uniform(GEN.minimum_resource_amount, GEN.maximum_resource_amount), 2
        )
        regen = round(rng.uniform(0, GEN.maximum_regen_rate), 2)
        resources.append(create_resource(kind, amount, regen_rate=regen))
    return tuple(resources)


def generate_world(
    num_nodes: int = NUM_NODES,
    seed: Optional[object] = None,
    player_ids: Optional[Sequence[str]] = None,
    world_id: str = DEFAULT_WORLD_ID,
) -> World:
    """
    Generate a new world graph. When a seed (or sim_config['world_seed']) is
    provided, the layout, lanes, gateways, resources and starting nodes are
    deterministic. Each player starts with one fully controlled node.
    """
    if num_nodes < 1:
        raise ValueError("num_nodes must be >= 1")
    effective_seed = normalize_seed(seed if seed is not None else RAW_WORLD_SEED)
    if effective_seed is None:
        effective_seed = random.SystemRandom().randrange(1 << SEED_BITS)
    rng = random.Random(effective_seed)

    roster = load_players(SIM_CONFIG, player_ids)
    players = list(roster)
    if len(players) > num_nodes:
        raise ValueError("More players defined than nodes in the world.")

    points = _place_points(rng, num_nodes)
    base_edges = _candidate_edges(points)

    lanes: Optional[List[Tuple[int, int]]] = None
    max_lane_len = MAX_LANE_LENGTH
    max_allowed = 1.5  # slightly above unit square diagonal (~1.414)
    while max_lane_len <= max_allowed + 1e-9:
        lanes = _build_backbone(num_nodes, base_edges, max_lane_len)
        if lanes is not None:
            break
        max_lane_len *= 1.25

    if lanes is None:
        raise ValueError(
            "Unable to build a connected graph with the current "
            "lanes_per_node and maximum_lane_length constraints."
        )

    logger.debug("[nexus] max lane length used: %.3f", max_lane_len)

    world = create_world(world_id, players=players)
    for i, (x, y) in enumerate(points):
        world = add_node(
            world,
            create_node(
                f"node-{i}",
                f"{GEN.node_name_prefix} {i + 1}",
                x * COORDINATE_SCALE,
                y * COORDINATE_SCALE,
                resources=_seed_resources(rng),
            ),
        )

    for a, b in lanes:
        length = math.dist(points[a], points[b]) * COORDINATE_SCALE
        travel_time = max(1, math.ceil(length / DISTANCE_PER_TRAVEL_TICK))
        if rng.random() < GATEWAY_RATIO:
            connection: Connection = create_gateway(
                f"gate-{a}-{b}",
                f"node-{a}",
                f"node-{b}",
                travel_time,
                activation_cost=GATEWAY_ACTIVATION_COST,
                activation_time=GATEWAY_ACTIVATION_TIME,
            )
        else:
            connection = create_connection(
                f"lane-{a}-{b}", f"node-{a}", f"node-{b}", travel_time
            )
        world = add_connection(world, connection)

    # Starting nodes for each player
    starting = rng.sample(range(num_nodes), k=len(players))
    nodes = dict(world.nodes)
    for player_id, index in zip(players, starting):
        node_id = f"node-{index}"
        nodes[node_id] = claim_node(nodes[node_id], player_id)

    return replace(world, nodes=nodes, generator_seed=effective_seed)
