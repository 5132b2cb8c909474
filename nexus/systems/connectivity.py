#!/usr/bin/env python3
"""
Connectivity: traversal rules, the gateway activation/cooldown cycle and
graph queries (A* paths, neighbours, Dijkstra reachability).

Exploration always follows each node's connection_ids order and frontier
ties are broken by insertion order, so results never depend on hash order.
"""
from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Set, Tuple

from nexus.models import (
    Connection,
    ConnectionType,
    Gateway,
    Node,
    Path,
    PathStep,
    ResourceCost,
    TraversalContext,
    World,
)
from nexus.models.events import GameEvent, GatewayActivated, GatewayReady, create_event
from nexus.systems.resources import clamp_amount

CostFunction = Callable[[Connection, Node, Node], float]


@dataclass(frozen=True)
class GatewayActivation:
    gateway: Gateway
    node: Node
    events: Tuple[GameEvent, ...]


@dataclass(frozen=True)
class CooldownResult:
    gateway: Gateway
    events: Tuple[GameEvent, ...]


@dataclass(frozen=True)
class NeighborCost:
    node: Node
    cost: float
    connection_id: str


@dataclass(frozen=True)
class ReachableNode:
    node: Node
    cost: float


# ---------- Connections ----------


def create_connection(
    connection_id: str,
    from_node_id: str,
    to_node_id: str,
    travel_time: float = 1,
) -> Connection:
    return Connection(
        id=connection_id,
        from_node_id=from_node_id,
        to_node_id=to_node_id,
        travel_time=travel_time,
    )


def create_gateway(
    gateway_id: str,
    from_node_id: str,
    to_node_id: str,
    travel_time: float,
    activation_cost: Tuple[ResourceCost, ...] = (),
    activation_time: int = 0,
) -> Gateway:
    return Gateway(
        id=gateway_id,
        from_node_id=from_node_id,
        to_node_id=to_node_id,
        travel_time=travel_time,
        activation_cost=tuple(activation_cost),
        activation_time=activation_time,
    )


def activate_connection(connection: Connection) -> Connection:
    return replace(connection, is_active=True)


def deactivate_connection(connection: Connection) -> Connection:
    return replace(connection, is_active=False)


def connects_nodes(connection: Connection, node_a: str, node_b: str) -> bool:
    ends = (connection.from_node_id, connection.to_node_id)
    return ends == (node_a, node_b) or ends == (node_b, node_a)


def get_other_node(connection: Connection, node_id: str) -> Optional[str]:
    if connection.from_node_id == node_id:
        return connection.to_node_id
    if connection.to_node_id == node_id:
        return connection.from_node_id
    return None


def is_gateway(connection: Connection) -> bool:
    return connection.type == ConnectionType.GATEWAY and isinstance(
        connection, Gateway
    )


# ---------- Traversal ----------


def can_traverse(
    connection: Connection, context: Optional[TraversalContext] = None
) -> bool:
    if not connection.is_active:
        return False
    if not is_gateway(connection):
        return True
    gateway: Gateway = connection  # type: ignore[assignment]
    if gateway.is_cooling_down:
        return False
    if context is not None and context.available_resources is not None:
        for cost in gateway.activation_cost:
            if context.available_resources.get(cost.type, 0) < cost.amount:
                return False
    return True


def get_traversal_cost(connection: Connection) -> float:
    return connection.travel_time


def default_cost_function(connection: Connection, from_node: Node, to_node: Node) -> float:
    return get_traversal_cost(connection)


# ---------- Gateways ----------


def is_gateway_ready(gateway: Gateway, current_tick: int) -> bool:
    if not gateway.is_active:
        return False
    if gateway.is_cooling_down and gateway.last_activated_tick is not None:
        return current_tick >= gateway.last_activated_tick + gateway.activation_time
    return not gateway.is_cooling_down


def activate_gateway(gateway: Gateway, node: Node, tick: int) -> GatewayActivation:
    """
    Pay the activation cost from node and start the cooldown. Deficits are
    not rejected: each cost just clamps the node's amount at 0.
    """
    updated_node = node
    if gateway.activation_cost:
        costs: Dict[str, float] = {}
        for cost in gateway.activation_cost:
            costs.setdefault(cost.type, cost.amount)
        updated_node = replace(
            node,
            resources=tuple(
                replace(r, amount=clamp_amount(r.amount - costs[r.type], r.max_capacity))
                if r.type in costs
                else r
                for r in node.resources
            ),
        )

    updated_gateway = replace(
        gateway,
        last_activated_tick=tick,
        is_cooling_down=gateway.activation_time > 0,
    )
    event = create_event(
        tick,
        gateway.id,
        GatewayActivated(
            from_node_id=gateway.from_node_id,
            to_node_id=gateway.to_node_id,
            activation_cost=gateway.activation_cost,
        ),
    )
    return GatewayActivation(gateway=updated_gateway, node=updated_node, events=(event,))


def update_gateway_cooldown(gateway: Gateway, tick: int) -> CooldownResult:
    if (
        gateway.is_cooling_down
        and gateway.last_activated_tick is not None
        and tick >= gateway.last_activated_tick + gateway.activation_time
    ):
        event = create_event(
            tick,
            gateway.id,
            GatewayReady(
                from_node_id=gateway.from_node_id, to_node_id=gateway.to_node_id
            ),
        )
        return CooldownResult(
            gateway=replace(gateway, is_cooling_down=False), events=(event,)
        )
    return CooldownResult(gateway=gateway, events=())


# ---------- Graph queries ----------


def _heuristic(a: Node, b: Node) -> float:
    return abs(a.position.x - b.position.x) + abs(a.position.y - b.position.y)


def _traversable_edges(
    world: World, node: Node, context: Optional[TraversalContext]
) -> List[Tuple[Connection, Node]]:
    """(connection, neighbour) pairs in connection_ids order, skipping dangling ids."""
    edges: List[Tuple[Connection, Node]] = []
    for conn_id in node.connection_ids:
        connection = world.connections.get(conn_id)
        if connection is None or not can_traverse(connection, context):
            continue
        other_id = get_other_node(connection, node.id)
        if other_id is None:
            continue
        other = world.nodes.get(other_id)
        if other is not None:
            edges.append((connection, other))
    return edges


def find_path(
    world: World,
    from_node_id: str,
    to_node_id: str,
    cost_fn: CostFunction = default_cost_function,
    context: Optional[TraversalContext] = None,
) -> Optional[Path]:
    """
    A* search from from_node_id to to_node_id.

    The frontier is a heap of (f, counter, node_id); a frontier entry is only
    replaced when a strictly lower g-cost is found. Returns None when either
    endpoint is missing or the target is unreachable.
    """
    start = world.nodes.get(from_node_id)
    goal = world.nodes.get(to_node_id)
    if start is None or goal is None:
        return None
    if from_node_id == to_node_id:
        return Path(from_node_id, to_node_id, steps=(), total_cost=0)

    counter = itertools.count()
    frontier: List[Tuple[float, int, str]] = [
        (_heuristic(start, goal), next(counter), from_node_id)
    ]
    g_cost: Dict[str, float] = {from_node_id: 0}
    came_from: Dict[str, Tuple[str, str]] = {}
    closed: Set[str] = set()

    while frontier:
        _, _, current_id = heapq.heappop(frontier)
        if current_id in closed:
            continue
        if current_id == to_node_id:
            return _reconstruct(from_node_id, to_node_id, came_from, g_cost)
        closed.add(current_id)

        current = world.nodes.get(current_id)
        if current is None:
            continue
        for connection, neighbor in _traversable_edges(world, current, context):
            if neighbor.id in closed:
                continue
            tentative = g_cost[current_id] + cost_fn(connection, current, neighbor)
            known = g_cost.get(neighbor.id)
            if known is not None and tentative >= known:
                continue
            g_cost[neighbor.id] = tentative
            came_from[neighbor.id] = (current_id, connection.id)
            heapq.heappush(
                frontier,
                (tentative + _heuristic(neighbor, goal), next(counter), neighbor.id),
            )

    return None


def _reconstruct(
    from_node_id: str,
    to_node_id: str,
    came_from: Dict[str, Tuple[str, str]],
    g_cost: Dict[str, float],
) -> Path:
    steps: List[PathStep] = []
    node_id = to_node_id
    while node_id != from_node_id:
        parent_id, connection_id = came_from[node_id]
        steps.append(PathStep(node_id, connection_id, g_cost[node_id]))
        node_id = parent_id
    steps.reverse()
    return Path(from_node_id, to_node_id, tuple(steps), g_cost[to_node_id])


def get_neighbors(
    world: World, node_id: str, context: Optional[TraversalContext] = None
) -> List[Node]:
    node = world.nodes.get(node_id)
    if node is None:
        return []
    return [neighbor for _, neighbor in _traversable_edges(world, node, context)]


def get_neighbors_with_costs(
    world: World,
    node_id: str,
    cost_fn: CostFunction = default_cost_function,
    context: Optional[TraversalContext] = None,
) -> List[NeighborCost]:
    node = world.nodes.get(node_id)
    if node is None:
        return []
    return [
        NeighborCost(neighbor, cost_fn(connection, node, neighbor), connection.id)
        for connection, neighbor in _traversable_edges(world, node, context)
    ]


def get_reachable_nodes(
    world: World,
    node_id: str,
    max_cost: Optional[float] = None,
    cost_fn: CostFunction = default_cost_function,
    context: Optional[TraversalContext] = None,
) -> List[ReachableNode]:
    """Dijkstra from node_id; excludes the origin, sorted by (cost, node id)."""
    if node_id not in world.nodes:
        return []

    counter = itertools.count()
    queue: List[Tuple[float, int, str]] = [(0, next(counter), node_id)]
    distances: Dict[str, float] = {node_id: 0}
    visited: Set[str] = set()

    while queue:
        cost, _, current_id = heapq.heappop(queue)
        if current_id in visited:
            continue
        visited.add(current_id)
        current = world.nodes.get(current_id)
        if current is None:
            continue
        for connection, neighbor in _traversable_edges(world, current, context):
            total = cost + cost_fn(connection, current, neighbor)
            if max_cost is not None and total > max_cost:
                continue
            known = distances.get(neighbor.id)
            if known is None or total < known:
                distances[neighbor.id] = total
                heapq.heappush(queue, (total, next(counter), neighbor.id))

    reachable = [
        ReachableNode(world.nodes[nid], cost)
        for nid, cost in distances.items()
        if nid != node_id and nid in world.nodes
    ]
    reachable.sort(key=lambda r: (r.cost, r.node.id))
    return reachable


def are_nodes_connected(
    world: World,
    node_a: str,
    node_b: str,
    context: Optional[TraversalContext] = None,
) -> bool:
    if node_a == node_b:
        return True
    return find_path(world, node_a, node_b, default_cost_function, context) is not None


def get_connections_between(world: World, node_a: str, node_b: str) -> List[Connection]:
    node = world.nodes.get(node_a)
    if node is None:
        return []
    found: List[Connection] = []
    for conn_id in node.connection_ids:
        connection = world.connections.get(conn_id)
        if connection is not None and connects_nodes(connection, node_a, node_b):
            found.append(connection)
    return found
