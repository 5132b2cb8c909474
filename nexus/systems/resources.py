#!/usr/bin/env python3
"""
Resource system: per-tick regeneration, production and consumption at a node.

Every function here is pure: it takes a Node and returns a new Node (plus
events where relevant). Amounts are kept inside [0, max_capacity].
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from nexus.models import SIM_CONFIG
from nexus.models import Consumer, Node, Producer, Resource
from nexus.models.events import (
    GameEvent,
    ResourceCapReached,
    ResourceDepleted,
    ResourceProduced,
    create_event,
)

DEFAULT_MAX_CAPACITY: float = SIM_CONFIG.resources.default_max_capacity


@dataclass(frozen=True)
class ResourceResult:
    node: Node
    events: Tuple[GameEvent, ...]


@dataclass(frozen=True)
class ResourceRates:
    node_id: str
    production: Dict[str, float]
    consumption: Dict[str, float]


# ---------- Helpers ----------


def clamp_amount(amount: float, capacity: float) -> float:
    """Clamp into [0, capacity]. NaN collapses to 0."""
    if math.isnan(amount):
        return 0
    return max(0, min(amount, capacity))


def create_resource(
    resource_type: str,
    amount: float,
    regen_rate: float = 0.0,
    max_capacity: float = DEFAULT_MAX_CAPACITY,
) -> Resource:
    return Resource(
        type=resource_type,
        amount=clamp_amount(amount, max_capacity),
        regen_rate=regen_rate,
        max_capacity=max_capacity,
    )


def set_resource_amount(resource: Resource, amount: float) -> Resource:
    return replace(resource, amount=clamp_amount(amount, resource.max_capacity))


def set_regen_rate(resource: Resource, regen_rate: float) -> Resource:
    return replace(resource, regen_rate=regen_rate)


def calculate_net_rate(
    base_regen: float, production_rate: float, consumption_rate: float
) -> float:
    return base_regen + production_rate - consumption_rate


def calculate_production_rate(
    producers: Sequence[Producer], resource_type: str
) -> float:
    return sum(
        p.rate for p in producers if p.resource_type == resource_type and p.is_active
    )


def calculate_consumption_rate(
    consumers: Sequence[Consumer], resource_type: str
) -> float:
    return sum(
        c.rate for c in consumers if c.resource_type == resource_type and c.is_active
    )


def _map_resources(node: Node, fn) -> Node:
    return replace(node, resources=tuple(fn(r) for r in node.resources))


def regenerate_resources(node: Node) -> Node:
    return _map_resources(
        node,
        lambda r: replace(
            r, amount=clamp_amount(r.amount + r.regen_rate, r.max_capacity)
        ),
    )


def deplete_resource(node: Node, resource_type: str, amount: float) -> Node:
    def _deplete(r: Resource) -> Resource:
        if r.type != resource_type:
            return r
        return replace(r, amount=clamp_amount(r.amount - amount, r.max_capacity))

    return _map_resources(node, _deplete)


def add_resources(node: Node, resource_type: str, amount: float) -> Node:
    def _add(r: Resource) -> Resource:
        if r.type != resource_type:
            return r
        return replace(r, amount=clamp_amount(r.amount + amount, r.max_capacity))

    return _map_resources(node, _add)


def clamp_to_capacity(node: Node) -> Node:
    return _map_resources(
        node, lambda r: replace(r, amount=clamp_amount(r.amount, r.max_capacity))
    )


def apply_production_consumption(
    node: Node, producers: Sequence[Producer], consumers: Sequence[Consumer]
) -> Node:
    def _apply(r: Resource) -> Resource:
        net = calculate_production_rate(producers, r.type) - calculate_consumption_rate(
            consumers, r.type
        )
        return replace(r, amount=clamp_amount(r.amount + net, r.max_capacity))

    return _map_resources(node, _apply)


# ---------- Per-tick processing ----------


def process_node_resources(
    node: Node,
    tick: int,
    producers: Sequence[Producer] = (),
    consumers: Sequence[Consumer] = (),
) -> ResourceResult:
    """
    Apply regen + production - consumption to every resource at the node.

    Events are derived from the amount before the update:
    - resource_depleted when a positive amount reaches 0
    - resource_cap_reached when an amount below capacity reaches it
    - resource_produced whenever the amount went up
    Producers/consumers for resource types the node lacks are ignored.
    """
    events: List[GameEvent] = []
    new_resources: List[Resource] = []

    for resource in node.resources:
        previous = resource.amount
        change = calculate_net_rate(
            resource.regen_rate,
            calculate_production_rate(producers, resource.type),
            calculate_consumption_rate(consumers, resource.type),
        )
        updated = replace(
            resource, amount=clamp_amount(previous + change, resource.max_capacity)
        )
        new_resources.append(updated)

        if previous > 0 and updated.amount == 0:
            events.append(
                create_event(
                    tick,
                    node.id,
                    ResourceDepleted(
                        resource_type=resource.type, previous_amount=previous
                    ),
                )
            )
        if previous < updated.max_capacity and updated.amount == updated.max_capacity:
            events.append(
                create_event(
                    tick,
                    node.id,
                    ResourceCapReached(
                        resource_type=resource.type, capacity=updated.max_capacity
                    ),
                )
            )
        if updated.amount > previous:
            events.append(
                create_event(
                    tick,
                    node.id,
                    ResourceProduced(
                        resource_type=resource.type,
                        produced=updated.amount - previous,
                        new_amount=updated.amount,
                    ),
                )
            )

    return ResourceResult(
        node=replace(node, resources=tuple(new_resources)), events=tuple(events)
    )


# ---------- Queries ----------


def build_resource_rates(
    node_id: str, producers: Sequence[Producer], consumers: Sequence[Consumer]
) -> ResourceRates:
    production: Dict[str, float] = {}
    consumption: Dict[str, float] = {}
    for p in producers:
        if p.is_active:
            production[p.resource_type] = production.get(p.resource_type, 0) + p.rate
    for c in consumers:
        if c.is_active:
            consumption[c.resource_type] = (
                consumption.get(c.resource_type, 0) + c.rate
            )
    return ResourceRates(node_id=node_id, production=production, consumption=consumption)


def find_resource(node: Node, resource_type: str) -> Optional[Resource]:
    for resource in node.resources:
        if resource.type == resource_type:
            return resource
    return None


def has_resources(node: Node, resource_type: str, amount: float) -> bool:
    resource = find_resource(node, resource_type)
    return resource is not None and resource.amount >= amount


def get_resource_amount(node: Node, resource_type: str) -> float:
    resource = find_resource(node, resource_type)
    return resource.amount if resource is not None else 0


def get_resource_capacity(node: Node, resource_type: str) -> float:
    resource = find_resource(node, resource_type)
    return resource.max_capacity if resource is not None else 0
