"""
Shared pytest fixtures for the simulation tests.

Provides:
  - small hand-built worlds (A-B-C line graph, two-player map)
  - a fresh handler registry per test
  - node/world builder helpers
"""

import sys
from pathlib import Path
from typing import Iterable, Optional

import pytest

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so nexus/ and services/ import
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from nexus.helper.world_helpers import (  # noqa: E402
    add_connection,
    add_node,
    claim_node,
    create_node,
    create_world,
)
from nexus.models import Node, Resource, World  # noqa: E402
from nexus.systems.connectivity import create_connection  # noqa: E402
from nexus.systems.handlers import create_default_registry  # noqa: E402
from nexus.systems.resources import create_resource  # noqa: E402


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_node(
    node_id: str,
    x: float = 0,
    y: float = 0,
    resources: Iterable[Resource] = (),
    owner: Optional[str] = None,
) -> Node:
    node = create_node(node_id, f"Node {node_id}", x, y, resources=resources)
    return claim_node(node, owner) if owner else node


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def line_world() -> World:
    """A - B - C, direct connections with travel time 1."""
    world = create_world("line", paused=False)
    for i, node_id in enumerate("ABC"):
        world = add_node(world, make_node(node_id, x=i, y=0))
    world = add_connection(world, create_connection("A-B", "A", "B", 1))
    world = add_connection(world, create_connection("B-C", "B", "C", 1))
    return world


@pytest.fixture
def two_player_world() -> World:
    """P1 owns home-1, P2 owns home-2, a neutral node sits in between."""
    world = create_world("duel", players=("P1", "P2"), paused=False)
    world = add_node(
        world,
        make_node(
            "home-1",
            0,
            0,
            resources=(create_resource("energy", 100, regen_rate=1),),
            owner="P1",
        ),
    )
    world = add_node(world, make_node("middle", 1, 0))
    world = add_node(
        world,
        make_node(
            "home-2",
            2,
            0,
            resources=(create_resource("energy", 100, regen_rate=1),),
            owner="P2",
        ),
    )
    world = add_connection(world, create_connection("h1-m", "home-1", "middle", 2))
    world = add_connection(world, create_connection("m-h2", "middle", "home-2", 2))
    return world


@pytest.fixture
def registry():
    return create_default_registry()
