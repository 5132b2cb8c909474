"""
Tests for event dispatch and history.

Covers:
- FIFO dispatch through a HandlerRegistry
- the depth and per-tick count circuit breakers
- unregistered types and handler errors
- EventHistory capacity and queries
"""

from dataclasses import replace

import pytest

from nexus.helper.world_helpers import create_world
from nexus.models.events import (
    GameEventType,
    NodeDiscovered,
    PAYLOAD_TYPES,
    TickProcessed,
    create_event,
)
from nexus.systems.events import (
    EventConfig,
    EventHistory,
    process_event_queue,
)
from nexus.systems.handlers import HandlerRegistry, HandlerResult, create_default_registry


def tick_event(tick, entity="w"):
    return create_event(tick, entity, TickProcessed(previous_tick=tick - 1))


def discovered(tick, node_id):
    return create_event(tick, node_id, NodeDiscovered(node_id=node_id, player_id="P1"))


class TestEventModel:
    def test_type_follows_payload(self) -> None:
        assert tick_event(1).type == GameEventType.TICK_PROCESSED

    def test_every_type_has_a_payload(self) -> None:
        assert set(PAYLOAD_TYPES) == set(GameEventType)


class TestDispatch:
    def test_fifo_and_spawned_events(self, registry) -> None:
        world = create_world("w")
        seen = []

        def spawn_discovery(w, event):
            seen.append(event.type)
            return HandlerResult(w, (discovered(event.tick, "n-1"),))

        def record(w, event):
            seen.append(event.entity_id)
            return HandlerResult(w)

        registry.register(GameEventType.TICK_PROCESSED, spawn_discovery)
        registry.register(GameEventType.NODE_DISCOVERED, record)

        result = process_event_queue(
            world, [tick_event(1), discovered(1, "n-0")], registry
        )

        assert seen == [GameEventType.TICK_PROCESSED, "n-0", "n-1"]
        assert [e.entity_id for e in result.processed_events] == ["w", "n-0", "n-1"]
        assert result.dropped_events == ()
        assert result.stats.total_processed == 3

    def test_handler_can_change_world(self, registry) -> None:
        registry.register(
            GameEventType.TICK_PROCESSED,
            lambda w, e: HandlerResult(replace(w, generator_seed=e.tick)),
        )

        result = process_event_queue(create_world("w"), [tick_event(7)], registry)

        assert result.world.generator_seed == 7

    def test_depth_breaker(self, registry) -> None:
        registry.register(
            GameEventType.TICK_PROCESSED,
            lambda w, e: HandlerResult(w, (tick_event(e.tick),)),
        )

        result = process_event_queue(
            create_world("w"), [tick_event(1)], registry, EventConfig(max_event_depth=10)
        )

        assert result.stats.total_processed == 10
        assert result.stats.max_depth_reached
        assert not result.stats.max_count_reached
        assert len(result.dropped_events) == 1

    def test_count_breaker(self, registry) -> None:
        registry.register(
            GameEventType.TICK_PROCESSED,
            lambda w, e: HandlerResult(w, (tick_event(e.tick), tick_event(e.tick))),
        )

        result = process_event_queue(
            create_world("w"),
            [tick_event(1)],
            registry,
            EventConfig(max_event_depth=100, max_events_per_tick=5),
        )

        assert result.stats.total_processed == 5
        assert result.stats.max_count_reached
        assert len(result.dropped_events) > 0

    def test_unregistered_type_is_still_processed(self) -> None:
        result = process_event_queue(create_world("w"), [tick_event(1)], HandlerRegistry())

        assert result.stats.total_processed == 1
        assert result.world == create_world("w")

    def test_handler_errors_propagate(self, registry) -> None:
        def boom(w, e):
            raise RuntimeError("handler failed")

        registry.register(GameEventType.TICK_PROCESSED, boom)

        with pytest.raises(RuntimeError, match="handler failed"):
            process_event_queue(create_world("w"), [tick_event(1)], registry)


class TestRegistry:
    def test_default_registry_covers_every_type(self) -> None:
        registry = create_default_registry()

        assert len(registry) == len(GameEventType)
        assert all(registry.has(t) for t in GameEventType)

    def test_registries_are_isolated(self) -> None:
        first = create_default_registry()
        second = create_default_registry()

        first.unregister(GameEventType.NODE_CLAIMED)

        assert not first.has(GameEventType.NODE_CLAIMED)
        assert second.has(GameEventType.NODE_CLAIMED)

    def test_copy_and_clear(self) -> None:
        registry = create_default_registry()
        copied = registry.copy()

        registry.clear()

        assert len(registry) == 0
        assert len(copied) == len(GameEventType)
        assert not registry.unregister(GameEventType.NODE_CLAIMED)


class TestEventHistory:
    def test_capacity_drops_oldest(self) -> None:
        history = EventHistory(max_size=3)

        history.extend(tick_event(t) for t in range(1, 6))

        assert [e.tick for e in history] == [3, 4, 5]
        assert len(history) == 3
        assert history.total_recorded == 5

    def test_queries(self) -> None:
        history = EventHistory(max_size=10)
        history.extend([tick_event(1), discovered(2, "n"), tick_event(3), discovered(4, "m")])

        assert [e.tick for e in history.in_range(2, 3)] == [2, 3]
        assert [e.tick for e in history.for_entity("n")] == [2]
        assert [e.tick for e in history.of_type(GameEventType.NODE_DISCOVERED)] == [2, 4]
        assert [e.tick for e in history.recent(2)] == [3, 4]
        assert history.recent(0) == []

    def test_resize_and_restore(self) -> None:
        history = EventHistory(max_size=5)
        history.extend(tick_event(t) for t in range(1, 6))

        history.resize(2)
        assert [e.tick for e in history] == [4, 5]

        saved = history.snapshot()
        history.clear()
        assert len(history) == 0

        history.restore(saved, total_recorded=5)
        assert history.snapshot() == saved
        assert history.total_recorded == 5

    @pytest.mark.parametrize("size", [0, -1])
    def test_rejects_non_positive_size(self, size) -> None:
        with pytest.raises(ValueError):
            EventHistory(max_size=size)
