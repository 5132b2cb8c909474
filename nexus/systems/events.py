#!/usr/bin/env python3
"""
Event queue processing and the bounded event history.

process_event_queue drains a FIFO worklist: each event is handed to its
registered handler, and any events the handler spawns are appended to the
same worklist one level deeper. Two circuit breakers bound the work done in
a single pass (maximum chain depth, maximum events processed).
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Optional, Sequence, Tuple

from nexus.models import SIM_CONFIG
from nexus.models import World
from nexus.models.events import GameEvent, GameEventType
from nexus.systems.handlers import HandlerRegistry, create_default_registry

logger = logging.getLogger(__name__)

MAX_EVENT_DEPTH: int = SIM_CONFIG.events.max_event_depth
MAX_EVENTS_PER_TICK: int = SIM_CONFIG.events.max_events_per_tick
HISTORY_SIZE: int = SIM_CONFIG.events.history_size


@dataclass(frozen=True)
class EventConfig:
    max_event_depth: int = MAX_EVENT_DEPTH
    max_events_per_tick: int = MAX_EVENTS_PER_TICK


@dataclass(frozen=True)
class EventStats:
    total_processed: int = 0
    max_depth_reached: bool = False
    max_count_reached: bool = False


@dataclass(frozen=True)
class EventQueueResult:
    world: World
    processed_events: Tuple[GameEvent, ...]
    dropped_events: Tuple[GameEvent, ...]
    stats: EventStats


def process_event_queue(
    world: World,
    events: Sequence[GameEvent],
    registry: Optional[HandlerRegistry] = None,
    config: Optional[EventConfig] = None,
) -> EventQueueResult:
    """
    Dispatch events in FIFO order through the registry.

    Events at depth >= max_event_depth are dropped. Once max_events_per_tick
    events have been processed, everything still queued is dropped and the
    pass stops. Event types without a handler are still counted as processed.
    Exceptions raised by handlers propagate to the caller.
    """
    if registry is None:
        registry = create_default_registry()
    if config is None:
        config = EventConfig()

    worklist: Deque[Tuple[GameEvent, int]] = deque((event, 0) for event in events)
    processed: List[GameEvent] = []
    dropped: List[GameEvent] = []
    depth_reached = False
    count_reached = False
    current = world

    while worklist:
        if len(processed) >= config.max_events_per_tick:
            count_reached = True
            dropped.extend(event for event, _ in worklist)
            worklist.clear()
            break

        event, depth = worklist.popleft()
        if depth >= config.max_event_depth:
            depth_reached = True
            dropped.append(event)
            continue

        handler = registry.get(event.type)
        if handler is not None:
            result = handler(current, event)
            current = result.world
            worklist.extend((spawned, depth + 1) for spawned in result.events)

        processed.append(event)

    if depth_reached or count_reached:
        logger.warning(
            "[nexus] event circuit breaker tripped depth=%s count=%s dropped=%d",
            depth_reached,
            count_reached,
            len(dropped),
        )

    return EventQueueResult(
        world=current,
        processed_events=tuple(processed),
        dropped_events=tuple(dropped),
        stats=EventStats(
            total_processed=len(processed),
            max_depth_reached=depth_reached,
            max_count_reached=count_reached,
        ),
    )


# ---------- History ----------


class EventHistory:
    """Fixed-capacity view over recent events; the oldest entries fall off first."""

    def __init__(self, max_size: int = HISTORY_SIZE) -> None:
        if max_size <= 0:
            raise ValueError(f"history size must be positive, got {max_size}")
        self._max_size = max_size
        self._events: Deque[GameEvent] = deque(maxlen=max_size)
        self._total_recorded = 0

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def total_recorded(self) -> int:
        return self._total_recorded

    def append(self, event: GameEvent) -> None:
        self._events.append(event)
        self._total_recorded += 1

    def extend(self, events: Iterable[GameEvent]) -> None:
        for event in events:
            self.append(event)

    def in_range(self, from_tick: int, to_tick: int) -> List[GameEvent]:
        return [e for e in self._events if from_tick <= e.tick <= to_tick]

    def for_entity(self, entity_id: str) -> List[GameEvent]:
        return [e for e in self._events if e.entity_id == entity_id]

    def of_type(self, event_type: GameEventType) -> List[GameEvent]:
        return [e for e in self._events if e.type == event_type]

    def recent(self, count: int) -> List[GameEvent]:
        if count <= 0:
            return []
        return list(self._events)[-count:]

    def clear(self) -> None:
        self._events.clear()

    def resize(self, max_size: int) -> None:
        if max_size <= 0:
            raise ValueError(f"history size must be positive, got {max_size}")
        self._max_size = max_size
        self._events = deque(self._events, maxlen=max_size)

    def snapshot(self) -> Tuple[GameEvent, ...]:
        return tuple(self._events)

    def restore(self, events: Iterable[GameEvent], total_recorded: Optional[int] = None) -> None:
        self._events.clear()
        self._events.extend(events)
        self._total_recorded = (
            total_recorded if total_recorded is not None else len(self._events)
        )

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(self._events)
