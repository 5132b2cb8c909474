#!/usr/bin/env python3
"""
Event handler registry.

A registry maps each GameEventType to the handler that reacts to it. Every
session builds its own registry (create_default_registry), so custom
handlers registered by one game never leak into another.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from nexus.models import World
from nexus.models.events import GameEvent, GameEventType


@dataclass(frozen=True)
class HandlerResult:
    world: World
    events: Tuple[GameEvent, ...] = ()


EventHandler = Callable[[World, GameEvent], HandlerResult]


def noop_handler(world: World, event: GameEvent) -> HandlerResult:
    """Default reaction: the event is informational only."""
    return HandlerResult(world=world)


class HandlerRegistry:
    def __init__(self, handlers: Optional[Dict[GameEventType, EventHandler]] = None) -> None:
        self._handlers: Dict[GameEventType, EventHandler] = dict(handlers or {})

    def register(self, event_type: GameEventType, handler: EventHandler) -> None:
        """Register or replace the handler for event_type."""
        self._handlers[event_type] = handler

    def unregister(self, event_type: GameEventType) -> bool:
        return self._handlers.pop(event_type, None) is not None

    def get(self, event_type: GameEventType) -> Optional[EventHandler]:
        return self._handlers.get(event_type)

    def has(self, event_type: GameEventType) -> bool:
        return event_type in self._handlers

    def registered_types(self) -> List[GameEventType]:
        return list(self._handlers)

    def clear(self) -> None:
        self._handlers.clear()

    def copy(self) -> "HandlerRegistry":
        return HandlerRegistry(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry() -> HandlerRegistry:
    return HandlerRegistry({event_type: noop_handler for event_type in GameEventType})
