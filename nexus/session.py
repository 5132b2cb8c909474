#!/usr/bin/env python3
"""
GameSession: the stateful owner of one running game.

A session holds the current World, its own HandlerRegistry and EventHistory,
the intents submitted since the last tick and the players' standing claims.
It is the single caller that advances its World; intents may arrive from
several threads and are serialized here.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from nexus.helper.world_helpers import pause, resume, set_speed
from nexus.models import SIM_CONFIG
from nexus.models import ClaimAction, Consumer, GameSpeed, Producer, World
from nexus.models.intents import AbandonNode, ClaimNode, Intent, is_control_intent
from nexus.systems.events import EventConfig, EventHistory, HISTORY_SIZE
from nexus.systems.handlers import HandlerRegistry, create_default_registry
from nexus.systems.diplomacy import is_known_player
from nexus.systems.territory import can_claim
from nexus.world import TickInput, TickResult, advance_world, apply_control_intents

logger = logging.getLogger(__name__)

BASE_TICK_MS: int = SIM_CONFIG.clock.base_tick_ms

TickListener = Callable[[TickResult], None]


class GameSession:
    def __init__(
        self,
        world: World,
        registry: Optional[HandlerRegistry] = None,
        history_size: int = HISTORY_SIZE,
        event_config: Optional[EventConfig] = None,
        base_tick_ms: int = BASE_TICK_MS,
        record_inputs: bool = False,
    ) -> None:
        self._world = world
        self.registry = registry if registry is not None else create_default_registry()
        self.history = EventHistory(history_size)
        self.event_config = event_config
        self.base_tick_ms = base_tick_ms
        self._pending: List[Intent] = []
        self._claims: Dict[Tuple[str, str], ClaimAction] = {}
        self._producers: Dict[str, Tuple[Producer, ...]] = {}
        self._consumers: Dict[str, Tuple[Consumer, ...]] = {}
        self._listeners: List[TickListener] = []
        self._lock = threading.RLock()
        self.record_inputs = record_inputs
        self.input_log: List[TickInput] = []  # one entry per advanced tick

    # ---------- state ----------

    @property
    def world(self) -> World:
        return self._world

    @property
    def is_paused(self) -> bool:
        return self._world.is_paused

    @property
    def speed(self) -> GameSpeed:
        return self._world.speed

    @property
    def current_tick(self) -> int:
        return self._world.current_tick

    @property
    def claims(self) -> Tuple[ClaimAction, ...]:
        return tuple(self._claims.values())

    @property
    def pending_intents(self) -> Tuple[Intent, ...]:
        return tuple(self._pending)

    def tick_interval(self) -> Optional[float]:
        """Seconds between ticks at the current speed; None while paused."""
        if self._world.is_paused or self._world.speed == GameSpeed.PAUSED:
            return None
        return self.base_tick_ms / int(self._world.speed) / 1000.0

    def set_world(self, world: World) -> None:
        with self._lock:
            self._world = world
            self._claims.clear()
            self._pending.clear()

    def set_producers(self, node_id: str, producers: Sequence[Producer]) -> None:
        with self._lock:
            self._producers[node_id] = tuple(producers)

    def set_consumers(self, node_id: str, consumers: Sequence[Consumer]) -> None:
        with self._lock:
            self._consumers[node_id] = tuple(consumers)

    # ---------- control ----------

    def pause(self) -> None:
        with self._lock:
            self._world = pause(self._world)
        logger.info("[nexus] world=%s paused at tick %d", self._world.id, self.current_tick)

    def resume(self) -> None:
        with self._lock:
            self._world = resume(self._world)
        logger.info("[nexus] world=%s resumed speed=%s", self._world.id, self.speed.name)

    def set_speed(self, speed: GameSpeed) -> None:
        with self._lock:
            self._world = set_speed(self._world, speed)
        logger.info("[nexus] world=%s speed=%s", self._world.id, self.speed.name)

    # ---------- intents ----------

    def submit(self, intent: Intent) -> None:
        """
        Queue an intent for the next tick. Control intents (pause, resume,
        set-speed) take effect immediately so a paused game can be resumed.
        """
        with self._lock:
            if is_control_intent(intent):
                before = self._world
                self._world = apply_control_intents(self._world, [intent])
                if self._world != before:
                    logger.info(
                        "[nexus] world=%s paused=%s speed=%s (by %s)",
                        self._world.id,
                        self._world.is_paused,
                        self._world.speed.name,
                        intent.player_id,
                    )
                return
            self._pending.append(intent)

    def submit_many(self, intents: Sequence[Intent]) -> None:
        for intent in intents:
            self.submit(intent)

    def _take_intents(self) -> List[Intent]:
        """Turn ClaimNode into standing claims; hand the rest to the tick."""
        intents = self._pending
        self._pending = []
        forwarded: List[Intent] = []
        next_tick = self._world.current_tick + 1
        for intent in intents:
            if isinstance(intent, ClaimNode):
                if is_known_player(self._world, intent.player_id) and can_claim(
                    self._world, intent.player_id, intent.node_id
                ):
                    key = (intent.player_id, intent.node_id)
                    self._claims[key] = ClaimAction(intent.player_id, intent.node_id, next_tick)
                continue
            if isinstance(intent, AbandonNode):
                self._claims.pop((intent.player_id, intent.node_id), None)
            forwarded.append(intent)
        return forwarded

    def _prune_claims(self) -> None:
        nodes = self._world.nodes
        for key in list(self._claims):
            player_id, node_id = key
            node = nodes.get(node_id)
            if node is None or node.owner_id == player_id:
                del self._claims[key]

    # ---------- ticking ----------

    def tick(self) -> TickResult:
        """
        Advance one tick. While paused, returns a non-advanced result and
        keeps pending intents for later.
        """
        with self._lock:
            if self._world.is_paused:
                return TickResult(
                    world=self._world,
                    events=(),
                    tick=self._world.current_tick,
                    is_paused=True,
                    speed=self._world.speed,
                    advanced=False,
                )
            intents = self._take_intents()
            claims = tuple(self._claims.values())
            if self.record_inputs:
                self.input_log.append(
                    TickInput(tuple(intents), claims, speed=self._world.speed)
                )
            result = advance_world(
                self._world,
                intents=intents,
                claims=claims,
                registry=self.registry,
                producers=self._producers,
                consumers=self._consumers,
                event_config=self.event_config,
            )
            self._world = result.world
            self._prune_claims()
            self.history.extend(result.events)
            listeners = list(self._listeners)

        for listener in listeners:
            listener(result)
        return result

    def tick_many(self, count: int) -> List[TickResult]:
        results: List[TickResult] = []
        for _ in range(count):
            result = self.tick()
            results.append(result)
            if not result.advanced:
                break
        return results

    def subscribe(self, listener: TickListener) -> Callable[[], None]:
        """Call listener after every advanced tick. Returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe
