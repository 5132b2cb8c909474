#!/usr/bin/env python3
"""
Headless simulation worker.

Owns one GameSession, advances it on an asyncio loop at the cadence set by
the game speed, idles while the game is paused and keeps the latest outbound
frame for whatever transport sits in front of it.
"""
from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass
from typing import Callable, Optional

from nexus.helper.world_helpers import generate_world
from nexus.models import RUNTIME_SETTINGS, SIM_CONFIG
from nexus.session import GameSession
from nexus.state_utils import frame_from_result
from nexus.world import TickResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerConfig:
    tick_delay_override: Optional[float]
    max_ticks: Optional[int]
    idle_poll_seconds: float
    world_id: str
    log_level: str


def _load_config() -> WorkerConfig:
    return WorkerConfig(
        tick_delay_override=RUNTIME_SETTINGS.tick_delay_override,
        max_ticks=RUNTIME_SETTINGS.max_ticks,
        idle_poll_seconds=SIM_CONFIG.clock.idle_poll_seconds,
        world_id=RUNTIME_SETTINGS.world_id or SIM_CONFIG.default_world_id,
        log_level=RUNTIME_SETTINGS.log_level,
    )


class SimulationWorker:
    def __init__(
        self,
        session: Optional[GameSession] = None,
        config: Optional[WorkerConfig] = None,
        on_frame: Optional[Callable[[dict], None]] = None,
    ) -> None:
        self.config = config or _load_config()
        self.session = session or GameSession(
            generate_world(world_id=self.config.world_id)
        )
        self.on_frame = on_frame
        self.ticks_run = 0
        self._stop = asyncio.Event()
        self._last_frame: dict | None = None
        self._previous_world = self.session.world

    @property
    def last_frame(self) -> dict | None:
        return self._last_frame

    def _tick_delay(self) -> Optional[float]:
        if self.config.tick_delay_override is not None:
            return self.config.tick_delay_override
        return self.session.tick_interval()

    def tick_once(self) -> TickResult:
        result = self.session.tick()
        if not result.advanced:
            return result
        self.ticks_run += 1
        frame = frame_from_result(result, self._previous_world)
        self._previous_world = result.world
        self._last_frame = frame
        if self.on_frame is not None:
            self.on_frame(frame)
        if result.dropped_events:
            logger.warning(
                "[sim-worker] tick=%d dropped %d events",
                result.tick,
                len(result.dropped_events),
            )
        return result

    async def run(self) -> None:
        logger.info(
            "[sim-worker] starting loop world=%s speed=%s paused=%s",
            self.session.world.id,
            self.session.speed.name,
            self.session.is_paused,
        )
        try:
            while not self._stop.is_set():
                if self.session.is_paused:
                    await asyncio.sleep(self.config.idle_poll_seconds)
                    continue

                self.tick_once()

                if self.config.max_ticks is not None and self.ticks_run >= self.config.max_ticks:
                    logger.info("[sim-worker] reached max_ticks=%d", self.config.max_ticks)
                    break

                delay = self._tick_delay()
                await asyncio.sleep(delay if delay is not None else self.config.idle_poll_seconds)
        finally:
            logger.info(
                "[sim-worker] stopping loop at tick %d", self.session.current_tick
            )

    def stop(self) -> None:
        self._stop.set()


async def main() -> None:
    config = _load_config()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    worker = SimulationWorker(config=config)
    worker.session.resume()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)

    await worker.run()


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
