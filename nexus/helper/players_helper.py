#!/usr/bin/env python3
from __future__ import annotations

from typing import Any, Optional, Sequence

from nexus.models.sim_config import PlayerConfig, SimulationSettings


def _dump_player(cfg: PlayerConfig) -> dict[str, Any]:
    return cfg.model_dump()


def load_players(
    sim_cfg: SimulationSettings, player_ids: Optional[Sequence[str]] = None
) -> dict[str, dict[str, Any]]:
    """
    Build the player roster from the validated SimulationSettings model.
    With player_ids given, only those players are returned (in that order);
    ids missing from the config get a generated name.
    """
    configured = sim_cfg.players
    if player_ids is None:
        return {pid: _dump_player(cfg) for pid, cfg in configured.items()}

    if len(set(player_ids)) != len(player_ids):
        raise ValueError("player ids must be unique")

    roster: dict[str, dict[str, Any]] = {}
    for pid in player_ids:
        cfg = configured.get(pid)
        roster[pid] = _dump_player(cfg) if cfg else {"name": pid, "color": "#ffffff"}
    return roster
