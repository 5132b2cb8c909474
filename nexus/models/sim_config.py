import json
from pathlib import Path
from pydantic import BaseModel, PositiveInt, PositiveFloat
from pydantic import Field  # type: ignore
from typing import Annotated, Dict

from .runtime_config import RUNTIME_SETTINGS

# NOTE: every process that imports this module loads its own copy of the
# config. Nothing here is shared between processes or written back.


class TerritoryModifiers(BaseModel):
    max_control_points: PositiveInt
    neutral_claim_rate: PositiveInt
    contested_drain_rate: PositiveInt


class EventModifiers(BaseModel):
    max_event_depth: PositiveInt
    max_events_per_tick: PositiveInt
    history_size: PositiveInt


class ClockModifiers(BaseModel):
    base_tick_ms: PositiveInt
    idle_poll_seconds: PositiveFloat


class ResourceDefaults(BaseModel):
    default_max_capacity: Annotated[float, Field(ge=0)]


class GeneratorModifiers(BaseModel):
    number_of_nodes: PositiveInt
    lanes_per_node: Annotated[PositiveInt, Field(ge=2)]
    minimum_node_distance: PositiveFloat
    maximum_lane_length: PositiveFloat
    maximum_placement_attempts: PositiveInt
    coordinate_scale: PositiveInt
    distance_per_travel_tick: PositiveFloat
    gateway_ratio: Annotated[float, Field(ge=0, le=1)]
    gateway_activation_time: Annotated[int, Field(ge=0)]
    gateway_activation_cost: Dict[str, Annotated[float, Field(ge=0)]]
    node_name_prefix: Annotated[str, Field(min_length=1)]
    resource_types_per_node: PositiveInt
    minimum_resource_amount: Annotated[float, Field(ge=0)]
    maximum_resource_amount: PositiveFloat
    maximum_regen_rate: Annotated[float, Field(ge=0)]


class PlayerConfig(BaseModel):
    name: Annotated[str, Field(min_length=1)]
    color: str = "#ffffff"


class SimulationSettings(BaseModel):
    default_world_id: Annotated[str, Field(min_length=1)]
    world_seed: int | str | None

    territory: TerritoryModifiers
    events: EventModifiers
    clock: ClockModifiers
    resources: ResourceDefaults
    generator: GeneratorModifiers
    players: Dict[str, PlayerConfig]

    @classmethod
    def load_json(cls, path: str | Path) -> "SimulationSettings":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)


_BASE_DIR = Path(__file__).resolve().parents[1]
_CONFIG_PATH = RUNTIME_SETTINGS.sim_config_path or (
    _BASE_DIR / "config" / "sim_config.json"
)

SIM_CONFIG = SimulationSettings.load_json(_CONFIG_PATH)
