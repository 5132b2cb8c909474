from pathlib import Path
from typing import Optional

from pydantic import PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="NEXUS_")

    sim_config_path: Optional[Path] = None
    log_level: str = "INFO"
    tick_delay_override: Optional[PositiveFloat] = None
    max_ticks: Optional[PositiveInt] = None
    world_id: Optional[str] = None


RUNTIME_SETTINGS = RuntimeSettings()
