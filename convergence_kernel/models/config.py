"""Engine configuration."""

from enum import Enum

from pydantic import BaseModel, Field


class Platform(str, Enum):
    LINUX = "linux"
    WINDOWS = "windows"


class EffectArbitration(str, Enum):
    LAST_WRITE_WINS = "last_write_wins"
    MOST_URGENT_WINS = "most_urgent_wins"


class EngineConfig(BaseModel):
    """Configuration for the Convergence Engine."""

    platform: Platform = Platform.LINUX
    effect_arbitration: EffectArbitration = EffectArbitration.LAST_WRITE_WINS
    apply_immediate_effects: bool = True
    apply_delayed_effects: bool = True
    reboot_delay_seconds: int = Field(ge=0, default=0)
