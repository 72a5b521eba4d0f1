# models.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GameId(str, Enum):
    MEMORY = "memory"
    FOCUS = "focus"
    MATH = "math"
    LOGIC = "logic"


class RewardId(str, Enum):
    CRYSTAL_OF_MEMORY = "crystal_of_memory"
    FLAME_OF_FOCUS = "flame_of_focus"
    STAR_OF_SPEED = "star_of_speed"
    BADGE_OF_LOGIC = "badge_of_logic"


class GateDecision(str, Enum):
    NORMAL = "normal"        # onboarding / game flow
    ALTERNATE = "alternate"  # remote view


@dataclass(frozen=True)
class DeviceSignals:
    battery_level: int
    vpn_active: bool

    def __post_init__(self):
        if not 0 <= self.battery_level <= 100:
            raise ValueError(f"battery_level out of range: {self.battery_level}")


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of the launch probe: a status code, or the error that prevented one."""
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status_code is None
