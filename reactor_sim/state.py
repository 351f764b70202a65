"""
Read-only views of the simulation state.

A ``ReactorSnapshot`` copies every value it exposes, so it stays
valid and unchanged while the simulation keeps ticking.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ChamberState:
    id: int
    row: int
    col: int
    x: float
    y: float
    size: float
    water_level: float
    temperature: float


@dataclass(frozen=True)
class ElementState:
    id: int
    x: float
    y: float
    radius: float
    temperature: float
    reactive: bool
    melted: bool
    neutrons_emitted: int
    time_since_deactivation: int


@dataclass(frozen=True)
class RodState:
    rod_class: str
    index: int
    x: float
    y: float
    width: float
    max_height: float
    current_height: float
    inserted: bool


@dataclass(frozen=True)
class ParticleState:
    id: int
    kind: str
    x: float
    y: float
    dx: float
    dy: float
    source_id: Optional[int] = None
    lifetime: Optional[float] = None
    size: Optional[float] = None


@dataclass(frozen=True)
class ReactorSnapshot:
    """
    Complete core state after a tick.

    Attributes:
        tick: Number of completed ticks
        chambers: Chamber states in id order
        elements: Fuel element states in chamber id order
        rods: Control rods followed by moderator rods
        particles: Live particles
        core_temperature: Aggregate core temperature [deg]
        meltdown_chamber_ids: Melted chambers in the order they failed
    """

    tick: int
    chambers: Tuple[ChamberState, ...]
    elements: Tuple[ElementState, ...]
    rods: Tuple[RodState, ...]
    particles: Tuple[ParticleState, ...]
    core_temperature: float
    meltdown_chamber_ids: Tuple[int, ...]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
