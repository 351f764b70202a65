"""
Main Reactor Core Model

This module provides the top-level simulation that owns the chamber
grid, fuel, coolant, rods and particles, and advances them together
one fixed step at a time.

A tick runs, in order:
    1. Rod heights follow their commands
    2. Fuel elements update (heat, meltdown, emission, reactivation)
    3. Particles move and collide
    4. Coolant evaporates, refills and cools the elements
    5. The core temperature is aggregated

Commands and snapshots are only meaningful between ticks.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
import json
import logging

import numpy as np

from .constants import (
    CONTROL,
    MODERATOR,
    NEUTRON,
    DEFAULT_CONSTANTS,
    SimulationConstants,
)
from .control import ControlSurfaces
from .exceptions import SimulationInvariantError
from .fuel import FuelModel
from .geometry import ChamberGrid, CoreLayout
from .neutronics import ParticleTransport, TransportStats
from .state import (
    ChamberState,
    ElementState,
    ParticleState,
    ReactorSnapshot,
    RodState,
)
from .thermal import CoolantModel
from .utils import clamp, random_velocity

logger = logging.getLogger(__name__)


@dataclass
class ReactorCore:
    """
    Discrete-time reactor core simulation.

    Attributes:
        layout: Platform and chamber grid dimensions
        constants: Physics tuning constants
        seed: Seed of the random source (None for a fresh one)
        initial_neutrons: Slow neutrons released at start-up
        meltdown_effects: Emit smoke and sparks from melted elements
        auto_spread_meltdown: Spread every meltdown at the end of a tick
    """

    layout: CoreLayout = field(default_factory=CoreLayout)
    constants: SimulationConstants = DEFAULT_CONSTANTS
    seed: Optional[int] = None
    initial_neutrons: int = 5
    meltdown_effects: bool = True
    auto_spread_meltdown: bool = False

    # Computed components (initialized in __post_init__)
    rng: np.random.Generator = field(init=False, repr=False)
    grid: ChamberGrid = field(init=False, repr=False)
    fuel: FuelModel = field(init=False, repr=False)
    coolant: CoolantModel = field(init=False, repr=False)
    rods: ControlSurfaces = field(init=False, repr=False)
    transport: ParticleTransport = field(init=False, repr=False)
    temperature: float = field(init=False)
    meltdown_chambers: List[int] = field(init=False, repr=False)
    tick_count: int = field(init=False)
    last_transport: TransportStats = field(init=False, repr=False)

    def __post_init__(self):
        """Build the grid and all physics components."""
        if self.initial_neutrons < 0:
            raise ValueError(
                f"initial_neutrons cannot be negative, got {self.initial_neutrons}"
            )

        self.rng = np.random.default_rng(self.seed)

        self.grid = ChamberGrid(self.layout)
        self.fuel = FuelModel(self.grid, self.constants)
        self.coolant = CoolantModel(self.constants)
        self.rods = ControlSurfaces(self.layout, self.constants)
        self.transport = ParticleTransport(self.layout, self.constants)

        for chamber in self.grid:
            chamber.temperature = self.constants.BASE_TEMP

        self.temperature = self.constants.BASE_TEMP
        self.meltdown_chambers = []
        self.tick_count = 0
        self.last_transport = TransportStats()

        self._seed_neutrons()

        logger.info(
            "Reactor core built: %d chambers (%dx%d), %d control rods, "
            "%d moderators, %d seed neutrons",
            len(self.grid), self.grid.rows, self.grid.columns,
            len(self.rods.control_rods), len(self.rods.moderator_rods),
            self.initial_neutrons,
        )

    def _seed_neutrons(self) -> None:
        """Release the start-up neutrons from randomly chosen elements."""
        for _ in range(self.initial_neutrons):
            element = self.fuel[int(self.rng.integers(len(self.fuel)))]
            dx, dy = random_velocity(self.rng, self.constants.NEUTRON_SPEED)
            self.transport.add(self.transport.new_particle(
                NEUTRON, element.x, element.y, dx, dy, source_id=element.id
            ))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def set_rod_inserted(
        self,
        rod_class: str,
        rod_index: Union[int, str],
        inserted: bool
    ) -> None:
        """
        Command a rod, or every rod of a class with "all".

        Takes effect at the next tick's smoothing step.

        Raises:
            InvalidReference: Unknown rod class or index
        """
        self.rods.set_inserted(rod_class, rod_index, inserted)

    def toggle_rods(self, rod_class: str) -> None:
        """Flip every rod of a class between inserted and retracted."""
        self.rods.toggle(rod_class)

    def spread_meltdown(self, chamber_id: int) -> int:
        """
        Push the neighbours of a chamber toward meltdown.

        Raises:
            InvalidReference: Unknown chamber id

        Returns:
            Number of neighbouring elements heated
        """
        return self.fuel.spread_meltdown(self.grid, chamber_id)

    # ------------------------------------------------------------------
    # Physics step
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """
        Advance the simulation by one fixed step.

        Raises:
            SimulationInvariantError: The step produced a non-finite
                value. The simulation must not be advanced further.
        """
        self.rods.advance()

        self.fuel.update(
            self.grid,
            self.temperature,
            self.meltdown_chambers,
            self.transport,
            self.rng,
        )

        self.transport.move(self.grid)
        self.last_transport = self.transport.scan(
            self.grid, self.fuel, self.rods, self.rng
        )

        self.coolant.update(self.grid, self.fuel)

        self.temperature = self.aggregate_temperature()

        if self.meltdown_effects and self.meltdown_chambers:
            self.transport.emit_meltdown_effects(
                self.fuel, self.meltdown_chambers, self.temperature, self.rng
            )

        if self.auto_spread_meltdown:
            for chamber_id in list(self.meltdown_chambers):
                self.spread_meltdown(chamber_id)

        self.tick_count += 1
        self._check_invariants()

        logger.debug(
            "Tick %d: T=%.1f, %d particles, %d fissions, %d melted",
            self.tick_count, self.temperature, len(self.transport),
            self.last_transport.fissions, len(self.meltdown_chambers),
        )

    def run(self, ticks: int) -> None:
        """Advance the simulation by several ticks."""
        for _ in range(ticks):
            self.tick()

    def aggregate_temperature(self) -> float:
        """
        Derive the new core temperature from elements, water and neutrons.

        raw = T_el * (w_n * (1 + N/100) + w_w * C_water + w_m * (1 + 0.2 M))

        where T_el is the mean temperature of the active elements, N the
        number of slow neutrons, C_water the mean cooling margin of the
        flooded chambers and M the number of melted chambers. The result
        is blended with the previous temperature and clamped.

        Returns:
            New core temperature [deg]
        """
        c = self.constants

        active = self.fuel.active_elements()
        if active:
            element_temp = float(np.mean([e.temperature for e in active]))
        else:
            element_temp = c.BASE_TEMP

        neutron_factor = 1 + self.transport.slow_neutron_count / c.NEUTRON_DENSITY_SCALE

        wet = self.coolant.wet_chambers(self.grid)
        if wet:
            water_cooling = float(np.mean([
                (c.MAX_WATER_TEMP - ch.temperature) / c.MAX_WATER_TEMP for ch in wet
            ]))
        else:
            water_cooling = 1.0

        meltdown_factor = 1 + len(self.meltdown_chambers) * c.MELTDOWN_WEIGHT_PER_CHAMBER

        raw_temp = element_temp * (
            c.TEMP_NEUTRON_WEIGHT * neutron_factor +
            c.TEMP_WATER_WEIGHT * water_cooling +
            c.TEMP_MELTDOWN_WEIGHT * meltdown_factor
        )

        temperature = (
            c.BASE_TEMP +
            (raw_temp - c.BASE_TEMP) * c.TEMP_NORMALIZATION +
            (self.temperature - c.BASE_TEMP) * (1 - c.TEMP_NORMALIZATION)
        )

        return clamp(temperature, c.BASE_TEMP, c.MAX_TEMP)

    def _check_invariants(self) -> None:
        values = np.concatenate([
            self.grid.water_levels,
            self.grid.temperatures,
            self.fuel.temperatures,
            [self.temperature],
        ])
        if not np.all(np.isfinite(values)):
            raise SimulationInvariantError(
                f"Non-finite state after tick {self.tick_count}"
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def meltdown_in_progress(self) -> bool:
        return bool(self.meltdown_chambers)

    def snapshot(self) -> ReactorSnapshot:
        """Copy of the full simulation state after the last tick."""
        return ReactorSnapshot(
            tick=self.tick_count,
            chambers=tuple(
                ChamberState(
                    id=ch.id, row=ch.row, col=ch.col, x=ch.x, y=ch.y,
                    size=ch.size, water_level=ch.water_level,
                    temperature=ch.temperature,
                )
                for ch in self.grid
            ),
            elements=tuple(
                ElementState(
                    id=e.id, x=e.x, y=e.y, radius=e.radius,
                    temperature=e.temperature, reactive=e.reactive,
                    melted=e.melted,
                    neutrons_emitted=e.neutrons_emitted,
                    time_since_deactivation=e.time_since_deactivation,
                )
                for e in self.fuel
            ),
            rods=tuple(
                RodState(
                    rod_class=rod.rod_class, index=rod.index, x=rod.x, y=rod.y,
                    width=rod.width, max_height=rod.max_height,
                    current_height=rod.current_height, inserted=rod.inserted,
                )
                for rod in self.rods.all_rods
            ),
            particles=tuple(
                ParticleState(
                    id=p.id, kind=p.kind, x=p.x, y=p.y, dx=p.dx, dy=p.dy,
                    source_id=p.source_id, lifetime=p.lifetime, size=p.size,
                )
                for p in self.transport.particles
            ),
            core_temperature=self.temperature,
            meltdown_chamber_ids=tuple(self.meltdown_chambers),
        )

    def status(self) -> Dict[str, Any]:
        """
        Headline figures of the current state.

        Returns dictionary with core temperature, particle and chamber
        counts, rod positions and alarm flags.
        """
        rods = self.rods.summary()
        return {
            "tick": self.tick_count,
            "core_temperature": self.temperature,
            "active_particles": len(self.transport),
            "slow_neutrons": self.transport.slow_neutron_count,
            "water_chambers": len(self.coolant.wet_chambers(self.grid)),
            "total_chambers": len(self.grid),
            "control_rods": rods[CONTROL],
            "moderators": rods[MODERATOR],
            "critical": self.temperature > self.constants.CRITICAL_TEMP,
            "meltdown_in_progress": self.meltdown_in_progress,
            "breached_elements": len(self.meltdown_chambers),
        }

    def print_summary(self):
        """Print formatted summary of the core state."""
        status = self.status()

        print("=" * 70)
        print("           REACTOR CORE STATUS")
        print("=" * 70)

        print(f"  Tick:                   {status['tick']:>10d}")
        print(f"  Core Temperature:       {status['core_temperature']:>10.1f} deg")
        print(f"  Active Particles:       {status['active_particles']:>10d}")
        print(f"  Slow Neutrons:          {status['slow_neutrons']:>10d}")
        print(f"  Water Chambers:         {status['water_chambers']:>5d}/{status['total_chambers']:<5d}")
        print(f"  Control Rods Inserted:  "
              f"{status['control_rods']['inserted']:>5d}/{status['control_rods']['total']:<5d}")
        print(f"  Moderators Inserted:    "
              f"{status['moderators']['inserted']:>5d}/{status['moderators']['total']:<5d}")

        if status["critical"]:
            print("\n  CRITICAL TEMPERATURE!")

        if status["meltdown_in_progress"]:
            print(f"\n  MELTDOWN IN PROGRESS: {status['breached_elements']} fuel elements breached")

        print("=" * 70)

    def to_json(self, filepath: Optional[str] = None) -> str:
        """
        Export the current snapshot to JSON.

        Args:
            filepath: Optional file path to save JSON

        Returns:
            JSON string
        """
        json_str = json.dumps(self.snapshot().to_dict(), indent=2)

        if filepath:
            with open(filepath, 'w') as f:
                f.write(json_str)

        return json_str


def create_reactor(seed: Optional[int] = None, **kwargs) -> ReactorCore:
    """
    Factory function to create a reactor core simulation.

    Args:
        seed: Seed of the random source
        **kwargs: Additional parameters passed to ReactorCore

    Returns:
        Configured ReactorCore instance
    """
    return ReactorCore(seed=seed, **kwargs)
