"""
Fuel Element Module

One fuel element sits at the centre of every chamber. An element is
either reactive (a slow neutron passing within its radius splits it)
or spent. Spent elements occasionally emit a stray neutron and
eventually become reactive again.

An element that reaches MELTDOWN_TEMP melts. Melting is permanent,
leaves the element non-reactive and boils its chamber dry.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional
import logging
import math

import numpy as np
from scipy.spatial import cKDTree

from .constants import DEFAULT_CONSTANTS, SimulationConstants
from .exceptions import InvalidReference
from .geometry import ChamberGrid
from .neutronics import Particle, ParticleTransport
from .thermal import exchange_heat

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class FuelElement:
    """
    A fuel element.

    Attributes:
        id: Id of the chamber holding the element
        x, y: Centre position
        radius: Fission capture radius
        temperature: Element temperature [deg]
        reactive: Whether a slow neutron can split it
        melted: Permanent meltdown flag
        neutrons_emitted: Fissions since the last fuel update
        time_since_deactivation: Ticks spent non-reactive
    """

    id: int
    x: float
    y: float
    radius: float
    temperature: float = 20.0
    reactive: bool = False
    melted: bool = False
    neutrons_emitted: int = 0
    time_since_deactivation: int = 0

    def split(self, heat: float, max_temp: float) -> None:
        """Record a fission: the element heats up and becomes spent."""
        self.reactive = False
        self.temperature = min(max_temp, self.temperature + heat)
        self.neutrons_emitted += 1
        self.time_since_deactivation = 0

    def reactivate(self) -> None:
        self.reactive = True
        self.time_since_deactivation = 0

    def melt(self) -> None:
        self.melted = True
        self.reactive = False

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(x - self.x, y - self.y)


class FuelModel:
    """
    The fuel elements of the core, indexed by chamber id.

    A k-d tree over the element centres answers the fission proximity
    query for each slow neutron.
    """

    def __init__(
        self,
        grid: ChamberGrid,
        constants: SimulationConstants = DEFAULT_CONSTANTS
    ):
        self.constants = constants
        self.elements: List[FuelElement] = []

        for chamber in grid:
            cx, cy = chamber.center
            self.elements.append(FuelElement(
                id=chamber.id,
                x=cx,
                y=cy,
                radius=chamber.size / 3,
                temperature=constants.BASE_TEMP,
            ))

        self.capture_radius = max(e.radius for e in self.elements)
        self._tree = cKDTree(np.array([[e.x, e.y] for e in self.elements]))

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[FuelElement]:
        return iter(self.elements)

    def __getitem__(self, chamber_id: int) -> FuelElement:
        if not 0 <= chamber_id < len(self.elements):
            raise InvalidReference(f"No fuel element in chamber {chamber_id}")
        return self.elements[chamber_id]

    @property
    def temperatures(self) -> np.ndarray:
        return np.array([e.temperature for e in self.elements])

    def active_elements(self) -> List[FuelElement]:
        """Elements that are reactive and not melted."""
        return [e for e in self.elements if e.reactive and not e.melted]

    def hottest(self, count: int) -> List[FuelElement]:
        """
        The hottest elements that have not melted yet.

        Equal temperatures keep chamber order.
        """
        candidates = [e for e in self.elements if not e.melted]
        return sorted(candidates, key=lambda e: e.temperature, reverse=True)[:count]

    def fission_target(self, particle: Particle) -> Optional[FuelElement]:
        """
        First reactive element the neutron is strictly inside of.

        The element that emitted the neutron is never a target.
        """
        candidates = self._tree.query_ball_point(
            (particle.x, particle.y), self.capture_radius
        )

        for i in sorted(candidates):
            element = self.elements[i]
            if (
                element.distance_to(particle.x, particle.y) < element.radius and
                element.id != particle.source_id and
                element.reactive
            ):
                return element
        return None

    def melt(self, element: FuelElement, grid: ChamberGrid, meltdown: List[int]) -> None:
        """Melt an element, record its chamber and drain the chamber."""
        element.melt()
        meltdown.append(element.id)
        grid[element.id].water_level = 0.0

        logger.warning(
            "Fuel element %d melted at %.1f deg (%d breached)",
            element.id, element.temperature, len(meltdown),
        )

    def update(
        self,
        grid: ChamberGrid,
        core_temperature: float,
        meltdown: List[int],
        transport: ParticleTransport,
        rng: np.random.Generator
    ) -> int:
        """
        Advance every element by one tick.

        For each element, in order:
        1. Apply the heat of last tick's fissions
        2. Melt it if it reached MELTDOWN_TEMP
        3. Melt the hottest elements if the core is above MELTDOWN_TEMP
           and nothing has melted yet
        4. Let a spent element emit a stray neutron or reactivate
        5. Exchange heat with its chamber

        Stray neutrons are added to the live particles directly.

        Args:
            grid: Chamber grid
            core_temperature: Core temperature of the previous tick
            meltdown: Meltdown chamber ids, appended to in place
            transport: Particle collection receiving stray neutrons
            rng: Random source

        Returns:
            Number of stray neutrons emitted
        """
        c = self.constants
        emitted = 0

        for element in self.elements:
            element.temperature = min(
                c.MAX_TEMP,
                element.temperature + element.neutrons_emitted * c.EMISSION_HEAT_FACTOR,
            )
            element.neutrons_emitted = 0

            if element.temperature >= c.MELTDOWN_TEMP and not element.melted:
                self.melt(element, grid, meltdown)

            if core_temperature > c.MELTDOWN_TEMP and not meltdown:
                logger.warning(
                    "Core temperature %.1f above meltdown point, failing %d hottest elements",
                    core_temperature, c.MELTDOWN_SEED_COUNT,
                )
                for hot in self.hottest(c.MELTDOWN_SEED_COUNT):
                    self.melt(hot, grid, meltdown)

            if not element.reactive and not element.melted:
                element.time_since_deactivation += 1

                if rng.random() < c.UNREACTIVE_EMISSION_CHANCE:
                    transport.emit_neutron(element, rng)
                    emitted += 1

                if rng.random() < c.REACTIVATION_CHANCE:
                    element.reactivate()

            exchange_heat(element, grid[element.id], c)

        return emitted

    def spread_meltdown(self, grid: ChamberGrid, chamber_id: int) -> int:
        """
        Heat the neighbours of a melted chamber toward MELTDOWN_TEMP.

        Each neighbouring element that has not melted closes
        MELTDOWN_SPREAD_RATE of its remaining gap to MELTDOWN_TEMP.
        Elements already at or above the threshold are left alone.

        Returns:
            Number of elements heated
        """
        c = self.constants
        heated = 0

        for neighbor in sorted(grid.neighbors(grid[chamber_id]), key=lambda ch: ch.id):
            element = self.elements[neighbor.id]
            if element.melted or element.temperature >= c.MELTDOWN_TEMP:
                continue
            element.temperature += c.MELTDOWN_SPREAD_RATE * (c.MELTDOWN_TEMP - element.temperature)
            heated += 1

        return heated
