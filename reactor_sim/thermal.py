"""
Thermal Module for the Reactor Core Simulation

This module implements the coolant side of the core:
- Heat exchange between a fuel element and its chamber
- Evaporation and refill of chamber water
- Water cooling of the fuel elements

Water conducts heat far better than a dry chamber, so both the heat
exchange rate and the element cooling depend on whether a chamber
still holds more than MIN_WET_LEVEL percent of water.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List
import logging

from .constants import DEFAULT_CONSTANTS, SimulationConstants
from .geometry import Chamber, ChamberGrid
from .utils import clamp

if TYPE_CHECKING:
    from .fuel import FuelElement, FuelModel

logger = logging.getLogger(__name__)


def exchange_heat(
    element: "FuelElement",
    chamber: Chamber,
    constants: SimulationConstants = DEFAULT_CONSTANTS
) -> float:
    """
    Move the chamber temperature toward its element's temperature.

    ΔT = (T_element - T_chamber) * rate

    where rate is WET_HEAT_TRANSFER_RATE for a flooded chamber and
    DRY_HEAT_TRANSFER_RATE otherwise. Only the chamber is heated.

    Returns:
        Temperature change applied to the chamber [deg]
    """
    if chamber.water_level > constants.MIN_WET_LEVEL:
        rate = constants.WET_HEAT_TRANSFER_RATE
    else:
        rate = constants.DRY_HEAT_TRANSFER_RATE

    delta = (element.temperature - chamber.temperature) * rate
    chamber.temperature += delta
    return delta


@dataclass
class CoolantModel:
    """
    Per-chamber water level and temperature update.

    Attributes:
        constants: Simulation constants
    """

    constants: SimulationConstants = DEFAULT_CONSTANTS

    def evaporation_factor(self, temperature: float) -> float:
        """
        Fraction of water kept this tick at the given temperature.

        f = 1 - 0.01 * (T - T_evap) / EVAPORATION_SCALE

        Returns:
            Multiplier for the water level (1.0 at or below T_evap)
        """
        c = self.constants
        if temperature <= c.EVAPORATION_TEMP:
            return 1.0
        return 1 - 0.01 * (temperature - c.EVAPORATION_TEMP) / c.EVAPORATION_SCALE

    def cooling_effectiveness(self, water_level: float) -> float:
        """Element temperature multiplier for a flooded chamber, in [0.9, 1.0]."""
        floor = self.constants.WATER_COOLING_FLOOR
        return floor + (water_level / self.constants.MAX_WATER_LEVEL) * (1 - floor)

    def update_chamber(self, chamber: Chamber, element: "FuelElement") -> None:
        c = self.constants

        # COOLING_RATE is 1, so this only enforces the ambient floor.
        chamber.temperature = max(c.BASE_TEMP, chamber.temperature * c.COOLING_RATE)

        if chamber.temperature > c.EVAPORATION_TEMP:
            chamber.water_level *= self.evaporation_factor(chamber.temperature)
        elif chamber.water_level < c.MAX_WATER_LEVEL:
            chamber.water_level = min(
                c.MAX_WATER_LEVEL, chamber.water_level + c.WATER_REFILL_RATE
            )

        if chamber.water_level > c.MIN_WET_LEVEL:
            element.temperature = max(
                c.BASE_TEMP,
                element.temperature * self.cooling_effectiveness(chamber.water_level),
            )

        chamber.water_level = clamp(chamber.water_level, 0.0, c.MAX_WATER_LEVEL)
        chamber.temperature = clamp(chamber.temperature, c.BASE_TEMP, c.MAX_CHAMBER_TEMP)

    def update(self, grid: ChamberGrid, fuel: "FuelModel") -> None:
        """Apply evaporation, refill and element cooling to every chamber."""
        for chamber in grid:
            self.update_chamber(chamber, fuel[chamber.id])

    def wet_chambers(self, grid: ChamberGrid) -> List[Chamber]:
        """Chambers holding more than MIN_WET_LEVEL percent of water."""
        return [ch for ch in grid if ch.water_level > self.constants.MIN_WET_LEVEL]
