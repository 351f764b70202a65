"""
Simulation Constants for the Reactor Core Model

This module contains the tuning constants of the discrete-time core
simulation: particle speeds, interaction probabilities, thermal limits
and the weights used to aggregate the core temperature.

Speeds are expressed in length units per tick, temperatures in degrees
and water levels in percent.
"""

from dataclasses import dataclass, fields


# Particle kinds
NEUTRON = "neutron"
FAST_NEUTRON = "fast_neutron"
SMOKE = "smoke"
SPARK = "spark"

PARTICLE_KINDS = (NEUTRON, FAST_NEUTRON, SMOKE, SPARK)
EFFECT_KINDS = (SMOKE, SPARK)

# Rod classes
CONTROL = "control"
MODERATOR = "moderator"

ROD_CLASSES = (CONTROL, MODERATOR)

# Rod index selecting every rod of a class
ALL_RODS = "all"


@dataclass(frozen=True)
class SimulationConstants:
    """Tuning constants used by every stage of the physics step."""

    # Neutron speeds [units/tick]
    NEUTRON_SPEED: float = 2.0
    FAST_NEUTRON_SPEED: float = 5.0

    # Velocity lost per tick by a fast neutron travelling through water
    FAST_NEUTRON_SLOWDOWN_RATE: float = 0.0085

    # Fast neutrons are reclassified below this multiple of NEUTRON_SPEED
    FAST_NEUTRON_CONVERSION_RATIO: float = 1.2

    # Interaction probabilities (per particle or element, per tick)
    NEUTRON_ABSORPTION_CHANCE: float = 0.003
    UNREACTIVE_EMISSION_CHANCE: float = 0.0001
    REACTIVATION_CHANCE: float = 0.01
    CONTROL_ROD_ABSORPTION_CHANCE: float = 0.8

    # Fission
    FISSION_NEUTRONS: int = 3
    FISSION_HEAT: float = 3.0
    EMISSION_HEAT_FACTOR: float = 0.1

    # Rods
    ROD_RETRACTED_HEIGHT_RATIO: float = 0.2
    MODERATOR_RETRACTED_HEIGHT_RATIO: float = 0.2
    ROD_SMOOTHING: float = 0.1
    MODERATOR_BOUNCE_EFFICIENCY: float = 0.8
    MODERATOR_JITTER: float = 0.1  # band width, fraction of FAST_NEUTRON_SPEED
    MODERATOR_NUDGE: float = 0.1

    # Temperatures [deg]
    BASE_TEMP: float = 20.0
    MAX_TEMP: float = 4000.0
    MELTDOWN_TEMP: float = 1132.0
    MAX_CHAMBER_TEMP: float = 1000.0
    MAX_WATER_TEMP: float = 80.0
    EVAPORATION_TEMP: float = 100.0
    CRITICAL_TEMP: float = 500.0

    # Heat transfer
    COOLING_RATE: float = 1.0
    PARTICLE_HEAT_TRANSFER: float = 1.0
    WET_HEAT_TRANSFER_RATE: float = 0.1
    DRY_HEAT_TRANSFER_RATE: float = 0.01
    WATER_COOLING_FLOOR: float = 0.9

    # Coolant [%]
    MAX_WATER_LEVEL: float = 100.0
    MIN_WET_LEVEL: float = 5.0
    WATER_REFILL_RATE: float = 0.5
    EVAPORATION_SCALE: float = 50.0  # excess degrees per 1 % evaporation

    # Core temperature aggregation
    TEMP_NORMALIZATION: float = 0.3
    TEMP_NEUTRON_WEIGHT: float = 0.4
    TEMP_WATER_WEIGHT: float = 0.3
    TEMP_MELTDOWN_WEIGHT: float = 0.3
    NEUTRON_DENSITY_SCALE: float = 100.0
    MELTDOWN_WEIGHT_PER_CHAMBER: float = 0.2

    # Meltdown
    MELTDOWN_SPREAD_RATE: float = 0.5
    MELTDOWN_SEED_COUNT: int = 3
    SEVERITY_SCALE: float = 3000.0
    SMOKE_LIFETIME: float = 150.0
    SMOKE_LIFETIME_SPREAD: float = 100.0
    SPARK_LIFETIME: float = 30.0
    SPARK_LIFETIME_SPREAD: float = 20.0
    SPARK_COUNT: int = 3

    def __post_init__(self):
        """Validate probabilities and smoothing factors."""
        for f in fields(self):
            if f.name.endswith("_CHANCE") or f.name in (
                "ROD_SMOOTHING",
                "TEMP_NORMALIZATION",
                "MELTDOWN_SPREAD_RATE",
            ):
                value = getattr(self, f.name)
                if not 0.0 <= value <= 1.0:
                    raise ValueError(
                        f"{f.name} must be between 0 and 1, got {value}"
                    )

        if self.NEUTRON_SPEED <= 0 or self.FAST_NEUTRON_SPEED <= 0:
            raise ValueError("Neutron speeds must be positive")

        if self.BASE_TEMP >= self.MAX_CHAMBER_TEMP:
            raise ValueError("BASE_TEMP must be below MAX_CHAMBER_TEMP")

    @property
    def conversion_speed(self) -> float:
        """Speed at or below which a fast neutron becomes a slow one."""
        return self.NEUTRON_SPEED * self.FAST_NEUTRON_CONVERSION_RATIO


DEFAULT_CONSTANTS = SimulationConstants()
