"""
Reactor Core Simulation Package

A discrete-time simulation of a simplified nuclear reactor core:
neutron transport, fuel-element reactivity, water coolant, control
and moderator rods, and meltdown propagation.

Modules:
    - constants: Simulation constants, particle kinds and rod classes
    - geometry: Core layout and chamber grid
    - fuel: Fuel elements
    - thermal: Coolant model and heat exchange
    - control: Control and moderator rods
    - neutronics: Particle transport
    - reactor: Simulation driver integrating all components
"""

from .constants import SimulationConstants, CONTROL, MODERATOR, ALL_RODS
from .exceptions import InvalidReference, SimulationInvariantError
from .geometry import CoreLayout, ChamberGrid, Chamber
from .fuel import FuelElement, FuelModel
from .thermal import CoolantModel
from .control import ControlSurfaces, Rod
from .neutronics import Particle, ParticleTransport
from .state import ReactorSnapshot
from .reactor import ReactorCore, create_reactor

__version__ = "1.0.0"

__all__ = [
    "SimulationConstants",
    "CONTROL",
    "MODERATOR",
    "ALL_RODS",
    "InvalidReference",
    "SimulationInvariantError",
    "CoreLayout",
    "ChamberGrid",
    "Chamber",
    "FuelElement",
    "FuelModel",
    "CoolantModel",
    "ControlSurfaces",
    "Rod",
    "Particle",
    "ParticleTransport",
    "ReactorSnapshot",
    "ReactorCore",
    "create_reactor",
]
