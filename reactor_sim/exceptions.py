"""
Exceptions raised by the reactor core simulation.
"""


class InvalidReference(LookupError):
    """A command or query named a rod, rod class or chamber that does not exist."""


class SimulationInvariantError(RuntimeError):
    """
    A tick produced a non-finite value.

    The simulation state can no longer be trusted and the driving loop
    should stop.
    """
