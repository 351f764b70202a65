"""
Particle Transport Module

This module moves and collides the live particles of the core:

- Slow neutrons (``neutron``) cause fission in reactive fuel elements
  and are absorbed by control rods and, rarely, by water.
- Fast neutrons (``fast_neutron``) are born in fission. They are
  moderated into slow neutrons by water and by moderator rods.
- Smoke and sparks are short-lived effects emitted by melted
  elements. They only move and expire.

A tick runs in two passes. ``move`` advances every particle and
applies water moderation. ``scan`` then evaluates removals and
fission against a pending-removal set and a pending-addition list,
committing both once the whole collection has been visited, so
particles born in a tick only take part from the next one.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Set
import itertools
import logging
import math

import numpy as np

from .constants import (
    EFFECT_KINDS,
    FAST_NEUTRON,
    NEUTRON,
    SMOKE,
    SPARK,
    DEFAULT_CONSTANTS,
    SimulationConstants,
)
from .control import ControlSurfaces, Rod
from .geometry import ChamberGrid, CoreLayout
from .utils import nearest_edge_normal, random_velocity, reflect, scale_to_speed

if TYPE_CHECKING:
    from .fuel import FuelElement, FuelModel

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Particle:
    """
    A transient particle.

    Attributes:
        id: Identifier, unique within one simulation
        kind: neutron, fast_neutron, smoke or spark
        x, y: Position
        dx, dy: Velocity per tick
        source_id: Id of the emitting fuel element, if any
        lifetime: Remaining ticks (smoke and spark only)
        size: Visual size (spark only)
    """

    id: int
    kind: str
    x: float
    y: float
    dx: float
    dy: float
    source_id: Optional[int] = None
    lifetime: Optional[float] = None
    size: Optional[float] = None

    @property
    def speed(self) -> float:
        return math.hypot(self.dx, self.dy)

    @property
    def is_effect(self) -> bool:
        return self.kind in EFFECT_KINDS


@dataclass
class TransportStats:
    """Counts of the events of one scan."""

    out_of_bounds: int = 0
    expired: int = 0
    rod_absorptions: int = 0
    water_absorptions: int = 0
    reflections: int = 0
    fissions: int = 0
    spawned: int = 0


@dataclass
class ParticleTransport:
    """
    The live particle collection and its per-tick rules.

    Attributes:
        layout: Core layout bounding the simulation domain
        constants: Simulation constants
        particles: Live particles, in creation order
    """

    layout: CoreLayout
    constants: SimulationConstants = DEFAULT_CONSTANTS
    particles: List[Particle] = field(default_factory=list)

    def __post_init__(self):
        self._ids = itertools.count()

    def __len__(self) -> int:
        return len(self.particles)

    def new_particle(self, kind: str, x: float, y: float, dx: float, dy: float,
                     **kwargs) -> Particle:
        """Create a particle with a fresh id. It is not added to the live set."""
        return Particle(next(self._ids), kind, x, y, dx, dy, **kwargs)

    def add(self, particle: Particle) -> Particle:
        self.particles.append(particle)
        return particle

    def emit_neutron(self, element: "FuelElement", rng: np.random.Generator) -> Particle:
        """Add a slow neutron leaving an element in a random direction."""
        dx, dy = random_velocity(rng, self.constants.NEUTRON_SPEED)
        return self.add(self.new_particle(
            NEUTRON, element.x, element.y, dx, dy, source_id=element.id
        ))

    def count(self, kind: str) -> int:
        return sum(1 for p in self.particles if p.kind == kind)

    @property
    def slow_neutron_count(self) -> int:
        return self.count(NEUTRON)

    # ------------------------------------------------------------------
    # Motion
    # ------------------------------------------------------------------

    def move(self, grid: ChamberGrid) -> None:
        """
        Advance every particle by its velocity.

        Fast neutrons inside a flooded chamber lose a fixed fraction of
        their velocity and become slow neutrons, renormalised to
        NEUTRON_SPEED, once slow enough. Effect lifetimes count down.
        """
        c = self.constants
        slowdown = 1 - c.FAST_NEUTRON_SLOWDOWN_RATE

        for particle in self.particles:
            particle.x += particle.dx
            particle.y += particle.dy

            if particle.kind == FAST_NEUTRON:
                chamber = grid.chamber_at(particle.x, particle.y)
                if chamber is not None and chamber.water_level > c.MIN_WET_LEVEL:
                    particle.dx *= slowdown
                    particle.dy *= slowdown

                    if particle.speed <= c.conversion_speed:
                        particle.kind = NEUTRON
                        particle.dx, particle.dy = scale_to_speed(
                            particle.dx, particle.dy, c.NEUTRON_SPEED
                        )
            elif particle.lifetime is not None:
                particle.lifetime -= 1

    # ------------------------------------------------------------------
    # Collisions
    # ------------------------------------------------------------------

    def absorbed_by_control_rod(
        self,
        particle: Particle,
        rods: List[Rod],
        rng: np.random.Generator
    ) -> bool:
        """Whether an inserted control rod captures a slow neutron."""
        if particle.kind != NEUTRON:
            return False

        for rod in rods:
            if rod.inserted and rod.contains(particle.x, particle.y):
                if rng.random() < self.constants.CONTROL_ROD_ABSORPTION_CHANCE:
                    return True
        return False

    def reflect_off_moderator(
        self,
        particle: Particle,
        rod: Rod,
        rng: np.random.Generator
    ) -> None:
        """
        Bounce a fast neutron off a moderator rod as a slow neutron.

        The velocity is mirrored about the normal of the nearest rod
        edge, scaled by the bounce efficiency, perturbed by a small
        random jitter and renormalised to NEUTRON_SPEED. The particle is
        nudged along its new velocity so it leaves the rod.
        """
        c = self.constants

        nx, ny = nearest_edge_normal(
            particle.x, particle.y, rod.x, rod.y, rod.width, rod.current_height
        )
        dx, dy = reflect(particle.dx, particle.dy, nx, ny, c.MODERATOR_BOUNCE_EFFICIENCY)

        jitter = c.MODERATOR_JITTER * c.FAST_NEUTRON_SPEED
        dx += (rng.random() - 0.5) * jitter
        dy += (rng.random() - 0.5) * jitter

        if dx == 0 and dy == 0:
            dx, dy = random_velocity(rng, c.NEUTRON_SPEED)

        particle.dx, particle.dy = scale_to_speed(dx, dy, c.NEUTRON_SPEED)
        particle.kind = NEUTRON

        particle.x += particle.dx * c.MODERATOR_NUDGE
        particle.y += particle.dy * c.MODERATOR_NUDGE

    def _hit_moderator(
        self,
        particle: Particle,
        rods: List[Rod],
        rng: np.random.Generator
    ) -> bool:
        if particle.kind != FAST_NEUTRON:
            return False

        for rod in rods:
            if rod.inserted and rod.contains(particle.x, particle.y):
                self.reflect_off_moderator(particle, rod, rng)
                return True
        return False

    def fission(
        self,
        element: "FuelElement",
        rng: np.random.Generator
    ) -> List[Particle]:
        """
        Split an element and return the fast neutrons it releases.

        The returned particles are not yet live.
        """
        c = self.constants
        element.split(c.FISSION_HEAT, c.MAX_TEMP)

        neutrons = []
        for _ in range(c.FISSION_NEUTRONS):
            dx, dy = random_velocity(rng, c.FAST_NEUTRON_SPEED)
            neutrons.append(self.new_particle(
                FAST_NEUTRON, element.x, element.y, dx, dy, source_id=element.id
            ))
        return neutrons

    def scan(
        self,
        grid: ChamberGrid,
        fuel: "FuelModel",
        rods: ControlSurfaces,
        rng: np.random.Generator
    ) -> TransportStats:
        """
        Resolve boundaries, rods, chamber heating and fission.

        Removals and newly spawned particles are buffered and applied
        after every particle has been visited.

        Returns:
            Event counts for this scan
        """
        c = self.constants
        stats = TransportStats()
        removed: Set[int] = set()
        spawned: List[Particle] = []

        for index, particle in enumerate(self.particles):
            if not self.layout.in_bounds(particle.x, particle.y):
                removed.add(index)
                stats.out_of_bounds += 1
                continue

            if particle.is_effect:
                if particle.lifetime is not None and particle.lifetime <= 0:
                    removed.add(index)
                    stats.expired += 1
                    continue
            else:
                if self.absorbed_by_control_rod(particle, rods.control_rods, rng):
                    removed.add(index)
                    stats.rod_absorptions += 1
                    continue

                if self._hit_moderator(particle, rods.moderator_rods, rng):
                    stats.reflections += 1

            chamber = grid.chamber_at(particle.x, particle.y)
            if chamber is not None:
                if chamber.water_level > c.MIN_WET_LEVEL:
                    if particle.kind == NEUTRON and rng.random() < c.NEUTRON_ABSORPTION_CHANCE:
                        removed.add(index)
                        chamber.temperature += c.PARTICLE_HEAT_TRANSFER * 3
                        stats.water_absorptions += 1
                        continue
                    chamber.temperature += c.PARTICLE_HEAT_TRANSFER * 2
                else:
                    chamber.temperature += c.PARTICLE_HEAT_TRANSFER * 0.5

            if particle.kind == NEUTRON:
                element = fuel.fission_target(particle)
                if element is not None:
                    spawned.extend(self.fission(element, rng))
                    removed.add(index)
                    stats.fissions += 1

        if removed:
            self.particles = [
                p for i, p in enumerate(self.particles) if i not in removed
            ]
        self.particles.extend(spawned)
        stats.spawned = len(spawned)

        return stats

    # ------------------------------------------------------------------
    # Meltdown effects
    # ------------------------------------------------------------------

    def emit_meltdown_effects(
        self,
        fuel: "FuelModel",
        meltdown: List[int],
        core_temperature: float,
        rng: np.random.Generator
    ) -> int:
        """
        Release smoke and sparks from melted elements.

        Emission grows with severity = min(1, T / SEVERITY_SCALE).
        Sparks only appear above half severity.

        Returns:
            Number of particles added
        """
        c = self.constants
        severity = min(1.0, core_temperature / c.SEVERITY_SCALE)
        added = 0

        for chamber_id in meltdown:
            element = fuel[chamber_id]

            if rng.random() > (0.7 - severity * 0.2):
                self.add(self.new_particle(
                    SMOKE,
                    element.x + (rng.random() - 0.5) * 10,
                    element.y + (rng.random() - 0.5) * 10,
                    (rng.random() - 0.5) * (0.5 + severity),
                    -rng.random() * (2 + severity * 3),
                    lifetime=c.SMOKE_LIFETIME + rng.random() * c.SMOKE_LIFETIME_SPREAD,
                ))
                added += 1

            if severity > 0.5 and rng.random() > 0.8:
                for _ in range(c.SPARK_COUNT):
                    self.add(self.new_particle(
                        SPARK,
                        element.x,
                        element.y,
                        (rng.random() - 0.5) * 3,
                        (rng.random() - 0.5) * 3,
                        lifetime=c.SPARK_LIFETIME + rng.random() * c.SPARK_LIFETIME_SPREAD,
                        size=1 + rng.random() * 2,
                    ))
                    added += 1

        return added
