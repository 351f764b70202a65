"""
Core Geometry Module for the Reactor Simulation

This module defines the spatial layout of the reactor core: the
platform rectangle that bounds the simulation, the grid of coolant
chambers inside it and the columns that hold control and moderator
rods.

The grid is built once. Chamber identity and adjacency never change
during a run; only water level and temperature do.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Set, Tuple
import logging
import math

import numpy as np

from .exceptions import InvalidReference

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Chamber:
    """
    A single coolant chamber.

    Attributes:
        id: Row-major chamber index
        row: Grid row
        col: Grid column
        x: Left edge
        y: Top edge
        size: Side length of the square chamber
        water_level: Coolant level [%]
        temperature: Water temperature [deg]
    """

    id: int
    row: int
    col: int
    x: float
    y: float
    size: float
    water_level: float = 100.0
    temperature: float = 20.0

    @property
    def center(self) -> Tuple[float, float]:
        """Centre point of the chamber."""
        return self.x + self.size / 2, self.y + self.size / 2

    def contains(self, x: float, y: float) -> bool:
        """Whether the point lies in the closed chamber rectangle."""
        return (
            self.x <= x <= self.x + self.size and
            self.y <= y <= self.y + self.size
        )


@dataclass
class CoreLayout:
    """
    Reactor platform and chamber grid dimensions.

    The platform is placed with its top-left corner at the origin and
    doubles as the simulation domain. Chambers are laid out inside the
    platform margin with a fixed gap between them. Control rods sit in
    the gap to the left of every ``rod_spacing``-th column (offset
    ``control_rod_offset``), moderators in the gap to the right of the
    columns at ``moderator_offset``.

    Attributes:
        platform_width: Width of the simulation domain
        platform_height: Height of the simulation domain
        platform_margin: Border between platform edge and chamber grid
        chamber_size: Side length of a chamber
        chamber_margin: Gap between neighbouring chambers
        rod_spacing: Column period of the rod pattern
        control_rod_offset: Column offset of control rods in the pattern
        moderator_offset: Column offset of moderator rods in the pattern
        rod_width: Width of every rod
    """

    platform_width: float = 1000.0
    platform_height: float = 700.0
    platform_margin: float = 20.0
    chamber_size: float = 31.0
    chamber_margin: float = 3.0
    rod_spacing: int = 4
    control_rod_offset: int = 2
    moderator_offset: int = 3
    rod_width: float = 6.0

    def __post_init__(self):
        """Validate layout dimensions."""
        if self.chamber_size <= 0:
            raise ValueError("Chamber size must be positive")

        if self.chamber_margin < 0 or self.platform_margin < 0:
            raise ValueError("Margins cannot be negative")

        if self.rod_spacing < 1:
            raise ValueError("Rod spacing must be at least 1")

        if self.rows < 1 or self.columns < 1:
            raise ValueError(
                f"Platform {self.platform_width}x{self.platform_height} "
                f"cannot hold a single chamber of size {self.chamber_size}"
            )

    @property
    def pitch(self) -> float:
        """Distance between the origins of neighbouring chambers."""
        return self.chamber_size + self.chamber_margin

    @property
    def grid_width(self) -> float:
        return self.platform_width - 2 * self.platform_margin

    @property
    def grid_height(self) -> float:
        return self.platform_height - 2 * self.platform_margin

    @property
    def columns(self) -> int:
        """Number of chambers per row."""
        return int(math.floor((self.grid_width + self.chamber_margin) / self.pitch))

    @property
    def rows(self) -> int:
        """Number of chambers per column."""
        return int(math.floor((self.grid_height + self.chamber_margin) / self.pitch))

    @property
    def origin(self) -> Tuple[float, float]:
        """Top-left corner of the chamber grid."""
        return self.platform_margin, self.platform_margin

    def chamber_origin(self, row: int, col: int) -> Tuple[float, float]:
        """Top-left corner of the chamber at (row, col)."""
        x0, y0 = self.origin
        return x0 + col * self.pitch, y0 + row * self.pitch

    def in_bounds(self, x: float, y: float) -> bool:
        """Whether a point lies inside the simulation domain."""
        return 0 <= x <= self.platform_width and 0 <= y <= self.platform_height

    def control_rod_columns(self) -> List[int]:
        """Grid columns that carry a control rod."""
        return [
            col for col in range(self.columns)
            if col > 0 and col % self.rod_spacing == self.control_rod_offset
        ]

    def moderator_columns(self) -> List[int]:
        """Grid columns that carry a moderator rod."""
        return [
            col for col in range(self.columns)
            if col % self.rod_spacing == self.moderator_offset
        ]

    def control_rod_x(self, col: int) -> float:
        """Left edge of a control rod centred in the gap left of col."""
        x, _ = self.chamber_origin(0, col)
        return x - self.chamber_margin / 2 - self.rod_width / 2

    def moderator_x(self, col: int) -> float:
        """Left edge of a moderator rod centred in the gap right of col."""
        x, _ = self.chamber_origin(0, col)
        return x + self.chamber_size + self.chamber_margin / 2 - self.rod_width / 2

    @property
    def rod_top(self) -> float:
        return self.platform_margin

    @property
    def rod_max_height(self) -> float:
        """Rods span the full height of the chamber grid area."""
        return self.grid_height


class ChamberGrid:
    """
    The chambers of the core with their stable adjacency.

    Chambers are numbered row-major. ``id_map`` is a (rows, columns)
    array of chamber ids used for neighbourhood lookups.
    """

    def __init__(self, layout: CoreLayout):
        self.layout = layout
        self.rows = layout.rows
        self.columns = layout.columns
        self.id_map = np.arange(self.rows * self.columns).reshape(
            self.rows, self.columns
        )

        self.chambers: List[Chamber] = []
        for row in range(self.rows):
            for col in range(self.columns):
                x, y = layout.chamber_origin(row, col)
                self.chambers.append(Chamber(
                    id=int(self.id_map[row, col]),
                    row=row,
                    col=col,
                    x=x,
                    y=y,
                    size=layout.chamber_size,
                ))

        logger.debug("Built %dx%d chamber grid", self.rows, self.columns)

    def __len__(self) -> int:
        return len(self.chambers)

    def __iter__(self) -> Iterator[Chamber]:
        return iter(self.chambers)

    def __getitem__(self, chamber_id: int) -> Chamber:
        if isinstance(chamber_id, bool) or not isinstance(chamber_id, (int, np.integer)):
            raise InvalidReference(f"Chamber id must be an integer, got {chamber_id!r}")
        if not 0 <= chamber_id < len(self.chambers):
            raise InvalidReference(f"Unknown chamber id {chamber_id}")
        return self.chambers[chamber_id]

    def at(self, row: int, col: int) -> Chamber:
        """Chamber at grid position (row, col)."""
        if not (0 <= row < self.rows and 0 <= col < self.columns):
            raise InvalidReference(f"No chamber at row {row}, column {col}")
        return self.chambers[int(self.id_map[row, col])]

    def neighbors(self, chamber: Chamber) -> Set[Chamber]:
        """
        Chambers within Chebyshev distance 1 of the given chamber.

        The chamber itself is excluded, so interior chambers have 8
        neighbours, edge chambers 5 and corner chambers 3.
        """
        r, c = chamber.row, chamber.col
        block = self.id_map[max(r - 1, 0):r + 2, max(c - 1, 0):c + 2]
        return {
            self.chambers[int(i)] for i in block.ravel() if i != chamber.id
        }

    def chamber_at(self, x: float, y: float) -> Optional[Chamber]:
        """
        Chamber whose closed rectangle contains the point.

        Points in the gaps between chambers or outside the grid return
        None.
        """
        x0, y0 = self.layout.origin
        pitch = self.layout.pitch

        col = int(math.floor((x - x0) / pitch))
        row = int(math.floor((y - y0) / pitch))

        if not (0 <= row < self.rows and 0 <= col < self.columns):
            return None

        chamber = self.chambers[int(self.id_map[row, col])]
        if chamber.contains(x, y):
            return chamber
        return None

    @property
    def water_levels(self) -> np.ndarray:
        return np.array([c.water_level for c in self.chambers])

    @property
    def temperatures(self) -> np.ndarray:
        return np.array([c.temperature for c in self.chambers])
