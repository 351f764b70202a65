"""
Control Surfaces Module

Control rods and moderator rods hang from the top of the chamber grid.
Each rod carries a binary ``inserted`` command and a physical height
that follows the command with exponential smoothing:

    h += (h_target - h) * smoothing

so after N ticks the remaining error is (1 - smoothing)^N of the
initial error.

- Inserted control rods absorb slow neutrons.
- Inserted moderator rods reflect fast neutrons and slow them down.
"""

from dataclasses import dataclass
from typing import Dict, List, Union
import logging

from .constants import (
    ALL_RODS,
    CONTROL,
    MODERATOR,
    ROD_CLASSES,
    DEFAULT_CONSTANTS,
    SimulationConstants,
)
from .exceptions import InvalidReference
from .geometry import CoreLayout

logger = logging.getLogger(__name__)


@dataclass
class Rod:
    """
    A single control or moderator rod.

    Attributes:
        rod_class: "control" or "moderator"
        index: Position of the rod within its class
        x: Left edge
        y: Top edge
        width: Rod width
        max_height: Fully inserted height
        current_height: Smoothed physical height
        inserted: Commanded state
        retracted_ratio: Fraction of max_height left when retracted
    """

    rod_class: str
    index: int
    x: float
    y: float
    width: float
    max_height: float
    current_height: float
    inserted: bool = True
    retracted_ratio: float = 0.2

    @property
    def target_height(self) -> float:
        if self.inserted:
            return self.max_height
        return self.max_height * self.retracted_ratio

    def advance(self, smoothing: float) -> None:
        """Move the current height one step toward the target."""
        self.current_height += (self.target_height - self.current_height) * smoothing

    def contains(self, x: float, y: float) -> bool:
        """Whether a point lies in the rod's current rectangle."""
        return (
            self.x <= x <= self.x + self.width and
            self.y <= y <= self.y + self.current_height
        )


class ControlSurfaces:
    """
    All control and moderator rods of the core.

    Rods start fully inserted. Commands only change the ``inserted``
    flags; heights move when ``advance`` is called at the start of a
    tick.
    """

    def __init__(
        self,
        layout: CoreLayout,
        constants: SimulationConstants = DEFAULT_CONSTANTS
    ):
        self.constants = constants

        self.control_rods: List[Rod] = [
            Rod(
                rod_class=CONTROL,
                index=i,
                x=layout.control_rod_x(col),
                y=layout.rod_top,
                width=layout.rod_width,
                max_height=layout.rod_max_height,
                current_height=layout.rod_max_height,
                retracted_ratio=constants.ROD_RETRACTED_HEIGHT_RATIO,
            )
            for i, col in enumerate(layout.control_rod_columns())
        ]

        self.moderator_rods: List[Rod] = [
            Rod(
                rod_class=MODERATOR,
                index=i,
                x=layout.moderator_x(col),
                y=layout.rod_top,
                width=layout.rod_width,
                max_height=layout.rod_max_height,
                current_height=layout.rod_max_height,
                retracted_ratio=constants.MODERATOR_RETRACTED_HEIGHT_RATIO,
            )
            for i, col in enumerate(layout.moderator_columns())
        ]

    def rods(self, rod_class: str) -> List[Rod]:
        """Rods of the given class."""
        if rod_class == CONTROL:
            return self.control_rods
        elif rod_class == MODERATOR:
            return self.moderator_rods
        raise InvalidReference(
            f"Unknown rod class {rod_class!r}, expected one of {ROD_CLASSES}"
        )

    @property
    def all_rods(self) -> List[Rod]:
        return self.control_rods + self.moderator_rods

    def set_inserted(
        self,
        rod_class: str,
        index: Union[int, str],
        inserted: bool
    ) -> None:
        """
        Command one rod, or every rod of a class, in or out.

        Args:
            rod_class: "control" or "moderator"
            index: Rod index within the class, or "all"
            inserted: True to insert, False to retract

        Raises:
            InvalidReference: Unknown class or index. No rod is changed.
        """
        rods = self.rods(rod_class)

        if index == ALL_RODS:
            selected = rods
        elif isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(rods):
            selected = [rods[index]]
        else:
            raise InvalidReference(
                f"Unknown {rod_class} rod {index!r} ({len(rods)} rods)"
            )

        for rod in selected:
            rod.inserted = bool(inserted)

        logger.info(
            "%s %s rod(s) %s",
            "Inserted" if inserted else "Retracted",
            rod_class,
            index,
        )

    def toggle(self, rod_class: str) -> None:
        """Flip the command of every rod of a class."""
        for rod in self.rods(rod_class):
            rod.inserted = not rod.inserted

        logger.info(
            "Toggled %s rods, %d/%d inserted",
            rod_class,
            self.inserted_count(rod_class),
            len(self.rods(rod_class)),
        )

    def advance(self) -> None:
        """Smooth every rod height toward its target."""
        for rod in self.all_rods:
            rod.advance(self.constants.ROD_SMOOTHING)

    def inserted_count(self, rod_class: str) -> int:
        return sum(1 for rod in self.rods(rod_class) if rod.inserted)

    def summary(self) -> Dict[str, Dict[str, int]]:
        """Inserted and total rod counts per class."""
        return {
            rod_class: {
                "inserted": self.inserted_count(rod_class),
                "total": len(self.rods(rod_class)),
            }
            for rod_class in ROD_CLASSES
        }
