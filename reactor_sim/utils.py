"""
Utility Functions for the Reactor Core Simulation

This module provides small vector and range helpers shared by the
transport, control and thermal models.
"""

import math
from typing import Tuple

import numpy as np


def clamp(value: float, lower: float, upper: float) -> float:
    """Limit value to the closed range [lower, upper]."""
    return max(lower, min(upper, value))


def scale_to_speed(dx: float, dy: float, speed: float) -> Tuple[float, float]:
    """
    Rescale a velocity vector to the given magnitude.

    The direction is preserved. A zero vector is returned unchanged.

    Args:
        dx: Velocity x component
        dy: Velocity y component
        speed: Target magnitude

    Returns:
        Tuple of rescaled (dx, dy)
    """
    current = math.hypot(dx, dy)
    if current == 0:
        return dx, dy
    ratio = speed / current
    return dx * ratio, dy * ratio


def reflect(
    dx: float,
    dy: float,
    normal_x: float,
    normal_y: float,
    efficiency: float = 1.0
) -> Tuple[float, float]:
    """
    Specular reflection of a velocity about a unit normal.

    v' = efficiency * (v - 2(v·n)n)

    Args:
        dx, dy: Incoming velocity
        normal_x, normal_y: Unit surface normal
        efficiency: Fraction of speed retained

    Returns:
        Reflected velocity (dx, dy)
    """
    dot = dx * normal_x + dy * normal_y
    return (
        efficiency * (dx - 2 * dot * normal_x),
        efficiency * (dy - 2 * dot * normal_y),
    )


def random_velocity(rng: np.random.Generator, speed: float) -> Tuple[float, float]:
    """Velocity of the given speed in a uniformly random direction."""
    angle = rng.random() * 2 * math.pi
    return math.cos(angle) * speed, math.sin(angle) * speed


def nearest_edge_normal(
    x: float,
    y: float,
    left: float,
    top: float,
    width: float,
    height: float
) -> Tuple[float, float]:
    """
    Normal of the rectangle edge closest to a point inside it.

    Ties are resolved in the order left, right, top, bottom.

    Returns:
        Unit normal (nx, ny) of the closest edge
    """
    left_dist = x - left
    right_dist = (left + width) - x
    top_dist = y - top
    bottom_dist = (top + height) - y

    nearest = min(left_dist, right_dist, top_dist, bottom_dist)

    if nearest == left_dist:
        return -1.0, 0.0
    elif nearest == right_dist:
        return 1.0, 0.0
    elif nearest == top_dist:
        return 0.0, -1.0
    return 0.0, 1.0
