"""
Tests for the utils module.
"""

import math
import unittest

import numpy as np

from reactor_sim.utils import (
    clamp,
    nearest_edge_normal,
    random_velocity,
    reflect,
    scale_to_speed,
)


class TestVectorHelpers(unittest.TestCase):
    """Test velocity helpers."""

    def test_clamp(self):
        self.assertEqual(clamp(5.0, 0.0, 1.0), 1.0)
        self.assertEqual(clamp(-5.0, 0.0, 1.0), 0.0)
        self.assertEqual(clamp(0.5, 0.0, 1.0), 0.5)

    def test_scale_to_speed(self):
        """Test rescaling keeps direction."""
        dx, dy = scale_to_speed(3.0, 4.0, 10.0)
        self.assertAlmostEqual(dx, 6.0)
        self.assertAlmostEqual(dy, 8.0)

    def test_scale_zero_vector(self):
        self.assertEqual(scale_to_speed(0.0, 0.0, 2.0), (0.0, 0.0))

    def test_reflect(self):
        """Test reflection off a vertical wall with energy loss."""
        dx, dy = reflect(2.0, 1.0, -1.0, 0.0, 0.8)
        self.assertAlmostEqual(dx, -1.6)
        self.assertAlmostEqual(dy, 0.8)

    def test_random_velocity_speed(self):
        rng = np.random.default_rng(0)
        for _ in range(10):
            dx, dy = random_velocity(rng, 2.0)
            self.assertAlmostEqual(math.hypot(dx, dy), 2.0)


class TestNearestEdgeNormal(unittest.TestCase):
    """Test closest edge detection in a rectangle."""

    def test_each_edge(self):
        self.assertEqual(nearest_edge_normal(1.0, 5.0, 0.0, 0.0, 6.0, 10.0), (-1.0, 0.0))
        self.assertEqual(nearest_edge_normal(5.0, 5.0, 0.0, 0.0, 6.0, 10.0), (1.0, 0.0))
        self.assertEqual(nearest_edge_normal(3.0, 0.5, 0.0, 0.0, 6.0, 10.0), (0.0, -1.0))
        self.assertEqual(nearest_edge_normal(3.0, 9.5, 0.0, 0.0, 6.0, 10.0), (0.0, 1.0))

    def test_tie_prefers_left(self):
        """Test equidistant edges resolve left first."""
        self.assertEqual(nearest_edge_normal(3.0, 5.0, 0.0, 0.0, 6.0, 10.0), (-1.0, 0.0))


if __name__ == "__main__":
    unittest.main()
