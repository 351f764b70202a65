"""
Tests for the control module.
"""

import unittest

from reactor_sim.constants import ALL_RODS, CONTROL, MODERATOR
from reactor_sim.control import ControlSurfaces, Rod
from reactor_sim.exceptions import InvalidReference
from reactor_sim.geometry import CoreLayout


class TestRod(unittest.TestCase):
    """Test rod smoothing and collision rectangle."""

    def setUp(self):
        self.rod = Rod(
            rod_class=CONTROL,
            index=0,
            x=100.0,
            y=20.0,
            width=6.0,
            max_height=100.0,
            current_height=100.0,
        )

    def test_target_height(self):
        """Test target height follows the command."""
        self.assertEqual(self.rod.target_height, 100.0)
        self.rod.inserted = False
        self.assertAlmostEqual(self.rod.target_height, 20.0)

    def test_smoothing_convergence(self):
        """Test error after N ticks is the initial error times 0.9^N."""
        self.rod.inserted = False
        initial_error = abs(self.rod.target_height - self.rod.current_height)

        previous = initial_error
        for n in range(1, 41):
            self.rod.advance(0.1)
            error = abs(self.rod.target_height - self.rod.current_height)

            self.assertLess(error, previous)
            self.assertAlmostEqual(error, initial_error * 0.9**n, places=9)
            previous = error

    def test_reinsertion_converges_upward(self):
        """Test a retracted rod grows back toward full height."""
        self.rod.current_height = 20.0
        for _ in range(100):
            self.rod.advance(0.1)
        self.assertAlmostEqual(self.rod.current_height, 100.0, places=3)

    def test_contains_uses_current_height(self):
        """Test the collision rectangle shrinks with the rod."""
        self.assertTrue(self.rod.contains(103.0, 110.0))
        self.rod.current_height = 50.0
        self.assertFalse(self.rod.contains(103.0, 110.0))
        self.assertTrue(self.rod.contains(103.0, 60.0))
        self.assertFalse(self.rod.contains(99.0, 60.0))


class TestControlSurfaces(unittest.TestCase):
    """Test rod commands."""

    def setUp(self):
        self.layout = CoreLayout()
        self.rods = ControlSurfaces(self.layout)

    def test_rod_counts(self):
        """Test one rod per rod column."""
        self.assertEqual(len(self.rods.control_rods), 7)
        self.assertEqual(len(self.rods.moderator_rods), 7)

    def test_rods_start_inserted(self):
        """Test rods start inserted at full height."""
        for rod in self.rods.all_rods:
            self.assertTrue(rod.inserted)
            self.assertEqual(rod.current_height, rod.max_height)

    def test_set_single_rod(self):
        """Test commanding one rod leaves the others alone."""
        self.rods.set_inserted(CONTROL, 3, False)

        self.assertFalse(self.rods.control_rods[3].inserted)
        self.assertEqual(self.rods.inserted_count(CONTROL), 6)
        self.assertEqual(self.rods.inserted_count(MODERATOR), 7)

    def test_set_all_rods(self):
        """Test commanding a whole class."""
        self.rods.set_inserted(MODERATOR, ALL_RODS, False)
        self.assertEqual(self.rods.inserted_count(MODERATOR), 0)
        self.assertEqual(self.rods.inserted_count(CONTROL), 7)

    def test_command_does_not_move_rods(self):
        """Test heights only change when advanced."""
        self.rods.set_inserted(CONTROL, ALL_RODS, False)
        for rod in self.rods.control_rods:
            self.assertEqual(rod.current_height, rod.max_height)

        self.rods.advance()
        for rod in self.rods.control_rods:
            self.assertLess(rod.current_height, rod.max_height)

    def test_toggle(self):
        """Test toggling flips every rod of a class."""
        self.rods.set_inserted(CONTROL, 0, False)
        self.rods.toggle(CONTROL)

        self.assertTrue(self.rods.control_rods[0].inserted)
        self.assertEqual(self.rods.inserted_count(CONTROL), 1)

    def test_unknown_index(self):
        """Test unknown rod indices raise InvalidReference without effect."""
        for index in (7, -1, "3", True, None):
            with self.assertRaises(InvalidReference):
                self.rods.set_inserted(CONTROL, index, False)

        self.assertEqual(self.rods.inserted_count(CONTROL), 7)

    def test_unknown_class(self):
        """Test unknown rod classes raise InvalidReference."""
        with self.assertRaises(InvalidReference):
            self.rods.set_inserted("boron", ALL_RODS, False)
        with self.assertRaises(InvalidReference):
            self.rods.toggle("boron")

    def test_summary(self):
        """Test summary counts."""
        self.rods.set_inserted(CONTROL, 0, False)
        summary = self.rods.summary()
        self.assertEqual(summary[CONTROL], {"inserted": 6, "total": 7})
        self.assertEqual(summary[MODERATOR], {"inserted": 7, "total": 7})


if __name__ == "__main__":
    unittest.main()
