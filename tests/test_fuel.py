"""
Tests for the fuel module.
"""

import unittest
import numpy as np

from reactor_sim.constants import NEUTRON, SimulationConstants
from reactor_sim.exceptions import InvalidReference
from reactor_sim.fuel import FuelElement, FuelModel
from reactor_sim.geometry import ChamberGrid, CoreLayout
from reactor_sim.neutronics import ParticleTransport


SMALL_LAYOUT = dict(platform_width=240.0, platform_height=200.0)

# No random emission or reactivation
QUIET = SimulationConstants(UNREACTIVE_EMISSION_CHANCE=0.0, REACTIVATION_CHANCE=0.0)


class FuelTestCase(unittest.TestCase):

    constants = QUIET

    def setUp(self):
        self.layout = CoreLayout(**SMALL_LAYOUT)
        self.grid = ChamberGrid(self.layout)
        self.fuel = FuelModel(self.grid, self.constants)
        self.transport = ParticleTransport(self.layout, self.constants)
        self.rng = np.random.default_rng(1)
        self.meltdown = []

    def update(self, core_temperature=20.0):
        return self.fuel.update(
            self.grid, core_temperature, self.meltdown, self.transport, self.rng
        )


class TestFuelElement(unittest.TestCase):
    """Test a single element."""

    def setUp(self):
        self.element = FuelElement(id=0, x=10.0, y=10.0, radius=5.0, reactive=True)

    def test_split(self):
        """Test fission bookkeeping."""
        self.element.time_since_deactivation = 7
        self.element.split(3.0, 4000.0)

        self.assertFalse(self.element.reactive)
        self.assertEqual(self.element.temperature, 23.0)
        self.assertEqual(self.element.neutrons_emitted, 1)
        self.assertEqual(self.element.time_since_deactivation, 0)

    def test_split_respects_max_temperature(self):
        """Test fission heat is capped at the maximum temperature."""
        self.element.temperature = 3999.0
        self.element.split(3.0, 4000.0)
        self.assertEqual(self.element.temperature, 4000.0)

    def test_melt_is_not_reactive(self):
        """Test a melted element is never reactive."""
        self.element.melt()
        self.assertTrue(self.element.melted)
        self.assertFalse(self.element.reactive)


class TestFuelModel(FuelTestCase):
    """Test element layout and lookup."""

    def test_one_element_per_chamber(self):
        """Test every chamber holds exactly one element."""
        self.assertEqual(len(self.fuel), len(self.grid))
        for chamber, element in zip(self.grid, self.fuel):
            self.assertEqual(element.id, chamber.id)
            self.assertEqual((element.x, element.y), chamber.center)
            self.assertAlmostEqual(element.radius, chamber.size / 3)

    def test_initial_state(self):
        """Test elements start cold and spent."""
        for element in self.fuel:
            self.assertEqual(element.temperature, 20.0)
            self.assertFalse(element.reactive)
            self.assertFalse(element.melted)

    def test_unknown_element(self):
        with self.assertRaises(InvalidReference):
            self.fuel[len(self.fuel)]

    def test_hottest_stable(self):
        """Test equal temperatures keep chamber order."""
        hottest = self.fuel.hottest(3)
        self.assertEqual([e.id for e in hottest], [0, 1, 2])

    def test_hottest_skips_melted(self):
        self.fuel[4].temperature = 900.0
        self.fuel[4].melted = True
        self.fuel[7].temperature = 800.0

        hottest = self.fuel.hottest(2)

        self.assertEqual([e.id for e in hottest], [7, 0])


class TestFuelUpdate(FuelTestCase):
    """Test the per-tick element update."""

    def test_fission_heat_applied(self):
        """Test last tick's fissions heat the element and reset the counter."""
        element = self.fuel[3]
        element.neutrons_emitted = 10

        self.update()

        self.assertAlmostEqual(element.temperature, 21.0)
        self.assertEqual(element.neutrons_emitted, 0)

    def test_meltdown_threshold(self):
        """Test an element at MELTDOWN_TEMP melts and drains its chamber."""
        element = self.fuel[6]
        element.temperature = 1132.0
        element.reactive = True

        self.update()

        self.assertTrue(element.melted)
        self.assertFalse(element.reactive)
        self.assertEqual(self.meltdown, [6])
        self.assertEqual(self.grid[6].water_level, 0.0)

    def test_below_threshold(self):
        """Test an element just below MELTDOWN_TEMP survives."""
        self.fuel[6].temperature = 1131.9
        self.update()
        self.assertFalse(self.fuel[6].melted)
        self.assertEqual(self.meltdown, [])

    def test_melt_only_once(self):
        """Test a melted element is recorded once."""
        self.fuel[6].temperature = 1200.0
        self.update()
        self.update()
        self.assertEqual(self.meltdown, [6])

    def test_global_meltdown(self):
        """Test a hot core melts the three hottest elements."""
        for chamber_id, temp in ((2, 500.0), (9, 600.0), (11, 700.0), (15, 800.0)):
            self.fuel[chamber_id].temperature = temp

        self.update(core_temperature=1200.0)

        self.assertEqual(self.meltdown, [15, 11, 9])
        self.assertFalse(self.fuel[2].melted)
        for chamber_id in (15, 11, 9):
            self.assertTrue(self.fuel[chamber_id].melted)
            self.assertEqual(self.grid[chamber_id].water_level, 0.0)

    def test_no_global_meltdown_once_started(self):
        """Test the global rule only fires while nothing has melted."""
        self.meltdown.append(0)
        self.fuel[0].melted = True
        self.fuel[5].temperature = 900.0

        self.update(core_temperature=1200.0)

        self.assertEqual(self.meltdown, [0])
        self.assertFalse(self.fuel[5].melted)

    def test_deactivation_timer(self):
        """Test spent elements count ticks since deactivation."""
        self.fuel[0].reactive = True
        self.update()
        self.update()

        self.assertEqual(self.fuel[0].time_since_deactivation, 0)
        self.assertEqual(self.fuel[1].time_since_deactivation, 2)

    def test_heat_exchange_with_chamber(self):
        """Test elements heat their chambers."""
        self.fuel[4].temperature = 120.0
        self.update()
        self.assertAlmostEqual(self.grid[4].temperature, 30.0)


class TestFuelRandomEvents(FuelTestCase):
    """Test emission and reactivation with certain probabilities."""

    constants = SimulationConstants(UNREACTIVE_EMISSION_CHANCE=1.0, REACTIVATION_CHANCE=1.0)

    def test_emission_and_reactivation(self):
        """Test every spent element emits a neutron and reactivates."""
        self.fuel[3].melted = True

        emitted = self.update()

        self.assertEqual(emitted, len(self.fuel) - 1)
        self.assertEqual(len(self.transport), len(self.fuel) - 1)

        for p in self.transport.particles:
            self.assertEqual(p.kind, NEUTRON)
            self.assertAlmostEqual(p.speed, self.constants.NEUTRON_SPEED)
            element = self.fuel[p.source_id]
            self.assertEqual((p.x, p.y), (element.x, element.y))

        for element in self.fuel:
            if element.id == 3:
                self.assertFalse(element.reactive)
            else:
                self.assertTrue(element.reactive)
                self.assertEqual(element.time_since_deactivation, 0)


class TestSpreadMeltdown(FuelTestCase):
    """Test meltdown propagation to neighbours."""

    def test_spread_to_neighbors(self):
        """Test neighbours close half their gap to MELTDOWN_TEMP."""
        center = self.grid.at(1, 1)
        heated = self.fuel.spread_meltdown(self.grid, center.id)

        self.assertEqual(heated, 8)
        expected = 20.0 + 0.5 * (1132.0 - 20.0)
        for neighbor in self.grid.neighbors(center):
            self.assertAlmostEqual(self.fuel[neighbor.id].temperature, expected)
        self.assertEqual(self.fuel[center.id].temperature, 20.0)

    def test_repeated_spread_approaches_threshold(self):
        """Test repeated spreading approaches but never passes MELTDOWN_TEMP."""
        for _ in range(30):
            self.fuel.spread_meltdown(self.grid, 0)

        self.assertAlmostEqual(self.fuel[1].temperature, 1132.0, places=3)
        self.assertLessEqual(self.fuel[1].temperature, 1132.0)

    def test_spread_skips_melted_and_hotter(self):
        """Test spreading never cools an element."""
        self.fuel[1].melted = True
        self.fuel[1].temperature = 1500.0
        self.fuel[5].temperature = 1140.0

        heated = self.fuel.spread_meltdown(self.grid, 0)

        self.assertEqual(heated, 1)
        self.assertEqual(self.fuel[1].temperature, 1500.0)
        self.assertEqual(self.fuel[5].temperature, 1140.0)

    def test_unknown_chamber(self):
        with self.assertRaises(InvalidReference):
            self.fuel.spread_meltdown(self.grid, 99)


if __name__ == "__main__":
    unittest.main()
