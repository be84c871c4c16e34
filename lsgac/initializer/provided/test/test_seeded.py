import unittest

import numpy as np

from lsgac.core.exception import ConfigurationError
from lsgac.initializer.provided import SeededInitializer


class TestSeededInitialize(unittest.TestCase):

    def test_zero_level_at_initial_distance(self):
        img = np.zeros((41, 41))

        initializer = SeededInitializer(seeds=[((20, 20), -5.0)])
        phi = initializer(img)

        self.assertEqual(phi[20, 20], -5.0)

        # Along the axes the arrival time is exact
        self.assertEqual(phi[20, 25], 0.0)
        self.assertEqual(phi[15, 20], 0.0)
        self.assertTrue(phi[20, 26] > 0)

    def test_offset(self):
        img = np.zeros((21, 21))

        phi0 = SeededInitializer(seeds=[((10, 10), 0.0)])(img)
        phi3 = SeededInitializer(seeds=[((10, 10), 0.0)], offset=3.0)(img)

        self.assertTrue(np.allclose(phi0 - 3.0, phi3))

    def test_seed_outside(self):
        with self.assertRaises(ConfigurationError):
            SeededInitializer(seeds=[((30, 0), 0.0)])(np.zeros((10, 10)))
