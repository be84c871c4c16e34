import unittest

import numpy as np

from lsgac.core.exception import ConfigurationError
from lsgac.initializer.provided.ball import BallInitializer


class TestBallInitialize(unittest.TestCase):

    def test_centered_ball2d(self):
        shape = (51, 51)
        img = np.zeros(shape)

        radius = 10
        initializer = BallInitializer(radius=radius)

        phi = initializer(img)

        diameter = (phi[shape[0]//2] <= 0).sum()

        self.assertEqual(radius, diameter // 2)

    def test_centered_ball3d(self):
        shape = (31, 31, 31)
        img = np.zeros(shape)

        radius = 10
        initializer = BallInitializer(radius=radius)

        phi = initializer(img)
        diameter = (phi[shape[0]//2, shape[1]//2] <= 0).sum()

        self.assertEqual(radius, diameter // 2)

    def test_centered_anisotropic_ball2d(self):
        shape = (51, 51)
        img = np.zeros(shape)

        radius = 10
        initializer = BallInitializer(radius=radius)

        dx = [2, 0.5]
        phi = initializer(img, dx=dx)

        # The dx along axis 0 is 2, so we expect the
        # diameter in index space to be squashed by a factor of 2^-1
        factor = 2**-1
        diameter_axis0 = (phi[:, 25] <= 0).sum()
        self.assertEqual(radius*factor, diameter_axis0 // 2)

        # The dx along axis 1 is 0.5, so we expect the
        # diameter in index space to be squashed by a factor of 0.5^-1
        factor = 0.5**-1
        diameter_axis1 = (phi[25, :] <= 0).sum()
        self.assertEqual(radius*factor, diameter_axis1 // 2)

    def test_signed_distance(self):
        img = np.zeros((21, 21))
        phi = BallInitializer(radius=5, location=(10, 10))(img)

        self.assertEqual(phi[10, 10], -5.0)
        self.assertEqual(phi[10, 20], 5.0)
        self.assertEqual(phi[0, 10], 5.0)

    def test_bad_location(self):
        with self.assertRaises(ConfigurationError):
            BallInitializer(location=(1, 2, 3))(np.zeros((5, 5)))

    def test_bad_radius(self):
        with self.assertRaises(ConfigurationError):
            BallInitializer(radius=0)

        with self.assertRaises(ConfigurationError):
            BallInitializer(radius=-2.5)
