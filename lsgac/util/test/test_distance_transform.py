import unittest

import numpy as np

from lsgac.core.exception import ConfigurationError
from lsgac.util.distance_transform import distance_transform


class TestDistanceTransform(unittest.TestCase):

    def test_one_dimensional_band(self):
        # Inside is negative
        arr = np.r_[1, 1, -1, -1, 1, 1.]
        dist, mask = distance_transform(arr, band=1)

        self.assertTrue(mask[1:5].all())
        self.assertEqual(mask.dtype, bool)

        # Interface half way between grid points
        np.testing.assert_allclose(dist[1:5], [0.5, -0.5, -0.5, 0.5])

    def test_disk_is_negative_inside(self):
        ind = np.indices((41, 41), dtype=float)
        radius = np.sqrt((ind[0] - 20)**2 + (ind[1] - 20)**2)
        mask = radius <= 10

        dist, computed = distance_transform(1 - 2*mask.astype(float))

        self.assertTrue(computed.all())
        self.assertTrue((dist[mask] < 0).all())
        self.assertTrue((dist[~mask] > 0).all())

        # Far from the grid scale the distance is close to the exact one
        self.assertLess(abs(dist[20, 20] + 10.0), 1.0)
        self.assertLess(abs(dist[20, 35] - 5.0), 1.0)

    def test_spacing_scales_distance(self):
        arr = np.ones(21)
        arr[:10] = -1

        dist1, _ = distance_transform(arr)
        dist2, _ = distance_transform(arr, dx=[2.0])

        np.testing.assert_allclose(dist2, 2 * dist1)

    def test_no_interface(self):
        dist, mask = distance_transform(np.ones((4, 5, 6)))
        self.assertEqual(0, mask.sum())
        self.assertTrue((dist == np.inf).all())

        dist, mask = distance_transform(-np.ones((4, 5)), band=2)
        self.assertEqual(0, mask.sum())
        self.assertTrue((dist == -np.inf).all())

        dist, mask = distance_transform(np.zeros((3, 3)))
        self.assertTrue(mask.all())
        self.assertTrue((dist == 0).all())

    def test_bad_input(self):
        with self.assertRaises(ConfigurationError):
            distance_transform(np.r_[1.0, np.nan, -1.0])

        with self.assertRaises(ConfigurationError):
            distance_transform(np.r_[1.0, -1.0], dx=[1.0, 1.0])

        with self.assertRaises(ConfigurationError):
            distance_transform(np.r_[1.0, -1.0], band=-1)


if __name__ == '__main__':
    unittest.main()
