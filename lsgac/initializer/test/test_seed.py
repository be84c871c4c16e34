import unittest

import numpy
from skimage.morphology import disk, ball

from lsgac.core.exception import ConfigurationError
from lsgac.core.grid import Grid
from lsgac.initializer.seed import Seed, center_of_mass_seed, normalize_seeds


class TestSeed(unittest.TestCase):

    def test_center_of_mass_seed_centered_circle(self):

        seg = numpy.pad(disk(10), 10, 'constant')

        seed = center_of_mass_seed(seg, initial_distance=3.0)

        self.assertEqual(seed.index, (20, 20))
        self.assertEqual(seed.value, -3.0)

    def test_center_of_mass_seed_translated_circle(self):

        translation = numpy.r_[5, -3]

        seg = numpy.pad(disk(10), 10, 'constant')
        seg = numpy.roll(
            numpy.roll(seg, translation[0], axis=0), translation[1], axis=1)

        seed = center_of_mass_seed(seg)
        expected_seed = numpy.r_[20, 20] + translation

        self.assertEqual(seed.index, tuple(expected_seed))

    def test_center_of_mass_seed_centered_ball(self):

        seg = numpy.pad(ball(10), 10, 'constant')

        seed = center_of_mass_seed(seg)

        self.assertEqual(seed.index, (20, 20, 20))

    def test_center_of_mass_seed_empty(self):

        with self.assertRaises(ConfigurationError):
            center_of_mass_seed(numpy.zeros((5, 5), dtype=bool))

    def test_normalize_seeds_duplicates_keep_smaller(self):

        grid = Grid((5, 6))
        seeds = [((1, 2), 3.0), Seed(index=(4, 0), value=-1.0),
                 ((1, 2), -2.0)]

        normalized = normalize_seeds(seeds, grid)

        self.assertEqual(normalized, [(1*6 + 2, -2.0), (4*6 + 0, -1.0)])

    def test_normalize_seeds_outside_grid(self):

        grid = Grid((5, 6))

        with self.assertRaises(ConfigurationError):
            normalize_seeds([((5, 0), 0.0)], grid)

        with self.assertRaises(ConfigurationError):
            normalize_seeds([((0, -1), 0.0)], grid)

    def test_normalize_seeds_malformed(self):

        grid = Grid((5, 6))

        # Wrong number of coordinates
        with self.assertRaises(ConfigurationError):
            normalize_seeds([((1, 2, 3), 0.0)], grid)

        # Not a pair
        with self.assertRaises(ConfigurationError):
            normalize_seeds([(1, 2, 3)], grid)

        # Non-finite value
        with self.assertRaises(ConfigurationError):
            normalize_seeds([((1, 2), numpy.nan)], grid)

        # Non-numeric value
        with self.assertRaises(ConfigurationError):
            normalize_seeds([((1, 2), 'a')], grid)
