import unittest

import numpy

from lsgac.core.exception import ConfigurationError
from lsgac.core.grid import Grid, as_spacing


class TestGrid(unittest.TestCase):

    def test_as_spacing(self):
        self.assertTrue((as_spacing(None, 3) == 1).all())
        self.assertTrue((as_spacing([1, 2.5], 2) == [1, 2.5]).all())

        with self.assertRaises(ConfigurationError):
            as_spacing([1, 2], 3)

        with self.assertRaises(ConfigurationError):
            as_spacing([1, 0], 2)

        with self.assertRaises(ConfigurationError):
            as_spacing([1, numpy.inf], 2)

    def test_bad_shape(self):
        with self.assertRaises(ConfigurationError):
            Grid(())

        with self.assertRaises(ConfigurationError):
            Grid((3, 0))

    def test_flat_index_matches_numpy(self):
        grid = Grid((3, 4, 5))

        for index in [(0, 0, 0), (2, 3, 4), (1, 2, 3)]:
            self.assertEqual(grid.flat_index(index),
                             numpy.ravel_multi_index(index, grid.shape))
            self.assertEqual(grid.unravel(grid.flat_index(index)), index)

        with self.assertRaises(ConfigurationError):
            grid.flat_index((3, 0, 0))

        with self.assertRaises(ConfigurationError):
            grid.flat_index((0, 0))

    def test_shift(self):
        grid = Grid((3, 4))
        flat = numpy.arange(grid.size)

        neighbor, valid = grid.shift(flat, 1, +1)
        jj = numpy.indices(grid.shape)[1].ravel()

        self.assertTrue((valid == (jj < 3)).all())
        self.assertTrue((neighbor[valid] == flat[valid] + 1).all())
        self.assertTrue((neighbor[~valid] == flat[~valid]).all())

        neighbor, valid = grid.shift(flat, 0, -1)
        self.assertEqual(valid.sum(), 8)
        self.assertTrue((neighbor[valid] == flat[valid] - 4).all())

    def test_neighbors(self):
        grid = Grid((3, 4))

        corner = sorted(n for _, n in grid.neighbors(0))
        self.assertEqual(corner, [1, 4])

        center = sorted(n for _, n in grid.neighbors(grid.flat_index((1, 1))))
        self.assertEqual(center, [1, 4, 6, 9])

    def test_equality_and_dx_readonly(self):
        grid = Grid((3, 4), dx=[1, 2])

        self.assertEqual(grid, Grid((3, 4), dx=[1., 2.]))
        self.assertNotEqual(grid, Grid((3, 4)))

        with self.assertRaises(ValueError):
            grid.dx[0] = 5.0

    def test_check_field(self):
        grid = Grid((3, 4))
        grid.check_field(numpy.zeros((3, 4)))

        with self.assertRaises(ConfigurationError):
            grid.check_field(numpy.zeros((4, 3)), name='speed')

    def test_from_array(self):
        grid = Grid.from_array(numpy.zeros((5, 6, 7)), dx=[1, 2, 3])

        self.assertEqual(grid, Grid((5, 6, 7), dx=[1, 2, 3]))
        self.assertEqual(grid.size, 210)

        with self.assertRaises(ConfigurationError):
            Grid.from_array(numpy.zeros((5, 6)), dx=[1.0])
