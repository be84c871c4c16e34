import unittest

import numpy as np

from lsgac.score_functions import dice, jaccard


class TestScoreFunctions(unittest.TestCase):

    def test_jaccard_half_overlap(self):
        phi = np.ones((4, 4))
        phi[:, :2] = -1

        seg = np.zeros((4, 4), dtype=bool)
        seg[:, 1:3] = True

        # Intersection is one column, union is three
        self.assertAlmostEqual(jaccard(phi, seg), 1.0 / 3.0)
        self.assertAlmostEqual(dice(phi, seg), 0.5)

    def test_both_empty(self):
        phi = np.ones((3, 3))
        seg = np.zeros((3, 3), dtype=bool)
        self.assertEqual(jaccard(phi, seg), 1.0)

    def test_threshold(self):
        phi = np.arange(10, dtype=float)
        seg = phi <= 4
        self.assertEqual(jaccard(phi, seg, threshold=4.0), 1.0)
        self.assertLess(jaccard(phi, seg), 1.0)

    def test_seg_dtype(self):
        with self.assertRaises(ValueError):
            jaccard(np.ones(3), np.ones(3))

    def test_shape_mismatch(self):
        with self.assertRaises(ValueError):
            dice(np.ones((3, 3)), np.zeros((3, 4), dtype=bool))

    def test_dice_matches_jaccard(self):
        rs = np.random.RandomState(1234)
        phi = rs.randn(20, 20)
        seg = rs.rand(20, 20) > 0.5

        j = jaccard(phi, seg)
        self.assertAlmostEqual(dice(phi, seg), 2 * j / (1 + j))
        self.assertEqual(dice(np.ones(3), np.zeros(3, dtype=bool)), 1.0)


if __name__ == '__main__':
    unittest.main()
