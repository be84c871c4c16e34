import unittest

import numpy as np
from skimage.morphology import disk

from lsgac.core.exception import ConfigurationError
from lsgac.initializer.provided.mask import MaskInitializer


class TestMaskInitialize(unittest.TestCase):

    def test_inside_negative(self):
        mask = np.pad(disk(6), 5, 'constant').astype(bool)
        img = np.zeros(mask.shape)

        phi = MaskInitializer(mask)(img)

        self.assertTrue(((phi <= 0) == mask).all())

    def test_half_pixel_distance(self):
        mask = np.zeros((20, 20), dtype=bool)
        mask[5:15, 5:15] = True

        phi = MaskInitializer(mask)(np.zeros(mask.shape))

        # The zero level set lies halfway between boundary pixels
        self.assertAlmostEqual(phi[10, 5], -0.5)
        self.assertAlmostEqual(phi[10, 4], 0.5)

    def test_empty_mask(self):
        mask = np.zeros((8, 8), dtype=bool)
        phi = MaskInitializer(mask)(np.zeros(mask.shape))
        self.assertTrue((phi == np.inf).all())

    def test_shape_mismatch(self):
        with self.assertRaises(ConfigurationError):
            MaskInitializer(np.ones((3, 3)))(np.zeros((3, 4)))
