import unittest

import numpy as np

from lsgac.core.exception import ConfigurationError
from lsgac.initializer.initializer_base import InitializerBase


class TestInitializeBase(unittest.TestCase):

    def test_call(self):

        random_state = np.random.RandomState(123)

        # Mock an initializer class
        class MyInitializer(InitializerBase):

            def initialize(self, img, dx):
                return -img

        image = random_state.randn(41, 50)

        initializer = MyInitializer()
        phi = initializer(image)

        self.assertEqual(phi.dtype, float)
        self.assertTrue(((phi <= 0) == (image >= 0)).all())

    def test_bad_return_type(self):

        class MyInitializer(InitializerBase):

            def initialize(self, img, dx):
                return img.tolist()

        with self.assertRaises(TypeError):
            MyInitializer()(np.zeros((3, 3)))

    def test_bad_return_shape(self):

        class MyInitializer(InitializerBase):

            def initialize(self, img, dx):
                return img[1:]

        with self.assertRaises(ValueError):
            MyInitializer()(np.zeros((3, 3)))

    def test_bad_dx(self):

        class MyInitializer(InitializerBase):

            def initialize(self, img, dx):
                return img

        with self.assertRaises(ConfigurationError):
            MyInitializer()(np.zeros((3, 3)), dx=[1.0])
