import unittest

import numpy

from lsgac.core.exception import ConfigurationError, NumericalInstability
from lsgac.core import pipeline as pl
from lsgac.data.dim2 import disk
from lsgac.evolution.evolver import CANCELLED
from lsgac.score_functions import jaccard


class _AlwaysSet:
    def is_set(self):
        return True


class TestPipeline(unittest.TestCase):

    def setUp(self):
        rs = numpy.random.RandomState(1234)
        self.img, self.seg, self.info = disk.make(
            n=41, r=10, sigma_noise=0.05, rs=rs)
        self.seeds = [(20, 20)]

    def make_pipeline(self, **parameters):
        defaults = dict(alpha=-0.02, beta=0.1, max_iterations=200)
        defaults.update(parameters)
        return pl.GeodesicActiveContourPipeline(
            self.img, self.seeds, **defaults)

    def test_downstream(self):
        self.assertEqual(
            pl.downstream('smoothing'),
            ['smoothing', 'gradient', 'speed', 'evolution', 'threshold'])
        self.assertEqual(
            pl.downstream('initialization'),
            ['initialization', 'evolution', 'threshold'])
        self.assertEqual(pl.downstream('threshold'), ['threshold'])

    def test_segments_disk(self):
        pipeline = self.make_pipeline()
        result = pipeline.update()

        self.assertEqual(result.status, pl.SUCCEEDED)
        self.assertIsNone(result.error_kind)
        self.assertIsNone(result.error)
        self.assertEqual(result.recomputed, pl.STAGES)

        self.assertEqual(result.mask.dtype, bool)
        self.assertEqual(result.mask.shape, self.img.shape)

        # The contour grows from the seed to the disk edge
        initial_area = (pipeline.initial_phi <= 0).sum()
        self.assertGreater(result.mask.sum(), 2 * initial_area)

        self.assertGreater(jaccard(result.evolution.phi, self.seg), 0.8)

    def test_speed_image_is_small_on_edges(self):
        pipeline = self.make_pipeline(max_iterations=0)
        pipeline.update()

        self.assertTrue((pipeline.speed >= 0).all())
        self.assertTrue((pipeline.speed <= 1).all())

        # Center of the disk versus a point on its boundary
        self.assertGreater(pipeline.speed[20, 20], 0.9)
        self.assertLess(pipeline.speed[20, 30], 0.2)

    def test_dirty_tracking(self):
        pipeline = self.make_pipeline(max_iterations=20)
        self.assertEqual(pipeline.dirty, pl.STAGES)

        first = pipeline.update()
        self.assertEqual(first.recomputed, pl.STAGES)
        self.assertEqual(pipeline.dirty, ())

        # Nothing changed
        again = pipeline.update()
        self.assertEqual(again.status, pl.SUCCEEDED)
        self.assertEqual(again.recomputed, ())
        self.assertIs(again.evolution, first.evolution)

        pipeline.set_parameters(upper_threshold=-1.0)
        result = pipeline.update()
        self.assertEqual(result.recomputed, ('threshold',))
        self.assertLessEqual(result.mask.sum(), first.mask.sum())

        pipeline.set_parameters(propagation_scale=0.5)
        result = pipeline.update()
        self.assertEqual(result.recomputed, ('evolution', 'threshold'))

        pipeline.set_parameters(sigma=1.5)
        result = pipeline.update()
        self.assertEqual(
            result.recomputed,
            ('gradient', 'speed', 'evolution', 'threshold'))

        pipeline.set_seeds([(18, 22)])
        result = pipeline.update()
        self.assertEqual(
            result.recomputed,
            ('initialization', 'evolution', 'threshold'))

        pipeline.set_image(self.img[::-1])
        self.assertEqual(pipeline.dirty, pl.STAGES)

    def test_unknown_parameter(self):
        pipeline = self.make_pipeline()

        with self.assertRaises(ConfigurationError):
            pipeline.set_parameters(not_a_parameter=1.0)

        with self.assertRaises(ConfigurationError):
            self.make_pipeline(gamma=1.0)

    def test_configuration_error_result(self):
        pipeline = self.make_pipeline(max_iterations=5)
        self.assertEqual(pipeline.update().status, pl.SUCCEEDED)

        pipeline.set_parameters(alpha=0.0)
        result = pipeline.update()

        self.assertEqual(result.status, pl.FAILED)
        self.assertEqual(result.error_kind, pl.CONFIGURATION)
        self.assertIsInstance(result.error, ConfigurationError)
        self.assertIsNone(result.mask)
        self.assertEqual(result.recomputed, ())
        self.assertEqual(pipeline.dirty, ('speed', 'evolution', 'threshold'))

        pipeline.set_parameters(alpha=-0.02)
        result = pipeline.update()
        self.assertEqual(result.status, pl.SUCCEEDED)
        self.assertEqual(result.recomputed, ('speed', 'evolution', 'threshold'))

    def test_malformed_parameter_values(self):
        cases = [
            ('smoothing_iterations', 2.5, ()),
            ('sigma', None, ('smoothing',)),
            ('alpha', numpy.nan, ('smoothing', 'gradient')),
            ('initial_distance', 'a', ('smoothing', 'gradient', 'speed')),
            ('max_iterations', '5', pl.STAGES[:4]),
            ('upper_threshold', None, pl.STAGES[:5]),
        ]

        for name, value, completed in cases:
            pipeline = self.make_pipeline(max_iterations=5)
            pipeline.set_parameters(**{name: value})

            result = pipeline.update()

            self.assertEqual(result.status, pl.FAILED)
            self.assertEqual(result.error_kind, pl.CONFIGURATION)
            self.assertIsInstance(result.error, ConfigurationError)
            self.assertIn(name, str(result.error))
            self.assertEqual(result.recomputed, completed)

    def test_malformed_seeds(self):
        with self.assertRaises(ConfigurationError):
            pl.GeodesicActiveContourPipeline(self.img, [('a', 1)])

        with self.assertRaises(ConfigurationError):
            pl.GeodesicActiveContourPipeline(self.img, [5])

    def test_seed_outside_image(self):
        pipeline = pl.GeodesicActiveContourPipeline(
            self.img, [(100, 100)], max_iterations=5)

        result = pipeline.update()

        self.assertEqual(result.status, pl.FAILED)
        self.assertEqual(result.error_kind, pl.CONFIGURATION)
        self.assertEqual(result.recomputed, ('smoothing', 'gradient', 'speed'))

    def test_numerical_instability_result(self):
        pipeline = self.make_pipeline(max_iterations=5)
        self.assertEqual(pipeline.update().status, pl.SUCCEEDED)

        pipeline.set_parameters(propagation_scale=1e5, time_step=1e308)

        with self.assertLogs('pipeline', level='ERROR'):
            result = pipeline.update()

        self.assertEqual(result.status, pl.FAILED)
        self.assertEqual(result.error_kind, pl.NUMERICAL_INSTABILITY)
        self.assertIsInstance(result.error, NumericalInstability)
        self.assertEqual(result.error.time_step, 1e308)
        self.assertEqual(result.recomputed, ())

    def test_cancelled_evolution(self):
        pipeline = self.make_pipeline()
        result = pipeline.update(cancel=_AlwaysSet())

        self.assertEqual(result.status, pl.SUCCEEDED)
        self.assertEqual(result.evolution.status, CANCELLED)
        self.assertEqual(result.evolution.iterations, 0)

    def test_bad_image(self):
        with self.assertRaises(ConfigurationError):
            pl.GeodesicActiveContourPipeline(
                numpy.array(['a', 'b']), [(0,)])

        with self.assertRaises(ConfigurationError):
            pl.GeodesicActiveContourPipeline(numpy.array(1.0), [()])


if __name__ == '__main__':
    unittest.main()
