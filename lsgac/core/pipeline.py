""" The complete geodesic active contour segmentation of an image as a fixed
sequence of stages:

    smoothing -> gradient -> speed -> evolution -> threshold
                       initialization --^

Each stage owns its parameters and its output. Changing a parameter (or the
image, or the seeds) marks the owning stage and every stage downstream of it
dirty; `update` recomputes only the dirty stages, in order.
"""
from collections import namedtuple
import logging
import numbers

import numpy

from lsgac.core.exception import (
    ConfigurationError, LevelSetError, NumericalInstability)
from lsgac.core.grid import as_spacing
from lsgac.evolution.evolver import LevelSetEvolver
from lsgac.feature import speed as sp
from lsgac.initializer.provided.seeded import SeededInitializer


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)

# Pipeline statuses
SUCCEEDED = 'succeeded'
FAILED = 'failed'

# Error kinds of a failed update
CONFIGURATION = 'configuration'
NUMERICAL_INSTABILITY = 'numerical-instability'

PipelineResult = namedtuple(
    'PipelineResult',
    ['status', 'error_kind', 'error', 'mask', 'evolution', 'recomputed'])

STAGES = ('smoothing', 'gradient', 'speed',
          'initialization', 'evolution', 'threshold')

# Stages whose output each stage reads
DEPENDENCIES = {
    'smoothing': (),
    'gradient': ('smoothing',),
    'speed': ('gradient',),
    'initialization': (),
    'evolution': ('speed', 'initialization'),
    'threshold': ('evolution',),
}

DEFAULT_PARAMETERS = {
    # smoothing
    'smoothing_iterations': 5,
    'smoothing_time_step': 0.125,
    'smoothing_conductance': 3.0,
    # gradient
    'sigma': 1.0,
    # speed
    'alpha': -0.5,
    'beta': 3.0,
    # initialization
    'initial_distance': 5.0,
    'offset': 0.0,
    # evolution
    'curvature_scale': 1.0,
    'propagation_scale': 1.0,
    'advection_scale': 1.0,
    'maximum_rms_error': 0.02,
    'max_iterations': 800,
    'time_step': None,
    # threshold
    'lower_threshold': -numpy.inf,
    'upper_threshold': 0.0,
}

PARAMETER_STAGE = {
    'smoothing_iterations': 'smoothing',
    'smoothing_time_step': 'smoothing',
    'smoothing_conductance': 'smoothing',
    'sigma': 'gradient',
    'alpha': 'speed',
    'beta': 'speed',
    'initial_distance': 'initialization',
    'offset': 'initialization',
    'curvature_scale': 'evolution',
    'propagation_scale': 'evolution',
    'advection_scale': 'evolution',
    'maximum_rms_error': 'evolution',
    'max_iterations': 'evolution',
    'time_step': 'evolution',
    'lower_threshold': 'threshold',
    'upper_threshold': 'threshold',
}


def downstream(stage):
    """ The stage and every stage that (transitively) reads its output, in
    execution order
    """
    affected = {stage}
    for other in STAGES:
        if any(dep in affected for dep in DEPENDENCIES[other]):
            affected.add(other)
    return [s for s in STAGES if s in affected]


class GeodesicActiveContourPipeline:
    """ Segment an image with a geodesic active contour grown from seed
    points

    Example
    -------
    >>> pipeline = GeodesicActiveContourPipeline(img, [(30, 30)], alpha=-1.0)
    >>> result = pipeline.update()
    >>> if result.status == SUCCEEDED:
    ...     mask = result.mask
    """
    def __init__(self, img, seeds, dx=None, **parameters):
        """ Initialize a pipeline

        Parameters
        ----------
        img: ndarray
            The image to segment

        seeds: list of tuple of int
            Grid indices inside the object. Each starts the contour at
            distance `initial_distance` around it.

        dx: array-like, default=None
            The spacing along each axis; ones if None

        **parameters:
            Overrides of `DEFAULT_PARAMETERS`

        """
        self.parameters = dict(DEFAULT_PARAMETERS)
        self._dirty = set(STAGES)

        self.set_image(img, dx=dx)
        self.set_seeds(seeds)
        self.set_parameters(**parameters)

        self.smoothed = None
        self.gradient_magnitude = None
        self.speed = None
        self.initial_phi = None
        self.evolution = None
        self.mask = None

    def set_image(self, img, dx=None):
        """ Replace the image (and its spacing); every stage reruns """
        img = numpy.asarray(img)

        if img.ndim == 0:
            raise ConfigurationError("`img` must have at least one dimension")

        if not numpy.issubdtype(img.dtype, numpy.number):
            msg = "`img` must be numeric (got dtype {})"
            raise ConfigurationError(msg.format(img.dtype))

        self.img = img.astype(float)
        self.dx = as_spacing(dx, img.ndim)
        self._mark_dirty('smoothing')
        self._mark_dirty('initialization')

    def set_seeds(self, seeds):
        """ Replace the seed points """
        try:
            self.seeds = [tuple(int(i) for i in seed) for seed in seeds]
        except (TypeError, ValueError):
            msg = "Seeds must be sequences of integer indices (got {!r})"
            raise ConfigurationError(msg.format(seeds))
        self._mark_dirty('initialization')

    def set_parameters(self, **parameters):
        """ Update parameters by name, marking the stages that read them
        dirty. Unknown names raise `ConfigurationError`.
        """
        unknown = sorted(set(parameters) - set(DEFAULT_PARAMETERS))
        if unknown:
            msg = "Unknown parameter(s): {}"
            raise ConfigurationError(msg.format(', '.join(unknown)))

        for name, value in parameters.items():
            self.parameters[name] = value
            self._mark_dirty(PARAMETER_STAGE[name])

    @property
    def dirty(self):
        """ The stages `update` would recompute, in order """
        return tuple(s for s in STAGES if s in self._dirty)

    def _mark_dirty(self, stage):
        self._dirty.update(downstream(stage))

    def update(self, on_iterate=None, cancel=None):
        """ Recompute the dirty stages

        Parameters
        ----------
        on_iterate: callable or list of callables, default=None
            Passed on to :meth:`LevelSetEvolver.evolve`

        cancel: object with an `is_set()` method, default=None
            Passed on to :meth:`LevelSetEvolver.evolve`

        Returns
        -------
        result: PipelineResult
            On success, the `mask` and the `evolution` result. On failure,
            `status` is `FAILED`, `error_kind` one of `CONFIGURATION` or
            `NUMERICAL_INSTABILITY` and `error` the exception; the failed
            stage and those downstream of it stay dirty. `recomputed` lists
            the stages that completed in this call.
        """
        recomputed = []

        for stage in STAGES:
            if stage not in self._dirty:
                continue

            logger.debug("Running stage `{}`".format(stage))

            try:
                if stage == 'evolution':
                    self._run_evolution(on_iterate=on_iterate, cancel=cancel)
                else:
                    getattr(self, '_run_' + stage)()
            except LevelSetError as e:
                if isinstance(e, NumericalInstability):
                    error_kind = NUMERICAL_INSTABILITY
                else:
                    error_kind = CONFIGURATION

                msg = "Stage `{}` failed ({}): {}"
                logger.error(msg.format(stage, error_kind, e))

                return PipelineResult(
                    status=FAILED, error_kind=error_kind, error=e,
                    mask=None, evolution=None, recomputed=tuple(recomputed))

            self._dirty.discard(stage)
            recomputed.append(stage)

        return PipelineResult(
            status=SUCCEEDED, error_kind=None, error=None, mask=self.mask,
            evolution=self.evolution, recomputed=tuple(recomputed))

    def _parameter(self, name, integer=False, finite=True, optional=False):
        """ The value of parameter `name`, raising `ConfigurationError` if it
        is not a (finite, integer) number
        """
        value = self.parameters[name]

        if value is None and optional:
            return value

        if integer:
            if (isinstance(value, bool) or
                    not isinstance(value, numbers.Integral)):
                msg = "Parameter `{}` must be an integer (got {!r})"
                raise ConfigurationError(msg.format(name, value))
            return int(value)

        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            msg = "Parameter `{}` must be a number (got {!r})"
            raise ConfigurationError(msg.format(name, value))

        value = float(value)

        if numpy.isnan(value) or (finite and numpy.isinf(value)):
            msg = "Parameter `{}` must be {} (got {})"
            raise ConfigurationError(msg.format(
                name, 'finite' if finite else 'a number', value))

        return value

    def _run_smoothing(self):
        self.smoothed = sp.curvature_anisotropic_diffusion(
            self.img,
            n_iterations=self._parameter('smoothing_iterations', integer=True),
            time_step=self._parameter('smoothing_time_step'),
            conductance=self._parameter('smoothing_conductance'),
            dx=self.dx)

    def _run_gradient(self):
        self.gradient_magnitude = sp.gradient_magnitude(
            self.smoothed, sigma=self._parameter('sigma'), dx=self.dx)

    def _run_speed(self):
        self.speed = sp.sigmoid(
            self.gradient_magnitude, alpha=self._parameter('alpha'),
            beta=self._parameter('beta'))

    def _run_initialization(self):
        if not self.seeds:
            raise ConfigurationError("At least one seed is required")

        distance = self._parameter('initial_distance')
        seeds = [(seed, -distance) for seed in self.seeds]
        initializer = SeededInitializer(
            seeds, offset=self._parameter('offset'))

        self.initial_phi = initializer(self.img, dx=self.dx)

    def _run_evolution(self, on_iterate=None, cancel=None):
        evolver = LevelSetEvolver(
            curvature_scale=self._parameter('curvature_scale'),
            propagation_scale=self._parameter('propagation_scale'),
            advection_scale=self._parameter('advection_scale'),
            max_iterations=self._parameter('max_iterations', integer=True),
            maximum_rms_error=self._parameter('maximum_rms_error'),
            time_step=self._parameter('time_step', optional=True),
            dx=self.dx)

        self.evolution = evolver.evolve(
            self.initial_phi, self.speed, on_iterate=on_iterate, cancel=cancel)

    def _run_threshold(self):
        self.mask = sp.threshold(
            self.evolution.phi,
            lower=self._parameter('lower_threshold', finite=False),
            upper=self._parameter('upper_threshold', finite=False))
