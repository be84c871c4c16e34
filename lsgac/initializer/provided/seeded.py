import logging

import numpy

from lsgac.eikonal.fast_marching import FastMarchingSolver, initial_level_set
from lsgac.initializer.initializer_base import InitializerBase


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)


class SeededInitializer(InitializerBase):
    """ Initialize the level set from seed points by fast marching: the
    level set is the arrival time from the seeds minus `offset`.

    With seed values `-d` the zero level set is a distance `d` around each
    seed (for unit speed).
    """

    def __init__(self, seeds, offset=0.0, speed=1.0,
                 stopping_value=numpy.inf):
        """
        Parameters
        ----------
        seeds: iterable of (index, value)
            See :class:`lsgac.eikonal.fast_marching.FastMarchingSolver`

        offset: float, default=0.0
            Subtracted from the arrival times

        speed: float or ndarray, default=1.0
            The fast marching speed

        stopping_value: float, default=inf
            Points with larger arrival times are left outside (`inf`)
        """
        self.seeds = list(seeds)
        self.offset = offset
        self.speed = speed
        self.stopping_value = stopping_value

    def initialize(self, img, dx):
        solver = FastMarchingSolver(
            img.shape, dx=dx, stopping_value=self.stopping_value)

        result = solver.solve(self.seeds, speed=self.speed)

        msg = "Initial level set from {} seeds (offset = {})"
        logger.debug(msg.format(len(self.seeds), self.offset))

        return initial_level_set(result.arrival, offset=self.offset)
