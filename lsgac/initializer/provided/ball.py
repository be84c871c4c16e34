import numpy

from lsgac.core.exception import ConfigurationError
from lsgac.initializer.initializer_base import InitializerBase


class BallInitializer(InitializerBase):
    """ The signed distance to a sphere, negative inside """

    def __init__(self, radius=10, location=None):
        """
        Parameters
        ----------
        radius: float, default=10
            The radius in the units of `dx`

        location: array-like, default=None
            The center as (possibly fractional) indices; the center of the
            image if None
        """
        if radius <= 0:
            msg = "`radius` must be positive (got {})"
            raise ConfigurationError(msg.format(radius))

        self.radius = radius
        self.location = location

    def initialize(self, img, dx):
        if self.location is None:
            center = 0.5 * (numpy.array(img.shape) - 1)
        else:
            center = numpy.asarray(self.location, dtype=float).ravel()
            if len(center) != img.ndim:
                msg = "`location` has {} coordinates but the image has {} axes"
                raise ConfigurationError(msg.format(len(center), img.ndim))

        # One open grid per axis; the sum broadcasts to the image shape
        axes = numpy.ogrid[tuple(slice(0, n) for n in img.shape)]
        squared = sum(((a - c) * h)**2 for a, c, h in zip(axes, center, dx))

        return numpy.sqrt(squared) - self.radius
