import numpy

from lsgac.core.exception import ConfigurationError
from lsgac.initializer.initializer_base import InitializerBase
from lsgac.util.distance_transform import distance_transform


class MaskInitializer(InitializerBase):
    """ Initialize the zero level set to the boundary of a binary mask; the
    level set is the signed distance to it (negative inside the mask)
    """

    def __init__(self, mask):
        self.mask = numpy.asarray(mask, dtype=bool)

    def initialize(self, img, dx):

        if self.mask.shape != img.shape:
            msg = "`mask` was shape {} but should be {}"
            raise ConfigurationError(msg.format(self.mask.shape, img.shape))

        arr = 1.0 - 2.0 * self.mask.astype(float)
        dist, _ = distance_transform(arr, band=0, dx=dx)

        return dist
