import abc

import numpy

from lsgac.core.grid import as_spacing


class InitializerBase(abc.ABC):
    """ The abstract base class for level set initializer functions.
    """

    def __init__(self):
        """ Supply the initialization instance with attributes that are
        necessary for re-use (e.g., a radius or a set of seeds)
        """
        pass

    def __call__(self, img, dx=None):
        """ The __call__ function handles input validation, etc. This
        function is used internally and calls the user-implemented
        `initialize` member function.

        Returns
        -------
        phi: numpy.ndarray, dtype=float
            The initial level set function, negative inside the initial
            contour
        """
        img = numpy.asarray(img)

        # Validate the delta terms
        dx = as_spacing(dx, img.ndim)

        # Compute the initializer
        phi = self.initialize(img=img, dx=dx)

        # Validate the returned level set
        if not isinstance(phi, numpy.ndarray):
            msg = ("Returned initializer was type {} but "
                   "should be numpy.ndarray")
            raise TypeError(msg.format(type(phi)))

        if not numpy.issubdtype(phi.dtype, numpy.number):
            msg = "Returned initializer was dtype {} but should be numeric"
            raise TypeError(msg.format(phi.dtype))

        if phi.shape != img.shape:
            msg = "Returned initializer was shape {} but should be {}"
            raise ValueError(msg.format(phi.shape, img.shape))

        phi = phi.astype(float)

        if numpy.isnan(phi).any():
            raise ValueError("Returned initializer contains NaN values")

        return phi

    @abc.abstractmethod
    def initialize(self, img, dx):
        raise NotImplementedError
