import numpy

from lsgac.core.exception import ConfigurationError


def as_spacing(dx, ndim):
    """ Validate the delta (spacing) terms along each axis

    Parameters
    ----------
    dx: array-like or None
        The spacing along each axis. None gives all ones.

    ndim: int
        The number of dimensions that `dx` must match

    Returns
    -------
    dx: numpy.ndarray, dtype=float, shape=(ndim,)

    """
    if dx is None:
        return numpy.ones(ndim, dtype=float)

    dx = numpy.array(dx, dtype=float).ravel()

    if len(dx) != ndim:
        msg = "Number of dx terms ({}) doesn't match dimensions ({})"
        raise ConfigurationError(msg.format(len(dx), ndim))

    if not numpy.isfinite(dx).all() or (dx <= 0).any():
        msg = "dx terms must be positive and finite (got {})"
        raise ConfigurationError(msg.format(dx))

    return dx


class Grid:
    """ The geometry shared by every field: an N-dimensional shape with
    uniform spacing along each axis. Fields themselves are plain numpy
    arrays of shape `grid.shape`; internally points are addressed by their
    flat (C-order) index.
    """
    def __init__(self, shape, dx=None):
        shape = tuple(int(s) for s in shape)

        if len(shape) == 0:
            raise ConfigurationError("Grid must have at least one dimension")

        if any(s <= 0 for s in shape):
            msg = "Grid extents must be positive (got {})"
            raise ConfigurationError(msg.format(shape))

        self._shape = shape
        self._dx = as_spacing(dx, len(shape))
        self._dx.flags.writeable = False

        # Element strides for C-order flat indexing
        strides = [1] * len(shape)
        for axis in range(len(shape) - 2, -1, -1):
            strides[axis] = strides[axis + 1] * shape[axis + 1]
        self._strides = tuple(strides)

    @classmethod
    def from_array(cls, arr, dx=None):
        return cls(numpy.shape(arr), dx=dx)

    @property
    def shape(self):
        return self._shape

    @property
    def dx(self):
        return self._dx

    @property
    def strides(self):
        return self._strides

    @property
    def ndim(self):
        return len(self._shape)

    @property
    def size(self):
        return int(numpy.prod(self._shape))

    def __eq__(self, other):
        return (isinstance(other, Grid) and
                self.shape == other.shape and
                numpy.array_equal(self.dx, other.dx))

    def __repr__(self):
        return "Grid(shape={}, dx={})".format(self.shape, list(self.dx))

    def contains(self, index):
        """ True if the multi-index `index` lies inside the grid """
        if len(index) != self.ndim:
            return False
        return all(0 <= int(i) < s for i, s in zip(index, self._shape))

    def flat_index(self, index):
        """ Convert a multi-index to a flat index, raising
        `ConfigurationError` when it lies outside the grid
        """
        try:
            index = tuple(int(i) for i in index)
        except (TypeError, ValueError):
            msg = "Grid index {!r} is not a sequence of integers"
            raise ConfigurationError(msg.format(index))

        if not self.contains(index):
            msg = "Grid index {} is outside the grid of shape {}"
            raise ConfigurationError(msg.format(index, self.shape))

        return sum(i * s for i, s in zip(index, self._strides))

    def unravel(self, flat):
        """ Convert a flat index to a multi-index tuple """
        return tuple(int(i) for i in numpy.unravel_index(flat, self._shape))

    def coordinate(self, flat, axis):
        """ The coordinate along `axis` of the flat indices `flat` """
        return (flat // self._strides[axis]) % self._shape[axis]

    def shift(self, flat, axis, offset):
        """ Neighbor flat indices along `axis` at `offset` (+1 or -1).

        Returns
        -------
        neighbor, valid: numpy.ndarray (int), numpy.ndarray (bool)
            Neighbors that would fall outside of the grid are clamped to the
            point itself, with `valid` set False there.
        """
        flat = numpy.asarray(flat, dtype=numpy.int64)
        coordinate = self.coordinate(flat, axis) + offset
        valid = (coordinate >= 0) & (coordinate < self._shape[axis])
        neighbor = numpy.where(
            valid, flat + offset * self._strides[axis], flat)
        return neighbor, valid

    def neighbors(self, flat):
        """ Yield `(axis, neighbor)` for each in-grid face neighbor of the
        single flat index `flat`
        """
        for axis, (stride, extent) in enumerate(
                zip(self._strides, self._shape)):
            coordinate = (flat // stride) % extent
            if coordinate > 0:
                yield axis, flat - stride
            if coordinate < extent - 1:
                yield axis, flat + stride

    def check_field(self, arr, name='field'):
        """ Raise `ConfigurationError` unless `arr` matches the grid shape """
        if numpy.shape(arr) != self.shape:
            msg = "`{}` was shape {} but should be {}"
            raise ConfigurationError(
                msg.format(name, numpy.shape(arr), self.shape))
