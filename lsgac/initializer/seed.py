from collections import namedtuple

import numpy

from lsgac.core.exception import ConfigurationError


# A grid multi-index and the arrival time assigned to it
Seed = namedtuple('Seed', ['index', 'value'])


def normalize_seeds(seeds, grid):
    """ Validate seeds against `grid` and resolve duplicates

    Parameters
    ----------
    seeds: iterable of (index, value) pairs
        `index` is a multi-index into the grid and `value` the initial
        arrival time at that point

    grid: lsgac.core.grid.Grid
        The domain the seeds must lie in

    Returns
    -------
    seeds: list of (int, float)
        Pairs of (flat index, value) in order of first appearance. When an
        index occurs more than once, the smaller value is kept.
    """
    values = {}

    for seed in seeds:
        try:
            index, value = seed
        except (TypeError, ValueError):
            msg = "Seed {!r} is not an (index, value) pair"
            raise ConfigurationError(msg.format(seed))

        if numpy.ndim(index) != 1 or len(index) != grid.ndim:
            msg = "Seed index {!r} should have {} coordinates"
            raise ConfigurationError(msg.format(index, grid.ndim))

        flat = grid.flat_index(index)

        try:
            value = float(value)
        except (TypeError, ValueError):
            msg = "Seed value {!r} at index {} is not a number"
            raise ConfigurationError(msg.format(value, tuple(index)))

        if not numpy.isfinite(value):
            msg = "Seed value at index {} must be finite (got {})"
            raise ConfigurationError(msg.format(tuple(index), value))

        if flat in values:
            values[flat] = min(values[flat], value)
        else:
            values[flat] = value

    return list(values.items())


def center_of_mass_seed(seg, initial_distance=1.0):
    """ A seed at the (rounded) center of mass of a segmentation

    Parameters
    ----------
    seg: numpy.ndarray, dtype=bool
        A segmentation, e.g., a rough user-drawn region

    initial_distance: float, default=1.0
        The seed value is `-initial_distance`, so that the fast marching
        output crosses zero at that distance from the seed.

    Returns
    -------
    seed: Seed
    """
    seg = numpy.asarray(seg, dtype=bool)
    total = seg.sum()

    if total == 0:
        raise ConfigurationError("Segmentation is empty; no center of mass")

    indices = numpy.indices(seg.shape, dtype=float)
    center = [(ind*seg).sum() / total for ind in indices]

    index = tuple(int(round(c)) for c in center)

    return Seed(index=index, value=-float(initial_distance))
