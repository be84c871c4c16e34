import numpy
import skfmm

from lsgac.core.exception import ConfigurationError
from lsgac.core.grid import as_spacing


def distance_transform(arr, band=0, dx=None):
    """ Signed distance to the zero level set of `arr` by scikit-fmm

    The sign of `arr` is kept: a field negative inside gives a distance
    negative inside, as the evolver expects.

    Parameters
    ----------
    arr: numpy.ndarray
        Any field whose zero level set marks the interface, e.g.,
        `1 - 2*mask` for a boolean mask

    band: float, default=0
        Only compute distances up to `band` from the interface; zero
        computes them everywhere

    dx: array-like, default=None
        The spacing along each axis; ones if None

    Returns
    -------
    dist, mask: numpy.ndarray (dtype=float), numpy.ndarray (dtype=bool)
        The signed distance and where it was computed

    Note
    ----
    A field without an interface has no distance: zeros everywhere give
    zeros (and a full `mask`), a field of one sign gives `+/- inf` (and an
    empty `mask`).
    """
    arr = numpy.asarray(arr, dtype=float)
    dx = as_spacing(dx, arr.ndim)

    if numpy.isnan(arr).any():
        raise ConfigurationError("`arr` contains NaN values")

    if band < 0:
        msg = "`band` must be non-negative (got {})"
        raise ConfigurationError(msg.format(band))

    if (arr == 0).all():
        return numpy.zeros_like(arr), numpy.ones(arr.shape, dtype=bool)

    positive = arr > 0
    if positive.all() or not positive.any():
        sign = 1.0 if positive.all() else -1.0
        dist = numpy.full(arr.shape, sign * numpy.inf)
        return dist, numpy.zeros(arr.shape, dtype=bool)

    if band > 0:
        dist = skfmm.distance(arr, dx=dx, narrow=band)
    else:
        dist = skfmm.distance(arr, dx=dx)

    # skfmm returns a masked array only when some points are outside of the
    # band
    computed = ~numpy.ma.getmaskarray(dist)
    dist = numpy.ma.getdata(dist).astype(float)

    return dist, computed
