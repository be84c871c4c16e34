""" Finite difference stencils evaluated only at a subset of grid points.

The `*_at` functions take a flat array of field values, the
:class:`lsgac.core.grid.Grid` it lives on and the flat indices at which to
evaluate; their cost is proportional to the number of indices. The
array-level functions (`gradient_centered`, etc.) evaluate where `mask` is
true and return full arrays that are zero elsewhere.

Boundaries: centered first derivatives are one-sided on the edge (as
`numpy.gradient`), second derivatives replicate the edge value (zero flux),
and a missing one-sided difference is replaced by the other one.
"""
import numpy

from lsgac.core.exception import ConfigurationError
from lsgac.core.grid import Grid


# Regularizes the curvature term where the gradient vanishes
MIN_GRADIENT_MAGNITUDE_SQUARED = 1e-10


def central_differences(values, grid, indices):
    """ Centered difference approximations of the partial derivatives at
    `indices`, one-sided where a neighbor falls outside of the grid

    Returns
    -------
    gradients: list of numpy.ndarray
        One array per axis, each of shape `indices.shape`
    """
    gradients = []

    for axis in range(grid.ndim):
        upper, valid_upper = grid.shift(indices, axis, +1)
        lower, valid_lower = grid.shift(indices, axis, -1)

        width = valid_upper.astype(float) + valid_lower.astype(float)
        width[width == 0] = 1.0

        gradients.append(
            (values[upper] - values[lower]) / (width * grid.dx[axis]))

    return gradients


def one_sided_differences(values, grid, indices, axis):
    """ Forward and backward differences along `axis` at `indices`

    Returns
    -------
    forward, backward: numpy.ndarray, numpy.ndarray
    """
    upper, valid_upper = grid.shift(indices, axis, +1)
    lower, valid_lower = grid.shift(indices, axis, -1)

    center = values[indices]
    forward = (values[upper] - center) / grid.dx[axis]
    backward = (center - values[lower]) / grid.dx[axis]

    return (numpy.where(valid_upper, forward, backward),
            numpy.where(valid_lower, backward, forward))


def curvature_at(values, grid, indices):
    """ Mean curvature times gradient magnitude, :math:`\\kappa \\|D u\\|`,
    from central differences:

    .. math::
        \\frac{\\sum_i \\sum_{j \\ne i}
              (u_{jj} u_i^2 - u_i u_j u_{ij})}{\\|D u\\|^2 + \\epsilon}

    Positive where the region `u <= 0` is locally convex.
    """
    ndim = grid.ndim
    dx = grid.dx
    center = values[indices]

    first = central_differences(values, grid, indices)

    shifted = {}
    for axis in range(ndim):
        for offset in (-1, 1):
            shifted[axis, offset] = grid.shift(indices, axis, offset)

    second = []
    for axis in range(ndim):
        upper = shifted[axis, 1][0]
        lower = shifted[axis, -1][0]
        second.append(
            (values[upper] - 2*center + values[lower]) / dx[axis]**2)

    numerator = numpy.zeros(indices.shape, dtype=float)

    for i in range(ndim):
        for j in range(i+1, ndim):
            cross = _cross_derivative(values, grid, shifted, i, j)
            numerator += second[j] * first[i]**2 + second[i] * first[j]**2
            numerator -= 2 * first[i] * first[j] * cross

    gradient_magnitude_squared = sum(g**2 for g in first)

    return numerator / (gradient_magnitude_squared +
                        MIN_GRADIENT_MAGNITUDE_SQUARED)


def _cross_derivative(values, grid, shifted, i, j):
    """ Centered mixed derivative u_ij """
    (upper_i, valid_upper_i) = shifted[i, 1]
    (lower_i, valid_lower_i) = shifted[i, -1]

    width_i = valid_upper_i.astype(float) + valid_lower_i.astype(float)
    width_i[width_i == 0] = 1.0

    corners = 0.0
    width_j = None
    for neighbor_i, sign_i in ((upper_i, 1), (lower_i, -1)):
        upper_j, valid_upper_j = grid.shift(neighbor_i, j, +1)
        lower_j, valid_lower_j = grid.shift(neighbor_i, j, -1)
        corners = corners + sign_i * (values[upper_j] - values[lower_j])
        if width_j is None:
            width_j = valid_upper_j.astype(float) + valid_lower_j.astype(float)
            width_j[width_j == 0] = 1.0

    return corners / (width_i * width_j * grid.dx[i] * grid.dx[j])


def gradient_magnitude_osher_sethian_at(values, grid, indices, speed):
    """ Upwind gradient magnitude for the front motion

    .. math::
        u_t + F \\| D u \\| = 0

    of Osher and Sethian [1], where `speed` (F) positive moves the front
    in the outward normal direction (the region `u <= 0` expands) and
    negative moves it inward. Zero where the speed is zero.

    [1]: Level Set Methods. Evolving Interfaces in Geometry,
         Fluid Mechanics, Computer Vision, and Materials Science
         J.A. Sethian, Cambridge University Press, 1996
    """
    plus = numpy.zeros(indices.shape, dtype=float)
    minus = numpy.zeros(indices.shape, dtype=float)

    for axis in range(grid.ndim):
        forward, backward = one_sided_differences(values, grid, indices, axis)

        plus += (numpy.maximum(backward, 0)**2 +
                 numpy.minimum(forward, 0)**2)
        minus += (numpy.minimum(backward, 0)**2 +
                  numpy.maximum(forward, 0)**2)

    speed = numpy.broadcast_to(speed, indices.shape)
    gradient_magnitude = numpy.zeros(indices.shape, dtype=float)
    gradient_magnitude[speed > 0] = numpy.sqrt(plus[speed > 0])
    gradient_magnitude[speed < 0] = numpy.sqrt(minus[speed < 0])

    return gradient_magnitude


def advection_at(values, grid, indices, velocity):
    """ Upwind approximation of :math:`v \\cdot D u` for the transport
    equation :math:`u_t + v \\cdot D u = 0`: the backward difference is used
    along axes where the velocity component is positive, the forward
    difference elsewhere.

    Parameters
    ----------
    velocity: list of numpy.ndarray
        One component per axis, each of shape `indices.shape`
    """
    term = numpy.zeros(indices.shape, dtype=float)

    for axis in range(grid.ndim):
        forward, backward = one_sided_differences(values, grid, indices, axis)
        component = velocity[axis]
        term += numpy.where(component > 0,
                            component * backward,
                            component * forward)

    return term


def _validate(arr, mask, dx):
    if arr.dtype != float:
        raise ConfigurationError("`arr` must be float type.")

    if mask is not None:
        if numpy.shape(mask) != arr.shape:
            raise ConfigurationError(
                "Shape mismatch between `mask` and `arr`.")
    else:
        mask = numpy.ones(arr.shape, dtype=bool)

    grid = Grid(arr.shape, dx=dx)
    indices = numpy.flatnonzero(mask)

    return grid, indices


def gradient_centered(arr, mask=None, dx=None,
                      return_gradient_magnitude=True,
                      normalize=False):
    """
    Compute the centered difference approximations of the partial
    derivatives of `arr` along each coordinate axis, computed only
    where `mask` is true.

    Parameters
    ----------
    arr: ndarray, dtype=float
        The gradient of `arr` is returned.

    mask: ndarray, dtype=bool, same shape as `arr`, default=None
        The gradient of `arr` is only computed where `mask` is true. If
        None (default), then mask True everywhere.

    dx: ndarray, dtype=float, len=arr.ndim
        These indicate the "delta" or spacing terms along each axis.
        If None (default), then spacing is 1.0 along each axis.

    return_gradient_magnitude: bool, default=True
        If True, the gradient magnitude is computed and returned also.

    normalize: bool, default=False
        If True, then the gradient terms are normalized so that the
        gradient magnitude is one if computed over the gradient terms.
        Note that if `return_gradient_magnitude` is True, the gradient
        magnitude is the value prior to normalization.

    Returns
    -------
    [gradient_1, ... , gradient_n], gradient_magnitude: list, ndarray
        Returns the gradient along each axis approximated by centered
        differences (only computed where mask is True). The gradient magnitude
        is optionally returned.
    """
    grid, indices = _validate(arr, mask, dx)
    values = arr.ravel()

    gradients_at = central_differences(values, grid, indices)
    magnitude_at = numpy.sqrt(sum(g**2 for g in gradients_at))

    if normalize:
        nonzero = magnitude_at > 0
        for g in gradients_at:
            g[nonzero] /= magnitude_at[nonzero]

    gradients = []
    for g in gradients_at:
        full = numpy.zeros(grid.size)
        full[indices] = g
        gradients.append(full.reshape(arr.shape))

    if return_gradient_magnitude:
        gradient_magnitude = numpy.zeros(grid.size)
        gradient_magnitude[indices] = magnitude_at
        return gradients, gradient_magnitude.reshape(arr.shape)
    else:
        return gradients


def gradient_magnitude_osher_sethian(arr, nu, mask=None, dx=None):
    """ Array version of :func:`gradient_magnitude_osher_sethian_at`

    Parameters
    ----------
    arr: ndarray, dtype=float
        The level set function

    nu: ndarray, same shape as `arr`
        The normal speed; positive values expand the region `arr <= 0`

    mask: ndarray, dtype=bool, default=None
        Only computed where True (everywhere if None)

    dx: ndarray, dtype=float, len=arr.ndim, default=None
        The spacing terms; ones if None

    Returns
    -------
    gradient_magnitude: ndarray
        The velocity-dependent gradient magnitude approximation.
    """
    grid, indices = _validate(arr, mask, dx)
    nu = numpy.broadcast_to(numpy.asarray(nu, dtype=float), arr.shape)

    gradient_magnitude = numpy.zeros(grid.size)
    gradient_magnitude[indices] = gradient_magnitude_osher_sethian_at(
        arr.ravel(), grid, indices, nu.ravel()[indices])

    return gradient_magnitude.reshape(arr.shape)


def curvature(arr, mask=None, dx=None):
    """ Array version of :func:`curvature_at` """
    grid, indices = _validate(arr, mask, dx)

    result = numpy.zeros(grid.size)
    result[indices] = curvature_at(arr.ravel(), grid, indices)

    return result.reshape(arr.shape)


def advection(arr, velocity, mask=None, dx=None):
    """ Array version of :func:`advection_at`; `velocity` is a list of
    arrays, one per axis, each of the same shape as `arr`
    """
    grid, indices = _validate(arr, mask, dx)

    if len(velocity) != arr.ndim:
        raise ConfigurationError("`velocity` needs one component per axis.")

    components = [numpy.asarray(v, dtype=float).ravel()[indices]
                  for v in velocity]

    result = numpy.zeros(grid.size)
    result[indices] = advection_at(arr.ravel(), grid, indices, components)

    return result.reshape(arr.shape)
