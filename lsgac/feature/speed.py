""" The stages that turn a raw image into the feature (speed) image of a
geodesic active contour, and the final binarization of the level set.
"""
from functools import reduce
import logging
import numbers

import numpy
from scipy.ndimage import gaussian_filter1d
from scipy.special import expit

from lsgac.core.exception import ConfigurationError
from lsgac.core.grid import as_spacing
from lsgac.gradient import masked_gradient as mg


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)


def _shifted(padded, offsets):
    """ The edge-padded array shifted by `offsets` (-1, 0 or 1 per axis)
    back onto the unpadded grid
    """
    return padded[tuple(slice(1 + o, n - 1 + o)
                        for o, n in zip(offsets, padded.shape))]


def _face_gradients(img, dx):
    """ The gradient on the upper face of every point along each axis

    On the face between `x` and `x + e_i` the derivative along `i` is the
    forward difference and the derivatives along the other axes are the
    averages of the centered differences at `x` and `x + e_i`.

    Returns
    -------
    faces: list of list of ndarray
        `faces[i][j]` is the derivative along axis `j` on the upper faces
        along axis `i`
    """
    ndim = img.ndim
    padded = numpy.pad(img, 1, mode='edge')
    zero = (0,) * ndim

    def unit(axis, step):
        offsets = [0] * ndim
        offsets[axis] = step
        return offsets

    faces = []
    for i in range(ndim):
        upper_i = _shifted(padded, unit(i, 1))
        derivatives = []

        for j in range(ndim):
            if j == i:
                derivatives.append((upper_i - _shifted(padded, zero)) / dx[i])
                continue

            corner_plus = unit(i, 1)
            corner_plus[j] = 1
            corner_minus = unit(i, 1)
            corner_minus[j] = -1

            derivatives.append((
                _shifted(padded, unit(j, 1)) - _shifted(padded, unit(j, -1)) +
                _shifted(padded, corner_plus) - _shifted(padded, corner_minus)
            ) / (4 * dx[j]))

        faces.append(derivatives)

    return faces


def curvature_anisotropic_diffusion(img, n_iterations=5, time_step=0.125,
                                    conductance=3.0, dx=None):
    """ Edge-preserving smoothing by the modified curvature diffusion
    equation of Whitaker and Xue [1]

    .. math::
        I_t = \\|D I\\| \\, \\nabla \\cdot \\left( c(\\|D I\\|)
        \\frac{D I}{\\|D I\\|} \\right), \\quad
        c(d) = \\exp\\left( -\\frac{d^2}{2 K \\langle \\|D I\\|^2
        \\rangle} \\right)

    The level sets of the image move by a curvature flow that slows down
    across strong edges. The conductance `K` is relative to the average
    squared gradient magnitude of each iteration, so the same value works
    for images of any intensity scale. The divergence is taken over face
    fluxes with zero flux through the boundary, and the outer gradient
    magnitude is upwinded by the sign of the divergence.

    Parameters
    ----------
    img: ndarray
        The image

    n_iterations: int, default=5
        The number of explicit diffusion steps

    time_step: float, default=0.125
        The step size; steps above `min(dx) / 2^(ndim+1)` are unstable and
        a warning is logged

    conductance: float, default=3.0
        Larger values smooth across stronger edges

    dx: array-like, default=None
        The spacing along each axis; ones if None

    Returns
    -------
    smoothed: ndarray, dtype=float

    [1]: R. Whitaker and X. Xue, Variable-conductance, level-set curvature
         for image denoising, ICIP 2001.
    """
    img = numpy.array(img, dtype=float)
    dx = as_spacing(dx, img.ndim)

    if (isinstance(n_iterations, bool) or
            not isinstance(n_iterations, numbers.Integral) or
            n_iterations < 0):
        msg = "`n_iterations` must be a non-negative integer (got {!r})"
        raise ConfigurationError(msg.format(n_iterations))

    if time_step <= 0 or conductance <= 0:
        msg = "`time_step` ({}) and `conductance` ({}) must be positive"
        raise ConfigurationError(msg.format(time_step, conductance))

    stable = dx.min() / 2**(img.ndim + 1)
    if time_step > stable:
        msg = "Diffusion time step {:.7f} exceeds the stable step {:.7f}"
        logger.warning(msg.format(time_step, stable))

    for _ in range(n_iterations):
        _, gmag = mg.gradient_centered(img, dx=dx)
        average = (gmag**2).mean()

        if average == 0:
            break

        scale = 2.0 * conductance * average
        divergence = numpy.zeros_like(img)

        for axis, derivatives in enumerate(_face_gradients(img, dx)):
            magnitude = numpy.sqrt(sum(d**2 for d in derivatives))
            normal = numpy.zeros_like(img)
            nonzero = magnitude > 0
            normal[nonzero] = (derivatives[axis][nonzero] /
                               magnitude[nonzero])

            flux = numpy.exp(-magnitude**2 / scale) * normal

            # Nothing flows in through the first face
            lower = numpy.concatenate(
                [numpy.zeros_like(numpy.take(flux, [0], axis=axis)),
                 numpy.take(flux, numpy.arange(flux.shape[axis] - 1),
                            axis=axis)],
                axis=axis)

            divergence += (flux - lower) / dx[axis]

        # I_t = div * |DI| is u_t + F |Du| = 0 with F = -div
        upwind = mg.gradient_magnitude_osher_sethian(img, -divergence, dx=dx)

        img += time_step * divergence * upwind

    return img


def gradient_magnitude(img, sigma=1.0, dx=None):
    """ The Gaussian-smoothed gradient magnitude of `img`

    Parameters
    ----------
    img: ndarray
        The image

    sigma: float, default=1.0
        The scale of the derivative-of-Gaussian filters in the units of
        `dx`; zero uses plain centered differences

    dx: array-like, default=None
        The spacing along each axis; ones if None

    Returns
    -------
    gradient_magnitude: ndarray
    """
    img = numpy.array(img, dtype=float)
    dx = as_spacing(dx, img.ndim)

    if sigma < 0:
        msg = "`sigma` must be non-negative (got {})"
        raise ConfigurationError(msg.format(sigma))

    if sigma == 0:
        _, gmag = mg.gradient_centered(img, dx=dx)
        return gmag

    gradients = [
        gaussian_filter1d(
            img, sigma=sigma/dx[axis], order=1, axis=axis,
            mode='nearest') / dx[axis]
        for axis in range(img.ndim)
    ]

    # Square, sum, and square-root the gradient terms to form the magnitude
    return reduce(lambda a, b: a+b**2, gradients, numpy.zeros_like(img))**0.5


def sigmoid(arr, alpha, beta, output_minimum=0.0, output_maximum=1.0):
    """ The saturating map

    .. math::
        (\\max - \\min)\\, \\frac{1}{1 + e^{-(x - \\beta)/\\alpha}} + \\min

    A negative `alpha` maps large gradient magnitudes (edges) to values
    near `output_minimum`, i.e., a slow front.
    """
    if alpha == 0:
        raise ConfigurationError("`alpha` must be non-zero")

    if output_maximum < output_minimum:
        msg = "`output_maximum` ({}) is less than `output_minimum` ({})"
        raise ConfigurationError(msg.format(output_maximum, output_minimum))

    arr = numpy.asarray(arr, dtype=float)
    scale = output_maximum - output_minimum

    return scale * expit((arr - beta) / alpha) + output_minimum


def threshold(phi, lower=-numpy.inf, upper=0.0):
    """ The binary mask `lower <= phi <= upper`; with the defaults, the
    region inside the zero level set
    """
    if lower > upper:
        msg = "`lower` ({}) is greater than `upper` ({})"
        raise ConfigurationError(msg.format(lower, upper))

    phi = numpy.asarray(phi)
    return (phi >= lower) & (phi <= upper)
