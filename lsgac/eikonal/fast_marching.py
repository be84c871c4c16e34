""" Fast marching solution of the eikonal equation |grad T| = 1 / F.

Points are finalized in order of increasing arrival time. Each point's
tentative time is the upwind (Godunov) finite difference solution that uses,
per axis, the smaller of its already finalized neighbor values.

[1]: J.A. Sethian, A fast marching level set method for monotonically
     advancing fronts, PNAS 93(4), 1996.
"""
from collections import namedtuple
import logging
import math

import numpy

from lsgac.core.exception import ConfigurationError
from lsgac.core.grid import Grid
from lsgac.eikonal.heap import IndexedMinHeap
from lsgac.initializer.seed import normalize_seeds


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)

FAR = 0
TRIAL = 1
KNOWN = 2

FastMarchingResult = namedtuple('FastMarchingResult', ['arrival', 'status'])


def solve_upwind_quadratic(times, spacings, slowness):
    """ Solve the upwind discretization at one point

    .. math::
        \\sum_a \\left( \\frac{T - t_a}{h_a} \\right)^2 = s^2

    over the axes with a known neighbor value `t_a`. Axes with the largest
    `t_a` are dropped while the discriminant is negative or the root would
    not be upwind (i.e., smaller than some `t_a` used). With one axis left
    this is the single-axis estimate `min_a(t_a + h_a s)`.

    Parameters
    ----------
    times: list of float
        The smaller known neighbor value along each usable axis

    spacings: list of float
        The grid spacing along the corresponding axes

    slowness: float
        The reciprocal of the speed at the point

    Returns
    -------
    value: float
    """
    pairs = sorted(zip(times, spacings))

    for m in range(len(pairs), 1, -1):
        a = b = c = 0.0
        for t, h in pairs[:m]:
            inv = 1.0 / (h * h)
            a += inv
            b -= 2.0 * t * inv
            c += t * t * inv
        c -= slowness * slowness

        discriminant = b * b - 4.0 * a * c
        if discriminant >= 0:
            root = (-b + math.sqrt(discriminant)) / (2.0 * a)
            if root >= pairs[m - 1][0]:
                return root

    return min(t + h * slowness for t, h in pairs)


def upwind_arrival(neighbor_times, dx, slowness=1.0):
    """ Vectorized :func:`solve_upwind_quadratic` for many points

    Parameters
    ----------
    neighbor_times: numpy.ndarray, shape=(n_points, ndim)
        The upwind neighbor value along each axis, `inf` where the axis has
        no usable neighbor

    dx: numpy.ndarray, shape=(ndim,)
        The grid spacing

    slowness: float or numpy.ndarray, shape=(n_points,)
        The reciprocal speed at each point

    Returns
    -------
    values: numpy.ndarray, shape=(n_points,)
        `inf` for points without any usable neighbor
    """
    times = numpy.asarray(neighbor_times, dtype=float)
    dx = numpy.asarray(dx, dtype=float)
    n_points, ndim = times.shape
    slowness = numpy.broadcast_to(
        numpy.asarray(slowness, dtype=float), (n_points,))

    order = numpy.argsort(times, axis=1, kind='stable')
    sorted_times = numpy.take_along_axis(times, order, axis=1)
    sorted_dx = dx[order]

    values = numpy.full(n_points, numpy.inf)
    unresolved = numpy.isfinite(sorted_times[:, 0])

    with numpy.errstate(invalid='ignore', over='ignore'):
        for m in range(ndim, 1, -1):
            usable = unresolved & numpy.isfinite(sorted_times[:, m-1])
            if not usable.any():
                continue

            t = sorted_times[usable, :m]
            inv = 1.0 / sorted_dx[usable, :m]**2
            a = inv.sum(axis=1)
            b = -2.0 * (t * inv).sum(axis=1)
            c = (t**2 * inv).sum(axis=1) - slowness[usable]**2

            discriminant = b**2 - 4.0*a*c
            root = (-b + numpy.sqrt(numpy.maximum(discriminant, 0))) / (2*a)
            ok = (discriminant >= 0) & (root >= t[:, m-1])

            where = numpy.flatnonzero(usable)[ok]
            values[where] = root[ok]
            unresolved[where] = False

        single_axis = numpy.min(times + dx[None, :]*slowness[:, None], axis=1)

    values[unresolved] = single_axis[unresolved]

    return values


class FastMarchingSolver:
    """ Computes arrival times from seed points under a non-negative speed
    """
    def __init__(self, shape, dx=None, stopping_value=numpy.inf):
        """ Initialize a fast marching solver

        Parameters
        ----------
        shape: tuple of int
            The shape of the domain

        dx: array-like, default=None
            The spacing along each axis; None uses ones

        stopping_value: float, default=inf
            Marching stops once the smallest tentative time exceeds this
            value; farther points are left at `inf` (or at their tentative
            value with TRIAL status)

        """
        self.grid = Grid(shape, dx=dx)

        stopping_value = float(stopping_value)
        if numpy.isnan(stopping_value):
            raise ConfigurationError("`stopping_value` must not be NaN")
        self.stopping_value = stopping_value

    def _validate_speed(self, speed):
        if numpy.ndim(speed) == 0:
            speed = numpy.full(self.grid.shape, speed, dtype=float)
        else:
            speed = numpy.asarray(speed, dtype=float)
            self.grid.check_field(speed, name='speed')

        bad = ~numpy.isfinite(speed) | (speed < 0)
        if bad.any():
            index = tuple(int(i) for i in numpy.argwhere(bad)[0])
            msg = ("Speed must be finite and non-negative; "
                   "found {} at index {}")
            raise ConfigurationError(msg.format(speed[index], index))

        return speed.ravel()

    def solve(self, seeds, speed=1.0):
        """ Run fast marching from `seeds`

        Parameters
        ----------
        seeds: iterable of (index, value)
            Seed points; each is TRIAL with its value at the start. The
            smaller value is kept for duplicate indices.

        speed: float or numpy.ndarray, default=1.0
            Non-negative speed, constant or one value per grid point. Points
            with zero speed are never reached.

        Returns
        -------
        result: FastMarchingResult
            `arrival` (float array, `inf` where not reached) and `status`
            (int8 array of FAR / TRIAL / KNOWN).
        """
        grid = self.grid
        speed = self._validate_speed(speed)
        seeds = normalize_seeds(seeds, grid)

        if not seeds:
            raise ConfigurationError("At least one seed is required")

        arrival = [math.inf] * grid.size
        status = [FAR] * grid.size
        speed_list = speed.tolist()
        dx = [float(h) for h in grid.dx]

        heap = IndexedMinHeap()

        # Seed values are fixed; no neighbor may lower them
        is_seed = [False] * grid.size

        for flat, value in seeds:
            arrival[flat] = value
            status[flat] = TRIAL
            is_seed[flat] = True
            heap.push(flat, value)

        n_known = 0

        while heap:
            node, value = heap.peek()

            if value > self.stopping_value:
                break

            heap.pop()
            status[node] = KNOWN
            n_known += 1

            for _, neighbor in grid.neighbors(node):
                if (status[neighbor] == KNOWN or is_seed[neighbor] or
                        speed_list[neighbor] == 0):
                    continue

                tentative = self._local_update(
                    neighbor, arrival, status, speed_list[neighbor], dx)

                if tentative < arrival[neighbor]:
                    arrival[neighbor] = tentative
                    status[neighbor] = TRIAL
                    heap.push(neighbor, tentative)

        msg = "Fast marching finalized {} / {} points ({} seeds)"
        logger.debug(msg.format(n_known, grid.size, len(seeds)))

        arrival = numpy.array(arrival, dtype=float).reshape(grid.shape)
        status = numpy.array(status, dtype=numpy.int8).reshape(grid.shape)

        return FastMarchingResult(arrival=arrival, status=status)

    def _local_update(self, node, arrival, status, speed, dx):
        """ The upwind estimate at `node` from its KNOWN neighbors """
        grid = self.grid
        best = {}

        for axis, neighbor in grid.neighbors(node):
            if status[neighbor] != KNOWN:
                continue
            t = arrival[neighbor]
            if t < best.get(axis, math.inf):
                best[axis] = t

        times = list(best.values())
        spacings = [dx[axis] for axis in best]

        return solve_upwind_quadratic(times, spacings, 1.0 / speed)


def fast_marching(shape, seeds, speed=1.0, dx=None,
                  stopping_value=numpy.inf):
    """ Arrival times from `seeds`; see :class:`FastMarchingSolver` """
    solver = FastMarchingSolver(shape, dx=dx, stopping_value=stopping_value)
    return solver.solve(seeds, speed=speed).arrival


def initial_level_set(arrival, offset=0.0):
    """ The initial level set `arrival - offset`.

    With seed values `-d` and `offset=0` the zero level set lies a distance
    `d` from the seeds and the field is negative inside. A non-zero offset
    moves the starting contour independently of the seed values.
    """
    offset = float(offset)
    if not numpy.isfinite(offset):
        msg = "`offset` must be finite (got {})"
        raise ConfigurationError(msg.format(offset))

    return numpy.asarray(arrival, dtype=float) - offset
