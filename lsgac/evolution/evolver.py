from collections import namedtuple
import logging
import numbers

import numpy

from lsgac.core.exception import ConfigurationError, NumericalInstability
from lsgac.core.grid import Grid
from lsgac.gradient import masked_gradient as mg
from lsgac.narrow_band.sparse_field import SparseNarrowBand


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)

# Terminal statuses of an evolution
CONVERGED = 'converged'
ITERATION_LIMIT_REACHED = 'iteration-limit-reached'
CANCELLED = 'cancelled'

EvolutionResult = namedtuple(
    'EvolutionResult',
    ['phi', 'status', 'iterations', 'rms_change', 'time_step'])


def _validate_scale(name, value):
    try:
        value = float(value)
    except (TypeError, ValueError):
        msg = "`{}` must be numeric (got {!r})"
        raise ConfigurationError(msg.format(name, value))

    if not numpy.isfinite(value) or value < 0:
        msg = "`{}` must be finite and non-negative (got {})"
        raise ConfigurationError(msg.format(name, value))

    return value


def _validate_positive(name, value):
    try:
        value = float(value)
    except (TypeError, ValueError):
        msg = "`{}` must be numeric (got {!r})"
        raise ConfigurationError(msg.format(name, value))

    if not numpy.isfinite(value) or value <= 0:
        msg = "`{}` must be finite and positive (got {})"
        raise ConfigurationError(msg.format(name, value))

    return value


class LevelSetEvolver:
    """ Geodesic active contour evolution of a level set function on a
    sparse narrow band.

    The level set `phi` is negative inside the contour. Each iteration
    updates the active layer of the band by

    .. math::
        \\phi \\leftarrow \\phi - \\Delta t \\left( c\\, C + p\\, P + a\\, A
        \\right)

    with the curvature term :math:`C = -g \\kappa \\|D\\phi\\|` (smoothing,
    shrinks convex regions), the propagation term :math:`P = g \\|D\\phi\\|`
    (expands the region at speed `g`) and the advection term
    :math:`A = v \\cdot D\\phi` with :math:`v = -D g` (pulls the contour
    toward the valleys of the feature image `g`, i.e., edges).
    """
    def __init__(self, curvature_scale=1.0, propagation_scale=1.0,
                 advection_scale=1.0, max_iterations=100,
                 maximum_rms_error=0.02, number_of_layers=2, cfl=0.5,
                 time_step=None, dx=None):
        """ Initialize an evolver

        Parameters
        ----------
        curvature_scale, propagation_scale, advection_scale: float
            Non-negative weights of the three terms

        max_iterations: int, default=100
            The evolution stops after this many iterations. Zero returns the
            input unchanged.

        maximum_rms_error: float, default=0.02
            The evolution has converged once the root mean square change
            over the active layer in one iteration is below this value

        number_of_layers: int, default=2
            Layers of the narrow band on each side of the active layer

        cfl: float, default=0.5
            The largest distance the front may move in one iteration as a
            fraction of the smallest grid spacing

        time_step: float, default=None
            A fixed time step. None (default) computes it every iteration
            from the stability bound.

        dx: array-like, default=None
            The grid spacing; ones if None

        """
        self.curvature_scale = _validate_scale(
            'curvature_scale', curvature_scale)
        self.propagation_scale = _validate_scale(
            'propagation_scale', propagation_scale)
        self.advection_scale = _validate_scale(
            'advection_scale', advection_scale)

        if (isinstance(max_iterations, bool) or
                not isinstance(max_iterations, numbers.Integral) or
                max_iterations < 0):
            msg = "`max_iterations` must be a non-negative integer (got {!r})"
            raise ConfigurationError(msg.format(max_iterations))
        self.max_iterations = int(max_iterations)

        try:
            maximum_rms_error = float(maximum_rms_error)
        except (TypeError, ValueError):
            msg = "`maximum_rms_error` must be numeric (got {!r})"
            raise ConfigurationError(msg.format(maximum_rms_error))

        if numpy.isnan(maximum_rms_error) or maximum_rms_error < 0:
            msg = "`maximum_rms_error` must be non-negative (got {})"
            raise ConfigurationError(msg.format(maximum_rms_error))
        self.maximum_rms_error = maximum_rms_error

        if (isinstance(number_of_layers, bool) or
                not isinstance(number_of_layers, numbers.Integral) or
                number_of_layers < 2):
            msg = "`number_of_layers` must be an integer >= 2 (got {!r})"
            raise ConfigurationError(msg.format(number_of_layers))
        self.number_of_layers = int(number_of_layers)

        self.cfl = _validate_positive('cfl', cfl)

        if time_step is None:
            self.time_step = time_step
        else:  # Non-None => fixed step
            self.time_step = _validate_positive('time_step', time_step)

        self.dx = dx

    def _log_with_iter(self, iteration, msg, level='info'):
        """ Write to the logger with the current iteration number prepended
        to the log message
        """
        full_message = "(Iteration = {:03d}) {:s}".format(iteration, msg)

        if level == 'info':
            logger.info(full_message)
        elif level == 'debug':
            logger.debug(full_message)
        elif level == 'warning':
            logger.warning(full_message)
        elif level == 'error':
            logger.error(full_message)
        else:
            raise ValueError("Unknown log level: {}".format(level))

    def evolve(self, phi, feature, on_iterate=None, cancel=None):
        """
        Evolve the level set function `phi` under the feature image

        Parameters
        ----------
        phi: ndarray
            The initial level set function, negative inside. Not modified.

        feature: ndarray, same shape as `phi`
            The non-negative feature (speed) image `g`, typically in [0, 1]
            and small near edges

        on_iterate: callable or list of callables, default=None
            Called before the first iteration and after each iteration.
            The expected signature is :code:`on_iterate(i, phi)`
            where :code:`phi` is level set function at iteration :code:`i`

        cancel: object with an `is_set()` method, default=None
            E.g., a `threading.Event`; checked between iterations. When set,
            the evolution stops with status `CANCELLED` and the field of the
            last completed iteration.

        Returns
        -------
        result: EvolutionResult
            The final level set `phi`, the terminal `status` (one of
            `CONVERGED`, `ITERATION_LIMIT_REACHED`, `CANCELLED`), the number
            of `iterations` executed, the last `rms_change` and the last
            `time_step` used.

        """
        ############################################################
        # Input validation
        phi = numpy.array(phi, dtype=float)
        feature = numpy.array(feature, dtype=float)

        if phi.ndim == 0:
            raise ConfigurationError("`phi` must have at least one dimension")

        grid = Grid.from_array(phi, dx=self.dx)
        grid.check_field(feature, name='feature')

        bad = ~numpy.isfinite(feature) | (feature < 0)
        if bad.any():
            index = tuple(int(i) for i in numpy.argwhere(bad)[0])
            msg = "Feature must be finite and non-negative; found {} at {}"
            raise ConfigurationError(msg.format(feature[index], index))

        if on_iterate:
            if not isinstance(on_iterate, list):
                on_iterate = [on_iterate]

            if not all([callable(func) for func in on_iterate]):
                msg = "All on_iterate items must be callable"
                raise TypeError(msg)

        if cancel is not None and not callable(getattr(cancel, 'is_set', None)):
            msg = "`cancel` must provide an `is_set()` method"
            raise TypeError(msg)
        # End Input validation
        ############################################################

        if self.max_iterations == 0:
            return EvolutionResult(phi=phi, status=ITERATION_LIMIT_REACHED,
                                   iterations=0, rms_change=0.0,
                                   time_step=0.0)

        # `values` is a view of `phi`
        values = phi.reshape(-1)
        band = SparseNarrowBand(grid, number_of_layers=self.number_of_layers)
        band.classify(values)

        g = feature.ravel()
        velocity = [-component.ravel() for component in mg.gradient_centered(
            feature, dx=grid.dx, return_gradient_magnitude=False)]

        if on_iterate:
            for func in on_iterate:
                func(0, phi)

        iteration = 0
        rms_change = 0.0
        time_step = 0.0
        warned = False

        while True:
            if iteration >= self.max_iterations:
                status = ITERATION_LIMIT_REACHED
                break

            if cancel is not None and cancel.is_set():
                self._log_with_iter(iteration, "Cancelled")
                status = CANCELLED
                break

            active = band.active

            if len(active) == 0:
                self._log_with_iter(iteration, "Active layer is empty")
                rms_change = 0.0
                status = CONVERGED
                break

            change = self._compute_update(values, grid, active, g, velocity)

            bound = self._time_step_bound(
                grid, g[active], [v[active] for v in velocity])

            if self.time_step is None:
                time_step = bound if numpy.isfinite(bound) else 0.0
            else:
                time_step = self.time_step
                if time_step > bound and not warned:
                    msg = "Computed step is {:.7f} but given step is {:.7f}"
                    self._log_with_iter(
                        iteration, msg.format(bound, time_step), 'warning')
                    warned = True

            old_values = values[active]

            with numpy.errstate(over='ignore', invalid='ignore'):
                new_values = old_values + time_step * change

            finite = numpy.isfinite(new_values)
            if not finite.all():
                index = grid.unravel(int(active[numpy.argmin(finite)]))
                msg = ("Non-finite level set update at index {} "
                       "with time step {}")
                raise NumericalInstability(msg.format(index, time_step),
                                           index=index, time_step=time_step)

            held = band.held(new_values)
            new_values[held] = old_values[held]

            delta = new_values - old_values
            rms_change = float(numpy.sqrt(numpy.mean(delta**2)))

            values[active] = new_values
            n_up, n_down = band.rebuild(values)

            iteration += 1

            msg = ("RMS change = {:.7f}, time step = {:.7f}, "
                   "active = {:d}, moved out = {:d}, moved in = {:d}")
            self._log_with_iter(
                iteration,
                msg.format(rms_change, time_step, len(active), n_up, n_down),
                level='debug')

            if on_iterate:
                for func in on_iterate:
                    func(iteration, phi)

            if rms_change < self.maximum_rms_error:
                status = CONVERGED
                break

        msg = "Evolution finished: {} after {} iterations (RMS change = {:.7f})"
        self._log_with_iter(iteration, msg.format(
            status, iteration, rms_change))

        return EvolutionResult(phi=phi, status=status, iterations=iteration,
                               rms_change=rms_change, time_step=time_step)

    def _compute_update(self, values, grid, active, g, velocity):
        """ The rate of change of each active value, computed entirely from
        the current field before any value is written
        """
        g_active = g[active]
        change = numpy.zeros(len(active), dtype=float)

        with numpy.errstate(over='ignore', invalid='ignore'):
            if self.curvature_scale > 0:
                curvature = -g_active * mg.curvature_at(values, grid, active)
                change += self.curvature_scale * curvature

            if self.propagation_scale > 0:
                propagation = g_active * mg.gradient_magnitude_osher_sethian_at(
                    values, grid, active, g_active)
                change += self.propagation_scale * propagation

            if self.advection_scale > 0:
                advection = mg.advection_at(
                    values, grid, active, [v[active] for v in velocity])
                change += self.advection_scale * advection

            change = -change

        finite = numpy.isfinite(change)
        if not finite.all():
            index = grid.unravel(int(active[numpy.argmin(finite)]))
            msg = "Non-finite level set update at index {}"
            raise NumericalInstability(msg.format(index), index=index)

        return change

    def _time_step_bound(self, grid, g_active, velocity_active):
        """ The largest stable time step. The front speed of the propagation
        and advection terms, :math:`p g + a \\|v\\|_1`, may carry an active
        point at most `cfl` times the smallest spacing per step, and the
        explicit curvature (diffusion) term obeys
        :math:`\\Delta t \\le h^2 / (2\\, n\\, c \\max g)`.

        The bound follows the coefficients of the terms, not their current
        values, so the changes vanish as the terms come into balance.
        """
        h = float(grid.dx.min())
        bound = numpy.inf

        if len(g_active) == 0:
            return bound

        with numpy.errstate(over='ignore'):
            front_speed = self.propagation_scale * g_active
            if self.advection_scale > 0:
                front_speed = front_speed + self.advection_scale * sum(
                    numpy.abs(v) for v in velocity_active)
            max_speed = front_speed.max()

        if max_speed > 0:
            bound = self.cfl * h / max_speed

        if self.curvature_scale > 0:
            g_max = g_active.max()
            if g_max > 0:
                bound = min(bound, h**2 / (
                    2 * grid.ndim * self.curvature_scale * g_max))

        return bound
