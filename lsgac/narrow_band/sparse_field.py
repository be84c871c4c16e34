""" A sparse field narrow band: the grid points near the zero level set
organized into signed layers.

Layer 0 (the active layer) holds, for every grid-adjacent pair of points on
opposite sides of the zero level set, the member closer to it. Layers
+1..+L (outside, `phi > 0`) and -1..-L (inside, `phi <= 0`) are grown
outward from it one grid step at a time. Only active values are evolved;
the outer layers carry approximate signed distances recomputed from the
next inner layer after every update, and points outside of the band hold
a constant background value.

[1]: R. Whitaker, A level-set approach to 3D reconstruction from range
     data, IJCV 29(3), 1998.
"""
import logging

import numpy

from lsgac.core.exception import ConfigurationError
from lsgac.eikonal.fast_marching import upwind_arrival
from lsgac.gradient.masked_gradient import central_differences


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)

# Layer number of points that are not in the band
FAR_LAYER = numpy.iinfo(numpy.int8).max

# Active values are divided by the gradient magnitude unless it is tiny
MIN_GRADIENT_MAGNITUDE = 1e-8

_TINY = numpy.finfo(float).tiny


def _reduce_by_index(indices, values, ufunc):
    """ Combine `values` sharing the same index with `ufunc` (e.g.,
    `numpy.maximum`), returning the unique indices and reduced values
    """
    order = numpy.argsort(indices, kind='stable')
    indices = indices[order]
    values = values[order]

    unique, starts = numpy.unique(indices, return_index=True)

    return unique, ufunc.reduceat(values, starts)


class SparseNarrowBand:
    """ Layered index sets over a grid

    Attributes
    ----------
    limit: float
        Active values lie in `[-limit, limit]`; a point whose value moves
        past it leaves the active layer

    background: float
        The magnitude of the value given to points outside of the band
    """
    def __init__(self, grid, number_of_layers=2):
        """ Initialize an (empty) band

        Parameters
        ----------
        grid: lsgac.core.grid.Grid
            The domain of the level set field

        number_of_layers: int, default=2
            The number of layers on each side of the active layer. Two are
            needed for the curvature stencil.

        """
        if (isinstance(number_of_layers, bool) or
                not isinstance(number_of_layers, (int, numpy.integer)) or
                number_of_layers < 2):
            msg = "`number_of_layers` must be an integer >= 2 (got {!r})"
            raise ConfigurationError(msg.format(number_of_layers))

        if number_of_layers >= FAR_LAYER:
            msg = "`number_of_layers` must be less than {}"
            raise ConfigurationError(msg.format(FAR_LAYER))

        self.grid = grid
        self.number_of_layers = int(number_of_layers)

        self.limit = 0.5 * float(grid.dx.min())
        self.background = (self.number_of_layers + 1) * float(grid.dx.max())

        self._layer_of = numpy.full(grid.size, FAR_LAYER, dtype=numpy.int8)
        self._layers = {k: numpy.empty(0, dtype=numpy.int64)
                        for k in self.layer_numbers}

    @property
    def layer_numbers(self):
        return range(-self.number_of_layers, self.number_of_layers + 1)

    @property
    def active(self):
        """ Flat indices of the active layer (sorted) """
        return self._layers[0]

    @property
    def indices(self):
        """ Flat indices of every point in the band """
        return numpy.concatenate([self._layers[k] for k in self.layer_numbers])

    def __len__(self):
        return sum(len(self._layers[k]) for k in self.layer_numbers)

    def layer(self, k):
        """ Flat indices of layer `k` """
        if k not in self._layers:
            msg = "Layer {} does not exist (layers are {} to {})"
            raise ConfigurationError(msg.format(
                k, -self.number_of_layers, self.number_of_layers))
        return self._layers[k]

    def layer_of(self, flat):
        """ Layer numbers of the flat indices `flat`; `FAR_LAYER` for points
        outside of the band
        """
        return self._layer_of[flat]

    def layer_image(self):
        """ The layer number of every grid point as an array of grid shape
        """
        return self._layer_of.reshape(self.grid.shape).copy()

    def classify(self, values):
        """ Build the band from scratch for the full field `values`

        Parameters
        ----------
        values: numpy.ndarray, dtype=float, shape=(grid.size,)
            The flattened level set values, updated in place: active values
            are normalized, outer layers are reset to approximate distances
            and everything else to the signed background value.

        """
        grid = self.grid

        if numpy.isnan(values).any():
            index = grid.unravel(int(numpy.flatnonzero(numpy.isnan(values))[0]))
            msg = "Level set contains NaN at index {}"
            raise ConfigurationError(msg.format(index))

        infinite = numpy.isinf(values)
        values[infinite] = numpy.sign(values[infinite]) * self.background

        inside = values <= 0
        is_active = numpy.zeros(grid.size, dtype=bool)
        points = numpy.arange(grid.size)

        for axis in range(grid.ndim):
            neighbor, valid = grid.shift(points, axis, +1)
            crossing = valid & (inside != inside[neighbor])

            p = points[crossing]
            q = neighbor[crossing]
            p_closer = numpy.abs(values[p]) <= numpy.abs(values[q])

            is_active[p[p_closer]] = True
            is_active[q[~p_closer]] = True

        active = numpy.flatnonzero(is_active)

        # Normalize to a distance estimate phi / |grad phi|
        gradients = central_differences(values, grid, active)
        magnitude = numpy.sqrt(sum(g**2 for g in gradients))
        normalized = values[active].copy()
        steep = magnitude > MIN_GRADIENT_MAGNITUDE
        normalized[steep] /= magnitude[steep]
        values[active] = self._clip_active(normalized, values[active] > 0)

        self._layer_of[:] = FAR_LAYER
        for k in self.layer_numbers:
            self._layers[k] = numpy.empty(0, dtype=numpy.int64)

        self._layers[0] = active
        self._layer_of[active] = 0
        self._grow(values)

        outside_band = self._layer_of == FAR_LAYER
        values[outside_band] = numpy.where(
            values[outside_band] > 0, self.background, -self.background)

        msg = "Classified band with {} active points ({} total)"
        logger.debug(msg.format(len(active), len(self)))

    def held(self, new_values):
        """ Active points that must keep their previous value

        A point leaving the active layer upward next to one leaving
        downward (or vice versa) would open a gap between layers +1 and -1;
        both are held in place for this update.

        Parameters
        ----------
        new_values: numpy.ndarray, shape=(len(active),)
            Candidate values for the active layer

        Returns
        -------
        held: numpy.ndarray, dtype=bool, shape=(len(active),)
        """
        active = self.active
        up = active[new_values > self.limit]
        down = active[new_values < -self.limit]

        if len(up) == 0 or len(down) == 0:
            return numpy.zeros(len(active), dtype=bool)

        up_conflict = numpy.zeros(len(up), dtype=bool)
        down_conflict = []

        for axis in range(self.grid.ndim):
            for offset in (-1, 1):
                neighbor, valid = self.grid.shift(up, axis, offset)
                hit = valid & numpy.isin(neighbor, down)
                up_conflict |= hit
                down_conflict.append(neighbor[hit])

        conflicting = numpy.concatenate([up[up_conflict]] + down_conflict)

        return numpy.isin(active, conflicting)

    def rebuild(self, values):
        """ Re-layer the band after the active values were updated

        Active points with `values > limit` move out (upward), those with
        `values < -limit` move in (downward). Their layer -1 (resp. +1)
        neighbors take their place in the active layer. The outer layers are
        then regrown from the new active layer and their values recomputed.
        Points that drop out of the band get the signed background value.

        Parameters
        ----------
        values: numpy.ndarray, dtype=float, shape=(grid.size,)
            The flattened level set values, updated in place

        """
        active = self.active
        active_values = values[active]

        up = active[active_values > self.limit]
        down = active[active_values < -self.limit]

        promoted_inside, inside_values = self._promote(up, values, -1)
        promoted_outside, outside_values = self._promote(down, values, +1)

        values[promoted_inside] = inside_values
        values[promoted_outside] = outside_values

        staying = active[numpy.abs(active_values) <= self.limit]
        new_active = numpy.concatenate(
            [staying, promoted_inside, promoted_outside])
        new_active.sort()

        old_band = numpy.concatenate(
            [self._layers[k] for k in self.layer_numbers if k != 0] +
            [up, down])

        self._layer_of[old_band] = FAR_LAYER
        for k in self.layer_numbers:
            self._layers[k] = numpy.empty(0, dtype=numpy.int64)

        self._layers[0] = new_active
        self._layer_of[new_active] = 0
        self._grow(values)

        leaving = old_band[self._layer_of[old_band] == FAR_LAYER]
        values[leaving] = numpy.where(
            values[leaving] > 0, self.background, -self.background)

        return len(up), len(down)

    def _clip_active(self, active_values, positive):
        clipped = numpy.clip(active_values, -self.limit, self.limit)
        clipped[positive] = numpy.maximum(clipped[positive], _TINY)
        clipped[~positive] = numpy.minimum(clipped[~positive], 0.0)
        return clipped

    def _promote(self, movers, values, source_layer):
        """ Neighbors in `source_layer` of the points in `movers` with their
        new active values: the mover's value stepped one grid spacing
        toward (and not past) the zero level set
        """
        grid = self.grid
        indices = []
        candidates = []

        for axis in range(grid.ndim):
            for offset in (-1, 1):
                neighbor, valid = grid.shift(movers, axis, offset)
                sel = valid & (self._layer_of[neighbor] == source_layer)
                indices.append(neighbor[sel])
                candidates.append(
                    values[movers[sel]] + source_layer * grid.dx[axis])

        indices = numpy.concatenate(indices)
        candidates = numpy.concatenate(candidates)

        if len(indices) == 0:
            return indices.astype(numpy.int64), candidates

        if source_layer < 0:
            indices, promoted = _reduce_by_index(
                indices, candidates, numpy.maximum)
            promoted = numpy.clip(promoted, -self.limit, 0.0)
        else:
            indices, promoted = _reduce_by_index(
                indices, candidates, numpy.minimum)
            promoted = numpy.clip(promoted, _TINY, self.limit)

        return indices, promoted

    def _neighbors(self, flat):
        """ Unique in-grid face neighbors of the points `flat` """
        grid = self.grid
        neighbors = []

        for axis in range(grid.ndim):
            for offset in (-1, 1):
                neighbor, valid = grid.shift(flat, axis, offset)
                neighbors.append(neighbor[valid])

        return numpy.unique(numpy.concatenate(neighbors))

    def _grow(self, values):
        """ Breadth-first growth of layers +-1..+-L from the active layer,
        each point's value recomputed from the next inner layer by the
        upwind eikonal update
        """
        grid = self.grid
        layer_of = self._layer_of

        for k in range(1, self.number_of_layers + 1):
            for side in (1, -1):
                inner = side * (k - 1)
                candidates = self._neighbors(self._layers[inner])
                candidates = candidates[layer_of[candidates] == FAR_LAYER]

                if side > 0:
                    candidates = candidates[values[candidates] > 0]
                else:
                    candidates = candidates[values[candidates] <= 0]

                layer_of[candidates] = side * k
                self._layers[side * k] = candidates

                if len(candidates) == 0:
                    continue

                times = numpy.full((len(candidates), grid.ndim), numpy.inf)

                for axis in range(grid.ndim):
                    for offset in (-1, 1):
                        neighbor, valid = grid.shift(candidates, axis, offset)
                        usable = valid & (layer_of[neighbor] == inner)
                        t = numpy.where(
                            usable, side * values[neighbor], numpy.inf)
                        times[:, axis] = numpy.minimum(times[:, axis], t)

                distance = upwind_arrival(times, grid.dx)
                values[candidates] = side * numpy.maximum(distance, _TINY)

    def check_layers(self):
        """ True if grid-adjacent band points differ in layer by at most one
        """
        grid = self.grid
        band = self.indices

        for axis in range(grid.ndim):
            neighbor, valid = grid.shift(band, axis, +1)
            here = self._layer_of[band[valid]].astype(int)
            there = self._layer_of[neighbor[valid]].astype(int)
            both = there != FAR_LAYER
            if (numpy.abs(here[both] - there[both]) > 1).any():
                return False

        return True
