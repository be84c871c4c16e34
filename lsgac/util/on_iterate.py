""" This module provides a few simple `on_iterate` functions that can be
used in the :meth:`lsgac.evolution.evolver.LevelSetEvolver.evolve` member
function
"""
import numpy


def collect_scores(seg, score_list, score_func):
    """ Collects the scores from the iterations. Scores are appended to
    :code:`score_list` and so an empty list should be provided. Usage::

        scores = []
        score_collector = collect_scores(seg, scores, jaccard)
        evolver.evolve(phi, feature, on_iterate=[score_collector, ...])
    """

    def on_iterate(i, phi):
        score_list.append(score_func(phi, seg))

    return on_iterate


def collect_areas(area_list, cutoff=0.0, dx=None):
    """ Collects the area (volume in 3d) of the region `phi <= cutoff` at
    each iteration, in units of `dx`
    """

    def on_iterate(i, phi):
        cell = 1.0 if dx is None else float(numpy.prod(dx))
        area_list.append(float((phi <= cutoff).sum()) * cell)

    return on_iterate


def collect_level_sets(phi_list):
    """ Collects a copy of the level set function at each iteration """

    def on_iterate(i, phi):
        phi_list.append(phi.copy())

    return on_iterate
