# flake8: noqa

from .sparse_field import FAR_LAYER, SparseNarrowBand
