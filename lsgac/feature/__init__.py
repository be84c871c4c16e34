# flake8: noqa

from .speed import (
    curvature_anisotropic_diffusion,
    gradient_magnitude,
    sigmoid,
    threshold,
)
