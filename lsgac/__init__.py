# flake8: noqa

from ._version import version as __version__

from .core.exception import (
    ConfigurationError,
    LevelSetError,
    NumericalInstability,
)

from .core.pipeline import GeodesicActiveContourPipeline, PipelineResult

from .eikonal.fast_marching import (
    fast_marching,
    FastMarchingSolver,
    initial_level_set,
)

from .evolution.evolver import EvolutionResult, LevelSetEvolver
