# flake8: noqa

from .evolver import (
    CANCELLED,
    CONVERGED,
    EvolutionResult,
    ITERATION_LIMIT_REACHED,
    LevelSetEvolver,
)
