# flake8: noqa

from .fast_marching import (
    fast_marching,
    FastMarchingResult,
    FastMarchingSolver,
    initial_level_set,
    solve_upwind_quadratic,
    upwind_arrival,
)

from .heap import IndexedMinHeap
